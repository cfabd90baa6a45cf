"""
Analytics API endpoints for PassVIP.

Enrollment-source breakdown for the dashboard analytics page.
"""
import logging
from flask import Blueprint
from sqlalchemy.exc import SQLAlchemyError

from ..middleware import require_tenant_auth, elapsed_ms
from ..services.analytics_service import AnalyticsService
from ..utils.errors import ErrorCode, error_response
from ..utils.responses import success_response

logger = logging.getLogger(__name__)

analytics_bp = Blueprint('analytics', __name__)


@analytics_bp.route('/enrollment', methods=['GET'])
@require_tenant_auth
def get_enrollment_analytics(ctx):
    """
    Members by enrollment source with active/churned counts.

    Returns (in data):
        programId, totals {total, active, churned},
        bySource {<label>: {total, active, churned}},
        sources {csv, smartpass, claimCode},
        retention {overall, bySource}
    """
    try:
        result = AnalyticsService(ctx.tenant_id).get_enrollment_breakdown()
    except SQLAlchemyError as e:
        logger.error(f'Analytics query failed for tenant {ctx.tenant_id}: {e}')
        return error_response('Failed to load analytics', ErrorCode.QUERY_FAILED, 500)

    data = {'programId': ctx.tenant_id}
    data.update(result.to_dict())

    return success_response(data, metadata={'processingTime': elapsed_ms()})
