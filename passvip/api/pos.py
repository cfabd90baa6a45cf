"""
POS API.

Used by the dashboard POS simulator and by terminals that scan a pass
barcode. The actual work happens in PointsService.
"""
from flask import Blueprint, current_app, request

from ..middleware import require_tenant_auth, elapsed_ms
from ..services.points_service import PointsService, available_actions, protocol_for_action
from ..utils.exceptions import ValidationError
from ..utils.responses import success_response

pos_bp = Blueprint('pos', __name__)


@pos_bp.route('/action', methods=['POST'])
@require_tenant_auth
def process_action(ctx):
    """
    Process a POS action.

    Request body:
    {
        "external_id": "PV-1001",
        "action": "MEMBER_EARN",
        "amount": 100,                # points (signed for MEMBER_ADJUST)
        "transaction_amount": 12.50   # optional purchase, MEMBER_EARN only
    }
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')

    external_id = str(data.get('external_id') or data.get('externalId') or '').strip()
    if not external_id:
        raise ValidationError('external_id is required', field='external_id', code='MISSING_FIELD')

    service = PointsService(
        ctx.tenant,
        wallet_client=ctx.wallet_client,
        default_multiplier=current_app.config.get('DEFAULT_EARN_MULTIPLIER', 10),
    )
    result = service.process_action(
        external_id,
        data.get('action'),
        amount=data.get('amount'),
        transaction_amount=data.get('transaction_amount', data.get('transactionAmount')),
    )

    return success_response(result, metadata={'processingTime': elapsed_ms()})


@pos_bp.route('/actions', methods=['GET'])
@require_tenant_auth
def list_actions(ctx):
    """Actions the POS simulator offers, grouped by protocol."""
    return success_response({
        'actions': [
            {'action': action, 'protocol': protocol_for_action(action)}
            for action in available_actions()
        ],
        'earn_rate_multiplier': ctx.tenant.earn_rate_multiplier
        or current_app.config.get('DEFAULT_EARN_MULTIPLIER', 10),
    })
