"""
Members API.

Read-only views of a tenant's pass holders, each row decorated with the
tier badge and progress bar data the dashboard renders.
"""
from flask import Blueprint, current_app, request
from sqlalchemy import or_

from ..middleware import require_tenant_auth, elapsed_ms
from ..models import Member, PosTransaction
from ..services.tier_engine import build_spend_config, build_tier_config, discount_for_tier, tier_info
from ..utils.errors import ErrorCode, not_found
from ..utils.responses import success_response

members_bp = Blueprint('members', __name__)

MAX_PER_PAGE = 200


def serialize_member(member: Member, tier_config, spend_config) -> dict:
    data = member.to_dict()
    data['tier'] = tier_info(member.points_balance or 0, tier_config)
    data['spend_tier'] = {
        'level': member.spend_tier_level,
        'discount_percent': discount_for_tier(member.spend_tier_level, spend_config),
    }
    return data


@members_bp.route('', methods=['GET'])
@require_tenant_auth
def list_members(ctx):
    """
    List members.

    Query params:
        page, per_page: pagination (per_page capped at 200)
        status: INSTALLED, UNINSTALLED, PENDING, ...
        source: enrollment source label
        search: matches email, name or external id
    """
    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('per_page', current_app.config.get('MEMBERS_PER_PAGE', 50), type=int)
    per_page = max(1, min(per_page, MAX_PER_PAGE))

    query = Member.query.filter_by(tenant_id=ctx.tenant_id)

    status = request.args.get('status')
    if status:
        query = query.filter(Member.status == status.upper())

    source = request.args.get('source')
    if source:
        query = query.filter(Member.enrollment_source == source)

    search = (request.args.get('search') or '').strip()
    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(
            Member.email.ilike(pattern),
            Member.first_name.ilike(pattern),
            Member.last_name.ilike(pattern),
            Member.external_id.ilike(pattern),
        ))

    pagination = query.order_by(Member.created_at.desc(), Member.id.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )

    tier_config = build_tier_config(ctx.tenant)
    spend_config = build_spend_config(ctx.tenant)

    return success_response(
        {
            'members': [serialize_member(m, tier_config, spend_config) for m in pagination.items],
            'total': pagination.total,
            'page': page,
            'per_page': per_page,
            'pages': pagination.pages,
        },
        metadata={'processingTime': elapsed_ms()}
    )


@members_bp.route('/<int:member_id>', methods=['GET'])
@require_tenant_auth
def get_member(ctx, member_id):
    """Single member with tier info and the latest POS transactions."""
    member = Member.query.filter_by(id=member_id, tenant_id=ctx.tenant_id).first()
    if not member:
        return not_found('Member not found', ErrorCode.MEMBER_NOT_FOUND)

    data = serialize_member(member, build_tier_config(ctx.tenant), build_spend_config(ctx.tenant))
    data['transactions'] = [
        t.to_dict() for t in member.transactions.order_by(
            PosTransaction.created_at.desc(), PosTransaction.id.desc()
        ).limit(20)
    ]
    return success_response(data)
