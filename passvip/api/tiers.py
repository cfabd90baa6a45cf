"""
Tier Configuration API.

- GET  /api/tiers/config   current thresholds, names and spend tiers
- PUT  /api/tiers/config   update them
- POST /api/tiers/preview  classify a value without saving anything
"""
import logging
from decimal import Decimal, InvalidOperation
from flask import Blueprint, request

from ..extensions import db
from ..middleware import require_tenant_auth
from ..services.tier_engine import (
    TIER_ORDER,
    TIER_PRESETS,
    TierConfig,
    TierSystemType,
    TierThresholds,
    build_spend_config,
    build_tier_config,
    tier_info,
)
from ..utils.exceptions import ValidationError
from ..utils.responses import success_response

logger = logging.getLogger(__name__)

tiers_bp = Blueprint('tiers', __name__)

THRESHOLD_FIELDS = ('tier_1_max', 'tier_2_max', 'tier_3_max')
NAME_FIELDS = ('tier_1_name', 'tier_2_name', 'tier_3_name', 'tier_4_name', 'default_member_label')
SPEND_FIELDS = ('spend_tier_2_min_cents', 'spend_tier_3_min_cents', 'spend_tier_4_min_cents')
DISCOUNT_FIELDS = tuple(f'tier_{rank}_discount_percent' for rank in range(1, 5))
MAX_NAME_LENGTH = 50


def _config_payload(tenant) -> dict:
    return {
        'tiers': build_tier_config(tenant).to_dict(),
        'spend': build_spend_config(tenant).to_dict(),
        'presets': {
            system.value: {
                level.value: names.for_level(level) for level in TIER_ORDER
            }
            for system, names in TIER_PRESETS.items()
        },
    }


def _validate_int(value, field: str, allow_none: bool = True):
    if value is None or value == '':
        if allow_none:
            return None
        raise ValidationError(f'{field} is required', field=field)
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a whole number', field=field)
    try:
        number = int(str(value).strip())
    except ValueError:
        raise ValidationError(f'{field} must be a whole number', field=field)
    if number < 0:
        raise ValidationError(f'{field} must not be negative', field=field)
    return number


def _validate_increasing(values: dict, fields: tuple) -> None:
    previous_field, previous = None, None
    for field in fields:
        value = values.get(field)
        if value is None:
            continue
        if previous is not None and value <= previous:
            raise ValidationError(
                f'{field} ({value}) must be greater than {previous_field} ({previous})',
                field=field
            )
        previous_field, previous = field, value


def apply_tier_settings(tenant, data: dict) -> None:
    """
    Validate and copy tier settings from a request body onto the tenant.

    Only keys present in ``data`` are touched; null clears a boundary.

    Raises:
        ValidationError: bad type, negative value or non-increasing boundaries
    """
    updates = {}

    if 'tier_system_type' in data:
        raw = str(data.get('tier_system_type') or '').strip().upper()
        if raw not in TierSystemType.__members__:
            raise ValidationError(f'Unknown tier system type: {raw or "(empty)"}', field='tier_system_type')
        updates['tier_system_type'] = raw

    for field in THRESHOLD_FIELDS + SPEND_FIELDS:
        if field in data:
            updates[field] = _validate_int(data[field], field)

    merged = {field: updates.get(field, getattr(tenant, field)) for field in THRESHOLD_FIELDS + SPEND_FIELDS}
    _validate_increasing(merged, THRESHOLD_FIELDS)
    _validate_increasing(merged, SPEND_FIELDS)

    for field in NAME_FIELDS:
        if field in data:
            value = data[field]
            if value is not None and not isinstance(value, str):
                raise ValidationError(f'{field} must be a string', field=field)
            value = (value or '').strip() or None
            if value and len(value) > MAX_NAME_LENGTH:
                raise ValidationError(f'{field} must be at most {MAX_NAME_LENGTH} characters', field=field)
            updates[field] = value

    for field in DISCOUNT_FIELDS:
        if field in data:
            try:
                value = Decimal(str(data[field]))
            except InvalidOperation:
                raise ValidationError(f'{field} must be a number', field=field)
            if not value.is_finite() or value < 0 or value > 100:
                raise ValidationError(f'{field} must be between 0 and 100', field=field)
            updates[field] = value

    for field, value in updates.items():
        setattr(tenant, field, value)


@tiers_bp.route('/config', methods=['GET'])
@require_tenant_auth
def get_tier_config(ctx):
    return success_response(_config_payload(ctx.tenant))


@tiers_bp.route('/config', methods=['PUT'])
@require_tenant_auth
def update_tier_config(ctx):
    """
    Update tier settings.

    Request body (all optional):
    {
        "tier_system_type": "LOYALTY",
        "tier_1_max": 1000, "tier_2_max": 5000, "tier_3_max": 10000,
        "tier_1_name": "Bronze", ..., "default_member_label": "Member",
        "spend_tier_2_min_cents": 30000, ...,
        "tier_2_discount_percent": 5, ...
    }
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')

    apply_tier_settings(ctx.tenant, data)
    db.session.commit()

    logger.info(f'Tier configuration updated for tenant {ctx.tenant_id} by {ctx.user_id}')
    return success_response(_config_payload(ctx.tenant))


@tiers_bp.route('/preview', methods=['POST'])
@require_tenant_auth
def preview_tier(ctx):
    """
    Classify a value.

    Request body:
    {
        "value": 1200,
        "thresholds": [1000, 5000, 10000]   # optional, defaults to the tenant's
    }
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    config = build_tier_config(ctx.tenant)

    if 'thresholds' in data:
        raw = data.get('thresholds')
        if isinstance(raw, dict):
            raw = [raw.get(field) for field in THRESHOLD_FIELDS]
        if not isinstance(raw, (list, tuple)):
            raise ValidationError('thresholds must be a list of up to three numbers', field='thresholds')
        config = TierConfig(
            system_type=config.system_type,
            thresholds=TierThresholds.of(*raw),
            names=config.names,
            wallet_tier_ids=config.wallet_tier_ids,
            base_wallet_tier_id=config.base_wallet_tier_id,
        )

    info = tier_info(data.get('value'), config)
    info['thresholds'] = config.thresholds.to_dict()
    return success_response(info)
