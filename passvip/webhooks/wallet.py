"""
Wallet provider webhook handlers.

The provider posts one JSON event per pass lifecycle change:

    {"event": "pass.installed", "programId": "...", "externalId": "PV-1001",
     "id": "...", "passId": "...", "points": 0, "person": {...}}

Always answers 200 once the program is known and the signature checks out,
including for passes we have never seen, so the provider does not retry
forever.
"""
import logging
from datetime import datetime
from flask import Blueprint, request, jsonify, current_app
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Tenant
from ..models.member import EnrollmentSource, Member, PassStatus
from ..services.tier_engine import build_tier_config, classify
from ..utils.errors import ErrorCode, error_response
from . import verify_wallet_webhook_signature

logger = logging.getLogger(__name__)

wallet_webhook_bp = Blueprint('wallet_webhooks', __name__)

SIGNATURE_HEADER = 'X-Wallet-Signature'

CREATE_EVENTS = ('member.enrolled', 'pass.created', 'create')
INSTALL_EVENTS = ('pass.installed', 'install')
UNINSTALL_EVENTS = ('pass.uninstalled', 'delete')
UPDATE_EVENTS = ('pass.updated', 'update')


def find_member(tenant_id: int, event: dict):
    """
    Locate the member an event refers to.

    externalId / memberId are our barcode ids; id / passId are the
    provider's internal pass ids, tried against both columns.
    """
    for key in ('externalId', 'memberId'):
        value = event.get(key)
        if value:
            member = Member.query.filter_by(tenant_id=tenant_id, external_id=str(value)).first()
            if member:
                return member, key

    for key in ('id', 'passId'):
        value = event.get(key)
        if value:
            member = Member.query.filter(
                Member.tenant_id == tenant_id,
                or_(Member.wallet_pass_id == str(value), Member.external_id == str(value))
            ).first()
            if member:
                return member, key

    return None, None


def _create_member(tenant: Tenant, event: dict, event_type: str):
    external_id = event.get('externalId') or event.get('memberId') or event.get('id') or event.get('passId')
    if not external_id:
        logger.warning(f'Wallet webhook {event_type} without any pass id for tenant {tenant.id}')
        return jsonify({'received': True, 'warning': 'No pass id provided for pass creation'})

    member, matched_by = find_member(tenant.id, event)
    if member:
        return jsonify({
            'success': True,
            'action': 'exists',
            'matched': True,
            'matched_by': matched_by,
            'member_id': member.id,
        })

    person = event.get('person')
    if not isinstance(person, dict):
        person = {}
    try:
        points = max(0, int(event.get('points') or 0))
    except (TypeError, ValueError):
        points = 0
    source = str(event.get('source') or EnrollmentSource.SMARTPASS.value).strip().upper()

    member = Member(
        tenant_id=tenant.id,
        external_id=str(external_id),
        wallet_pass_id=str(event.get('id') or event.get('passId') or '') or None,
        email=str(person.get('emailAddress') or '').strip().lower() or None,
        first_name=person.get('forename'),
        last_name=person.get('surname'),
        phone=person.get('mobileNumber'),
        status=PassStatus.INSTALLED.value,
        enrollment_source=source,
        points_balance=points,
        tier_level=classify(points, build_tier_config(tenant).thresholds).value,
        last_synced_at=datetime.utcnow(),
    )
    db.session.add(member)
    db.session.commit()

    logger.info(f'Wallet webhook created member {member.external_id} for tenant {tenant.id} ({source})')
    return jsonify({
        'success': True,
        'action': 'created',
        'matched': True,
        'member_id': member.id,
    })


def _set_status(tenant: Tenant, event: dict, event_type: str, status: str):
    member, matched_by = find_member(tenant.id, event)
    if not member:
        logger.info(f'Wallet webhook {event_type}: no member matched for tenant {tenant.id}')
        return jsonify({'received': True, 'matched': False, 'event': event_type})

    member.status = status
    member.last_synced_at = datetime.utcnow()
    db.session.commit()

    logger.info(f'Pass {member.external_id} marked {status} (matched by {matched_by})')
    return jsonify({
        'success': True,
        'matched': True,
        'matched_by': matched_by,
        'member_id': member.id,
        'status': status,
    })


def _touch(tenant: Tenant, event: dict, event_type: str):
    member, matched_by = find_member(tenant.id, event)
    if not member:
        return jsonify({'received': True, 'matched': False, 'event': event_type})

    member.last_synced_at = datetime.utcnow()
    db.session.commit()
    return jsonify({'success': True, 'matched': True, 'matched_by': matched_by, 'member_id': member.id})


@wallet_webhook_bp.route('/wallet', methods=['POST'])
def handle_wallet_event():
    """
    Handle a wallet provider pass event.

    Events:
        member.enrolled | pass.created | create  -> create member if absent
        pass.installed | install                 -> status INSTALLED
        pass.uninstalled | delete                -> status UNINSTALLED
        pass.updated | update                    -> touch last_synced_at
    """
    event = request.get_json(silent=True)
    if not isinstance(event, dict):
        return jsonify({'error': 'Invalid JSON payload'}), 400

    event_type = str(event.get('event') or 'unknown')
    program_id = event.get('programId')
    if not program_id:
        logger.warning(f'Wallet webhook {event_type} without programId')
        return jsonify({'received': True, 'warning': 'No programId provided'})

    tenant = Tenant.query.filter_by(wallet_program_id=str(program_id)).first()
    if not tenant:
        logger.warning(f'Wallet webhook for unknown program: {program_id}')
        return jsonify({'received': True, 'warning': f'Program not found: {program_id}'})

    if not current_app.config.get('WALLET_WEBHOOK_SKIP_SIGNATURE'):
        signature = request.headers.get(SIGNATURE_HEADER, '')
        if not verify_wallet_webhook_signature(request.get_data(), signature, tenant.webhook_secret):
            logger.warning(f'Invalid wallet webhook signature for program {program_id}')
            return error_response('Invalid signature', ErrorCode.INVALID_SIGNATURE, 401, log_error=False)

    logger.info(f'Wallet webhook event {event_type} for tenant {tenant.id}')

    try:
        if event_type in CREATE_EVENTS:
            return _create_member(tenant, event, event_type)
        if event_type in INSTALL_EVENTS:
            return _set_status(tenant, event, event_type, PassStatus.INSTALLED.value)
        if event_type in UNINSTALL_EVENTS:
            return _set_status(tenant, event, event_type, PassStatus.UNINSTALLED.value)
        if event_type in UPDATE_EVENTS:
            return _touch(tenant, event, event_type)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f'Error processing wallet webhook {event_type}: {e}')
        return jsonify({'error': 'Failed to process event'}), 500

    return jsonify({'received': True, 'event': event_type, 'message': 'Event type not handled'})
