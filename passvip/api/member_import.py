"""
CSV Member Import API for PassVIP.

Bulk-creates pass holders from a CSV upload. Imported members have no
installed pass yet: they start as PENDING with enrollment source CSV.
"""
import csv
import io
import logging
import uuid
from flask import Blueprint, request

from ..extensions import db
from ..middleware import require_tenant_auth
from ..models.member import EnrollmentSource, Member, PassStatus
from ..services.tier_engine import build_spend_config, build_tier_config, classify, classify_spend
from ..utils.errors import ErrorCode, bad_request
from ..utils.responses import success_response

logger = logging.getLogger(__name__)

member_import_bp = Blueprint('member_import', __name__)

PREVIEW_LIMIT = 10
ERROR_LIMIT = 20

TEMPLATE_COLUMNS = [
    {'name': 'email', 'required': True, 'description': 'Member email address'},
    {'name': 'first_name', 'required': True, 'description': 'First name'},
    {'name': 'last_name', 'required': False, 'description': 'Last name'},
    {'name': 'phone', 'required': False, 'description': 'Phone number'},
    {'name': 'points_balance', 'required': False, 'description': 'Opening points balance'},
    {'name': 'external_id', 'required': False, 'description': 'Pass id printed on the barcode (generated if empty)'},
]


def parse_member_rows(content: str, existing_emails: set) -> dict:
    """
    Validate CSV rows against the import rules.

    Rows are numbered from 2 (the header is row 1). Emails are compared
    case-insensitively, both against existing members and within the file.

    Returns:
        {'valid': [...], 'invalid': [...], 'duplicates': [...]}
    """
    reader = csv.DictReader(io.StringIO(content))
    seen = set(existing_emails)
    valid, invalid, duplicates = [], [], []

    for i, raw in enumerate(reader, start=2):
        row = {(key or '').strip().lower(): (value or '').strip() for key, value in raw.items() if key}
        email = row.get('email', '').lower()
        first_name = row.get('first_name', '')
        points_raw = row.get('points_balance', '')

        errors = []
        if not email:
            errors.append('Missing email')
        elif '@' not in email:
            errors.append('Invalid email format')
        if not first_name:
            errors.append('Missing first_name')

        points = 0
        if points_raw:
            try:
                points = int(points_raw)
            except ValueError:
                errors.append(f'Invalid points_balance: {points_raw}')
            else:
                if points < 0:
                    errors.append('points_balance must not be negative')

        if email and email in seen:
            duplicates.append({'row': i, 'email': email, 'reason': 'Member already exists'})
            continue

        if errors:
            invalid.append({'row': i, 'email': email, 'errors': errors})
            continue

        seen.add(email)
        valid.append({
            'row': i,
            'email': email,
            'first_name': first_name,
            'last_name': row.get('last_name') or None,
            'phone': row.get('phone') or None,
            'points_balance': points,
            'external_id': row.get('external_id') or None,
        })

    return {'valid': valid, 'invalid': invalid, 'duplicates': duplicates}


def _existing_emails(tenant_id: int) -> set:
    return {
        email.lower() for (email,) in
        db.session.query(Member.email).filter(Member.tenant_id == tenant_id, Member.email.isnot(None)).all()
    }


def _read_upload():
    """Return (content, None) or (None, error response)."""
    if 'file' not in request.files:
        return None, bad_request('No file provided', ErrorCode.MISSING_FIELD)

    file = request.files['file']
    if not (file.filename or '').lower().endswith('.csv'):
        return None, bad_request('File must be a CSV')

    try:
        return file.read().decode('utf-8-sig'), None
    except UnicodeDecodeError:
        return None, bad_request('CSV must be UTF-8 encoded')


@member_import_bp.route('/template', methods=['GET'])
@require_tenant_auth
def get_csv_template(ctx):
    return success_response({
        'columns': TEMPLATE_COLUMNS,
        'example_csv': (
            'email,first_name,last_name,phone,points_balance,external_id\n'
            'john@example.com,John,Doe,555-1234,250,PV-1001\n'
            'jane@example.com,Jane,Smith,,,'
        ),
        'instructions': [
            'CSV must include header row',
            'email and first_name are required fields',
            'external_id is generated when left empty',
            'Duplicate emails will be skipped',
        ],
    })


@member_import_bp.route('/preview', methods=['POST'])
@require_tenant_auth
def preview_import(ctx):
    """Validate an upload and show what would be imported."""
    content, error = _read_upload()
    if error:
        return error

    try:
        result = parse_member_rows(content, _existing_emails(ctx.tenant_id))
    except csv.Error as e:
        return bad_request(f'Failed to parse CSV: {e}')

    return success_response({
        'total_rows': sum(len(rows) for rows in result.values()),
        'valid_count': len(result['valid']),
        'invalid_count': len(result['invalid']),
        'duplicate_count': len(result['duplicates']),
        'valid_rows': result['valid'][:PREVIEW_LIMIT],
        'invalid_rows': result['invalid'][:PREVIEW_LIMIT],
        'duplicate_rows': result['duplicates'][:PREVIEW_LIMIT],
    })


@member_import_bp.route('', methods=['POST'])
@require_tenant_auth
def import_members(ctx):
    """Create members for every valid row; duplicates are skipped."""
    content, error = _read_upload()
    if error:
        return error

    try:
        result = parse_member_rows(content, _existing_emails(ctx.tenant_id))
    except csv.Error as e:
        return bad_request(f'Failed to parse CSV: {e}')

    tier_config = build_tier_config(ctx.tenant)
    spend_config = build_spend_config(ctx.tenant)
    taken_ids = {
        external_id for (external_id,) in
        db.session.query(Member.external_id).filter(Member.tenant_id == ctx.tenant_id).all()
    }

    errors = list(result['invalid'])
    imported = 0
    for row in result['valid']:
        external_id = row['external_id'] or f'PV-{uuid.uuid4().hex[:10].upper()}'
        if external_id in taken_ids:
            errors.append({'row': row['row'], 'email': row['email'], 'errors': [f'external_id {external_id} already in use']})
            continue
        taken_ids.add(external_id)

        db.session.add(Member(
            tenant_id=ctx.tenant_id,
            external_id=external_id,
            email=row['email'],
            first_name=row['first_name'],
            last_name=row['last_name'],
            phone=row['phone'],
            points_balance=row['points_balance'],
            status=PassStatus.PENDING.value,
            enrollment_source=EnrollmentSource.CSV.value,
            tier_level=classify(row['points_balance'], tier_config.thresholds).value,
            spend_tier_level=classify_spend(0, spend_config).value,
        ))
        imported += 1

    db.session.commit()
    logger.info(f'Imported {imported} members for tenant {ctx.tenant_id} ({len(result["duplicates"])} duplicates skipped)')

    return success_response({
        'imported': imported,
        'skipped': len(result['duplicates']),
        'error_count': len(errors),
        'errors': errors[:ERROR_LIMIT],
    })
