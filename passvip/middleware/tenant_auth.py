"""
Tenant Authentication Middleware.

Admin dashboard requests carry a bearer JWT issued by the auth provider
(HS256, signed with AUTH_JWT_SECRET). Its tenant_id or program_id claim,
top-level or under app_metadata, selects the tenant. In dev mode an
X-Tenant-ID header is accepted instead.

Handlers do not read auth state from globals: the decorator builds a
TenantContext for the request and passes it in as the ``ctx`` argument.

    @members_bp.route('', methods=['GET'])
    @require_tenant_auth
    def list_members(ctx):
        ctx.tenant_id
"""
import logging
import jwt
from dataclasses import dataclass
from functools import wraps
from typing import Any, Dict, Optional

from flask import current_app, request

from ..extensions import db
from ..models import Tenant
from ..services.wallet_client import WalletClient
from ..utils.errors import ErrorCode, error_response, forbidden, not_found, unauthorized

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantContext:
    """Per-request credentials and collaborators handed to a view."""

    tenant: Tenant
    user_id: Optional[str]
    wallet_client: WalletClient

    @property
    def tenant_id(self) -> int:
        return self.tenant.id


def decode_auth_token(token: str, secret: str, audience: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a dashboard session token.

    Returns:
        Decoded payload or None if invalid
    """
    if not token or not secret:
        return None

    try:
        return jwt.decode(
            token,
            secret,
            algorithms=['HS256'],
            audience=audience,
            options={
                'verify_aud': bool(audience),
                'verify_exp': True,
            }
        )
    except jwt.ExpiredSignatureError:
        logger.info('Auth token expired')
        return None
    except jwt.InvalidTokenError as e:
        logger.info(f'Invalid auth token: {e}')
        return None


def get_tenant_id_from_claims(payload: Dict[str, Any]) -> Optional[int]:
    metadata = payload.get('app_metadata') or {}
    raw = payload.get('tenant_id', payload.get('program_id'))
    if raw is None:
        raw = metadata.get('tenant_id', metadata.get('program_id'))
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


def get_bearer_token() -> Optional[str]:
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        return auth_header[7:].strip() or None
    return None


def resolve_tenant_context():
    """
    Authenticate the current request.

    Returns:
        (TenantContext, None) on success, (None, error_response) otherwise
    """
    config = current_app.config
    tenant_id = None
    user_id = None

    token = get_bearer_token()
    if token:
        payload = decode_auth_token(
            token,
            config.get('AUTH_JWT_SECRET'),
            config.get('AUTH_JWT_AUDIENCE') or None,
        )
        if payload is None:
            return None, unauthorized('Invalid or expired token', ErrorCode.INVALID_TOKEN)
        tenant_id = get_tenant_id_from_claims(payload)
        user_id = payload.get('sub')
        if tenant_id is None:
            return None, forbidden('No program associated with this user')
    elif config.get('AUTH_DEV_MODE'):
        header = request.headers.get('X-Tenant-ID')
        if header:
            try:
                tenant_id = int(header)
            except ValueError:
                return None, unauthorized('Invalid X-Tenant-ID header')
            user_id = 'dev'

    if tenant_id is None:
        return None, unauthorized()

    tenant = db.session.get(Tenant, tenant_id)
    if not tenant:
        return None, not_found('No program associated with this user', ErrorCode.PROGRAM_NOT_FOUND)

    if not tenant.is_active:
        return None, error_response(
            "This program's access has been disabled",
            ErrorCode.PERMISSION_DENIED,
            403,
            log_error=False
        )

    ctx = TenantContext(
        tenant=tenant,
        user_id=user_id,
        wallet_client=WalletClient.from_config(config),
    )
    return ctx, None


def require_tenant_auth(f):
    """
    Decorator to require tenant authentication for admin API endpoints.

    The wrapped view receives the TenantContext as keyword argument ``ctx``.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        ctx, error = resolve_tenant_context()
        if error is not None:
            return error
        kwargs['ctx'] = ctx
        return f(*args, **kwargs)

    return decorated_function
