"""
Middleware package for PassVIP.
"""
from .tenant_auth import TenantContext, require_tenant_auth, decode_auth_token
from .request_id import init_request_id_tracking, elapsed_ms
