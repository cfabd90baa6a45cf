"""
Utility modules for PassVIP.
"""
from .logging_config import setup_logging
from .errors import (
    ErrorCode,
    error_response,
    bad_request,
    unauthorized,
    forbidden,
    not_found
)
from .exceptions import (
    PassVIPError,
    NotFoundError,
    MemberNotFoundError,
    ValidationError,
    InsufficientPointsError,
    ProgramSuspendedError,
    WalletProviderError
)
from .responses import success_response
