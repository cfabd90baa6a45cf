"""
Custom exceptions for PassVIP business logic.

Services raise these; the API layer maps them to HTTP status codes
through the handler registered in create_app().
"""


class PassVIPError(Exception):
    """Base exception for all PassVIP business logic errors."""

    status_code = 400

    def __init__(self, message: str, code: str = "PASSVIP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(PassVIPError):
    """Resource not found."""

    status_code = 404

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with ID {identifier} not found"
        super().__init__(message, f"{resource.upper()}_NOT_FOUND")


class MemberNotFoundError(NotFoundError):
    """Member (wallet pass) not found."""

    def __init__(self, identifier=None):
        super().__init__("Member", identifier)


class ValidationError(PassVIPError):
    """Invalid input data."""

    def __init__(self, message: str, field: str = None, code: str = None):
        self.field = field
        if code is None:
            code = f"INVALID_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)


class InsufficientPointsError(PassVIPError):
    """Not enough points for a redemption."""

    def __init__(self, current: int, required: int):
        self.current = current
        self.required = required
        message = f"Insufficient points. Current: {current}, Required: {required}"
        super().__init__(message, "INSUFFICIENT_FUNDS")


class ProgramSuspendedError(PassVIPError):
    """Program is suspended; POS actions are blocked."""

    status_code = 403

    def __init__(self, program_name: str = None):
        message = "Program Suspended. Contact Admin."
        if program_name:
            message = f'Program "{program_name}" is suspended. Contact Admin.'
        super().__init__(message, "PROGRAM_SUSPENDED")


class WalletProviderError(PassVIPError):
    """Error communicating with the wallet pass provider."""

    status_code = 502

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(message, "WALLET_PROVIDER_ERROR")
