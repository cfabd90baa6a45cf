"""
Webhook handlers for PassVIP.
Processes pass lifecycle events pushed by the wallet provider.
"""
import hmac
import hashlib
from flask import current_app


def verify_wallet_webhook_signature(data: bytes, signature_header: str, secret: str) -> bool:
    """
    Verify a wallet provider webhook signature.

    The provider signs the raw request body with HMAC-SHA256 using the
    program's webhook secret and sends the hex digest in X-Wallet-Signature.

    Args:
        data: Raw request body bytes
        signature_header: The X-Wallet-Signature header value
        secret: The webhook secret (stored per tenant)

    Returns:
        True if signature is valid, False otherwise
    """
    if not secret:
        current_app.logger.warning('No webhook secret configured for verification')
        return False

    if not signature_header:
        current_app.logger.warning('No signature header in webhook request')
        return False

    computed = hmac.new(secret.encode('utf-8'), data, hashlib.sha256).hexdigest()
    return hmac.compare_digest(computed, signature_header.strip().lower())


from .wallet import wallet_webhook_bp

__all__ = [
    'wallet_webhook_bp',
    'verify_wallet_webhook_signature',
]
