"""
Logging setup for PassVIP.

One stream handler on the root logger, level from LOG_LEVEL. Records carry
the current request id (see middleware.request_id) so a single dashboard
request can be followed through services and provider calls.
"""
import logging
import os
import sys

from flask import g, has_request_context

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] [%(request_id)s] %(message)s'

_configured = False


class RequestIdFilter(logging.Filter):
    """Attach the active request id (or '-') to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = '-'
        if has_request_context():
            request_id = getattr(g, 'request_id', '-')
        record.request_id = request_id
        return True


def setup_logging(level: str = None) -> None:
    """Configure root logging once per process."""
    global _configured
    if _configured:
        return

    level_name = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    root.addHandler(handler)

    # Quiet chatty libraries
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

    _configured = True
