"""
Request ID tracking.

Reuses an incoming X-Request-ID (from the proxy or the dashboard) or mints a
new one, exposes it as g.request_id for log records and echoes it back on the
response.
"""
import time
import uuid
from flask import Flask, g, request

REQUEST_ID_HEADER = 'X-Request-ID'


def init_request_id_tracking(app: Flask) -> None:
    @app.before_request
    def assign_request_id():
        incoming = request.headers.get(REQUEST_ID_HEADER, '').strip()
        g.request_id = incoming[:64] if incoming else uuid.uuid4().hex
        g.request_started = time.perf_counter()

    @app.after_request
    def echo_request_id(response):
        request_id = getattr(g, 'request_id', None)
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        return response


def elapsed_ms() -> int:
    """Milliseconds since the current request started."""
    started = getattr(g, 'request_started', None)
    if started is None:
        return 0
    return int((time.perf_counter() - started) * 1000)
