"""
Success envelope shared by the admin API.
"""
from flask import jsonify
from typing import Any, Optional


def success_response(data: Any = None, metadata: Optional[dict] = None, status_code: int = 200) -> tuple:
    """Wrap a payload in the {success, data, error, metadata} envelope."""
    return jsonify({
        'success': True,
        'data': data,
        'error': None,
        'metadata': metadata or {}
    }), status_code
