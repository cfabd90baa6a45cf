"""
PassVIP Loyalty Platform
Flask application factory
"""
import os
import re
import logging
from flask import Flask
from flask_cors import CORS

from .extensions import db, migrate
from .config import get_config, validate_config
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app(config_name: str = None) -> Flask:
    """
    Application factory for creating Flask app instances.

    Args:
        config_name: Configuration environment (development, production, testing)

    Returns:
        Configured Flask application
    """
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    # Setup logging before anything else
    setup_logging()
    validate_config(config_name)

    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Configure CORS - allow dashboard origins
    cors_origins = [
        'http://localhost:5173',
        'http://127.0.0.1:5173',
    ]
    extra_origin = os.getenv('DASHBOARD_URL')
    if extra_origin:
        cors_origins.append(extra_origin)
    if config_name != 'production':
        cors_origins.append(re.compile(r'https://.*\.trycloudflare\.com'))
    CORS(
        app,
        origins=cors_origins,
        supports_credentials=True,
        allow_headers=['Content-Type', 'Authorization', 'X-Tenant-ID', 'X-Request-ID'],
    )

    # Initialize request ID tracking for request tracing
    from .middleware import init_request_id_tracking
    init_request_id_tracking(app)

    # Register blueprints
    register_blueprints(app)

    # Register CLI commands
    from .commands import init_app as init_commands
    init_commands(app)

    # Register error handlers
    register_error_handlers(app)

    # Health check endpoint
    @app.route('/health')
    def health_check():
        return {'status': 'healthy', 'service': 'passvip'}

    logger.info(f'PassVIP app created ({config_name})')
    return app


def register_blueprints(app: Flask) -> None:
    """Register all API blueprints."""
    from .api.analytics import analytics_bp
    from .api.members import members_bp
    from .api.member_import import member_import_bp
    from .api.tiers import tiers_bp
    from .api.pos import pos_bp
    from .webhooks import wallet_webhook_bp

    app.register_blueprint(analytics_bp, url_prefix='/api/analytics')
    app.register_blueprint(members_bp, url_prefix='/api/members')
    app.register_blueprint(member_import_bp, url_prefix='/api/members/import')
    app.register_blueprint(tiers_bp, url_prefix='/api/tiers')
    app.register_blueprint(pos_bp, url_prefix='/api/pos')
    app.register_blueprint(wallet_webhook_bp, url_prefix='/webhook')


def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from .utils.errors import ErrorCode, error_response
    from .utils.exceptions import PassVIPError

    @app.errorhandler(PassVIPError)
    def handle_passvip_error(error):
        return error_response(error.message, error.code, error.status_code)

    @app.errorhandler(400)
    def bad_request(error):
        return error_response('Bad request', ErrorCode.INVALID_REQUEST, 400, log_error=False)

    @app.errorhandler(404)
    def not_found(error):
        return error_response('Not found', ErrorCode.NOT_FOUND, 404, log_error=False)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return error_response('Method not allowed', ErrorCode.INVALID_REQUEST, 405, log_error=False)

    @app.errorhandler(500)
    def internal_error(error):
        return error_response('Internal server error', ErrorCode.INTERNAL_ERROR, 500)
