"""
Configuration management for the PassVIP platform.
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).lower() in ('1', 'true', 'yes')


class BaseConfig:
    """Base configuration."""
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Admin dashboard auth (JWTs issued by the auth provider)
    AUTH_JWT_SECRET = os.getenv('AUTH_JWT_SECRET', '')
    AUTH_JWT_AUDIENCE = os.getenv('AUTH_JWT_AUDIENCE', 'authenticated')
    AUTH_DEV_MODE = _env_flag('AUTH_DEV_MODE')

    # Wallet pass provider
    WALLET_API_URL = os.getenv('WALLET_API_URL', '')
    WALLET_API_KEY = os.getenv('WALLET_API_KEY', '')
    WALLET_TIMEOUT = float(os.getenv('WALLET_TIMEOUT', '10'))
    WALLET_WEBHOOK_SKIP_SIGNATURE = _env_flag('WALLET_WEBHOOK_SKIP_SIGNATURE')

    # Points per currency unit when a POS earn carries a transaction amount
    DEFAULT_EARN_MULTIPLIER = int(os.getenv('DEFAULT_EARN_MULTIPLIER', '10'))

    # Member list pagination
    MEMBERS_PER_PAGE = 50


class DevelopmentConfig(BaseConfig):
    """Development configuration."""
    DEBUG = True
    AUTH_DEV_MODE = _env_flag('AUTH_DEV_MODE', 'true')
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'DATABASE_URL',
        'sqlite:///passvip_dev.db'  # SQLite fallback for local dev
    )


class ProductionConfig(BaseConfig):
    """Production configuration."""
    DEBUG = False

    _db_url = os.getenv('DATABASE_URL', '')
    if _db_url.startswith('postgres://'):
        # SQLAlchemy requires postgresql:// not postgres://
        _db_url = _db_url.replace('postgres://', 'postgresql://', 1)

    SQLALCHEMY_DATABASE_URI = _db_url

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 5,
        'pool_recycle': 300,
        'pool_pre_ping': True,
    }

    # Must be set via environment
    _secret_key = os.getenv('SECRET_KEY', '')

    @classmethod
    def validate_secret_key(cls) -> str:
        """
        Validate SECRET_KEY in production environment.

        Raises:
            RuntimeError: If SECRET_KEY is missing, too short or looks like a placeholder
        """
        if not cls._secret_key:
            raise RuntimeError(
                "SECRET_KEY environment variable is not set.\n"
                "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
            )

        insecure_patterns = ['dev', 'change', 'default', 'test', 'secret', 'password']
        lower_key = cls._secret_key.lower()
        for pattern in insecure_patterns:
            if pattern in lower_key:
                raise RuntimeError(
                    f"SECRET_KEY contains '{pattern}' which suggests it's a placeholder."
                )

        if len(cls._secret_key) < 32:
            raise RuntimeError("SECRET_KEY is too short (minimum 32 characters required).")

        return cls._secret_key

    @classmethod
    def validate_auth_secret(cls) -> None:
        if not cls.AUTH_JWT_SECRET:
            raise RuntimeError("AUTH_JWT_SECRET must be set in production.")

    SECRET_KEY = _secret_key


class TestingConfig(BaseConfig):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    AUTH_JWT_SECRET = 'test-jwt-secret'
    AUTH_DEV_MODE = True
    WALLET_API_URL = ''
    WALLET_API_KEY = ''
    WALLET_WEBHOOK_SKIP_SIGNATURE = False


config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig
}


def get_config(config_name: str = 'development'):
    """Get configuration class by name."""
    return config_map.get(config_name, DevelopmentConfig)


def validate_config(config_name: str = 'development') -> None:
    """
    Validate configuration before app startup.

    Raises:
        RuntimeError: If validation fails in production
    """
    if config_name == 'production':
        ProductionConfig.validate_secret_key()
        ProductionConfig.validate_auth_secret()
