"""
WebReview
Configuration classes for the Flask App Factory.

Usage:
    config_name = os.getenv("APP_ENV", "development")
    app.config.from_object(config[config_name]())
"""

import os
import secrets

from sqlalchemy.pool import StaticPool

# Generate random keys for development; production MUST use stable env vars
_DEV_SECRET = secrets.token_hex(32)
_DEV_JWT_SECRET = secrets.token_urlsafe(48)


def _database_url(default=None):
    # Heroku-style postgres:// URLs are rejected by SQLAlchemy 2.0
    raw = os.getenv("DATABASE_URL", "")
    return raw.replace("postgres://", "postgresql://", 1) if raw else default


class Config:
    """Base configuration shared across all environments."""

    ENV_NAME = "base"
    SECRET_KEY = os.getenv("SECRET_KEY", _DEV_SECRET)
    DEBUG = False
    TESTING = False
    LOG_LEVEL = os.getenv("LOG_LEVEL")

    # SQLAlchemy
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {}

    # Tokens
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    JWT_SECRET_SOURCE = "env"
    JWT_EXPIRES_SECONDS = int(os.getenv("JWT_EXPIRES_SECONDS", "604800"))   # 7 days
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Invitations
    INVITE_EXPIRY_DAYS = int(os.getenv("INVITE_EXPIRY_DAYS", "7"))
    DEFAULT_ORGANIZATION_ID = os.getenv("DEFAULT_ORGANIZATION_ID", "default")

    # Links in outgoing emails
    APP_NAME = os.getenv("APP_NAME", "WebReview")
    APP_URL = os.getenv("APP_URL", "http://localhost:5000")

    # Rate limiter storage; memory when unset
    REDIS_URL = os.getenv("REDIS_URL")
    RATELIMIT_ENABLED = True

    # Request guard
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024   # 1 MB

    # CORS
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Email / SMTP (optional — log-only when MAIL_SERVER is unset)
    MAIL_SERVER = os.getenv("MAIL_SERVER")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = os.getenv("MAIL_USE_TLS", "true").lower() == "true"
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "noreply@webreview.local")


class DevelopmentConfig(Config):
    """Development environment configuration."""

    ENV_NAME = "development"
    DEBUG = True
    # Relative to the Flask instance folder
    SQLALCHEMY_DATABASE_URI = _database_url("sqlite:///webreview_dev.db")

    def __init__(self):
        if not self.JWT_SECRET_KEY:
            # Per-process secret: tokens die with the process, but are never forgeable
            self.JWT_SECRET_KEY = _DEV_JWT_SECRET
            self.JWT_SECRET_SOURCE = "generated"


class TestingConfig(Config):
    """Testing environment configuration."""

    ENV_NAME = "testing"
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    # One shared connection so every session sees the same in-memory database
    SQLALCHEMY_ENGINE_OPTIONS = (
        {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
        if SQLALCHEMY_DATABASE_URI.startswith("sqlite") else {}
    )
    JWT_SECRET_KEY = "test-signing-secret-0123456789abcdef0123456789abcdef0123456789ab"
    JWT_SECRET_SOURCE = "testing"
    BCRYPT_ROUNDS = 4
    RATELIMIT_ENABLED = False
    MAIL_SERVER = None
    APP_URL = "http://testserver"
    LOG_LEVEL = "WARNING"


class ProductionConfig(Config):
    """Production environment configuration."""

    ENV_NAME = "production"
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = _database_url()
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")  # Must be set explicitly in production

    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 300,   # recycle connections every 5 min
        "pool_timeout": 20,    # wait max 20s for a connection from pool
    }

    def __init__(self):
        if not self.SQLALCHEMY_DATABASE_URI:
            raise RuntimeError("DATABASE_URL environment variable is required in production")
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")
        if not self.JWT_SECRET_KEY:
            raise RuntimeError("JWT_SECRET_KEY environment variable must be set in production")


# Configuration mapping: environment name -> config class
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
