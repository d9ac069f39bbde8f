import os

from .base import BaseConfig, ConfigurationError
from .development import DevelopmentConfig
from .production import ProductionConfig
from .testing import TestingConfig

CONFIGS = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def get_config(name=None):
    """
    Resolve and return the correct configuration class.

    ``name`` wins over the APP_ENV environment variable. Supported values:
    - development
    - production
    - testing
    """

    env = (name or os.getenv("APP_ENV", "development")).lower()

    try:
        return CONFIGS[env]
    except KeyError:
        raise ConfigurationError(f"Invalid APP_ENV value: {env}") from None


def validate_config(config):
    """
    Fail fast on settings the service cannot run without.

    ``config`` is a mapping such as ``app.config``.
    """

    if not config.get("PAYSTACK_SECRET_KEY"):
        raise ConfigurationError(
            "PAYSTACK_SECRET_KEY is required to talk to the payment gateway"
        )

    frontend_url = config.get("FRONTEND_URL")
    if not frontend_url:
        raise ConfigurationError("FRONTEND_URL is required to build payment callbacks")

    if config.get("ENVIRONMENT") == "production":
        if not frontend_url.startswith("https://"):
            raise ConfigurationError("FRONTEND_URL must use HTTPS in production")
        if not os.getenv("FRONTEND_URL"):
            raise ConfigurationError("FRONTEND_URL must be set explicitly in production")
        if "*" in config.get("CORS_ORIGINS", []):
            raise ConfigurationError("CORS wildcard ('*') is not allowed in production")


__all__ = [
    "BaseConfig",
    "ConfigurationError",
    "DevelopmentConfig",
    "ProductionConfig",
    "TestingConfig",
    "get_config",
    "validate_config",
]
