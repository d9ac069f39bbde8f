from .base import BaseConfig


class ProductionConfig(BaseConfig):
    """
    Production configuration.
    """

    DEBUG = False
    ENVIRONMENT = "production"

    # Wildcard origins are rejected by validate_config
    CORS_ORIGINS = [
        origin for origin in BaseConfig.CORS_ORIGINS if origin != "*"
    ] or [BaseConfig.FRONTEND_URL]
