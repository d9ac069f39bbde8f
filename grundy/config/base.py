import os


class ConfigurationError(Exception):
    """
    Raised when an invalid or unsupported configuration is requested,
    or when a required setting is missing at startup.
    """
    pass


def _env_bool(name, default="false"):
    return os.getenv(name, default).lower() == "true"


class BaseConfig:
    """
    Base configuration shared by all environments.
    """

    # Flask
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv("SECRET_KEY")
    JSON_SORT_KEYS = False

    # Application
    APP_NAME = "Grundy Checkout"
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
    ENVIRONMENT = "development"

    # Payment gateway
    PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY")
    PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
    PAYSTACK_TIMEOUT = float(os.getenv("PAYSTACK_TIMEOUT", "30"))

    # Where the payer lands after the hosted payment page
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173").rstrip("/")
    CALLBACK_PATH = "/callback"

    # Checkout behaviour
    ORDER_RECOVERY_ENABLED = _env_bool("ORDER_RECOVERY_ENABLED", "true")
    ORDER_LOCK_TIMEOUT = float(os.getenv("ORDER_LOCK_TIMEOUT", "10"))
    FULFILLMENT_ENABLED = _env_bool("FULFILLMENT_ENABLED", "true")

    # CORS
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv("LOG_FORMAT", "json")

    # Observability
    SENTRY_DSN = os.getenv("SENTRY_DSN")
    METRICS_ENABLED = _env_bool("METRICS_ENABLED")

    # Celery
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    CELERY = {
        "broker_url": REDIS_URL,
        "result_backend": REDIS_URL,
        "task_serializer": "json",
        "result_serializer": "json",
        "accept_content": ["json"],
        "timezone": "UTC",
        "enable_utc": True,
        "task_acks_late": True,
        "worker_prefetch_multiplier": 1,
        "task_default_queue": "default",
        "task_ignore_result": True,
        "task_time_limit": 300,
        "task_soft_time_limit": 240,
    }
