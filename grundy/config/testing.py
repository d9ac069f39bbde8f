from .base import BaseConfig


class TestingConfig(BaseConfig):
    """
    Test configuration. Never talks to the real gateway or broker.
    """

    TESTING = True
    ENVIRONMENT = "testing"

    SECRET_KEY = "test-secret-key"
    PAYSTACK_SECRET_KEY = "sk_test_grundy"
    PAYSTACK_BASE_URL = "https://paystack.test"
    FRONTEND_URL = "https://shop.test"

    ORDER_LOCK_TIMEOUT = 1.0
    FULFILLMENT_ENABLED = True

    LOG_LEVEL = "WARNING"
    LOG_FORMAT = "console"

    SENTRY_DSN = None
    METRICS_ENABLED = False

    CELERY = dict(
        BaseConfig.CELERY,
        broker_url="memory://",
        result_backend="cache+memory://",
        task_always_eager=True,
        task_eager_propagates=True,
    )
