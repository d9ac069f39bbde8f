"""
Flask application factory for the checkout service.
Fails fast on configuration errors before serving a single request.
"""

import logging

import sentry_sdk
from flask import Flask
from sentry_sdk.integrations.flask import FlaskIntegration

from grundy.config import get_config, validate_config
from grundy.error_handlers import register_error_handlers
from grundy.extensions import EXTENSION_KEY, cors
from grundy.health import health_bp
from grundy.logging_config import configure_logging
from grundy.middleware.request_id import REQUEST_ID_HEADER, init_request_id_middleware
from grundy.observability.metrics import MetricsManager, register_metrics
from grundy.routes import register_blueprints
from grundy.services.checkout_service import CheckoutService
from grundy.services.fulfillment import FulfillmentTrigger
from grundy.services.paystack_service import PaystackClient
from grundy.storage import InMemoryOrderRepository
from grundy.workers.celery_app import make_celery

logger = logging.getLogger(__name__)


def setup_sentry(app: Flask) -> None:
    """Initialize Sentry error tracking"""
    sentry_dsn = app.config.get("SENTRY_DSN")

    if sentry_dsn and app.config.get("ENVIRONMENT") == "production":
        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment="production",
            release=app.config.get("APP_VERSION", "1.0.0"),
            send_default_pii=False,
        )
        logger.info("Sentry error tracking initialized")


def setup_cors(app: Flask) -> None:
    """The storefront is a separate origin; it calls every route."""
    cors.init_app(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", [])}},
        allow_headers=["Content-Type", "Authorization", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
        methods=["GET", "POST", "OPTIONS"],
        supports_credentials=False,
        max_age=600,
    )
    logger.info("CORS configured", extra={"origins": app.config.get("CORS_ORIGINS")})


def build_checkout_service(app: Flask, metrics: MetricsManager, repository=None,
                           gateway=None, fulfillment=None) -> CheckoutService:
    config = app.config
    return CheckoutService(
        repository=repository or InMemoryOrderRepository(),
        gateway=gateway or PaystackClient.from_config(config, metrics=metrics),
        fulfillment=fulfillment or FulfillmentTrigger(
            enabled=config.get("FULFILLMENT_ENABLED", True)
        ),
        callback_url=f"{config['FRONTEND_URL'].rstrip('/')}{config['CALLBACK_PATH']}",
        recovery_enabled=config.get("ORDER_RECOVERY_ENABLED", True),
        lock_timeout=config.get("ORDER_LOCK_TIMEOUT", 10.0),
        metrics=metrics,
    )


def create_app(config_name=None, config_overrides=None, *, repository=None,
               gateway=None, fulfillment=None) -> Flask:
    """
    Application factory.

    ``repository``, ``gateway`` and ``fulfillment`` replace the default
    collaborators (in-memory store, Paystack client, Celery hand-off).
    Raises ConfigurationError when a required setting is missing.
    """
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    if config_overrides:
        app.config.update(config_overrides)

    configure_logging(app)
    validate_config(app.config)

    setup_sentry(app)
    init_request_id_middleware(app)
    setup_cors(app)
    make_celery(app)

    metrics = MetricsManager(enabled=app.config.get("METRICS_ENABLED", False))
    register_metrics(app, metrics)

    app.extensions[EXTENSION_KEY] = build_checkout_service(
        app, metrics, repository=repository, gateway=gateway, fulfillment=fulfillment
    )

    register_blueprints(app)
    app.register_blueprint(health_bp)
    register_error_handlers(app)

    logger.info(
        "Application created",
        extra={"environment": app.config.get("ENVIRONMENT")},
    )
    return app


__all__ = ["create_app"]
