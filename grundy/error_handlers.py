import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from grundy.errors import DomainError, GatewayError

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    """Every error leaves the service as {success: false, error, message}."""

    @app.errorhandler(DomainError)
    def handle_domain_error(error):
        log = logger.warning if error.status_code < 500 else logger.error
        log(
            f"{error.__class__.__name__}: {error.message} - Path: {request.path}",
            extra={"status_code": error.status_code},
        )

        body = {
            "success": False,
            "error": error.__class__.__name__,
            "message": error.message,
            **error.payload,
        }
        if isinstance(error, GatewayError) and error.upstream_status:
            body["upstream_status"] = error.upstream_status
        return jsonify(body), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        """
        Handles known HTTP errors (404, 405, etc.)
        """
        logger.info(f"{error.code} {error.name}: {request.method} {request.path}")
        return jsonify({
            "success": False,
            "error": error.name,
            "message": error.description,
        }), error.code

    @app.errorhandler(Exception)
    def handle_exception(error):
        """
        Handles all unexpected server errors
        Prevents stack trace leakage
        """
        logger.exception(f"Unhandled exception - Path: {request.path}")
        return jsonify({
            "success": False,
            "error": "Internal Server Error",
            "message": "Something went wrong. Please try again later.",
        }), 500
