from grundy.config.base import ConfigurationError


class DomainError(Exception):
    """
    Base class for errors the HTTP layer knows how to report.

    ``payload`` is merged into the JSON error body.
    """

    status_code = 400

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload or {}


class ValidationError(DomainError):
    status_code = 400


class NotFoundError(DomainError):
    status_code = 404


class StateConflictError(DomainError):
    status_code = 409


class GatewayError(DomainError):
    """Remote gateway call failed or returned an error status."""

    status_code = 502

    def __init__(self, message, upstream_status=None, payload=None):
        super().__init__(message, payload=payload)
        self.upstream_status = upstream_status
