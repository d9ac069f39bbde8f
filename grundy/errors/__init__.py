from .domain import (
    ConfigurationError,
    DomainError,
    GatewayError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)

__all__ = [
    "ConfigurationError",
    "DomainError",
    "GatewayError",
    "NotFoundError",
    "StateConflictError",
    "ValidationError",
]
