# Base exception class
from .base import DynamoMapError

# Domain-specific exceptions
from .domain_exceptions import (
    ConditionFailedError,
    ConfigurationError,
    ConflictError,
    ConnectionError,
    ContentionError,
    FatalError,
    MissingKeyAttributeError,
    NotFoundError,
    RetryableError,
    TableUnusableError,
    ValidationError,
)

__all__ = [
    # Base exception
    "DynamoMapError",

    # Domain exceptions (alphabetically ordered)
    "ConditionFailedError",
    "ConfigurationError",
    "ConflictError",
    "ConnectionError",
    "ContentionError",
    "FatalError",
    "MissingKeyAttributeError",
    "NotFoundError",
    "RetryableError",
    "TableUnusableError",
    "ValidationError",
]
