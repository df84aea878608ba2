"""
Domain-Specific Exceptions for dynamomap

This module holds every exception that extends the base DynamoMapError.

Organized by category:
1. Data Validation Errors
2. Resource Not Found Errors
3. Conflict and Conditional Errors
4. Infrastructure and Retry Errors
5. Fatal Configuration/State Errors

Conditional check failures are raised by the gateway as ConditionFailedError
and converted into boolean results by the conditional store; callers of the
map never see them.
"""

from typing import Any, Dict, Optional, Sequence

from .base import DynamoMapError, render_key


# =============================================================================
# Data Validation Errors
# =============================================================================

class ValidationError(DynamoMapError):
    """Raised when data validation fails.

    Used for:
    - ValidationException responses from DynamoDB
    - Codec failures converting between items and native values
    """

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None, original_error: Optional[Exception] = None):
        """Initialize validation error.

        Args:
            message: Human-readable error message
            errors: Dictionary of field-level validation errors
            original_error: The original exception that caused this error
        """
        self.errors = errors or {}
        context = {}
        if self.errors:
            context['validation_errors'] = self.errors
        super().__init__(message, original_error, context)


# =============================================================================
# Resource Not Found Errors
# =============================================================================

class NotFoundError(DynamoMapError):
    """Raised when a DynamoDB resource (table, index) is not found."""

    def __init__(self, message: str, resource_type: Optional[str] = None, resource_name: Optional[str] = None, original_error: Optional[Exception] = None):
        """Initialize not found error.

        Args:
            message: Human-readable error message
            resource_type: Type of resource not found (e.g., 'table', 'index')
            resource_name: Name of the resource not found
            original_error: The original exception that caused this error
        """
        self.resource_type = resource_type
        self.resource_name = resource_name
        context = {}
        if resource_type:
            context['resource_type'] = resource_type
        if resource_name:
            context['resource_name'] = resource_name
        super().__init__(message, original_error, context)


# =============================================================================
# Conflict and Conditional Errors
# =============================================================================

class ConflictError(DynamoMapError):
    """Raised when an operation conflicts with existing remote state.

    Used for:
    - Transaction conflicts
    - Resources in use (e.g., creating a table that already exists)
    """

    def __init__(self, message: str, resource_id: Optional[str] = None, original_error: Optional[Exception] = None):
        """Initialize conflict error.

        Args:
            message: Human-readable error message
            resource_id: ID of the conflicting resource
            original_error: The original exception that caused this error
        """
        self.resource_id = resource_id
        context = {}
        if resource_id:
            context['resource_id'] = resource_id
        super().__init__(message, original_error, context)


class ConditionFailedError(ConflictError):
    """Raised by the gateway when a conditional write predicate is not met."""


# =============================================================================
# Infrastructure and Retry Errors
# =============================================================================

class ConnectionError(DynamoMapError):
    """Raised when connection to DynamoDB fails.

    Used for:
    - Network connectivity issues
    - Authentication/authorization failures
    - Invalid endpoint configurations
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        """Initialize connection error.

        Args:
            message: Human-readable error message
            original_error: The original exception that caused this error
            context: Additional context information (e.g., endpoint, region)
        """
        super().__init__(message, original_error, context)


class RetryableError(DynamoMapError):
    """Raised when an operation fails due to temporary/throttling issues that can be retried.

    This layer never retries on its own; the error is surfaced so callers can
    decide. Transport-level retries are configured on the boto3 client.
    """

    def __init__(self, message: str, retry_after_seconds: Optional[int] = None, original_error: Optional[Exception] = None):
        """Initialize retryable error.

        Args:
            message: Human-readable error message
            retry_after_seconds: Suggested retry delay in seconds
            original_error: The original exception that caused this error
        """
        self.retry_after_seconds = retry_after_seconds
        context = {}
        if retry_after_seconds:
            context['retry_after_seconds'] = retry_after_seconds
        super().__init__(message, original_error, context)


class ContentionError(RetryableError):
    """Raised when load-or-store gives up after too many lost races."""

    def __init__(self, table_name: str, key: dict, attempts: int):
        self.key = key
        self.attempts = attempts
        super().__init__(f"Load-or-store on '{table_name}' did not settle after {attempts} attempts")
        self.context.update({'table_name': table_name, 'key': render_key(key), 'attempts': attempts})


# =============================================================================
# Fatal Configuration/State Errors
# =============================================================================

class FatalError(DynamoMapError):
    """Raised for conditions that retrying cannot fix.

    The caller decides whether to abort the process.
    """


class MissingKeyAttributeError(FatalError):
    """Raised when an item lacks the hash key attribute required to address it."""

    def __init__(self, attribute_name: str, present: Optional[Sequence[str]] = None):
        self.attribute_name = attribute_name
        context = {'attribute_name': attribute_name}
        if present is not None:
            context['present_attributes'] = sorted(present)
        super().__init__(f"Item is missing key attribute '{attribute_name}'", context=context)


class TableUnusableError(FatalError):
    """Raised when a table is absent, being deleted, or otherwise cannot be used."""

    def __init__(self, table_name: str, reason: str, original_error: Optional[Exception] = None):
        self.reason = reason
        super().__init__(
            f"Table '{table_name}' is not usable: {reason}",
            original_error,
            table_name=table_name,
        )


class ConfigurationError(FatalError):
    """Raised when the table configuration cannot support the requested operation."""
