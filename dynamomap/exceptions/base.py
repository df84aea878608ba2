"""
Root of the dynamomap error hierarchy.

Every error is about one table, so the table name and the key being worked
on live in ``context`` next to whatever a subclass adds. When the error wraps
a botocore ClientError, its DynamoDB error code is shown in ``str()``.
"""

from typing import Any, Dict, Mapping, Optional


def render_key(key: Mapping[str, Any]) -> str:
    """Render a key as ``name=value`` pairs in attribute-name order."""
    return ", ".join(f"{name}={key[name]!r}" for name in sorted(key))


class DynamoMapError(Exception):
    """Base exception for all dynamomap errors.

    Attributes:
        message: Human-readable error message
        original_error: The boto3/botocore exception this error wraps, if any
        context: Table name, key and other details of the failing call
    """

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None,
        *,
        table_name: Optional[str] = None,
        key: Optional[Mapping[str, Any]] = None,
    ):
        self.message = message
        self.original_error = original_error
        self.context = dict(context or {})
        if table_name:
            self.context.setdefault('table_name', table_name)
        if key is not None:
            self.context.setdefault('key', render_key(key))
        super().__init__(message)

    @property
    def table_name(self) -> Optional[str]:
        return self.context.get('table_name')

    @property
    def error_code(self) -> Optional[str]:
        """DynamoDB error code of the wrapped ClientError, e.g. 'ThrottlingException'."""
        response = getattr(self.original_error, 'response', None)
        if not isinstance(response, dict):
            return None
        return response.get('Error', {}).get('Code') or None

    def __str__(self) -> str:
        error_str = self.message
        if self.error_code:
            error_str += f" [{self.error_code}]"
        if self.context:
            details = "; ".join(f"{k}={v}" for k, v in self.context.items())
            error_str += f" ({details})"
        return error_str

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.message!r}, "
            f"error_code={self.error_code!r}, context={self.context!r})"
        )
