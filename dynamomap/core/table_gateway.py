"""
Thin DynamoDB Table Gateway

This module wraps the handful of boto3 DynamoDB calls the map needs:

- Item calls on the boto3 Table resource: GetItem, PutItem, DeleteItem, Scan
- Table calls on the low-level client: DescribeTable, CreateTable, UpdateTimeToLive

Every botocore ClientError is translated into the dynamomap exception
hierarchy by map_dynamodb_error, keeping the original error attached. The
gateway never retries; botocore's retry configuration is the only retry
policy in play.

The underlying resource is created lazily and shared read-only by every caller,
including parallel scan workers.
"""

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import DynamoDBConfig
from ..exceptions import (
    ConditionFailedError,
    ConflictError,
    ConnectionError,
    DynamoMapError,
    NotFoundError,
    RetryableError,
    ValidationError,
)
from ..models.item import Item, format_item

logger = logging.getLogger(__name__)

CONDITIONAL_CHECK_FAILED = 'ConditionalCheckFailedException'
RESOURCE_NOT_FOUND = 'ResourceNotFoundException'

_THROTTLING_CODES = {
    'ProvisionedThroughputExceededException', 'RequestLimitExceeded',
    'ThrottlingException', 'SlowDown', 'BandwidthLimitExceeded',
    'RequestThrottledException', 'TooManyRequestsException',
}

_SERVICE_CODES = {
    'InternalServerError', 'ServiceUnavailable', 'ServiceException',
    'ServiceUnavailableException', 'InternalFailure', 'ServiceFailureException',
    'ServiceTimeout', 'RequestTimeoutException', 'RequestExpiredException',
}

_AUTH_CODES = {
    'UnrecognizedClientException', 'AccessDeniedException',
    'InvalidEndpointException', 'IncompleteSignatureException',
    'InvalidSignatureException', 'ExpiredTokenException',
    'TokenRefreshRequiredException',
}


def error_code(error: Exception) -> str:
    """Return the DynamoDB error code of a ClientError, or '' for anything else."""
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Code', '')
    return ''


def map_dynamodb_error(
    error: ClientError,
    operation: str,
    table_name: str,
    resource_id: Optional[str] = None
) -> DynamoMapError:
    """Map DynamoDB ClientError to domain-specific exceptions.

    Args:
        error: The boto3 ClientError
        operation: The operation that failed (e.g., "GetItem", "PutItem")
        table_name: The DynamoDB table name
        resource_id: Optional resource identifier for context

    Returns:
        ConditionFailedError: For conditional check failures
        ConflictError: For transaction conflicts and resources in use
        NotFoundError: For missing tables
        ValidationError: For validation failures and limits
        RetryableError: For throttling/capacity and service issues
        ConnectionError: For authentication, endpoint and unknown issues
    """
    error_code_value = error.response['Error']['Code']
    error_message = error.response['Error'].get('Message', '')

    # Build context for error message
    context = f"{operation} on {table_name}"
    if resource_id:
        context += f" (resource: {resource_id})"

    full_message = f"{context}: {error_message}"

    if error_code_value == CONDITIONAL_CHECK_FAILED:
        mapped = ConditionFailedError(f"Conditional check failed - {full_message}", resource_id, original_error=error)

    elif error_code_value == RESOURCE_NOT_FOUND:
        mapped = NotFoundError(f"Table not found - {full_message}", 'table', table_name, original_error=error)

    elif error_code_value == 'ValidationException':
        mapped = ValidationError(f"Validation failed - {full_message}", original_error=error)

    elif error_code_value in ('ItemCollectionSizeLimitExceededException', 'LimitExceededException'):
        mapped = ValidationError(f"DynamoDB limit exceeded - {full_message}", original_error=error)

    elif error_code_value in ('TransactionConflictException', 'ResourceInUseException'):
        mapped = ConflictError(f"Resource conflict - {full_message}", resource_id, original_error=error)

    elif error_code_value in _THROTTLING_CODES:
        mapped = RetryableError(f"Throttling - {full_message}", original_error=error)

    elif error_code_value in _SERVICE_CODES:
        mapped = RetryableError(f"Service unavailable - {full_message}", original_error=error)

    elif error_code_value in _AUTH_CODES:
        mapped = ConnectionError(f"Authentication/endpoint failure - {full_message}", original_error=error)

    else:
        logger.warning(f"Unknown DynamoDB error code '{error_code_value}' mapped to ConnectionError")
        mapped = ConnectionError(f"DynamoDB operation failed - {full_message}", original_error=error)

    mapped.context.setdefault('table_name', table_name)
    return mapped


class TableGateway:
    """
    Thin gateway for one DynamoDB table.

    Keeps a single boto3 resource per gateway. The resource may be passed in
    (tests, shared sessions) or is created lazily from DynamoDBConfig.
    """

    def __init__(
        self,
        config: DynamoDBConfig,
        table_name: str,
        dynamodb=None,
        log: Optional[logging.Logger] = None,
    ):
        """Initialize table gateway.

        Args:
            config: DynamoDB connection configuration
            table_name: Full name of the DynamoDB table
            dynamodb: Optional pre-built boto3 DynamoDB service resource
            log: Optional logger; defaults to this module's logger
        """
        self.config = config
        self.table_name = table_name
        self.log = log or logger
        self._dynamodb = dynamodb
        self._table = None

    @property
    def dynamodb(self):
        """Lazy initialization of DynamoDB resource."""
        if self._dynamodb is None:
            try:
                session = boto3.Session(
                    aws_access_key_id=self.config.aws_access_key_id,
                    aws_secret_access_key=self.config.aws_secret_access_key,
                    region_name=self.config.region_name
                )

                # Configure connection parameters
                dynamodb_config = {
                    'region_name': self.config.region_name
                }

                if self.config.endpoint_url:
                    dynamodb_config['endpoint_url'] = self.config.endpoint_url

                # Add retry and timeout configuration
                boto_config = Config(
                    retries={'max_attempts': self.config.retries},
                    max_pool_connections=self.config.max_pool_connections,
                    read_timeout=self.config.timeout_seconds,
                    connect_timeout=self.config.timeout_seconds
                )
                dynamodb_config['config'] = boto_config

                self._dynamodb = session.resource('dynamodb', **dynamodb_config)
            except Exception as e:
                self.log.error(f"Failed to create DynamoDB resource: {e}")
                raise ConnectionError(f"Failed to connect to DynamoDB: {e}", e) from e
        return self._dynamodb

    @property
    def table(self):
        """boto3 Table resource for item operations."""
        if self._table is None:
            try:
                self._table = self.dynamodb.Table(self.table_name)
            except Exception as e:
                self.log.error(f"Failed to access table '{self.table_name}': {e}")
                raise ConnectionError(f"Failed to access table '{self.table_name}': {e}", e) from e
        return self._table

    @property
    def client(self):
        """Low-level client for table management calls."""
        return self.dynamodb.meta.client

    def debug(self, *parts: Any) -> None:
        """Log request/response tracing when debug logging is enabled."""
        if self.config.enable_debug_logging:
            self.log.debug("(dynamomap) " + " ".join(str(p) for p in parts))

    def _call(self, operation: str, fn, resource_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
        tracing = self.config.enable_debug_logging
        if tracing:
            self.debug(f"{operation} request on {self.table_name}:", _describe_kwargs(kwargs))
        try:
            response = fn(**kwargs)
        except ClientError as e:
            self.debug(f"{operation} error on {self.table_name}:", error_code(e))
            raise map_dynamodb_error(e, operation, self.table_name, resource_id) from e
        except BotoCoreError as e:
            self.log.error(f"{operation} on {self.table_name} failed: {e}")
            raise ConnectionError(f"{operation} on {self.table_name} failed: {e}", e) from e
        if tracing:
            self.debug(f"{operation} response on {self.table_name}:", _describe_response(response))
        return response

    def get_item(self, key: Item, consistent_read: bool = False) -> Optional[Item]:
        """
        Fetch one item by key.

        Returns:
            The item, or None when no item exists for the key
        """
        response = self._call(
            "GetItem", self.table.get_item, _resource_id(key),
            Key=key, ConsistentRead=consistent_read,
        )
        item = response.get('Item')
        return item or None

    def put_item(self, item: Item, condition_expression=None, resource_id: Optional[str] = None) -> None:
        """
        Put item into DynamoDB table.

        Args:
            item: Item to store
            condition_expression: Optional condition for put operation
            resource_id: Identifier used in error context

        Raises:
            ConditionFailedError: When condition_expression does not hold

        Example:
            gateway.put_item(
                item={'id': 'a', 'name': 'Kit'},
                condition_expression=Attr('id').not_exists()
            )
        """
        put_kwargs = {'Item': item}
        if condition_expression is not None:
            put_kwargs['ConditionExpression'] = condition_expression
        self._call("PutItem", self.table.put_item, resource_id, **put_kwargs)

    def delete_item(self, key: Item) -> None:
        """Delete the item with the given key; absent items are not an error."""
        self._call("DeleteItem", self.table.delete_item, _resource_id(key), Key=key)

    def scan(self, **kwargs) -> Dict[str, Any]:
        """
        Execute one DynamoDB Scan page.

        Args:
            **kwargs: boto3 scan parameters (Segment, TotalSegments,
                ExclusiveStartKey, ConsistentRead, Limit, ...)

        Returns:
            Raw DynamoDB response with 'Items' and optional 'LastEvaluatedKey'
        """
        return self._call("Scan", self.table.scan, **kwargs)

    def describe_table(self) -> Dict[str, Any]:
        """
        Describe the table.

        Raises:
            NotFoundError: When the table does not exist
        """
        response = self._call("DescribeTable", self.client.describe_table, TableName=self.table_name)
        return response['Table']

    def create_table(self, **kwargs) -> Dict[str, Any]:
        """Issue CreateTable for this gateway's table."""
        response = self._call("CreateTable", self.client.create_table, TableName=self.table_name, **kwargs)
        self.log.info(f"Requested creation of table {self.table_name}")
        return response.get('TableDescription', {})

    def update_time_to_live(self, attribute_name: str, enabled: bool = True) -> None:
        """Enable or disable DynamoDB's background expiry on an attribute."""
        self._call(
            "UpdateTimeToLive", self.client.update_time_to_live,
            TableName=self.table_name,
            TimeToLiveSpecification={'AttributeName': attribute_name, 'Enabled': enabled},
        )
        self.log.info(f"Time to live on {self.table_name} set to {enabled} for attribute {attribute_name}")


def _resource_id(key: Item) -> Optional[str]:
    if not key:
        return None
    return ", ".join(f"{k}={key[k]}" for k in sorted(key))


def _describe_kwargs(kwargs: Dict[str, Any]) -> str:
    parts = []
    for name in sorted(kwargs):
        value = kwargs[name]
        if name in ('Item', 'Key', 'ExclusiveStartKey'):
            value = format_item(value)
        parts.append(f"{name}={value}")
    return "{" + ", ".join(parts) + "}"


def _describe_response(response: Dict[str, Any]) -> str:
    if 'Items' in response:
        return f"{{Count={len(response['Items'])}, LastEvaluatedKey={format_item(response.get('LastEvaluatedKey'))}}}"
    if 'Item' in response:
        return format_item(response['Item'])
    if 'Table' in response:
        return f"{{TableStatus={response['Table'].get('TableStatus')}}}"
    return "{}"


def create_table_gateway(config: DynamoDBConfig, table_name: str, dynamodb=None,
                         log: Optional[logging.Logger] = None) -> TableGateway:
    """
    Factory function to create a TableGateway instance.

    Args:
        config: DynamoDB configuration
        table_name: Base table name; the configured prefix is applied
        dynamodb: Optional pre-built boto3 DynamoDB service resource
        log: Optional logger

    Returns:
        Configured TableGateway instance
    """
    full_table_name = config.get_table_name(table_name)
    return TableGateway(config, full_table_name, dynamodb=dynamodb, log=log)
