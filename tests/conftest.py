"""
Test configuration and fixtures for dynamomap.

Provides moto-backed DynamoDB resources and tables plus the configs that
point a map at them.
"""

import sys
from pathlib import Path

# Add parent directory to path so we can import dynamomap
sys.path.insert(0, str(Path(__file__).parent.parent))

import boto3
import pytest
from moto import mock_aws

from dynamomap import (
    DynamoDBConfig,
    LifecycleOptions,
    RuntimeOptions,
    ScalarType,
    TableConfig,
    TableSchema,
)


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake AWS credentials so nothing can reach a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def mock_dynamodb_config():
    """DynamoDB configuration for mocked testing."""
    return DynamoDBConfig(
        aws_access_key_id="test_key",
        aws_secret_access_key="test_secret",
        region_name="us-east-1",
        endpoint_url=None,  # Use default AWS endpoint for moto
        table_prefix="test",
        enable_debug_logging=False,
    )


@pytest.fixture
def mock_dynamodb_resource(aws_credentials):
    """Mock DynamoDB resource."""
    with mock_aws():
        yield boto3.resource('dynamodb', region_name='us-east-1')


@pytest.fixture
def people_table(mock_dynamodb_resource):
    """Create the test_people table (numeric hash key 'id')."""
    table = mock_dynamodb_resource.create_table(
        TableName='test_people',
        KeySchema=[
            {'AttributeName': 'id', 'KeyType': 'HASH'}
        ],
        AttributeDefinitions=[
            {'AttributeName': 'id', 'AttributeType': 'N'}
        ],
        BillingMode='PROVISIONED',
        ProvisionedThroughput={'ReadCapacityUnits': 5, 'WriteCapacityUnits': 5}
    )
    return table


@pytest.fixture
def events_table(mock_dynamodb_resource):
    """Create the test_events table (hash 'stream', range 'seq')."""
    table = mock_dynamodb_resource.create_table(
        TableName='test_events',
        KeySchema=[
            {'AttributeName': 'stream', 'KeyType': 'HASH'},
            {'AttributeName': 'seq', 'KeyType': 'RANGE'}
        ],
        AttributeDefinitions=[
            {'AttributeName': 'stream', 'AttributeType': 'S'},
            {'AttributeName': 'seq', 'AttributeType': 'N'}
        ],
        BillingMode='PROVISIONED',
        ProvisionedThroughput={'ReadCapacityUnits': 5, 'WriteCapacityUnits': 5}
    )
    return table


@pytest.fixture
def people_schema():
    """Schema of the people table, with a version attribute."""
    return TableSchema(
        table_name="people",
        hash_key_name="id",
        hash_key_type=ScalarType.NUMBER,
        version_name="version",
    )


@pytest.fixture
def people_config(mock_dynamodb_config, people_schema):
    """TableConfig for the people table."""
    return TableConfig(
        table_schema=people_schema,
        lifecycle=LifecycleOptions(poll_interval_seconds=0),
        runtime=RuntimeOptions(consistent_read=True),
        connection=mock_dynamodb_config,
    )


# Sample Data Fixtures

@pytest.fixture
def sample_people():
    """Sample people items for testing."""
    return [
        {"id": 1, "name": "Bob", "version": 1},
        {"id": 2, "name": "Kit", "version": 1},
        {"id": 3, "name": "Ada", "version": 1, "tags": {"admin", "ops"}},
        {"id": 4, "name": "Lin", "version": 1, "address": {"city": "Oslo", "zip": "0150"}},
        {"id": 5, "name": "Sam", "version": 1, "scores": [1, 2, 3]},
    ]
