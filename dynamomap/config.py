import os
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .models.item import ScalarType

# Load environment variables from .env file if it exists
load_dotenv()

DEFAULT_TIME_TO_LIVE_NAME = "TTL"


class DynamoDBConfig(BaseModel):
    """Configuration for the DynamoDB connection."""

    aws_access_key_id: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_ACCESS_KEY_ID"),
        description="AWS access key ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_SECRET_ACCESS_KEY"),
        description="AWS secret access key"
    )

    region_name: str = Field(
        default_factory=lambda: os.getenv("AWS_REGION", "us-east-1"),
        description="AWS region name"
    )

    # DynamoDB specific settings
    endpoint_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("DYNAMODB_ENDPOINT_URL"),
        description="DynamoDB endpoint URL (for local development)"
    )

    # Table configuration
    table_prefix: str = Field(
        default_factory=lambda: os.getenv("DYNAMODB_TABLE_PREFIX", ""),
        description="Prefix to add to all table names"
    )

    # Connection settings
    max_pool_connections: int = Field(
        default=50,
        description="Maximum number of connections in the connection pool"
    )

    retries: int = Field(
        default=3,
        description="Number of retry attempts for failed requests (handled by botocore)"
    )

    timeout_seconds: float = Field(
        default=30.0,
        description="Request timeout in seconds"
    )

    # Logging settings
    enable_debug_logging: bool = Field(
        default_factory=lambda: os.getenv("DYNAMODB_DEBUG_LOGGING", "false").lower() == "true",
        description="Log every request and response at debug level"
    )

    @field_validator('region_name')
    @classmethod
    def validate_region(cls, v):
        """Validate AWS region name."""
        if not v:
            raise ValueError("AWS region name is required")
        return v

    def get_table_name(self, base_name: str) -> str:
        """Get the full table name with prefix.

        Args:
            base_name: Base table name

        Returns:
            Full table name with prefix
        """
        if self.table_prefix:
            return f"{self.table_prefix}_{base_name}"
        return base_name

    @classmethod
    def from_env(cls) -> 'DynamoDBConfig':
        """Create configuration from environment variables.

        Returns:
            DynamoDBConfig instance
        """
        return cls()

    @classmethod
    def for_local_development(cls) -> 'DynamoDBConfig':
        """Create configuration for local DynamoDB development.

        Returns:
            DynamoDBConfig instance configured for local development
        """
        return cls(
            aws_access_key_id="local",
            aws_secret_access_key="local",
            region_name="us-east-1",
            endpoint_url="http://localhost:8000",
            enable_debug_logging=True
        )

    model_config = ConfigDict(
        validate_assignment=True,
        use_enum_values=True
    )


class TableSchema(BaseModel):
    """Key layout and special attributes of a table.

    Immutable once built. When the hash key name is left empty the names are
    discovered from the remote table during construction of the map, which
    produces a new schema via with_keys().
    """

    table_name: str = Field(description="Name of the table")

    hash_key_name: Optional[str] = Field(
        default=None,
        description="Name of the hash key attribute; discovered from the table if unset"
    )
    hash_key_type: ScalarType = Field(
        default=ScalarType.STRING,
        description="Type of the hash key attribute, used when creating the table"
    )

    range_key_name: Optional[str] = Field(
        default=None,
        description="Name of the range key attribute, if any"
    )
    range_key_type: Optional[ScalarType] = Field(
        default=None,
        description="Type of the range key attribute, used when creating the table"
    )

    version_name: Optional[str] = Field(
        default=None,
        description="Numeric version attribute used by store_if_version; never incremented by the library"
    )

    time_to_live_name: Optional[str] = Field(
        default=None,
        description=f"TTL attribute name; '{DEFAULT_TIME_TO_LIVE_NAME}' is used when unset and time_to_live is positive"
    )
    time_to_live: timedelta = Field(
        default=timedelta(0),
        description="Lifetime stamped onto each stored item as epoch seconds"
    )

    @field_validator('table_name')
    @classmethod
    def validate_table_name(cls, v):
        if not v:
            raise ValueError("Table name is required")
        return v

    @model_validator(mode='after')
    def validate_range_key(self):
        if self.range_key_type is not None and not self.range_key_name:
            raise ValueError("range_key_type given without range_key_name")
        return self

    @property
    def ranged(self) -> bool:
        return bool(self.range_key_name)

    @property
    def has_time_to_live(self) -> bool:
        return self.time_to_live > timedelta(0)

    @property
    def effective_time_to_live_name(self) -> Optional[str]:
        if not self.has_time_to_live:
            return self.time_to_live_name
        return self.time_to_live_name or DEFAULT_TIME_TO_LIVE_NAME

    def with_keys(self, hash_key_name: str, range_key_name: Optional[str] = None) -> 'TableSchema':
        """Return a copy with the key attribute names filled in."""
        return self.model_copy(update={
            'hash_key_name': hash_key_name,
            'range_key_name': range_key_name,
        })

    model_config = ConfigDict(frozen=True)


class LifecycleOptions(BaseModel):
    """How the table is checked and created when the map is constructed."""

    create_table_if_absent: bool = Field(
        default=False,
        description="Create the table when it does not exist; requires hash key name and type"
    )
    read_capacity: int = Field(
        default=1,
        description="Provisioned read capacity for a created table; values below 1 become 1"
    )
    write_capacity: int = Field(
        default=1,
        description="Provisioned write capacity for a created table; values below 1 become 1"
    )
    server_side_encryption: bool = Field(
        default=False,
        description="Enable server side encryption on a created table"
    )
    poll_interval_seconds: float = Field(
        default=1.0,
        description="Fixed sleep between describe calls while a table is CREATING"
    )

    @property
    def effective_read_capacity(self) -> int:
        return max(1, self.read_capacity or 0)

    @property
    def effective_write_capacity(self) -> int:
        return max(1, self.write_capacity or 0)


class RuntimeOptions(BaseModel):
    """Per-call behaviour of reads, writes and scans."""

    scan_concurrency: int = Field(
        default=1,
        description="Number of parallel scan segments; 1 or less scans serially"
    )
    consistent_read: bool = Field(
        default=False,
        description="Use strongly consistent reads (twice the read cost)"
    )
    scan_page_size: Optional[int] = Field(
        default=None,
        description="Limit per scan page; DynamoDB's 1MB page limit applies when unset"
    )
    load_or_store_max_attempts: int = Field(
        default=100,
        description="Load/store-if-absent rounds before load_or_store raises ContentionError"
    )

    @field_validator('scan_page_size')
    @classmethod
    def validate_scan_page_size(cls, v):
        if v is not None and v <= 0:
            raise ValueError("scan_page_size must be positive")
        return v

    @field_validator('load_or_store_max_attempts')
    @classmethod
    def validate_max_attempts(cls, v):
        if v < 1:
            raise ValueError("load_or_store_max_attempts must be at least 1")
        return v


class TableConfig(BaseModel):
    """Everything needed to build a DynamoMap, composed from its parts."""

    table_schema: TableSchema = Field(description="Key layout and special attributes")
    lifecycle: LifecycleOptions = Field(default_factory=LifecycleOptions)
    runtime: RuntimeOptions = Field(default_factory=RuntimeOptions)
    connection: DynamoDBConfig = Field(default_factory=DynamoDBConfig)

    @property
    def table_name(self) -> str:
        """Table name with the connection's prefix applied."""
        return self.connection.get_table_name(self.table_schema.table_name)
