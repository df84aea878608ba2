from .config import (
    DynamoDBConfig,
    LifecycleOptions,
    RuntimeOptions,
    TableConfig,
    TableSchema,
)
from .exceptions import (
    ConditionFailedError,
    ConfigurationError,
    ConflictError,
    ConnectionError,
    ContentionError,
    DynamoMapError,
    FatalError,
    MissingKeyAttributeError,
    NotFoundError,
    RetryableError,
    TableUnusableError,
    ValidationError,
)
from .models import (
    # Item model
    Item,
    ScalarType,
    TableStatus,
    format_item,
    # Codecs
    Codec,
    CodecRegistry,
    ItemCodec,
    ModelCodec,
)
from .core import (
    ConditionalStore,
    KeySchema,
    ParallelScanner,
    TableGateway,
    TableLifecycleManager,
    create_table_gateway,
)
from .collection import DynamoMap, ItemMap
from .memory import InMemoryMap

__version__ = "1.0.0"
__all__ = [
    # Configuration
    "DynamoDBConfig",
    "LifecycleOptions",
    "RuntimeOptions",
    "TableConfig",
    "TableSchema",

    # Exceptions
    "ConditionFailedError",
    "ConfigurationError",
    "ConflictError",
    "ConnectionError",
    "ContentionError",
    "DynamoMapError",
    "FatalError",
    "MissingKeyAttributeError",
    "NotFoundError",
    "RetryableError",
    "TableUnusableError",
    "ValidationError",

    # Item model
    "Item",
    "ScalarType",
    "TableStatus",
    "format_item",

    # Codecs
    "Codec",
    "CodecRegistry",
    "ItemCodec",
    "ModelCodec",

    # Core components
    "ConditionalStore",
    "KeySchema",
    "ParallelScanner",
    "TableGateway",
    "TableLifecycleManager",
    "create_table_gateway",

    # Maps
    "DynamoMap",
    "InMemoryMap",
    "ItemMap",
]
