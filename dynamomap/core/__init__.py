"""
Core components behind the map.

- TableGateway: thin wrapper over boto3 DynamoDB calls with error mapping
- KeySchema: key projection of items
- TableLifecycleManager: describe/create/wait and key discovery
- ConditionalStore: single-item reads, writes and conditional writes
- ParallelScanner: serial or segmented full-table scans
"""

from .conditional_store import ConditionalStore
from .key_schema import KeySchema
from .lifecycle import TableLifecycleManager
from .scanner import ParallelScanner, ScanCursor
from .table_gateway import TableGateway, create_table_gateway, map_dynamodb_error

__all__ = [
    "ConditionalStore",
    "KeySchema",
    "ParallelScanner",
    "ScanCursor",
    "TableGateway",
    "TableLifecycleManager",
    "create_table_gateway",
    "map_dynamodb_error",
]
