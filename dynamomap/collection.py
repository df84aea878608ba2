"""
DynamoMap: a DynamoDB table viewed as a concurrent map.

Two call surfaces share one ConditionalStore and one ParallelScanner:

- the item surface (``*_item`` methods, ``range_items``) takes and returns
  plain items in boto3 resource form;
- the typed surface (``load``, ``store``, ``range``, ...) runs values through
  a Codec resolved once when the map is built.

Example:
    config = TableConfig(
        table_schema=TableSchema(table_name="people", hash_key_name="id",
                                 hash_key_type=ScalarType.NUMBER),
        lifecycle=LifecycleOptions(create_table_if_absent=True),
        runtime=RuntimeOptions(scan_concurrency=4),
    )
    people = DynamoMap(config, value_type=Person)
    people.store(Person(id=1, name="Bob"))
    person, found = people.load({"id": 1})
"""

import logging
import time
from datetime import datetime
from typing import (
    Any,
    Callable,
    Generic,
    Iterator,
    List,
    Mapping,
    Optional,
    Protocol,
    Tuple,
    TypeVar,
    runtime_checkable,
)

from pydantic import BaseModel

from .config import TableConfig, TableSchema
from .core.conditional_store import ConditionalStore
from .core.key_schema import KeySchema
from .core.lifecycle import TableLifecycleManager
from .core.scanner import ParallelScanner
from .core.table_gateway import TableGateway
from .models.codec import Codec, CodecRegistry, ItemCodec
from .models.item import Item

V = TypeVar('V')


@runtime_checkable
class ItemMap(Protocol):
    """The item surface shared by DynamoMap and InMemoryMap."""

    def load_item(self, key: Item) -> Tuple[Optional[Item], bool]:
        ...

    def store_item(self, item: Item) -> None:
        ...

    def store_item_if_absent(self, item: Item) -> bool:
        ...

    def store_item_if_version(self, item: Item, expected_version: int) -> bool:
        ...

    def load_or_store_item(self, item: Item) -> Tuple[Item, bool]:
        ...

    def delete_item(self, key: Item) -> None:
        ...

    def range_items(self, consumer: Callable[[Item], bool]) -> None:
        ...


def resolve_codec(
    codec: Optional[Codec] = None,
    value_type: Optional[type] = None,
    registry: Optional[CodecRegistry] = None,
) -> Codec:
    """Pick the codec for a map's typed surface.

    An explicit codec wins; otherwise the codec registered for `value_type`
    (Pydantic models are registered on demand); otherwise items pass through.
    """
    if codec is not None:
        return codec
    if value_type is None:
        return ItemCodec()
    registry = registry or CodecRegistry()
    if value_type not in registry and isinstance(value_type, type) and issubclass(value_type, BaseModel):
        return registry.register(value_type)
    return registry.for_type(value_type)


class DynamoMap(Generic[V]):
    """Map-like view of one DynamoDB table.

    Construction checks the table (creating it or discovering its keys as
    configured) and fails with the underlying error if the table cannot be
    used.
    """

    def __init__(
        self,
        config: TableConfig,
        *,
        codec: Optional[Codec] = None,
        value_type: Optional[type] = None,
        registry: Optional[CodecRegistry] = None,
        dynamodb=None,
        gateway: Optional[TableGateway] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Build the map and make sure its table is ready.

        Args:
            config: Table schema, lifecycle, runtime and connection settings
            codec: Codec for the typed surface
            value_type: Value type whose registered codec the typed surface uses
            registry: Registry to resolve `value_type` from
            dynamodb: Pre-built boto3 DynamoDB service resource to share
            gateway: Pre-built gateway (overrides `dynamodb`)
            logger: Logger for all components of this map
            sleep: Sleep function used while polling a CREATING table
            clock: Source of "now" for TTL stamping

        Raises:
            TableUnusableError: If the table is absent and not created, or deleting
            DynamoMapError: For any other failure while checking the table
        """
        self.config = config
        self.log = logger or logging.getLogger(__name__)
        self.gateway = gateway or TableGateway(
            config.connection, config.table_name, dynamodb=dynamodb, log=self.log
        )
        self.lifecycle = TableLifecycleManager(
            self.gateway, config.table_schema, config.lifecycle, log=self.log, sleep=sleep
        )
        self.schema: TableSchema = self.lifecycle.ensure_ready()
        self._store = ConditionalStore(self.gateway, self.schema, config.runtime, log=self.log, clock=clock)
        self._scanner = ParallelScanner(self.gateway, config.runtime, log=self.log)
        self.codec: Codec = resolve_codec(codec, value_type, registry)
        self.log.debug(f"DynamoMap ready for table {self.table_name} with {self.key_schema!r}")

    @property
    def table_name(self) -> str:
        return self.gateway.table_name

    @property
    def key_schema(self) -> KeySchema:
        return self._store.keys

    # ------------------------------------------------------------------
    # Item surface
    # ------------------------------------------------------------------

    def load_item(self, key: Item) -> Tuple[Optional[Item], bool]:
        """Return (item, True) for the item with `key`'s keys, or (None, False)."""
        return self._store.load(key)

    def store_item(self, item: Item) -> None:
        """Store `item`, replacing any item with the same key."""
        self._store.store(item)

    def store_item_if_absent(self, item: Item) -> bool:
        """Store `item` if no item with its key exists; True if stored."""
        return self._store.store_if_absent(item)

    def store_item_if_version(self, item: Item, expected_version: int) -> bool:
        """Store `item` if the stored version equals `expected_version`; True if stored."""
        return self._store.store_if_version(item, expected_version)

    def load_or_store_item(self, item: Item) -> Tuple[Item, bool]:
        """Return (existing, True), or store `item` and return (item, False)."""
        return self._store.load_or_store(item)

    def delete_item(self, key: Item) -> None:
        """Delete the item with `key`'s keys, if any."""
        self._store.delete(key)

    def range_items(self, consumer: Callable[[Item], bool]) -> None:
        """Feed every item to `consumer` until it returns False."""
        self._scanner.range_items(consumer)

    # ------------------------------------------------------------------
    # Typed surface
    # ------------------------------------------------------------------

    def _encode_key(self, key: Any) -> Item:
        if isinstance(key, Mapping):
            return dict(key)
        return self.codec.encode(key)

    def load(self, key: Any) -> Tuple[Optional[V], bool]:
        item, found = self._store.load(self._encode_key(key))
        if not found:
            return None, False
        return self.codec.decode(item), True

    def store(self, value: V) -> None:
        self._store.store(self.codec.encode(value))

    def store_if_absent(self, value: V) -> bool:
        return self._store.store_if_absent(self.codec.encode(value))

    def store_if_version(self, value: V, expected_version: int) -> bool:
        return self._store.store_if_version(self.codec.encode(value), expected_version)

    def load_or_store(self, value: V) -> Tuple[V, bool]:
        actual, loaded = self._store.load_or_store(self.codec.encode(value))
        if loaded:
            return self.codec.decode(actual), True
        return value, False

    def delete(self, key: Any) -> None:
        self._store.delete(self._encode_key(key))

    def range(self, consumer: Callable[[V], bool]) -> None:
        """Feed every decoded value to `consumer` until it returns False."""
        decode = self.codec.decode
        self._scanner.range_items(lambda item: consumer(decode(item)))

    def values(self) -> List[V]:
        """Every value in the table. Reads the whole table."""
        result: List[V] = []
        self.range(lambda value: result.append(value) is None)
        return result

    def __iter__(self) -> Iterator[V]:
        return iter(self.values())

    def __repr__(self) -> str:
        return f"DynamoMap(table_name={self.table_name!r}, key_schema={self.key_schema!r})"
