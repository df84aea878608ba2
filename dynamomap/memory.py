"""
In-process map with the same item surface as DynamoMap.

Backed by a dict under one lock. Meant for tests and local tooling that want
DynamoMap's conditional semantics without a table. There is no lifecycle,
no TTL stamping, and range_items runs serially over a snapshot.
"""

import logging
import threading
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from .config import TableSchema
from .core.key_schema import KeySchema
from .exceptions import ConfigurationError
from .models.item import Item, format_item

logger = logging.getLogger(__name__)


def _hashable(value: Any) -> Hashable:
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return value


class InMemoryMap:
    """Dict-backed stand-in for DynamoMap's item surface."""

    def __init__(self, schema: TableSchema, log: Optional[logging.Logger] = None):
        self.schema = schema
        self.keys = KeySchema.from_table_schema(schema)
        self.log = log or logger
        self._items: Dict[Tuple, Item] = {}
        self._lock = threading.Lock()

    @property
    def table_name(self) -> str:
        return self.schema.table_name

    @property
    def key_schema(self) -> KeySchema:
        return self.keys

    def _slot(self, item: Item) -> Tuple:
        key = self.keys.extract_key(item)
        return tuple((name, _hashable(key.get(name))) for name in self.keys.key_names)

    def load_item(self, key: Item) -> Tuple[Optional[Item], bool]:
        slot = self._slot(key)
        with self._lock:
            item = self._items.get(slot)
        if item is None:
            return None, False
        return dict(item), True

    def store_item(self, item: Item) -> None:
        slot = self._slot(item)
        with self._lock:
            self._items[slot] = dict(item)

    def store_item_if_absent(self, item: Item) -> bool:
        slot = self._slot(item)
        with self._lock:
            if slot in self._items:
                return False
            self._items[slot] = dict(item)
            return True

    def store_item_if_version(self, item: Item, expected_version: int) -> bool:
        """Store `item` if the stored item's version equals `expected_version`.

        Raises:
            ConfigurationError: If the schema has no version attribute
        """
        version_name = self.schema.version_name
        if not version_name:
            raise ConfigurationError(f"store_item_if_version on {self.table_name} needs a version attribute name")
        slot = self._slot(item)
        with self._lock:
            current = self._items.get(slot)
            if current is None or current.get(version_name) != expected_version:
                self.log.debug(f"Version check failed on {self.table_name} for {format_item(item)}")
                return False
            self._items[slot] = dict(item)
            return True

    def load_or_store_item(self, item: Item) -> Tuple[Item, bool]:
        slot = self._slot(item)
        with self._lock:
            existing = self._items.get(slot)
            if existing is not None:
                return dict(existing), True
            self._items[slot] = dict(item)
        return item, False

    def delete_item(self, key: Item) -> None:
        slot = self._slot(key)
        with self._lock:
            self._items.pop(slot, None)

    def range_items(self, consumer: Callable[[Item], bool]) -> None:
        with self._lock:
            snapshot = [dict(item) for item in self._items.values()]
        for item in snapshot:
            if not consumer(item):
                return

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __repr__(self) -> str:
        return f"InMemoryMap(table_name={self.table_name!r}, items={len(self)})"
