"""
Single-item reads and writes, including the conditional writes that give the
map its compare-and-swap style operations.

DynamoDB only offers conditional puts. The operations here build on them:

- store_if_absent:  put with ``attribute_not_exists(<hash key>)``
- store_if_version: put with ``<version> = :expected``
- load_or_store:    load, else store_if_absent, repeated until one succeeds

A failed condition is an answer, not an error: it is returned as False.
Everything else raised by the gateway reaches the caller untouched, and
nothing is retried at this layer.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Tuple

from boto3.dynamodb.conditions import Attr

from ..config import RuntimeOptions, TableSchema
from ..exceptions import ConditionFailedError, ConfigurationError, ContentionError
from ..models.item import Item, copy_item
from ..utils import expires_at
from .key_schema import KeySchema
from .table_gateway import TableGateway

logger = logging.getLogger(__name__)


class ConditionalStore:
    """Load/store/delete one item at a time against a table gateway."""

    def __init__(
        self,
        gateway: TableGateway,
        schema: TableSchema,
        options: Optional[RuntimeOptions] = None,
        log: Optional[logging.Logger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.gateway = gateway
        self.schema = schema
        self.options = options or RuntimeOptions()
        self.keys = KeySchema.from_table_schema(schema)
        self.log = log or logger
        self._clock = clock

    def load(self, key: Item) -> Tuple[Optional[Item], bool]:
        """Point read of the item sharing `key`'s key attributes.

        Returns:
            (item, True) when found, (None, False) otherwise
        """
        item = self.gateway.get_item(self.keys.extract_key(key), self.options.consistent_read)
        if item is None:
            return None, False
        return item, True

    def _prepare(self, item: Item) -> Item:
        # validates the hash key before any remote call
        self.keys.extract_key(item)
        if self.schema.has_time_to_live:
            return copy_item(item, [(
                self.schema.effective_time_to_live_name,
                expires_at(self.schema.time_to_live, self._clock),
            )])
        return item

    def _put(self, item: Item, condition=None) -> None:
        resource_id = _key_repr(self.keys.extract_key(item))
        self.gateway.put_item(self._prepare(item), condition, resource_id)

    def store(self, item: Item) -> None:
        """Unconditionally write `item`, replacing any item with the same key."""
        self._put(item)

    def _conditional_put(self, item: Item, condition, description: str) -> bool:
        try:
            self._put(item, condition)
        except ConditionFailedError:
            self.gateway.debug(f"{description} condition not met for", _key_repr(self.keys.extract_key(item)))
            return False
        return True

    def store_if_absent(self, item: Item) -> bool:
        """Write `item` only if no item with its key exists.

        Returns:
            True if stored, False if an item already existed
        """
        condition = Attr(self.keys.hash_key_name).not_exists()
        return self._conditional_put(item, condition, "store_if_absent")

    def store_if_version(self, item: Item, expected_version: int) -> bool:
        """Write `item` only if the stored item's version equals `expected_version`.

        The version attribute is caller managed; bump it in `item` yourself.

        Returns:
            True if stored, False if the versions did not match (or no item exists)

        Raises:
            ConfigurationError: If no version attribute is configured
        """
        if not self.schema.version_name:
            raise ConfigurationError(f"store_if_version on {self.gateway.table_name} needs a version attribute name")
        condition = Attr(self.schema.version_name).eq(expected_version)
        return self._conditional_put(item, condition, "store_if_version")

    def load_or_store(self, item: Item) -> Tuple[Item, bool]:
        """Return the existing item with `item`'s key, or store `item`.

        Returns:
            (existing, True) when an item was loaded, (item, False) when stored

        Raises:
            ContentionError: If neither step wins within
                ``load_or_store_max_attempts`` rounds
        """
        key = self.keys.extract_key(item)
        attempts = self.options.load_or_store_max_attempts
        for attempt in range(1, attempts + 1):
            existing, found = self.load(key)
            if found:
                return existing, True
            if self.store_if_absent(item):
                return item, False
            self.log.debug(f"load_or_store lost a race on {self.gateway.table_name} for {_key_repr(key)}, attempt {attempt}")
        self.log.warning(f"load_or_store gave up on {self.gateway.table_name} for {_key_repr(key)} after {attempts} attempts")
        raise ContentionError(self.gateway.table_name, key, attempts)

    def delete(self, key: Item) -> None:
        """Delete the item with `key`'s key attributes; absent items are fine."""
        self.gateway.delete_item(self.keys.extract_key(key))


def _key_repr(key: Item) -> str:
    return ", ".join(f"{k}={key[k]}" for k in sorted(key))
