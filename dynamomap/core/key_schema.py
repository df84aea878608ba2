"""Key projection for a table's hash (and optional range) key."""

from typing import Optional, Tuple

from ..config import TableSchema
from ..exceptions import ConfigurationError, MissingKeyAttributeError
from ..models.item import Item, project


class KeySchema:
    """Derives the key-only projection of an item.

    Pure: no I/O, no state beyond the attribute names.
    """

    def __init__(self, hash_key_name: str, range_key_name: Optional[str] = None):
        if not hash_key_name:
            raise ConfigurationError("Hash key name is required to build a key schema")
        self.hash_key_name = hash_key_name
        self.range_key_name = range_key_name or None

    @classmethod
    def from_table_schema(cls, schema: TableSchema) -> 'KeySchema':
        return cls(schema.hash_key_name, schema.range_key_name)

    @property
    def ranged(self) -> bool:
        return self.range_key_name is not None

    @property
    def key_names(self) -> Tuple[str, ...]:
        if self.ranged:
            return (self.hash_key_name, self.range_key_name)
        return (self.hash_key_name,)

    def extract_key(self, item: Item) -> Item:
        """Return only the key attribute(s) of `item`.

        A missing range attribute is left out and the remote store rejects the
        request; a missing hash attribute fails here.

        Raises:
            MissingKeyAttributeError: If the hash key attribute is absent
        """
        if self.hash_key_name not in item:
            raise MissingKeyAttributeError(self.hash_key_name, list(item))
        return project(item, *self.key_names)

    def is_key(self, item: Item) -> bool:
        """True if `item` holds exactly the key attributes."""
        return set(item) == set(self.key_names)

    def __eq__(self, other) -> bool:
        if not isinstance(other, KeySchema):
            return NotImplemented
        return self.key_names == other.key_names

    def __hash__(self) -> int:
        return hash(self.key_names)

    def __repr__(self) -> str:
        return f"KeySchema(hash_key_name={self.hash_key_name!r}, range_key_name={self.range_key_name!r})"
