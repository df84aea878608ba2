"""
Item model and table status types.

Items are plain dictionaries in the form the boto3 DynamoDB Table resource
accepts and returns: str, Decimal/int, bytes/Binary, bool, None, list, dict,
and sets of strings, numbers or binaries.
"""

from enum import Enum
from typing import Any, Dict, Iterable, Optional

Item = Dict[str, Any]


class ScalarType(str, Enum):
    """DynamoDB scalar attribute types usable as key attributes."""
    STRING = "S"
    NUMBER = "N"
    BINARY = "B"


class TableStatus(str, Enum):
    """Status of a table as seen by DescribeTable."""
    ABSENT = "ABSENT"
    CREATING = "CREATING"
    ACTIVE = "ACTIVE"
    UPDATING = "UPDATING"
    DELETING = "DELETING"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_remote(cls, value: Optional[str]) -> "TableStatus":
        """Map a DescribeTable TableStatus string onto this enum."""
        if not value:
            return cls.UNKNOWN
        try:
            status = cls(value)
        except ValueError:
            return cls.UNKNOWN
        if status is cls.ABSENT:
            return cls.UNKNOWN
        return status

    @property
    def usable(self) -> bool:
        return self in (TableStatus.ACTIVE, TableStatus.UPDATING)


def project(item: Item, *attrs: str) -> Item:
    """Return a new item with only the given attributes that exist in `item`."""
    return {attr: item[attr] for attr in attrs if attr in item}


def exists(item: Item, attr: str) -> bool:
    """True if the attribute exists, even if it is null."""
    return attr in item


def is_present(item: Item, attr: str) -> bool:
    """True if the attribute exists and is not null."""
    return item.get(attr) is not None


def is_null(item: Item, attr: str) -> bool:
    """True if the attribute exists but is null."""
    return attr in item and item[attr] is None


def format_item(item: Optional[Item]) -> str:
    """Stable single-line rendering of an item, attributes sorted by name."""
    if item is None:
        return "item{}"
    parts = ", ".join(f"{name}:{_format_value(item[name])}" for name in sorted(item))
    return "item{" + parts + "}"


def _format_value(value: Any) -> str:
    if isinstance(value, dict):
        return format_item(value)
    if isinstance(value, (set, frozenset)):
        return "{" + ", ".join(sorted(_format_value(v) for v in value)) + "}"
    if isinstance(value, list):
        return "[" + ", ".join(_format_value(v) for v in value) + "]"
    return repr(value)


def copy_item(item: Item, extra: Optional[Iterable] = None) -> Item:
    """Shallow copy of an item, optionally updated with (name, value) pairs."""
    result = dict(item)
    if extra:
        result.update(extra)
    return result
