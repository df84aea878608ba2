from .codec import Codec, CodecRegistry, ItemCodec, ModelCodec
from .item import (
    Item,
    ScalarType,
    TableStatus,
    exists,
    format_item,
    is_null,
    is_present,
    project,
)

__all__ = [
    # Item model
    "Item",
    "ScalarType",
    "TableStatus",
    "exists",
    "format_item",
    "is_null",
    "is_present",
    "project",

    # Codecs
    "Codec",
    "CodecRegistry",
    "ItemCodec",
    "ModelCodec",
]
