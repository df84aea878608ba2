"""
Codecs between native values and DynamoDB items.

A codec is resolved once per value type, at registration time, and then used
for every call on that type. The map never inspects values at runtime beyond
looking up the registered codec for ``type(value)``.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Generic, Mapping, Optional, Protocol, Type, TypeVar, runtime_checkable

from boto3.dynamodb.types import Binary
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ConfigurationError, ValidationError
from .item import Item

T = TypeVar('T')
M = TypeVar('M', bound=BaseModel)

logger = logging.getLogger(__name__)


@runtime_checkable
class Codec(Protocol[T]):
    """Converts between a native value type and an Item."""

    def encode(self, value: T) -> Item:
        ...

    def decode(self, item: Item) -> T:
        ...


class ItemCodec:
    """Identity codec: values already are items."""

    def encode(self, value: Mapping[str, Any]) -> Item:
        if not isinstance(value, Mapping):
            raise ValidationError(f"Expected a mapping, got {type(value).__name__}")
        return dict(value)

    def decode(self, item: Item) -> Item:
        return dict(item)


def to_dynamodb_value(obj: Any) -> Any:
    """Convert a dumped python value into something boto3 can serialize.

    Floats become Decimal (boto3 refuses floats), datetimes and dates become
    ISO strings, enums become their values, tuples become lists.
    """
    if isinstance(obj, dict):
        return {k: to_dynamodb_value(v) for k, v in obj.items() if v is not None}
    elif isinstance(obj, (list, tuple)):
        return [to_dynamodb_value(v) for v in obj]
    elif isinstance(obj, (set, frozenset)):
        return {to_dynamodb_value(v) for v in obj}
    elif isinstance(obj, bool):
        return obj
    elif isinstance(obj, float):
        return Decimal(str(obj))
    elif isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif isinstance(obj, Enum):
        return to_dynamodb_value(obj.value)
    else:
        return obj


def from_dynamodb_value(obj: Any) -> Any:
    """Unwrap boto3 Binary values so validators see plain bytes."""
    if isinstance(obj, dict):
        return {k: from_dynamodb_value(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [from_dynamodb_value(v) for v in obj]
    elif isinstance(obj, (set, frozenset)):
        return {from_dynamodb_value(v) for v in obj}
    elif isinstance(obj, Binary):
        return obj.value
    else:
        return obj


class ModelCodec(Generic[M]):
    """Codec for Pydantic models.

    Field names (or their aliases) become attribute names. None values are
    omitted so that absent optional fields do not turn into Null attributes.
    """

    def __init__(self, model_class: Type[M]):
        self.model_class = model_class

    def encode(self, value: M) -> Item:
        if not isinstance(value, self.model_class):
            raise ValidationError(
                f"Expected {self.model_class.__name__}, got {type(value).__name__}"
            )
        return to_dynamodb_value(value.model_dump(by_alias=True, exclude_none=True))

    def decode(self, item: Item) -> M:
        try:
            return self.model_class.model_validate(from_dynamodb_value(item))
        except PydanticValidationError as e:
            logger.error(f"Failed to convert item to {self.model_class.__name__}: {e}")
            errors = {'.'.join(str(p) for p in err['loc']): err['msg'] for err in e.errors()}
            raise ValidationError(
                f"Failed to convert item to {self.model_class.__name__}", errors, e
            ) from e

    def __repr__(self) -> str:
        return f"ModelCodec({self.model_class.__name__})"


class CodecRegistry:
    """Codecs keyed by value type.

    Lookup walks the MRO of the value's type, so a codec registered for a base
    class also covers its subclasses. Mappings fall back to ItemCodec.
    """

    def __init__(self, codecs: Optional[Dict[type, Codec]] = None):
        self._codecs: Dict[type, Codec] = {}
        self._item_codec = ItemCodec()
        for value_type, codec in (codecs or {}).items():
            self.register(value_type, codec)

    def register(self, value_type: type, codec: Optional[Codec] = None) -> Codec:
        """Register a codec for a type.

        Pydantic model classes get a ModelCodec when no codec is given.
        """
        if codec is None:
            if isinstance(value_type, type) and issubclass(value_type, BaseModel):
                codec = ModelCodec(value_type)
            else:
                raise ConfigurationError(f"No codec given for type {value_type.__name__}")
        self._codecs[value_type] = codec
        return codec

    def for_type(self, value_type: type) -> Codec:
        for klass in value_type.__mro__:
            codec = self._codecs.get(klass)
            if codec is not None:
                return codec
        if issubclass(value_type, Mapping):
            return self._item_codec
        raise ConfigurationError(f"No codec registered for type {value_type.__name__}")

    def encode(self, value: Any) -> Item:
        return self.for_type(type(value)).encode(value)

    def __contains__(self, value_type: type) -> bool:
        return value_type in self._codecs
