from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple, Union

from feedbacks.errors import DecodingError


@dataclass(frozen=True)
class StringValue:
    value: str


@dataclass(frozen=True)
class NumberValue:
    """
    A number as the store carries it: its canonical decimal string.

    The string is never parsed here; interpretation belongs to whoever
    consumes the normalized record.
    """

    value: str


@dataclass(frozen=True)
class BoolValue:
    value: bool


@dataclass(frozen=True)
class NullValue:
    pass


@dataclass(frozen=True)
class ListValue:
    items: Tuple["TaggedValue", ...]


@dataclass(frozen=True)
class MapValue:
    entries: Tuple[Tuple[str, "TaggedValue"], ...]


TaggedValue = Union[StringValue, NumberValue, BoolValue, NullValue, ListValue, MapValue]

# Plain value tree produced by normalize(): str, bool, None, list, dict.
PlainValue = Any


def decode(wire: Any) -> TaggedValue:
    """
    Decode one value from the store's wire form into a TaggedValue.

    Wire form is a single-key mapping whose key is the type tag:
    {"S": "text"}, {"N": "4.5"}, {"BOOL": true}, {"NULL": true},
    {"L": [...]}, {"M": {...}}.

    Raises:
        DecodingError: if the value carries no recognized tag, more than one
            tag, or a payload of the wrong shape for its tag.
    """
    if not isinstance(wire, Mapping) or len(wire) != 1:
        raise DecodingError(f"Expected a single-tag mapping, got {wire!r}")

    tag, payload = next(iter(wire.items()))

    if tag == "S":
        if not isinstance(payload, str):
            raise DecodingError(f"S payload must be a string, got {type(payload).__name__}")
        return StringValue(payload)

    if tag == "N":
        if not isinstance(payload, str) or not payload:
            raise DecodingError(f"N payload must be a non-empty decimal string, got {payload!r}")
        return NumberValue(payload)

    if tag == "BOOL":
        if not isinstance(payload, bool):
            raise DecodingError(f"BOOL payload must be a boolean, got {payload!r}")
        return BoolValue(payload)

    if tag == "NULL":
        if payload is not True:
            raise DecodingError(f"NULL payload must be true, got {payload!r}")
        return NullValue()

    if tag == "L":
        if not isinstance(payload, (list, tuple)):
            raise DecodingError(f"L payload must be a list, got {type(payload).__name__}")
        return ListValue(tuple(decode(item) for item in payload))

    if tag == "M":
        if not isinstance(payload, Mapping):
            raise DecodingError(f"M payload must be a mapping, got {type(payload).__name__}")
        return MapValue(tuple((str(key), decode(value)) for key, value in payload.items()))

    raise DecodingError(f"Unrecognized type tag {tag!r}")


def encode(value: TaggedValue) -> Dict[str, Any]:
    """Encode a TaggedValue back into the store's wire form."""
    if isinstance(value, StringValue):
        return {"S": value.value}
    if isinstance(value, NumberValue):
        return {"N": value.value}
    if isinstance(value, BoolValue):
        return {"BOOL": value.value}
    if isinstance(value, NullValue):
        return {"NULL": True}
    if isinstance(value, ListValue):
        return {"L": [encode(item) for item in value.items]}
    if isinstance(value, MapValue):
        return {"M": {key: encode(item) for key, item in value.entries}}
    raise DecodingError(f"Not a tagged value: {value!r}")


def normalize(value: TaggedValue) -> PlainValue:
    """
    Convert a TaggedValue into a plain value tree.

    Numbers stay decimal strings, so Number("5") and String("5") normalize
    to the same "5". Lists keep their order; map keys are kept verbatim.
    """
    if isinstance(value, StringValue):
        return value.value
    if isinstance(value, NumberValue):
        return value.value
    if isinstance(value, BoolValue):
        return value.value
    if isinstance(value, NullValue):
        return None
    if isinstance(value, ListValue):
        return [normalize(item) for item in value.items]
    if isinstance(value, MapValue):
        return {key: normalize(item) for key, item in value.entries}
    raise DecodingError(f"Not a tagged value: {value!r}")


def normalize_item(raw_item: Mapping[str, Any]) -> Dict[str, PlainValue]:
    """Decode and normalize one store row (attribute name -> wire value)."""
    if not isinstance(raw_item, Mapping):
        raise DecodingError(f"Expected a row mapping, got {type(raw_item).__name__}")
    return {str(name): normalize(decode(wire)) for name, wire in raw_item.items()}


def normalize_items(raw_items: List[Mapping[str, Any]]) -> List[Dict[str, PlainValue]]:
    return [normalize_item(item) for item in raw_items]
