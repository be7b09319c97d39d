"""
Dynamic-schema record codec.

A record is a dataclass with a closed set of fixed attributes, each declared
with ``wire_field()``, plus an optional open bag of dynamic attributes declared
with ``dynamic_field()``. On the wire both live side by side in one flat JSON
object:

    @dataclass(frozen=True)
    class Document(Record):
        id: str = wire_field("id", default="", omitempty=True)
        attributes: dict[str, TypedValue] = dynamic_field()

    Document(id="0001", attributes={"author": TypedValue("jerry")}).to_wire()
    # -> {"id": "0001", "author": "jerry"}

Decoding does the inverse: fixed wire names are matched against the declared
fields, everything else becomes a dynamic attribute.
"""

import base64
import binascii
import json
import logging
import math
import types
from dataclasses import MISSING, dataclass, field, fields
from decimal import Decimal
from functools import lru_cache
from typing import Any, Union, get_args, get_origin, get_type_hints

import simplejson

from .errors import DecodingError, EncodingError
from .types import NumberToken, TypedValue, wrap

logger = logging.getLogger(__name__)

# Keys used in dataclass field metadata
WIRE_NAME = "wire_name"
OMIT_EMPTY = "omitempty"
DYNAMIC = "dynamic"


def wire_field(
    name: str,
    *,
    default: Any = None,
    default_factory: Any = MISSING,
    omitempty: bool = False,
) -> Any:
    """
    Declare a fixed attribute serialized under ``name``.

    Args:
        name: The key used in the wire object
        default: Default value, None unless given
        default_factory: Factory for mutable defaults
        omitempty: Leave the key out of the wire object when the value is empty
    """
    metadata = {WIRE_NAME: name, OMIT_EMPTY: omitempty}
    if default_factory is not MISSING:
        return field(default_factory=default_factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def dynamic_field() -> Any:
    """Declare the bag of dynamic attributes (never a wire key itself)."""
    return field(default_factory=dict, metadata={DYNAMIC: True})


@dataclass(frozen=True)
class _FieldSpec:
    attr: str
    wire: str
    omitempty: bool
    type: Any


@dataclass(frozen=True)
class _Schema:
    fixed: tuple[_FieldSpec, ...]
    fixed_names: frozenset[str]
    dynamic: str | None


@lru_cache(maxsize=None)
def _schema(cls: type) -> _Schema:
    hints = get_type_hints(cls)
    fixed = []
    dynamic = None
    for f in fields(cls):
        if f.metadata.get(DYNAMIC):
            dynamic = f.name
        elif WIRE_NAME in f.metadata:
            fixed.append(_FieldSpec(
                attr=f.name,
                wire=f.metadata[WIRE_NAME],
                omitempty=f.metadata.get(OMIT_EMPTY, False),
                type=hints.get(f.name, Any),
            ))
    return _Schema(
        fixed=tuple(fixed),
        fixed_names=frozenset(s.wire for s in fixed),
        dynamic=dynamic,
    )


def parse_wire(data: str | bytes | bytearray) -> Any:
    """
    Parse JSON text, keeping every number as a NumberToken.

    Raises:
        DecodingError: If the text is not valid JSON
    """
    def reject_constant(name: str) -> Any:
        raise ValueError(f"invalid number literal: {name}")

    try:
        return json.loads(
            data,
            parse_int=NumberToken,
            parse_float=NumberToken,
            parse_constant=reject_constant,
        )
    except ValueError as e:
        raise DecodingError(f"invalid wire object: {e}") from e


def dump_wire(obj: Any) -> str:
    """
    Serialize an already-encoded wire object to compact JSON text.

    Decimal values are written with their exact digits.
    """
    try:
        return simplejson.dumps(
            obj,
            ensure_ascii=False,
            separators=(",", ":"),
            allow_nan=False,
            use_decimal=True,
        )
    except (TypeError, ValueError) as e:
        raise EncodingError(str(e)) from e


# -----------------------------------------------------------------------------
# Encode
# -----------------------------------------------------------------------------

def _is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return value == 0
    if isinstance(value, (str, bytes, list, tuple, dict)):
        return len(value) == 0
    return False


def _encode_value(value: Any, path: str) -> Any:
    if isinstance(value, TypedValue):
        value = value.raw
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, NumberToken):
        try:
            return value.to_python()
        except ValueError as e:
            raise EncodingError(f"{path}: invalid number {value!r}") from e
    if isinstance(value, (str, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise EncodingError(f"{path}: {value!r} is not representable in JSON")
        return value
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise EncodingError(f"{path}: {value!r} is not representable in JSON")
        return value
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, Record):
        return encode_record(value)
    if isinstance(value, (list, tuple)):
        return [_encode_value(v, f"{path}[{i}]") for i, v in enumerate(value)]
    if isinstance(value, dict):
        out = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise EncodingError(f"{path}: object key {k!r} is not a string")
            out[k] = _encode_value(v, f"{path}.{k}")
        return out
    raise EncodingError(f"{path}: unsupported type {type(value).__name__}")


def encode_record(record: "Record") -> dict[str, Any]:
    """
    Encode a record into one flat wire object.

    Fixed attributes come first, in declaration order, with empty optional
    ones left out. Dynamic attributes follow. When the fixed part is empty
    the result is exactly the dynamic object.

    Raises:
        EncodingError: If a value cannot be expressed as JSON
    """
    cls = type(record)
    schema = _schema(cls)
    wire: dict[str, Any] = {}
    for entry in schema.fixed:
        value = getattr(record, entry.attr)
        if entry.omitempty and _is_empty(value):
            continue
        wire[entry.wire] = _encode_value(value, f"{cls.__name__}.{entry.wire}")

    if schema.dynamic is None:
        return wire
    dynamic = encode_attributes(getattr(record, schema.dynamic))
    for name in schema.fixed_names.intersection(dynamic):
        logger.warning(
            "Dynamic attribute %r shadows a fixed %s attribute", name, cls.__name__
        )
    if not wire:
        return dynamic
    wire.update(dynamic)
    return wire


def encode_attributes(attributes: dict[str, Any]) -> dict[str, Any]:
    """
    Encode a map of dynamic attributes on its own.

    Values may be TypedValue instances or raw values.

    Raises:
        EncodingError: If a name is not a string or a value is not JSON
    """
    out: dict[str, Any] = {}
    for name, value in attributes.items():
        if not isinstance(name, str):
            raise EncodingError(f"attribute name {name!r} is not a string")
        out[name] = _encode_value(value, name)
    return out


# -----------------------------------------------------------------------------
# Decode
# -----------------------------------------------------------------------------

def _decode_value(value: Any, tp: Any, where: str) -> Any:
    if tp is Any:
        return value
    origin = get_origin(tp)
    if origin is Union or origin is types.UnionType:
        if value is None:
            return None
        args = [a for a in get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return _decode_value(value, args[0], where)
        return value
    if isinstance(tp, type) and issubclass(tp, Record):
        if not isinstance(value, dict):
            raise DecodingError(f"{where}: expected object, got {type(value).__name__}")
        return decode_record(tp, value)
    if origin is list:
        if not isinstance(value, list):
            raise DecodingError(f"{where}: expected array, got {type(value).__name__}")
        (item_type,) = get_args(tp) or (Any,)
        return [_decode_value(v, item_type, f"{where}[{i}]") for i, v in enumerate(value)]
    if origin is dict:
        if not isinstance(value, dict):
            raise DecodingError(f"{where}: expected object, got {type(value).__name__}")
        args = get_args(tp)
        value_type = args[1] if args else Any
        return {k: _decode_value(v, value_type, f"{where}.{k}") for k, v in value.items()}
    if tp is str:
        if isinstance(value, str) and not isinstance(value, NumberToken):
            return value
    elif tp is bool:
        if isinstance(value, bool):
            return value
    elif tp is int:
        if isinstance(value, NumberToken):
            number = Decimal(value)
            if number == number.to_integral_value():
                return int(number)
        elif isinstance(value, int) and not isinstance(value, bool):
            return value
    elif tp is float:
        if isinstance(value, NumberToken):
            return float(value)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif tp is bytes:
        if isinstance(value, str) and not isinstance(value, NumberToken):
            try:
                return base64.b64decode(value, validate=True)
            except binascii.Error as e:
                raise DecodingError(f"{where}: invalid base64 data") from e
    else:
        return value
    raise DecodingError(
        f"{where}: cannot decode {type(value).__name__} value {value!r} as {tp.__name__}"
    )


def decode_record(cls: type["Record"], data: Any) -> "Record":
    """
    Decode a flat wire object into a record of type ``cls``.

    ``data`` may be JSON text or an already-parsed object. Keys naming a fixed
    attribute fill that attribute; every other key becomes a dynamic
    attribute. Keys absent from the wire keep the field's default.

    Raises:
        DecodingError: If the input is not a JSON object, or a fixed
            attribute's type rejects the value found for it
    """
    if isinstance(data, (str, bytes, bytearray)):
        data = parse_wire(data)
    if not isinstance(data, dict):
        raise DecodingError(
            f"{cls.__name__}: expected a JSON object, got {type(data).__name__}"
        )
    schema = _schema(cls)
    kwargs: dict[str, Any] = {}
    for entry in schema.fixed:
        value = data.get(entry.wire)
        if value is None:
            continue
        kwargs[entry.attr] = _decode_value(value, entry.type, f"{cls.__name__}.{entry.wire}")
    if schema.dynamic is not None:
        kwargs[schema.dynamic] = {
            k: TypedValue(v) for k, v in data.items() if k not in schema.fixed_names
        }
    return cls(**kwargs)


class Record:
    """
    Base class for wire records.

    Subclasses are dataclasses declaring fixed attributes with
    ``wire_field()`` and, optionally, one ``dynamic_field()``.
    """

    def to_wire(self) -> dict[str, Any]:
        """Encode to a flat wire object (dict)."""
        return encode_record(self)

    def to_json(self) -> str:
        """Encode to compact JSON text."""
        return dump_wire(encode_record(self))

    @classmethod
    def from_wire(cls, data: Any):
        """Decode from a wire object (dict) or JSON text."""
        return decode_record(cls, data)

    from_json = from_wire

    @classmethod
    def fixed_names(cls) -> frozenset[str]:
        """Wire names of the fixed attributes."""
        return _schema(cls).fixed_names

    def attribute(self, name: str) -> TypedValue:
        """Return a dynamic attribute, or an empty TypedValue if absent."""
        schema = _schema(type(self))
        if schema.dynamic is None:
            return TypedValue()
        return wrap(getattr(self, schema.dynamic).get(name))
