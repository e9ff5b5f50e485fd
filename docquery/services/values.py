from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from google.cloud.firestore_v1.types import ArrayValue, MapValue, Value
from google.protobuf import struct_pb2


def null() -> Value:
    return Value(null_value=struct_pb2.NULL_VALUE)


def boolean(value: bool) -> Value:
    return Value(boolean_value=bool(value))


def integer(value: int) -> Value:
    return Value(integer_value=int(value))


def double(value: float) -> Value:
    return Value(double_value=float(value))


def timestamp(value: datetime) -> Value:
    # Naive datetimes are wall-clock UTC.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return Value(timestamp_value=value)


def string(value: str) -> Value:
    return Value(string_value=str(value))


def reference(path: str) -> Value:
    return Value(reference_value=str(path))


def array(values: Iterable[Value]) -> Value:
    return Value(array_value=ArrayValue(values=list(values)))


def mapping(fields: Mapping[str, Value]) -> Value:
    return Value(map_value=MapValue(fields=dict(fields)))


def value_kind(value: Value) -> str | None:
    return Value.pb(value).WhichOneof("value_type")


def value_payload(value: Value, *, naive: bool = False) -> Any:
    kind = value_kind(value)
    if kind is None or kind == "null_value":
        return None
    if kind == "timestamp_value" and naive:
        stamp = value.timestamp_value.astimezone(timezone.utc)
        return datetime(
            stamp.year, stamp.month, stamp.day, stamp.hour, stamp.minute, stamp.second, stamp.microsecond
        )
    if kind == "array_value":
        return list(value.array_value.values)
    if kind == "map_value":
        return dict(value.map_value.fields)
    return getattr(value, kind)


def to_value(native: Any) -> Value:
    """Map a native Python value onto the tagged wire value.

    Strings always become ``string_value``; document references have no native
    counterpart and must be built with :func:`reference`.
    """
    if isinstance(native, Value):
        return native
    if native is None:
        return null()
    if isinstance(native, bool):
        return boolean(native)
    if isinstance(native, int):
        return integer(native)
    if isinstance(native, float):
        return double(native)
    if isinstance(native, datetime):
        return timestamp(native)
    if isinstance(native, str):
        return string(native)
    if isinstance(native, Mapping):
        return mapping({str(key): to_value(item) for key, item in native.items()})
    if isinstance(native, (list, tuple)):
        return array(to_value(item) for item in native)
    raise TypeError(f"unsupported field value type: {type(native).__name__}")


def from_value(value: Value, *, naive: bool = False) -> Any:
    kind = value_kind(value)
    if kind == "array_value":
        return [from_value(item, naive=naive) for item in value.array_value.values]
    if kind == "map_value":
        return {key: from_value(item, naive=naive) for key, item in value.map_value.fields.items()}
    return value_payload(value, naive=naive)


class FieldWriter:
    def __init__(self):
        self._fields: dict[str, Value] = {}

    def add(self, key: str, value: Value | Any) -> "FieldWriter":
        self._fields[str(key)] = to_value(value)
        return self

    def get_fields(self) -> dict[str, Value]:
        return dict(self._fields)


class FieldReader:
    """Lossy typed accessors over a document field map.

    A missing key and a key holding another value kind both yield the
    type's zero value; callers cannot tell the two apart.
    """

    def __init__(self, fields: Mapping[str, Value] | None):
        self._fields = fields if fields is not None else {}

    def _typed(self, key: str, kind: str) -> Any:
        value = self._fields.get(key)
        if value is None or value_kind(value) != kind:
            return None
        return getattr(value, kind)

    def get_string(self, key: str) -> str:
        raw = self._typed(key, "string_value")
        return raw if raw is not None else ""

    def get_integer(self, key: str) -> int:
        raw = self._typed(key, "integer_value")
        return int(raw) if raw is not None else 0

    def get_double(self, key: str) -> float:
        raw = self._typed(key, "double_value")
        return float(raw) if raw is not None else 0.0

    def get_boolean(self, key: str) -> bool:
        raw = self._typed(key, "boolean_value")
        return bool(raw) if raw is not None else False


def to_values() -> FieldWriter:
    return FieldWriter()


def from_values(fields: Mapping[str, Value] | None) -> FieldReader:
    return FieldReader(fields)
