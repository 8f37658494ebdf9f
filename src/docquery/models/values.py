"""
Wire Value Module.

Defines the typed [`Value`][docquery.models.values.Value] carried by filters,
cursors, snapshots and entities, the application-side helper types
([`GeoPoint`][docquery.models.values.GeoPoint], [`Vector`][docquery.models.values.Vector]),
the write-only sentinels, and the default encoder/decoder between Python
values and wire values.

**Python -> wire mapping** (see [`encode_value`][docquery.models.values.encode_value]):

| Python | Wire member |
| --- | --- |
| `None` | `null_value` |
| `bool`, `numpy.bool_` | `boolean_value` |
| `int`, `numpy.integer` | `integer_value` (64 bit) |
| `float`, `numpy.floating` | `double_value` |
| `datetime` | `timestamp_value` (naive values are taken as UTC) |
| `str` | `string_value` |
| `bytes`, `bytearray` | `bytes_value` |
| `DocumentRef` | `reference_value` |
| `GeoPoint` | `geo_point_value` |
| `list`, `tuple` | `array_value` |
| `Vector`, 1-D `numpy.ndarray` | `map_value` tagged as a vector |
| `dict`, pydantic model | `map_value` |
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Sequence

import numpy as np
import pydantic
from pydantic import model_validator

from ..errors import EncodingError, InvalidValueError
from .base_model import WireModel
from .reference import DocumentRef

TYPE_KEY = "__type__"
VECTOR_TYPE = "__vector__"
VALUE_KEY = "value"

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class GeoPoint(WireModel):
    """A latitude/longitude pair, in degrees."""

    latitude: float = pydantic.Field(ge=-90.0, le=90.0)
    longitude: float = pydantic.Field(ge=-180.0, le=180.0)


class ArrayValue(WireModel):
    values: List["Value"] = pydantic.Field(default_factory=list)


class MapValue(WireModel):
    fields: Dict[str, "Value"] = pydantic.Field(default_factory=dict)


class Value(WireModel):
    """
    A typed wire value. Exactly one member is set.
    """

    null_value: Optional[Literal["NULL_VALUE"]] = None
    boolean_value: Optional[bool] = None
    integer_value: Optional[int] = None
    double_value: Optional[float] = None
    timestamp_value: Optional[datetime] = None
    string_value: Optional[str] = None
    bytes_value: Optional[bytes] = None
    reference_value: Optional[str] = None
    geo_point_value: Optional[GeoPoint] = None
    array_value: Optional[ArrayValue] = None
    map_value: Optional[MapValue] = None

    @model_validator(mode="after")
    def _check_one_of(self) -> "Value":
        set_members = [name for name in type(self).model_fields if getattr(self, name) is not None]
        if len(set_members) != 1:
            raise ValueError(
                f"exactly one value member must be set, found {set_members}"
            )
        return self

    @property
    def kind(self) -> str:
        """Name of the member carrying the value (e.g. `"integer_value"`)."""
        for name in type(self).model_fields:
            if getattr(self, name) is not None:
                return name
        # Unreachable: the validator guarantees one member
        raise ValueError("empty value")

    def is_vector(self) -> bool:
        """True if this is a map tagged as a vector."""
        if self.map_value is None:
            return False
        tag = self.map_value.fields.get(TYPE_KEY)
        return tag is not None and tag.string_value == VECTOR_TYPE

    # --- Convenience constructors ---

    @classmethod
    def null(cls) -> "Value":
        return cls(null_value="NULL_VALUE")

    @classmethod
    def reference(cls, path: str) -> "Value":
        return cls(reference_value=path)


ArrayValue.model_rebuild()
MapValue.model_rebuild()


class Vector:
    """
    A dense vector of doubles, stored on the wire as a tagged map so that it is
    distinguishable from a plain array.

    Example:
        ```python
        import numpy as np
        from docquery import Vector

        v = Vector([0.1, 0.2, 0.3])
        w = Vector(np.linspace(0.0, 1.0, 8))
        print(len(w), w.to_numpy().dtype)
        ```
    """

    __slots__ = ("_values",)

    def __init__(self, values: Sequence[float]):
        try:
            arr = np.asarray(values, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidValueError(f"vector values must be numbers, err: '{e}'") from e
        if arr.ndim != 1:
            raise InvalidValueError(
                f"vector must be one-dimensional, got shape {arr.shape}"
            )
        self._values = tuple(float(x) for x in arr)

    @property
    def values(self) -> tuple:
        return self._values

    def to_numpy(self) -> np.ndarray:
        return np.array(self._values, dtype=np.float64)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self):
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return self._values == other._values

    def __hash__(self) -> int:
        return hash(self._values)

    def __repr__(self) -> str:
        return f"Vector({list(self._values)})"


class _Sentinel:
    """Write-only marker value, meaningless in a read query."""

    def __init__(self, name: str):
        self._name = name

    def __repr__(self) -> str:
        return self._name


SERVER_TIMESTAMP = _Sentinel("ServerTimestamp")
"""Asks the backend to set the field to the commit time."""

DELETE_FIELD = _Sentinel("Delete")
"""Asks the backend to remove the field."""


def is_sentinel(value: Any) -> bool:
    return isinstance(value, _Sentinel)


def reject_sentinels(value: Any) -> None:
    """
    Raises if `value` is, or nests inside its lists, tuples or mapping
    values, a write-only sentinel. Read queries run this ahead of the
    value encoder, whichever encoder is in use.

    Raises:
        InvalidValueError: If a sentinel is found.
    """
    if is_sentinel(value):
        raise InvalidValueError(
            f"sentinel '{value!r}' is a write-only value and cannot be used here"
        )
    if isinstance(value, (list, tuple)):
        for item in value:
            reject_sentinels(item)
    elif isinstance(value, dict):
        for item in value.values():
            reject_sentinels(item)


def vector_to_value(vector: Vector) -> Value:
    """Encodes a vector as the tagged map understood by the backend."""
    return Value(
        map_value=MapValue(
            fields={
                TYPE_KEY: Value(string_value=VECTOR_TYPE),
                VALUE_KEY: Value(
                    array_value=ArrayValue(
                        values=[Value(double_value=x) for x in vector.values]
                    )
                ),
            }
        )
    )


def encode_value(value: Any) -> Value:
    """
    Default encoder from an application value to a wire [`Value`][docquery.models.values.Value].

    Raises:
        InvalidValueError: If the value embeds a write-only sentinel
            ([`SERVER_TIMESTAMP`][docquery.models.values.SERVER_TIMESTAMP],
            [`DELETE_FIELD`][docquery.models.values.DELETE_FIELD]) or an
            out-of-range integer.
        EncodingError: If the value type is not supported.
    """
    if value is None:
        return Value.null()
    if isinstance(value, _Sentinel):
        raise InvalidValueError(
            f"sentinel '{value!r}' is a write-only value and cannot be used here"
        )
    if isinstance(value, (bool, np.bool_)):
        return Value(boolean_value=bool(value))
    if isinstance(value, (int, np.integer)):
        ivalue = int(value)
        if not _INT64_MIN <= ivalue <= _INT64_MAX:
            raise InvalidValueError(f"integer {ivalue} overflows 64 bits")
        return Value(integer_value=ivalue)
    if isinstance(value, (float, np.floating)):
        return Value(double_value=float(value))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return Value(timestamp_value=value)
    if isinstance(value, str):
        return Value(string_value=value)
    if isinstance(value, (bytes, bytearray)):
        return Value(bytes_value=bytes(value))
    if isinstance(value, DocumentRef):
        return Value.reference(value.path)
    if isinstance(value, GeoPoint):
        return Value(geo_point_value=value)
    if isinstance(value, Vector):
        return vector_to_value(value)
    if isinstance(value, np.ndarray):
        return vector_to_value(Vector(value))
    if isinstance(value, Value):
        return value
    if isinstance(value, (list, tuple)):
        return Value(array_value=ArrayValue(values=[encode_value(v) for v in value]))
    if isinstance(value, pydantic.BaseModel):
        value = value.model_dump()
    if isinstance(value, dict):
        fields: Dict[str, Value] = {}
        for key, val in value.items():
            if not isinstance(key, str):
                raise EncodingError(
                    f"map keys must be strings, got '{type(key).__name__}'"
                )
            fields[key] = encode_value(val)
        return Value(map_value=MapValue(fields=fields))

    raise EncodingError(f"unsupported value type '{type(value).__name__}'")


def decode_value(value: Value) -> Any:
    """
    Inverse of [`encode_value`][docquery.models.values.encode_value]:
    references decode to [`DocumentRef`][docquery.models.reference.DocumentRef],
    tagged vector maps to [`Vector`][docquery.models.values.Vector].
    """
    kind = value.kind
    if kind == "null_value":
        return None
    if kind == "array_value":
        return [decode_value(v) for v in value.array_value.values]
    if kind == "map_value":
        if value.is_vector():
            elems = value.map_value.fields.get(VALUE_KEY)
            items = elems.array_value.values if elems and elems.array_value else []
            return Vector([decode_value(v) for v in items])
        return {k: decode_value(v) for k, v in value.map_value.fields.items()}
    if kind == "reference_value":
        return DocumentRef(path=value.reference_value)
    return getattr(value, kind)


def is_nan(value: Any) -> bool:
    """True for float (or numpy float) NaN values."""
    return isinstance(value, (float, np.floating)) and math.isnan(value)
