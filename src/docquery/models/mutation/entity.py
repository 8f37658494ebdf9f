"""
Default entity encoder.

Turns an application object into the wire [`Entity`][docquery.models.mutation.wire.Entity]
written by insert, update and upsert mutations. Supported sources are
mappings with string keys, pydantic models and dataclass instances; every
property value goes through [`encode_value`][docquery.models.values.encode_value].
"""

import dataclasses
from typing import Any, Dict, Mapping

import pydantic

from ...errors import DocQueryError, EncodingError
from ..values import Value, encode_value
from .key import Key
from .wire import Entity


def _as_mapping(src: Any) -> Mapping[str, Any]:
    if isinstance(src, pydantic.BaseModel):
        return src.model_dump()
    if dataclasses.is_dataclass(src) and not isinstance(src, type):
        return dataclasses.asdict(src)
    if isinstance(src, Mapping):
        return src
    raise EncodingError(
        f"cannot encode '{type(src).__name__}' as an entity: expected a mapping, a pydantic model or a dataclass"
    )


def encode_entity(key: Key, src: Any) -> Entity:
    """
    Encodes `src` as the entity stored under `key`.

    Raises:
        EncodingError: If `src` or one of its property values cannot be encoded.
    """
    properties: Dict[str, Value] = {}
    for name, value in _as_mapping(src).items():
        if not isinstance(name, str):
            raise EncodingError(
                f"entity property names must be strings, got '{type(name).__name__}'"
            )
        try:
            properties[name] = encode_value(value)
        except EncodingError:
            raise
        except DocQueryError as e:
            raise EncodingError(f"cannot encode property '{name}', err: '{e}'") from e
    return Entity(key=key.to_wire(), properties=properties)
