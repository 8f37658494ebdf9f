"""
Mutation wire schema: keys, entities and mutations as sent to the transport.
"""

from typing import Dict, List, Optional

import pydantic
from pydantic import model_validator

from ..base_model import WireModel
from ..values import Value


class PartitionId(WireModel):
    namespace_id: str = ""


class PathElement(WireModel):
    kind: str
    id: Optional[int] = None
    name: Optional[str] = None


class WireKey(WireModel):
    partition_id: PartitionId = pydantic.Field(default_factory=PartitionId)
    path: List[PathElement] = pydantic.Field(default_factory=list)


class Entity(WireModel):
    key: WireKey
    properties: Dict[str, Value] = pydantic.Field(default_factory=dict)


class WireMutation(WireModel):
    """A single write. Exactly one operation member is set."""

    insert: Optional[Entity] = None
    update: Optional[Entity] = None
    upsert: Optional[Entity] = None
    delete: Optional[WireKey] = None

    @model_validator(mode="after")
    def _check_one_of(self) -> "WireMutation":
        set_members = [
            m for m in (self.insert, self.update, self.upsert, self.delete) if m is not None
        ]
        if len(set_members) != 1:
            raise ValueError("exactly one mutation operation must be set")
        return self


class MutationResult(WireModel):
    """
    Outcome of one applied mutation.

    Attributes:
        key: The allocated key, for inserts of incomplete keys.
        version: The entity version after the write.
        conflict_detected: Whether a conflict was detected.
    """

    key: Optional[WireKey] = None
    version: Optional[int] = None
    conflict_detected: bool = False
