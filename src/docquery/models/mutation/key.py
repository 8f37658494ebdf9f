"""
Entity keys.

A [`Key`][docquery.models.mutation.key.Key] identifies an entity by a chain
of `(kind, id-or-name)` path elements, from the root ancestor down to the
entity itself, within a namespace.

A key whose last element has neither an id nor a name is *incomplete*: the
backend allocates an id when the entity is inserted.
"""

from dataclasses import dataclass
from typing import List, Optional

from .wire import PartitionId, PathElement, WireKey


@dataclass(frozen=True)
class Key:
    """
    Attributes:
        kind: The entity kind. Must not be empty.
        name: The string identifier, or `""`.
        id: The numeric identifier, or `0`. At most one of `name` and `id` is set.
        parent: The parent key, if any. It must be complete and share the namespace.
        namespace: The namespace of the key.
    """

    kind: str
    name: str = ""
    id: int = 0
    parent: Optional["Key"] = None
    namespace: str = ""

    def incomplete(self) -> bool:
        """True if the key has neither a name nor an id."""
        return self.name == "" and self.id == 0

    def valid(self) -> bool:
        """
        Checks the structural validity of the whole key chain: every element
        has a kind, no element has both a name and an id, every ancestor is
        complete and shares the namespace of its child.
        """
        k: Optional[Key] = self
        while k is not None:
            if not isinstance(k.kind, str) or not k.kind:
                return False
            if k.name != "" and k.id != 0:
                return False
            if k.parent is not None:
                if k.parent.incomplete():
                    return False
                if k.parent.namespace != k.namespace:
                    return False
            k = k.parent
        return True

    def _chain(self) -> List["Key"]:
        chain = []
        k: Optional[Key] = self
        while k is not None:
            chain.append(k)
            k = k.parent
        return list(reversed(chain))

    def __str__(self) -> str:
        # Display form, e.g. '/Parent,alice/Child,42'. Does not mark name vs id
        parts = []
        for k in self._chain():
            parts.append(f"/{k.kind},{k.name if k.name else k.id}")
        return "".join(parts)

    def to_wire(self) -> WireKey:
        return WireKey(
            partition_id=PartitionId(namespace_id=self.namespace),
            path=[
                PathElement(kind=k.kind, name=k.name or None, id=k.id or None)
                for k in self._chain()
            ],
        )


def name_key(kind: str, name: str, parent: Optional[Key] = None) -> Key:
    """Builds a key identified by name, inheriting the namespace of `parent`."""
    return Key(kind=kind, name=name, parent=parent, namespace=parent.namespace if parent else "")


def id_key(kind: str, id: int, parent: Optional[Key] = None) -> Key:
    """Builds a key identified by a numeric id, inheriting the namespace of `parent`."""
    return Key(kind=kind, id=id, parent=parent, namespace=parent.namespace if parent else "")


def incomplete_key(kind: str, parent: Optional[Key] = None) -> Key:
    """Builds an incomplete key: the backend allocates its id on insert."""
    return Key(kind=kind, parent=parent, namespace=parent.namespace if parent else "")
