"""
Document Snapshot Module.

A [`DocumentSnapshot`][docquery.models.snapshot.DocumentSnapshot] is the
client-side view of a fetched document: its reference plus its wire field
values. Snapshots are used as cursor sources and are the operands of the
query comparator.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Sequence, Union

import pydantic

from ..helpers import FieldPath, is_document_id, to_field_path
from .base_model import WireModel
from .reference import DocumentRef
from .values import Value, decode_value, encode_value


class Document(WireModel):
    """Wire form of a document as returned by the backend."""

    name: str
    fields: Dict[str, Value] = pydantic.Field(default_factory=dict)
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None


@dataclass(frozen=True)
class DocumentSnapshot:
    """
    A previously fetched document.

    Attributes:
        ref: The document reference.
        fields: The document content as wire values, keyed by top-level field name.
        create_time: Creation time reported by the backend, if known.
        update_time: Last update time reported by the backend, if known.
        read_time: Time at which the snapshot was read, if known.

    Example:
        ```python
        from docquery import DocumentSnapshot, DocumentRef

        snap = DocumentSnapshot.from_data(
            DocumentRef("projects/P/databases/DB/documents/C/D"),
            {"a": 7, "address": {"city": "Rome"}},
        )
        assert snap.get("address.city") == "Rome"
        ```
    """

    ref: DocumentRef
    fields: Mapping[str, Value] = field(default_factory=dict)
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None
    read_time: Optional[datetime] = None

    @classmethod
    def from_data(cls, ref: DocumentRef, data: Mapping[str, Any]) -> "DocumentSnapshot":
        """Builds a snapshot by encoding plain application data."""
        return cls(ref=ref, fields={k: encode_value(v) for k, v in data.items()})

    @classmethod
    def from_wire(
        cls, doc: Document, read_time: Optional[datetime] = None
    ) -> "DocumentSnapshot":
        """Builds a snapshot from a wire document."""
        return cls(
            ref=DocumentRef(path=doc.name),
            fields=dict(doc.fields),
            create_time=doc.create_time,
            update_time=doc.update_time,
            read_time=read_time,
        )

    @property
    def exists(self) -> bool:
        return self.create_time is not None or bool(self.fields)

    def value_at(self, path: FieldPath) -> Optional[Value]:
        """
        Returns the wire value at `path`, or `None` if the field is absent.

        The document identity field (`__name__`) always resolves to the
        snapshot's own reference.
        """
        if is_document_id(path):
            return Value.reference(self.ref.path)
        current: Optional[Value] = self.fields.get(path[0])
        for seg in path[1:]:
            if current is None or current.map_value is None:
                return None
            current = current.map_value.fields.get(seg)
        return current

    def get(self, path: Union[str, Sequence[str]]) -> Any:
        """
        Returns the decoded value at a dotted path (or segment list).

        Raises:
            KeyError: If the field is absent.
        """
        segments = to_field_path(path)
        value = self.value_at(segments)
        if value is None:
            raise KeyError(f"no field '{'.'.join(segments)}' in document '{self.ref.path}'")
        return decode_value(value)

    def to_dict(self) -> Dict[str, Any]:
        """Decodes all fields into plain Python values."""
        return {k: decode_value(v) for k, v in self.fields.items()}
