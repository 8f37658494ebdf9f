"""
Cursor Model.

A cursor marks one boundary of a query result range. On the builder side it
is a [`CursorSpec`][docquery.models.query.cursors.CursorSpec] holding either
literal values (one per order-by field) or a previously fetched
[`DocumentSnapshot`][docquery.models.snapshot.DocumentSnapshot]; the
translator lowers it into a wire [`Cursor`][docquery.models.query.wire.Cursor].

| Builder call | Endpoint | `before` |
| --- | --- | --- |
| `start_at(...)` | start | `True` (boundary included) |
| `start_after(...)` | start | `False` (boundary excluded) |
| `end_before(...)` | end | `True` (boundary excluded) |
| `end_at(...)` | end | `False` (boundary included) |
"""

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence, Tuple

from ...enum import Direction
from ...errors import InvalidValueError, MissingFieldError, ScopeMismatchError
from ...helpers import FieldPath, is_document_id, to_service_field_path
from ..protocols import ValueEncoderProtocol
from ..reference import DocumentRef, split_path
from ..snapshot import DocumentSnapshot
from ..values import Value, reject_sentinels
from .wire import Cursor


class _ScopedQuery(Protocol):
    parent_path: str
    collection_id: str
    all_descendants: bool

    @property
    def path(self) -> str: ...


OrderSpec = Tuple[FieldPath, Direction]


@dataclass(frozen=True)
class CursorSpec:
    """
    Builder-side cursor.

    Attributes:
        values: Literal boundary values, one per order-by field.
        snapshot: A document snapshot to derive the values from (exclusive with `values`).
        before: Whether the position is just before the boundary values.
    """

    values: Tuple[Any, ...] = ()
    snapshot: Optional[DocumentSnapshot] = None
    before: bool = False

    @classmethod
    def from_args(cls, args: Sequence[Any], before: bool) -> "CursorSpec":
        if len(args) == 1 and isinstance(args[0], DocumentSnapshot):
            return cls(snapshot=args[0], before=before)
        return cls(values=tuple(args), before=before)

    @property
    def is_snapshot(self) -> bool:
        return self.snapshot is not None


def check_document_scope(query: _ScopedQuery, ref: DocumentRef) -> None:
    """
    Verifies that `ref` may appear in a cursor or identity filter of `query`.

    Ordinary queries only accept documents living directly in the queried
    collection; collection group queries accept any document below the
    query's parent path.

    Raises:
        ScopeMismatchError: If the document is out of scope.
    """
    if query.all_descendants:
        if not ref.path.startswith(query.parent_path + "/"):
            raise ScopeMismatchError(
                f"document '{ref.path}' is not under '{query.parent_path}'"
            )
    elif ref.parent_path != query.path:
        raise ScopeMismatchError(
            f"document '{ref.path}' is not an immediate child of collection '{query.path}'"
        )


def document_id_value(query: _ScopedQuery, value: Any) -> Value:
    """
    Converts a cursor value given for the document identity field into a
    reference value.

    Strings are document ids relative to the queried collection (or document
    paths relative to the parent path, for collection group queries).

    Raises:
        InvalidValueError: For a malformed id or a value of the wrong type.
        ScopeMismatchError: For a `DocumentRef` out of the query scope.
    """
    if isinstance(value, str):
        if query.all_descendants:
            segments = split_path(value)
            if len(segments) % 2 != 0:
                raise InvalidValueError(
                    f"collection group cursor value '{value}' must be a document path"
                )
            return Value.reference(f"{query.parent_path}/{'/'.join(segments)}")
        if not value or "/" in value:
            raise InvalidValueError(
                f"cursor value '{value}' for the document id must be a plain document id"
            )
        return Value.reference(f"{query.path}/{value}")
    if isinstance(value, DocumentRef):
        check_document_scope(query, value)
        return Value.reference(value.path)
    raise InvalidValueError(
        f"expected a document id or DocumentRef for the document id field, got '{type(value).__name__}'"
    )


def values_to_cursor(
    query: _ScopedQuery,
    spec: CursorSpec,
    orders: Sequence[OrderSpec],
    encoder: ValueEncoderProtocol,
) -> Cursor:
    """
    Lowers a literal-values cursor.

    Raises:
        InvalidValueError: If the number of values differs from the number of
            orders, or a value is a write-only sentinel.
    """
    if len(spec.values) != len(orders):
        raise InvalidValueError(
            f"cursor has {len(spec.values)} value(s) but the query has {len(orders)} order-by field(s)"
        )
    wire_values = []
    for value, (path, _) in zip(spec.values, orders):
        if is_document_id(path):
            wire_values.append(document_id_value(query, value))
        else:
            reject_sentinels(value)
            wire_values.append(encoder(value))
    return Cursor(values=wire_values, before=spec.before)


def snapshot_to_cursor(
    query: _ScopedQuery, spec: CursorSpec, orders: Sequence[OrderSpec]
) -> Cursor:
    """
    Lowers a snapshot cursor, reading the snapshot value of every order-by field.

    Raises:
        MissingFieldError: If an order-by field is absent from the snapshot.
        ScopeMismatchError: If the snapshot document is out of the query scope.
    """
    snap = spec.snapshot
    check_document_scope(query, snap.ref)
    wire_values = []
    for path, _ in orders:
        value = snap.value_at(path)
        if value is None:
            raise MissingFieldError(
                f"order-by field '{to_service_field_path(path)}' is missing from document '{snap.ref.path}'"
            )
        wire_values.append(value)
    return Cursor(values=wire_values, before=spec.before)
