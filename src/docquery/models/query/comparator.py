"""
Document Comparator.

Orders [`DocumentSnapshot`][docquery.models.snapshot.DocumentSnapshot]s the
way the backend orders query results, so that results coming from several
sources (e.g. a cache and a listener, or several partitions) can be merged on
the client.

Values of different types are ordered by type first:

null < boolean < number < timestamp < string < bytes < reference < geo point
< array < vector < map

Within a type: NaN sorts below every other number (and equals itself),
integers and doubles compare by numeric value, strings by code point,
references segment by segment, arrays element-wise then by length, vectors
by length then element-wise, maps by sorted keys then values.
"""

import functools
import heapq
import math
from datetime import timezone
from typing import Any, Callable, Iterable, List, Sequence

from ...enum import Direction
from ...errors import MissingFieldError
from ...helpers import DOCUMENT_ID, is_document_id, to_service_field_path
from ..snapshot import DocumentSnapshot
from ..values import VALUE_KEY, Value
from .cursors import OrderSpec

_TYPE_RANK = {
    "null_value": 0,
    "boolean_value": 1,
    "integer_value": 2,
    "double_value": 2,
    "timestamp_value": 3,
    "string_value": 4,
    "bytes_value": 5,
    "reference_value": 6,
    "geo_point_value": 7,
    "array_value": 8,
    # 9: vector (tagged map)
    "map_value": 10,
}
_VECTOR_RANK = 9


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def _type_rank(v: Value) -> int:
    if v.is_vector():
        return _VECTOR_RANK
    return _TYPE_RANK[v.kind]


def _compare_numbers(a: float, b: float) -> int:
    a_nan = isinstance(a, float) and math.isnan(a)
    b_nan = isinstance(b, float) and math.isnan(b)
    if a_nan and b_nan:
        return 0
    if a_nan:
        return -1
    if b_nan:
        return 1
    return _cmp(a, b)


def _as_aware(ts):
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def _compare_sequences(a: Sequence[Value], b: Sequence[Value]) -> int:
    for x, y in zip(a, b):
        c = compare_values(x, y)
        if c != 0:
            return c
    return _cmp(len(a), len(b))


def _vector_elements(v: Value) -> List[Value]:
    elems = v.map_value.fields.get(VALUE_KEY)
    if elems is None or elems.array_value is None:
        return []
    return list(elems.array_value.values)


def compare_values(a: Value, b: Value) -> int:
    """
    Total order over wire values.

    Returns:
        A negative number, zero or a positive number as `a` sorts before,
        together with or after `b`.
    """
    rank_a, rank_b = _type_rank(a), _type_rank(b)
    if rank_a != rank_b:
        return _cmp(rank_a, rank_b)

    kind = a.kind
    if rank_a == _TYPE_RANK["null_value"]:
        return 0
    if rank_a == _TYPE_RANK["integer_value"]:
        return _compare_numbers(getattr(a, kind), getattr(b, b.kind))
    if kind == "timestamp_value":
        return _cmp(_as_aware(a.timestamp_value), _as_aware(b.timestamp_value))
    if kind == "reference_value":
        return _cmp(a.reference_value.split("/"), b.reference_value.split("/"))
    if kind == "geo_point_value":
        ga, gb = a.geo_point_value, b.geo_point_value
        return _cmp((ga.latitude, ga.longitude), (gb.latitude, gb.longitude))
    if kind == "array_value":
        return _compare_sequences(a.array_value.values, b.array_value.values)
    if rank_a == _VECTOR_RANK:
        va, vb = _vector_elements(a), _vector_elements(b)
        if len(va) != len(vb):
            return _cmp(len(va), len(vb))
        return _compare_sequences(va, vb)
    if kind == "map_value":
        fa, fb = a.map_value.fields, b.map_value.fields
        for ka, kb in zip(sorted(fa), sorted(fb)):
            if ka != kb:
                return _cmp(ka, kb)
            c = compare_values(fa[ka], fb[kb])
            if c != 0:
                return c
        return _cmp(len(fa), len(fb))
    # boolean, string, bytes
    return _cmp(getattr(a, kind), getattr(b, kind))


def comparator_orders(orders: Sequence[OrderSpec]) -> List[OrderSpec]:
    """
    Completes `orders` with the document identity, using the direction of the
    last order (ascending if there is none), unless it is already ordered.
    """
    orders = list(orders)
    if any(is_document_id(path) for path, _ in orders):
        return orders
    direction = orders[-1][1] if orders else Direction.Ascending
    return orders + [((DOCUMENT_ID,), direction)]


def compare_func(
    orders: Sequence[OrderSpec],
) -> Callable[[DocumentSnapshot, DocumentSnapshot], int]:
    """
    Builds a `cmp(a, b) -> int` function over snapshots from query orders.

    The returned function raises
    [`MissingFieldError`][docquery.errors.MissingFieldError] when an order-by
    field is absent from one of the snapshots.
    """
    full_orders = comparator_orders(orders)

    def _value(snap: DocumentSnapshot, path) -> Value:
        value = snap.value_at(path)
        if value is None:
            raise MissingFieldError(
                f"field '{to_service_field_path(path)}' is missing from document '{snap.ref.path}'"
            )
        return value

    def cmp(a: DocumentSnapshot, b: DocumentSnapshot) -> int:
        for path, direction in full_orders:
            c = compare_values(_value(a, path), _value(b, path))
            if c != 0:
                return -c if direction == Direction.Descending else c
        return 0

    return cmp


def sort_snapshots(query, snapshots: Iterable[DocumentSnapshot]) -> List[DocumentSnapshot]:
    """Returns `snapshots` sorted in the order of `query` results."""
    return sorted(snapshots, key=functools.cmp_to_key(query.compare_func()))


def merge_sorted(query, *streams: Iterable[DocumentSnapshot]) -> Iterable[DocumentSnapshot]:
    """
    Lazily merges snapshot streams, each already sorted in the order of
    `query`, into a single sorted stream.
    """
    return heapq.merge(*streams, key=functools.cmp_to_key(query.compare_func()))
