"""
Query Translator.

Lowers a [`Query`][docquery.models.query.builders.Query] to the wire
[`StructuredQuery`][docquery.models.query.wire.StructuredQuery] (and back).

Translation is where every deferred validation happens, in this order:

1. the sticky error captured by the builder, if any, is raised;
2. the collection id must be set;
3. the filter tree is lowered (bad operators, paths, values and document
   identity references out of scope are rejected);
4. projection and ordering paths are re-validated;
5. vector search must not be combined with orderings or cursors;
6. cursors are lowered against the *effective* ordering (see below).

**Effective ordering**: when a cursor is a document snapshot, the ordering is
completed so that the position is unambiguous. If the query has orderings,
the document identity is appended with the direction of the last one (unless
it is already ordered). Without orderings, the field of the first top-level
inequality filter is ordered ascending, followed by the document identity.
"""

from typing import Iterator, List, Optional

from ...enum import Direction
from ...errors import InvalidValueError, MissingCollectionError, MixedCursorTypeError
from ...helpers import (
    DOCUMENT_ID,
    is_document_id,
    parse_service_field_path,
    to_service_field_path,
    validate_path_segments,
)
from ...logging_config import get_logger
from ..protocols import ValueEncoderProtocol
from ..reference import DocumentRef
from ..values import Value, Vector, decode_value, encode_value, vector_to_value
from . import wire
from .builders import FindNearestSpec, Query
from .cursors import (
    CursorSpec,
    OrderSpec,
    check_document_scope,
    snapshot_to_cursor,
    values_to_cursor,
)
from .filters import first_inequality_path, from_wire_filter
from .options import ExplainOptions, RunQuerySettings

# Set the hierarchical logger
logger = get_logger(__name__)

_DOCUMENT_ID_PATH = (DOCUMENT_ID,)


def effective_orders(query: Query) -> List[OrderSpec]:
    """Returns the ordering actually sent on the wire (see module docs)."""
    orders = list(query.orders)
    cursors = [c for c in (query.start_cursor, query.end_cursor) if c is not None]
    if not any(c.is_snapshot for c in cursors):
        return orders
    if any(is_document_id(path) for path, _ in orders):
        return orders
    if orders:
        return orders + [(_DOCUMENT_ID_PATH, orders[-1][1])]

    inequality_path = first_inequality_path(query.filter)
    if inequality_path is not None and not is_document_id(inequality_path):
        return [(inequality_path, Direction.Ascending), (_DOCUMENT_ID_PATH, Direction.Ascending)]
    return [(_DOCUMENT_ID_PATH, Direction.Ascending)]


def _iter_field_filters(f: wire.Filter) -> Iterator[wire.FieldFilter]:
    if f.field_filter is not None:
        yield f.field_filter
    elif f.composite_filter is not None:
        for child in f.composite_filter.filters:
            yield from _iter_field_filters(child)


def _check_document_id_filters(query: Query, where: wire.Filter) -> None:
    # Identity comparisons must reference documents within the query scope
    for ff in _iter_field_filters(where):
        if ff.field.field_path != DOCUMENT_ID:
            continue
        operands: List[Value] = [ff.value]
        if ff.value.array_value is not None:
            operands = list(ff.value.array_value.values)
        for operand in operands:
            if operand.reference_value is not None:
                check_document_scope(query, DocumentRef(path=operand.reference_value))


def _lower_cursor(
    query: Query,
    spec: Optional[CursorSpec],
    orders: List[OrderSpec],
    encoder: ValueEncoderProtocol,
) -> Optional[wire.Cursor]:
    if spec is None:
        return None
    if spec.is_snapshot:
        return snapshot_to_cursor(query, spec, orders)
    return values_to_cursor(query, spec, orders, encoder)


def _lower_find_nearest(spec: Optional[FindNearestSpec]) -> Optional[wire.FindNearest]:
    if spec is None:
        return None
    return wire.FindNearest(
        vector_field=wire.FieldReference(field_path=to_service_field_path(spec.vector_field)),
        query_vector=vector_to_value(spec.query_vector),
        distance_measure=spec.distance_measure,
        limit=spec.limit,
        distance_result_field=spec.distance_result_field,
        distance_threshold=spec.distance_threshold,
    )


def to_wire_query(
    query: Query, encoder: ValueEncoderProtocol = encode_value
) -> wire.StructuredQuery:
    """
    Validates `query` and lowers it to a wire structured query.

    Args:
        query: The query to translate.
        encoder: The application value encoder used for filter operands and
            literal cursor values.

    Raises:
        DocQueryError: The first validation error found (see module docs).
    """
    if query.err is not None:
        raise query.err
    if not query.collection_id:
        raise MissingCollectionError("query has no collection id")

    where = None
    if query.filter is not None:
        where = query.filter.to_wire_filter(encoder)
        _check_document_id_filters(query, where)

    select = None
    if query.selection is not None:
        select = wire.Projection(
            fields=[
                wire.FieldReference(field_path=to_service_field_path(validate_path_segments(p)))
                for p in query.selection
            ]
        )

    for path, _ in query.orders:
        validate_path_segments(path)

    has_cursor = query.start_cursor is not None or query.end_cursor is not None
    if query.vector_search is not None and (query.orders or has_cursor):
        raise InvalidValueError("find_nearest cannot be combined with order_by or cursors")

    start, end = query.start_cursor, query.end_cursor
    if start is not None and end is not None and start.is_snapshot != end.is_snapshot:
        raise MixedCursorTypeError(
            "start and end cursors must both be snapshots or both be values"
        )

    orders = effective_orders(query)
    start_at = _lower_cursor(query, start, orders, encoder)
    end_at = _lower_cursor(query, end, orders, encoder)

    structured = wire.StructuredQuery(
        select=select,
        from_=[
            wire.CollectionSelector(
                collection_id=query.collection_id,
                all_descendants=query.all_descendants,
            )
        ],
        where=where,
        order_by=[
            wire.Order(
                field=wire.FieldReference(field_path=to_service_field_path(path)),
                direction=direction,
            )
            for path, direction in orders
        ],
        start_at=start_at,
        end_at=end_at,
        offset=query._offset,
        limit=query._limit,
        find_nearest=_lower_find_nearest(query.vector_search),
    )
    logger.debug(
        f"Translated query on '{query.path}' (orders={len(orders)}, filter={'yes' if where else 'no'})"
    )
    return structured


def to_run_query_request(
    query: Query, encoder: ValueEncoderProtocol = encode_value
) -> wire.RunQueryRequest:
    """Wraps the translated query in the request envelope sent to the transport."""
    return wire.RunQueryRequest(
        parent=query.parent_path,
        structured_query=to_wire_query(query, encoder),
        explain_options=query.run_settings.explain_to_wire(),
    )


def from_run_query_request(request: wire.RunQueryRequest) -> Query:
    """
    Rebuilds a [`Query`][docquery.models.query.builders.Query] from a wire request.

    Translating the result yields a request equal to `request`.

    Raises:
        InvalidValueError: If the request does not select exactly one collection.
        InvalidPathError: If a field path is malformed.
    """
    sq = request.structured_query
    if len(sq.from_) != 1:
        raise InvalidValueError(
            f"expected exactly one collection selector, got {len(sq.from_)}"
        )
    selector = sq.from_[0]
    query = Query(
        parent_path=request.parent,
        collection_id=selector.collection_id,
        all_descendants=selector.all_descendants,
    )

    changes = {}
    if sq.select is not None:
        changes["_selection"] = tuple(
            parse_service_field_path(f.field_path) for f in sq.select.fields
        )
    if sq.where is not None:
        changes["_filter"] = from_wire_filter(sq.where)
    changes["_orders"] = tuple(
        (parse_service_field_path(o.field.field_path), o.direction) for o in sq.order_by
    )
    changes["_offset"] = sq.offset
    changes["_limit"] = sq.limit
    if sq.start_at is not None:
        changes["_start"] = CursorSpec(
            values=tuple(decode_value(v) for v in sq.start_at.values),
            before=sq.start_at.before,
        )
    if sq.end_at is not None:
        changes["_end"] = CursorSpec(
            values=tuple(decode_value(v) for v in sq.end_at.values),
            before=sq.end_at.before,
        )
    if sq.find_nearest is not None:
        fn = sq.find_nearest
        vector = decode_value(fn.query_vector)
        if not isinstance(vector, Vector):
            vector = Vector(vector)
        changes["_find_nearest"] = FindNearestSpec(
            vector_field=parse_service_field_path(fn.vector_field.field_path),
            query_vector=vector,
            limit=fn.limit,
            distance_measure=fn.distance_measure,
            distance_result_field=fn.distance_result_field,
            distance_threshold=fn.distance_threshold,
        )
    if request.explain_options is not None:
        changes["_settings"] = RunQuerySettings(
            explain_options=ExplainOptions(analyze=request.explain_options.analyze)
        )
    return query._with(**changes)
