"""
Structured query wire schema.

These messages are what the SDK hands to the transport. They are produced by
the [translator][docquery.models.query.translator] and are never built by
hand in application code.
"""

from typing import List, Optional

import pydantic
from pydantic import model_validator

from ...enum import CompositeOperator, Direction, DistanceMeasure, FieldOperator, UnaryOperator
from ..base_model import WireModel
from ..values import Value


class FieldReference(WireModel):
    """A field addressed by its escaped dotted path (e.g. ``a.`b.c` ``)."""

    field_path: str


class CollectionSelector(WireModel):
    collection_id: str
    all_descendants: bool = False


class Projection(WireModel):
    fields: List[FieldReference] = pydantic.Field(default_factory=list)


class FieldFilter(WireModel):
    field: FieldReference
    op: FieldOperator
    value: Value


class UnaryFilter(WireModel):
    op: UnaryOperator
    field: FieldReference


class CompositeFilter(WireModel):
    op: CompositeOperator
    filters: List["Filter"] = pydantic.Field(default_factory=list)


class Filter(WireModel):
    """A filter node. Exactly one member is set."""

    composite_filter: Optional[CompositeFilter] = None
    field_filter: Optional[FieldFilter] = None
    unary_filter: Optional[UnaryFilter] = None

    @model_validator(mode="after")
    def _check_one_of(self) -> "Filter":
        set_members = [
            m
            for m in (self.composite_filter, self.field_filter, self.unary_filter)
            if m is not None
        ]
        if len(set_members) != 1:
            raise ValueError("exactly one filter member must be set")
        return self


CompositeFilter.model_rebuild()


class Order(WireModel):
    field: FieldReference
    direction: Direction


class Cursor(WireModel):
    """
    A position in the result set.

    `before=True` places the position just before the values: a start cursor
    then includes them, an end cursor excludes them.
    """

    values: List[Value] = pydantic.Field(default_factory=list)
    before: bool = False


class FindNearest(WireModel):
    vector_field: FieldReference
    query_vector: Value
    distance_measure: DistanceMeasure
    limit: int
    distance_result_field: Optional[str] = None
    distance_threshold: Optional[float] = None


class StructuredQuery(WireModel):
    select: Optional[Projection] = None
    from_: List[CollectionSelector] = pydantic.Field(default_factory=list, alias="from")
    where: Optional[Filter] = None
    order_by: List[Order] = pydantic.Field(default_factory=list)
    start_at: Optional[Cursor] = None
    end_at: Optional[Cursor] = None
    offset: int = 0
    limit: Optional[int] = None
    find_nearest: Optional[FindNearest] = None


class ExplainOptions(WireModel):
    analyze: bool = False


class RunQueryRequest(WireModel):
    parent: str
    structured_query: StructuredQuery
    explain_options: Optional[ExplainOptions] = None


# --- Aggregations ---


class Count(WireModel):
    up_to: Optional[int] = None


class Sum(WireModel):
    field: FieldReference


class Avg(WireModel):
    field: FieldReference


class Aggregation(WireModel):
    alias: str
    count: Optional[Count] = None
    sum: Optional[Sum] = None
    avg: Optional[Avg] = None


class StructuredAggregationQuery(WireModel):
    structured_query: StructuredQuery
    aggregations: List[Aggregation] = pydantic.Field(default_factory=list)


class RunAggregationQueryRequest(WireModel):
    parent: str
    structured_aggregation_query: StructuredAggregationQuery
    explain_options: Optional[ExplainOptions] = None
