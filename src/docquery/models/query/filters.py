"""
Filter Model.

A closed set of filter variants composing recursively into a tree:

* [`PropertyFilter`][docquery.models.query.filters.PropertyFilter]: comparison on a dotted field path string.
* [`PropertyPathFilter`][docquery.models.query.filters.PropertyPathFilter]: comparison on an explicit list of path segments.
* [`AndFilter`][docquery.models.query.filters.AndFilter] / [`OrFilter`][docquery.models.query.filters.OrFilter]: conjunction / disjunction of child filters.

Every variant lowers to the wire [`Filter`][docquery.models.query.wire.Filter]
through `to_wire_filter()`. Nothing is validated at construction time: a bad
operator or path only raises when the filter is lowered, i.e. when the owning
query is translated.

Example:
    ```python
    from docquery import OrFilter, AndFilter, PropertyFilter

    f = OrFilter([
        PropertyFilter("b", "==", 15),
        AndFilter([PropertyFilter("a", ">", 5), PropertyFilter("a", "<=", 12)]),
    ])
    query = client.collection("C").query().where_entity(f)
    ```
"""

from dataclasses import dataclass
from typing import Any, Iterator, Optional, Sequence, Tuple, Union

from ...enum.filter_operator import (
    INEQUALITY_SYMBOLS,
    OPERATOR_SYMBOLS,
    SYMBOLS_BY_OPERATOR,
    CompositeOperator,
    UnaryOperator,
)
from ...errors import InvalidFilterError, UnsupportedFilterError
from ...helpers import (
    FieldPath,
    parse_dotted_path,
    parse_service_field_path,
    to_service_field_path,
    validate_path_segments,
)
from ..protocols import ValueEncoderProtocol
from ..values import decode_value, encode_value, is_nan, reject_sentinels
from .wire import CompositeFilter, FieldFilter, FieldReference, Filter, UnaryFilter


def _field_filter_to_wire(
    path: FieldPath, operator: str, value: Any, encoder: ValueEncoderProtocol
) -> Filter:
    if not isinstance(operator, str) or operator not in OPERATOR_SYMBOLS:
        raise InvalidFilterError(
            f"invalid operator '{operator}', expected one of {list(OPERATOR_SYMBOLS)}"
        )
    ref = FieldReference(field_path=to_service_field_path(path))

    # The wire protocol has no binary comparison against null or NaN
    if value is None or is_nan(value):
        if operator == "==":
            unary_op = UnaryOperator.IS_NULL if value is None else UnaryOperator.IS_NAN
            return Filter(unary_filter=UnaryFilter(op=unary_op, field=ref))
        if operator == "!=":
            raise UnsupportedFilterError(
                f"operator '!=' cannot be used with a null or NaN value (field '{ref.field_path}')"
            )

    reject_sentinels(value)
    return Filter(
        field_filter=FieldFilter(
            field=ref, op=OPERATOR_SYMBOLS[operator], value=encoder(value)
        )
    )


@dataclass(frozen=True)
class PropertyFilter:
    """
    Comparison between the field at a dotted path and a value.

    Attributes:
        path: A dot-separated field path, e.g. `"address.city"`.
        operator: One of `<`, `<=`, `>`, `>=`, `==`, `!=`, `in`, `not-in`,
            `array-contains`, `array-contains-any`.
        value: The comparison operand.
    """

    path: str
    operator: str
    value: Any

    def field_path(self) -> FieldPath:
        return parse_dotted_path(self.path)

    def to_wire_filter(self, encoder: ValueEncoderProtocol = encode_value) -> Filter:
        """
        Raises:
            InvalidPathError: If the path is malformed.
            InvalidFilterError: If the operator is unknown.
            UnsupportedFilterError: For `!=` against `None` or NaN.
        """
        return _field_filter_to_wire(self.field_path(), self.operator, self.value, encoder)


@dataclass(frozen=True)
class PropertyPathFilter:
    """
    Same as [`PropertyFilter`][docquery.models.query.filters.PropertyFilter], with the
    field given as explicit segments. Segments may contain any character
    (`["a.b", "*"]` addresses the field `*` inside the field `a.b`).
    """

    path: Tuple[str, ...]
    operator: str
    value: Any

    def __post_init__(self):
        if isinstance(self.path, list):
            object.__setattr__(self, "path", tuple(self.path))

    def field_path(self) -> FieldPath:
        return validate_path_segments(self.path)

    def to_wire_filter(self, encoder: ValueEncoderProtocol = encode_value) -> Filter:
        return _field_filter_to_wire(self.field_path(), self.operator, self.value, encoder)


@dataclass(frozen=True)
class _CompositeEntityFilter:
    filters: Tuple["EntityFilter", ...]

    def __init__(self, filters: Sequence["EntityFilter"]):
        object.__setattr__(self, "filters", tuple(filters))

    def to_wire_filter(self, encoder: ValueEncoderProtocol = encode_value) -> Filter:
        if not self.filters:
            raise InvalidFilterError(
                f"'{type(self).__name__}' requires at least one filter"
            )
        # The first failing child aborts the whole tree
        children = [f.to_wire_filter(encoder) for f in self.filters]
        if len(children) == 1:
            return children[0]
        return Filter(
            composite_filter=CompositeFilter(
                op=self.__composite_operator__, filters=children
            )
        )


class AndFilter(_CompositeEntityFilter):
    """Matches documents satisfying every child filter."""

    __composite_operator__ = CompositeOperator.AND


class OrFilter(_CompositeEntityFilter):
    """Matches documents satisfying at least one child filter."""

    __composite_operator__ = CompositeOperator.OR


EntityFilter = Union[PropertyFilter, PropertyPathFilter, AndFilter, OrFilter]


def conjoin(existing: Optional[EntityFilter], new: EntityFilter) -> EntityFilter:
    """Adds `new` to `existing` by conjunction, keeping a flat `AndFilter`."""
    if existing is None:
        return new
    if isinstance(existing, AndFilter):
        return AndFilter(existing.filters + (new,))
    return AndFilter([existing, new])


def iter_conjuncts(f: Optional[EntityFilter]) -> Iterator[EntityFilter]:
    """Yields the top-level conjuncts of a filter tree (does not descend into ORs)."""
    if f is None:
        return
    if isinstance(f, AndFilter):
        for child in f.filters:
            yield from iter_conjuncts(child)
    else:
        yield f


def first_inequality_path(f: Optional[EntityFilter]) -> Optional[FieldPath]:
    """Returns the field of the first top-level inequality comparison, if any."""
    for conj in iter_conjuncts(f):
        if isinstance(conj, (PropertyFilter, PropertyPathFilter)):
            if conj.operator in INEQUALITY_SYMBOLS:
                return conj.field_path()
    return None


def from_wire_filter(wf: Filter) -> EntityFilter:
    """Rebuilds an entity filter tree from its wire form."""
    if wf.field_filter is not None:
        ff = wf.field_filter
        return PropertyPathFilter(
            path=parse_service_field_path(ff.field.field_path),
            operator=SYMBOLS_BY_OPERATOR[ff.op],
            value=decode_value(ff.value),
        )
    if wf.unary_filter is not None:
        uf = wf.unary_filter
        return PropertyPathFilter(
            path=parse_service_field_path(uf.field.field_path),
            operator="==",
            value=None if uf.op == UnaryOperator.IS_NULL else float("nan"),
        )
    cf = wf.composite_filter
    children = [from_wire_filter(child) for child in cf.filters]
    if cf.op == CompositeOperator.OR:
        return OrFilter(children)
    return AndFilter(children)
