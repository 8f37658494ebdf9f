"""
This module provides the high-level "Fluent" API for building structured
queries against a document collection.

**Key Components:**

* [**`Query`**][docquery.models.query.builders.Query]: The immutable query
  description: projection, filters, ordering, offset/limit, cursors,
  vector search and run options.
* [**`FindNearestSpec`**][docquery.models.query.builders.FindNearestSpec]: The
  vector-similarity search block attached by `Query.find_nearest()`.

Every builder method returns a **new** `Query` and leaves the receiver
untouched, so a base query can be shared (also across threads) and refined
into many variants:

```python
base = client.collection("cities").query().where("country", "==", "IT")
big = base.where("population", ">", 1_000_000).order_by("population", Desc)
small = base.where("population", "<", 10_000)  # 'base' and 'big' are unchanged
```

Builder methods never raise. An invalid argument is recorded as a sticky
error on the returned query: further chained calls become no-ops, and the
error is raised when the query is translated to its wire form (i.e. by
`to_wire_query()`, `serialize()` or the client).
"""

import copy
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Tuple, Union

import numpy as np

from ...enum import Direction, DistanceMeasure
from ...errors import DocQueryError, InvalidFilterError, InvalidPathError, InvalidValueError
from ...helpers import DOCUMENT_ID, FieldPath, parse_dotted_path, validate_path_segments
from ...logging_config import get_logger
from ..snapshot import DocumentSnapshot
from ..values import Vector
from .cursors import CursorSpec, OrderSpec
from .filters import (
    AndFilter,
    EntityFilter,
    OrFilter,
    PropertyFilter,
    PropertyPathFilter,
    conjoin,
)
from .options import RunOption, RunQuerySettings

# Set the hierarchical logger
logger = get_logger(__name__)

_ENTITY_FILTER_TYPES = (PropertyFilter, PropertyPathFilter, AndFilter, OrFilter)


@dataclass(frozen=True)
class FindNearestSpec:
    """
    Vector-similarity search parameters.

    Attributes:
        vector_field: The field holding the document vectors.
        query_vector: The vector to compare against.
        limit: The number of nearest neighbours to return (positive).
        distance_measure: The distance function.
        distance_result_field: If set, the computed distance is returned in this field.
        distance_threshold: If set, only documents within this distance are returned.
    """

    vector_field: FieldPath
    query_vector: Vector
    limit: int
    distance_measure: DistanceMeasure
    distance_result_field: Optional[str] = None
    distance_threshold: Optional[float] = None


def _as_vector(query_vector: Any) -> Vector:
    if isinstance(query_vector, Vector):
        return query_vector
    if isinstance(query_vector, (str, bytes)) or not isinstance(
        query_vector, (list, tuple, np.ndarray)
    ):
        raise InvalidValueError(
            f"query vector must be a Vector, a sequence of numbers or a numpy array, got '{type(query_vector).__name__}'"
        )
    return Vector(query_vector)


class Query:
    """
    An immutable structured query over one collection (or, for collection
    group queries, over every collection with a given id).

    Queries are usually obtained from the client:
    [`DocumentClient.collection()`][docquery.comm.DocumentClient.collection]`.query()`
    or [`DocumentClient.collection_group()`][docquery.comm.DocumentClient.collection_group].

    Example:
        ```python
        from docquery import DocumentClient, ClientConfig, Asc, Desc

        with DocumentClient(ClientConfig(project_id="P"), transport) as client:
            query = (
                client.collection("cities").query()
                .where("state", "==", "CA")
                .where("population", ">", 100_000)
                .order_by("population", Desc)
                .limit(10)
            )
            for snap in client.run_query(query):
                print(snap.ref.id, snap.get("population"))
        ```
    """

    def __init__(
        self,
        parent_path: str = "",
        collection_id: str = "",
        all_descendants: bool = False,
    ):
        """
        Args:
            parent_path: The parent document path, or the database documents root.
            collection_id: The queried collection id.
            all_descendants: If True, the query matches every collection named
                `collection_id` below `parent_path` (collection group query).
        """
        self.parent_path = parent_path
        self.collection_id = collection_id
        self.all_descendants = all_descendants

        self._selection: Optional[Tuple[FieldPath, ...]] = None
        self._filter: Optional[EntityFilter] = None
        self._orders: Tuple[OrderSpec, ...] = ()
        self._offset: int = 0
        self._limit: Optional[int] = None
        self._start: Optional[CursorSpec] = None
        self._end: Optional[CursorSpec] = None
        self._find_nearest: Optional[FindNearestSpec] = None
        self._settings: RunQuerySettings = RunQuerySettings()
        self._err: Optional[DocQueryError] = None

    # --- Copy-on-write helpers ---

    def _with(self, **changes: Any) -> "Query":
        # All the state is immutable (str, int, tuples, frozen dataclasses):
        # a shallow copy never aliases mutable data.
        q = copy.copy(self)
        for attr, value in changes.items():
            setattr(q, attr, value)
        return q

    def _fail(self, err: DocQueryError) -> "Query":
        logger.debug(f"Query on '{self.collection_id}' captured error: {err}")
        return self._with(_err=err)

    def _state(self) -> tuple:
        return (
            self.parent_path,
            self.collection_id,
            self.all_descendants,
            self._selection,
            self._filter,
            self._orders,
            self._offset,
            self._limit,
            self._start,
            self._end,
            self._find_nearest,
            self._settings,
            repr(self._err),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Query):
            return NotImplemented
        return self._state() == other._state()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"Query(path='{self.path}', all_descendants={self.all_descendants}, "
            f"filter={self._filter!r}, orders={self._orders!r}, err={self._err!r})"
        )

    # --- Read-only state ---

    @property
    def path(self) -> str:
        """The fully qualified path of the queried collection."""
        return f"{self.parent_path}/{self.collection_id}"

    @property
    def err(self) -> Optional[DocQueryError]:
        """The sticky error captured while building, if any."""
        return self._err

    @property
    def filter(self) -> Optional[EntityFilter]:
        return self._filter

    @property
    def orders(self) -> Tuple[OrderSpec, ...]:
        return self._orders

    @property
    def selection(self) -> Optional[Tuple[FieldPath, ...]]:
        return self._selection

    @property
    def start_cursor(self) -> Optional[CursorSpec]:
        return self._start

    @property
    def end_cursor(self) -> Optional[CursorSpec]:
        return self._end

    @property
    def vector_search(self) -> Optional[FindNearestSpec]:
        return self._find_nearest

    @property
    def run_settings(self) -> RunQuerySettings:
        return self._settings

    # --- Projection ---

    def select(self, *paths: str) -> "Query":
        """
        Restricts the returned fields to the given dotted paths.

        Calling `select()` with no paths returns only the document
        references. A later call replaces the previous selection.
        """
        if self._err is not None:
            return self
        try:
            selection = tuple(parse_dotted_path(p) for p in paths)
        except InvalidPathError as e:
            return self._fail(e)
        return self._with_selection(selection)

    def select_paths(self, *paths: Sequence[str]) -> "Query":
        """Like [`select()`][docquery.models.query.Query.select], with paths given as segment lists."""
        if self._err is not None:
            return self
        try:
            selection = tuple(validate_path_segments(p) for p in paths)
        except InvalidPathError as e:
            return self._fail(e)
        return self._with_selection(selection)

    def _with_selection(self, selection: Tuple[FieldPath, ...]) -> "Query":
        if not selection:
            selection = ((DOCUMENT_ID,),)
        return self._with(_selection=selection)

    # --- Filtering ---

    def where(self, path: str, op: str, value: Any) -> "Query":
        """
        Adds a comparison between the field at a dotted `path` and `value`,
        by conjunction with any existing filter.

        The operator is validated when the query is translated: an unknown
        operator raises [`InvalidFilterError`][docquery.errors.InvalidFilterError] then.

        Args:
            path: A dot-separated field path, e.g. `"address.city"`.
            op: One of `<`, `<=`, `>`, `>=`, `==`, `!=`, `in`, `not-in`,
                `array-contains`, `array-contains-any`.
            value: The comparison value. `None` and NaN are only allowed
                with `==` (they become "is null" / "is NaN" tests).
        """
        if self._err is not None:
            return self
        try:
            segments = parse_dotted_path(path)
        except InvalidPathError as e:
            return self._fail(e)
        return self.where_path(segments, op, value)

    def where_path(self, path: Sequence[str], op: str, value: Any) -> "Query":
        """Like [`where()`][docquery.models.query.Query.where], with the path given as segments."""
        if self._err is not None:
            return self
        try:
            segments = validate_path_segments(path)
        except InvalidPathError as e:
            return self._fail(e)
        new_filter = PropertyPathFilter(path=segments, operator=op, value=value)
        return self._with(_filter=conjoin(self._filter, new_filter))

    def where_entity(self, entity_filter: EntityFilter) -> "Query":
        """
        Replaces the query filter with an arbitrary filter tree, which may
        contain [`OrFilter`][docquery.models.query.filters.OrFilter] nodes.
        """
        if self._err is not None:
            return self
        if not isinstance(entity_filter, _ENTITY_FILTER_TYPES):
            return self._fail(
                InvalidFilterError(
                    f"unsupported filter type '{type(entity_filter).__name__}'"
                )
            )
        return self._with(_filter=entity_filter)

    # --- Ordering ---

    def order_by(self, path: str, direction: Direction = Direction.Ascending) -> "Query":
        """
        Appends an ordering on the field at a dotted `path`.

        Use [`DOCUMENT_ID`][docquery.helpers.DOCUMENT_ID] to order by document
        identity. Repeated orderings on the same field are kept as given.
        """
        if self._err is not None:
            return self
        try:
            segments = parse_dotted_path(path)
        except InvalidPathError as e:
            return self._fail(e)
        return self.order_by_path(segments, direction)

    def order_by_path(
        self, path: Sequence[str], direction: Direction = Direction.Ascending
    ) -> "Query":
        """Like [`order_by()`][docquery.models.query.Query.order_by], with the path given as segments."""
        if self._err is not None:
            return self
        try:
            segments = validate_path_segments(path)
        except InvalidPathError as e:
            return self._fail(e)
        try:
            direction = Direction(direction)
        except ValueError:
            return self._fail(InvalidValueError(f"invalid order direction '{direction}'"))
        return self._with(_orders=self._orders + ((segments, direction),))

    # --- Offset & limit ---

    def offset(self, n: int) -> "Query":
        """Skips the first `n` results. A later call replaces the previous value."""
        if self._err is not None:
            return self
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            return self._fail(InvalidValueError(f"offset must be a non-negative integer, got {n!r}"))
        return self._with(_offset=n)

    def limit(self, n: int) -> "Query":
        """Returns at most `n` results. A later call replaces the previous value."""
        if self._err is not None:
            return self
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            return self._fail(InvalidValueError(f"limit must be a non-negative integer, got {n!r}"))
        return self._with(_limit=n)

    # --- Cursors ---

    def _cursor(self, args: Tuple[Any, ...], before: bool, is_start: bool) -> "Query":
        if self._err is not None:
            return self
        if len(args) > 1 and any(isinstance(a, DocumentSnapshot) for a in args):
            return self._fail(
                InvalidValueError("a DocumentSnapshot must be the only cursor argument")
            )
        spec = CursorSpec.from_args(args, before=before)
        if is_start:
            return self._with(_start=spec)
        return self._with(_end=spec)

    def start_at(self, *values: Any) -> "Query":
        """
        Starts the results at the given boundary, included.

        Accepts either one value per order-by field (in order-by order), or a
        single [`DocumentSnapshot`][docquery.models.snapshot.DocumentSnapshot].
        With a snapshot, the ordering is completed with the document identity
        when the query is translated, and the snapshot supplies the values.

        The last call among `start_at`/`start_after` wins.

        Example:
            ```python
            page = query.order_by("population").start_at(1_000_000).limit(20)
            next_page = query.order_by("population").start_after(last_snapshot).limit(20)
            ```
        """
        return self._cursor(values, before=True, is_start=True)

    def start_after(self, *values: Any) -> "Query":
        """Starts the results right after the given boundary. See [`start_at()`][docquery.models.query.Query.start_at]."""
        return self._cursor(values, before=False, is_start=True)

    def end_before(self, *values: Any) -> "Query":
        """Ends the results right before the given boundary. See [`start_at()`][docquery.models.query.Query.start_at]."""
        return self._cursor(values, before=True, is_start=False)

    def end_at(self, *values: Any) -> "Query":
        """Ends the results at the given boundary, included. See [`start_at()`][docquery.models.query.Query.start_at]."""
        return self._cursor(values, before=False, is_start=False)

    # --- Vector search ---

    def find_nearest(
        self,
        vector_field: str,
        query_vector: Union[Vector, Sequence[float], np.ndarray],
        limit: int,
        distance_measure: DistanceMeasure,
        distance_result_field: Optional[str] = None,
        distance_threshold: Optional[float] = None,
    ) -> "Query":
        """
        Turns the query into a nearest-neighbour search over `vector_field`.

        The search composes with the query filter, but cannot be combined
        with explicit orderings or cursors.

        Args:
            vector_field: Dotted path of the field holding the vectors.
            query_vector: The vector to search around.
            limit: Number of neighbours to return (positive).
            distance_measure: The distance function.
            distance_result_field: Optional field receiving the computed distance.
            distance_threshold: Optional maximum distance.

        Example:
            ```python
            import numpy as np
            from docquery import DistanceMeasure

            query = (
                client.collection("items").query()
                .where("category", "==", "shoes")
                .find_nearest("embedding", np.random.rand(128), 5, DistanceMeasure.Cosine)
            )
            ```
        """
        if self._err is not None:
            return self
        try:
            field = parse_dotted_path(vector_field)
            vector = _as_vector(query_vector)
            if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
                raise InvalidValueError(f"find_nearest limit must be a positive integer, got {limit!r}")
            try:
                measure = DistanceMeasure(distance_measure)
            except ValueError:
                raise InvalidValueError(f"invalid distance measure '{distance_measure}'")
            if distance_result_field is not None and (
                not isinstance(distance_result_field, str) or not distance_result_field
            ):
                raise InvalidValueError("distance_result_field must be a non-empty string")
            if distance_threshold is not None:
                if isinstance(distance_threshold, bool) or not isinstance(
                    distance_threshold, (int, float, np.floating)
                ):
                    raise InvalidValueError(
                        f"distance_threshold must be a number, got '{type(distance_threshold).__name__}'"
                    )
                distance_threshold = float(distance_threshold)
        except DocQueryError as e:
            return self._fail(e)

        spec = FindNearestSpec(
            vector_field=field,
            query_vector=vector,
            limit=limit,
            distance_measure=measure,
            distance_result_field=distance_result_field,
            distance_threshold=distance_threshold,
        )
        return self._with(_find_nearest=spec)

    # --- Run options ---

    def with_run_options(self, *options: RunOption) -> "Query":
        """
        Attaches execution options (currently only
        [`ExplainOptions`][docquery.models.query.options.ExplainOptions]).

        Each option can be set only once over the whole chain: setting it
        again raises [`DuplicateOptionError`][docquery.errors.DuplicateOptionError]
        at translation time; a `None` option raises
        [`InvalidOptionError`][docquery.errors.InvalidOptionError].
        """
        if self._err is not None:
            return self
        try:
            settings = self._settings.with_options(options)
        except DocQueryError as e:
            return self._fail(e)
        return self._with(_settings=settings)

    # --- Terminal operations ---

    def new_aggregation_query(self):
        """Returns an [`AggregationQuery`][docquery.models.query.aggregation.AggregationQuery] over the results of this query."""
        from .aggregation import AggregationQuery

        return AggregationQuery(self)

    def to_wire_query(self):
        """
        Validates the query and lowers it to a wire
        [`StructuredQuery`][docquery.models.query.wire.StructuredQuery].

        Raises:
            DocQueryError: The sticky build error, or any validation error.
        """
        from .translator import to_wire_query

        return to_wire_query(self)

    def to_run_query_request(self):
        """Like `to_wire_query()`, wrapped in the request envelope sent to the transport."""
        from .translator import to_run_query_request

        return to_run_query_request(self)

    def serialize(self) -> bytes:
        """Serializes the validated wire request, e.g. to persist and resume the query later."""
        return self.to_run_query_request().to_json()

    @classmethod
    def deserialize(cls, data: Union[bytes, str]) -> "Query":
        """
        Rebuilds a query from the output of [`serialize()`][docquery.models.query.Query.serialize].

        The rebuilt query translates to the same wire request, although its
        builder state may differ (e.g. snapshot cursors come back as literal
        values with the completed ordering).
        """
        from .translator import from_run_query_request
        from .wire import RunQueryRequest

        return from_run_query_request(RunQueryRequest.model_validate_json(data))

    def compare_func(self) -> Callable[[DocumentSnapshot, DocumentSnapshot], int]:
        """
        Returns a comparison function ordering snapshots as the backend orders
        the results of this query.

        See [`compare_func`][docquery.models.query.comparator.compare_func].
        """
        from .comparator import compare_func

        return compare_func(self._orders)
