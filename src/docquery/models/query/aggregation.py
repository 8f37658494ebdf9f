"""
Aggregation queries: count, sum and average computed by the backend over the
results of a [`Query`][docquery.models.query.builders.Query].

Example:
    ```python
    agg = (
        client.collection("orders").query()
        .where("status", "==", "shipped")
        .new_aggregation_query()
        .with_count("n")
        .with_sum("total", "revenue")
        .with_avg("total", "avg_total")
    )
    result = client.run_aggregation(agg)
    print(result["n"], result["revenue"], result["avg_total"])
    ```
"""

import copy
from typing import Any, Optional, Sequence, Tuple

from ...errors import DocQueryError, InvalidPathError, InvalidValueError
from ...helpers import FieldPath, parse_dotted_path, to_service_field_path, validate_path_segments
from ...logging_config import get_logger
from . import wire

# Set the hierarchical logger
logger = get_logger(__name__)


class AggregationQuery:
    """
    An immutable set of aggregations over a base query.

    Like [`Query`][docquery.models.query.builders.Query], the builder methods
    never raise: an invalid path or alias is recorded as a sticky error and
    raised by [`to_wire()`][docquery.models.query.aggregation.AggregationQuery.to_wire].
    """

    def __init__(self, query):
        self.query = query
        self._aggregations: Tuple[wire.Aggregation, ...] = ()
        self._err: Optional[DocQueryError] = None

    @property
    def err(self) -> Optional[DocQueryError]:
        return self._err

    @property
    def aliases(self) -> Tuple[str, ...]:
        return tuple(a.alias for a in self._aggregations)

    def _add(self, alias: str, **member: Any) -> "AggregationQuery":
        if self._err is not None:
            return self
        if not isinstance(alias, str) or not alias:
            return self._fail(InvalidValueError("aggregation alias must be a non-empty string"))
        if alias in self.aliases:
            return self._fail(InvalidValueError(f"duplicate aggregation alias '{alias}'"))
        agg = copy.copy(self)
        agg._aggregations = self._aggregations + (wire.Aggregation(alias=alias, **member),)
        return agg

    def _fail(self, err: DocQueryError) -> "AggregationQuery":
        logger.debug(f"Aggregation query captured error: {err}")
        agg = copy.copy(self)
        agg._err = err
        return agg

    def _field(self, path: FieldPath) -> wire.FieldReference:
        return wire.FieldReference(field_path=to_service_field_path(path))

    def with_count(self, alias: str) -> "AggregationQuery":
        """Counts the matching documents into `alias`."""
        return self._add(alias, count=wire.Count())

    def with_sum(self, path: str, alias: str) -> "AggregationQuery":
        """Sums the numeric field at a dotted `path` into `alias`."""
        try:
            segments = parse_dotted_path(path)
        except InvalidPathError as e:
            return self if self._err is not None else self._fail(e)
        return self._add(alias, sum=wire.Sum(field=self._field(segments)))

    def with_sum_path(self, path: Sequence[str], alias: str) -> "AggregationQuery":
        """Like `with_sum()`, with the path given as segments."""
        try:
            segments = validate_path_segments(path)
        except InvalidPathError as e:
            return self if self._err is not None else self._fail(e)
        return self._add(alias, sum=wire.Sum(field=self._field(segments)))

    def with_avg(self, path: str, alias: str) -> "AggregationQuery":
        """Averages the numeric field at a dotted `path` into `alias`."""
        try:
            segments = parse_dotted_path(path)
        except InvalidPathError as e:
            return self if self._err is not None else self._fail(e)
        return self._add(alias, avg=wire.Avg(field=self._field(segments)))

    def with_avg_path(self, path: Sequence[str], alias: str) -> "AggregationQuery":
        """Like `with_avg()`, with the path given as segments."""
        try:
            segments = validate_path_segments(path)
        except InvalidPathError as e:
            return self if self._err is not None else self._fail(e)
        return self._add(alias, avg=wire.Avg(field=self._field(segments)))

    def to_wire(self) -> wire.RunAggregationQueryRequest:
        """
        Validates the aggregation and its base query and returns the wire request.

        Raises:
            DocQueryError: The sticky error of this aggregation, or any error
                raised translating the base query.
            InvalidValueError: If no aggregation was requested.
        """
        if self._err is not None:
            raise self._err
        if not self._aggregations:
            raise InvalidValueError("aggregation query has no aggregations")
        request = self.query.to_run_query_request()
        return wire.RunAggregationQueryRequest(
            parent=request.parent,
            structured_aggregation_query=wire.StructuredAggregationQuery(
                structured_query=request.structured_query,
                aggregations=list(self._aggregations),
            ),
            explain_options=request.explain_options,
        )
