from .builders import Query as Query, FindNearestSpec as FindNearestSpec
from .aggregation import AggregationQuery as AggregationQuery
from .filters import (
    PropertyFilter as PropertyFilter,
    PropertyPathFilter as PropertyPathFilter,
    AndFilter as AndFilter,
    OrFilter as OrFilter,
    EntityFilter as EntityFilter,
)
from .options import (
    RunOption as RunOption,
    ExplainOptions as ExplainOptions,
    RunQuerySettings as RunQuerySettings,
)
from .cursors import CursorSpec as CursorSpec
from .comparator import (
    compare_values as compare_values,
    sort_snapshots as sort_snapshots,
    merge_sorted as merge_sorted,
)
from .translator import (
    to_wire_query as to_wire_query,
    to_run_query_request as to_run_query_request,
    from_run_query_request as from_run_query_request,
)
