"""Aggregation builder — Named aggregation specs.

The builder does no validation; backends without aggregation support
decide how to treat the request.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from searchbridge.query.clauses import ClauseLike, as_clause

if TYPE_CHECKING:
    from searchbridge.models.query import SortOption


class AggregationBuilder:
    """Accumulates aggregations keyed by name.

    Example::

        aggs = Agg().terms("by_color", "color", size=10).avg("avg_price", "price")
        options = SearchOptions(aggregations=aggs)
    """

    def __init__(self) -> None:
        self._aggs: dict[str, Any] = {}

    def terms(self, name: str, field: str, size: int = 0) -> AggregationBuilder:
        agg: dict[str, Any] = {"field": field}
        if size > 0:
            agg["size"] = size
        self._aggs[name] = {"terms": agg}
        return self

    def histogram(self, name: str, field: str, interval: float) -> AggregationBuilder:
        self._aggs[name] = {"histogram": {"field": field, "interval": interval}}
        return self

    def date_histogram(self, name: str, field: str, interval: str) -> AggregationBuilder:
        self._aggs[name] = {"date_histogram": {"field": field, "calendar_interval": interval}}
        return self

    def range(self, name: str, field: str, ranges: Sequence[Mapping[str, Any]]) -> AggregationBuilder:
        self._aggs[name] = {"range": {"field": field, "ranges": [dict(r) for r in ranges]}}
        return self

    def avg(self, name: str, field: str) -> AggregationBuilder:
        return self._metric("avg", name, field)

    def sum(self, name: str, field: str) -> AggregationBuilder:
        return self._metric("sum", name, field)

    def min(self, name: str, field: str) -> AggregationBuilder:
        return self._metric("min", name, field)

    def max(self, name: str, field: str) -> AggregationBuilder:
        return self._metric("max", name, field)

    def cardinality(self, name: str, field: str) -> AggregationBuilder:
        return self._metric("cardinality", name, field)

    def stats(self, name: str, field: str) -> AggregationBuilder:
        return self._metric("stats", name, field)

    def extended_stats(self, name: str, field: str) -> AggregationBuilder:
        return self._metric("extended_stats", name, field)

    def top_hits(self, name: str, size: int, sort: Sequence[SortOption] = ()) -> AggregationBuilder:
        top_hits: dict[str, Any] = {"size": size}
        if sort:
            top_hits["sort"] = [{s.field: {"order": s.order}} for s in sort]
        self._aggs[name] = {"top_hits": top_hits}
        return self

    def nested(
        self,
        name: str,
        path: str,
        sub_aggs: Mapping[str, Any] | AggregationBuilder | None = None,
    ) -> AggregationBuilder:
        agg: dict[str, Any] = {"nested": {"path": path}}
        if sub_aggs is not None:
            agg["aggs"] = _sub_aggs(sub_aggs)
        self._aggs[name] = agg
        return self

    def filter(
        self,
        name: str,
        filter_clause: ClauseLike,
        sub_aggs: Mapping[str, Any] | AggregationBuilder | None = None,
    ) -> AggregationBuilder:
        agg: dict[str, Any] = {"filter": as_clause(filter_clause).to_dict()}
        if sub_aggs is not None:
            agg["aggs"] = _sub_aggs(sub_aggs)
        self._aggs[name] = agg
        return self

    def custom(self, name: str, agg: Mapping[str, Any]) -> AggregationBuilder:
        self._aggs[name] = dict(agg)
        return self

    def build(self) -> dict[str, Any]:
        return self._aggs

    def _metric(self, metric: str, name: str, field: str) -> AggregationBuilder:
        self._aggs[name] = {metric: {"field": field}}
        return self


def _sub_aggs(sub_aggs: Mapping[str, Any] | AggregationBuilder) -> dict[str, Any]:
    if isinstance(sub_aggs, AggregationBuilder):
        return sub_aggs.build()
    return dict(sub_aggs)


Agg = AggregationBuilder
