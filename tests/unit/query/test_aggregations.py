"""Tests for the aggregation builder and aggregation result decoding."""

from __future__ import annotations

from searchbridge.models.document import (
    SearchResult,
    StatsAggResult,
    TermsAggResult,
    ValueAggResult,
    decode_aggregation,
)
from searchbridge.models.query import SearchOptions, sort_desc
from searchbridge.query import Agg, AggregationBuilder, term


class TestAggregationBuilder:
    def test_alias(self) -> None:
        assert Agg is AggregationBuilder

    def test_empty_builder(self) -> None:
        assert Agg().build() == {}

    def test_terms_size_is_optional(self) -> None:
        aggs = Agg().terms("by_color", "color").terms("top_brands", "brand", size=5).build()
        assert aggs == {
            "by_color": {"terms": {"field": "color"}},
            "top_brands": {"terms": {"field": "brand", "size": 5}},
        }

    def test_bucket_aggregations(self) -> None:
        aggs = (
            Agg()
            .histogram("price_hist", "price", 100)
            .date_histogram("per_month", "created", "month")
            .range("price_bands", "price", [{"to": 100}, {"from": 100, "to": 500}, {"from": 500}])
            .build()
        )
        assert aggs["price_hist"] == {"histogram": {"field": "price", "interval": 100}}
        assert aggs["per_month"] == {"date_histogram": {"field": "created", "calendar_interval": "month"}}
        assert aggs["price_bands"]["range"]["ranges"][1] == {"from": 100, "to": 500}

    def test_metric_aggregations(self) -> None:
        aggs = (
            Agg()
            .avg("a", "price")
            .sum("s", "price")
            .min("lo", "price")
            .max("hi", "price")
            .cardinality("brands", "brand")
            .stats("st", "price")
            .extended_stats("xst", "price")
            .build()
        )
        assert aggs == {
            "a": {"avg": {"field": "price"}},
            "s": {"sum": {"field": "price"}},
            "lo": {"min": {"field": "price"}},
            "hi": {"max": {"field": "price"}},
            "brands": {"cardinality": {"field": "brand"}},
            "st": {"stats": {"field": "price"}},
            "xst": {"extended_stats": {"field": "price"}},
        }

    def test_top_hits_with_sort(self) -> None:
        aggs = Agg().top_hits("newest", 3, [sort_desc("created")]).build()
        assert aggs == {"newest": {"top_hits": {"size": 3, "sort": [{"created": {"order": "desc"}}]}}}

    def test_nested_and_filter_with_sub_aggregations(self) -> None:
        aggs = (
            Agg()
            .nested("variants", "variants", Agg().terms("colors", "variants.color"))
            .filter("in_stock", term("stock", True), {"avg_price": {"avg": {"field": "price"}}})
            .build()
        )
        assert aggs["variants"] == {
            "nested": {"path": "variants"},
            "aggs": {"colors": {"terms": {"field": "variants.color"}}},
        }
        assert aggs["in_stock"] == {
            "filter": {"term": {"stock": True}},
            "aggs": {"avg_price": {"avg": {"field": "price"}}},
        }

    def test_custom_is_verbatim(self) -> None:
        custom = {"percentiles": {"field": "latency", "percents": [50, 99]}}
        assert Agg().custom("p", custom).build() == {"p": custom}

    def test_search_options_accept_builder(self) -> None:
        options = SearchOptions(aggregations=Agg().avg("avg_price", "price"))
        assert options.aggregations == {"avg_price": {"avg": {"field": "price"}}}


class TestAggregationDecoding:
    def test_decode_terms(self) -> None:
        result = SearchResult(
            aggregations={"by_color": {"buckets": [{"key": "red", "doc_count": 3}, {"key": "blue", "doc_count": 1}]}}
        )
        decoded = decode_aggregation(result, "by_color", TermsAggResult)
        assert [b.key for b in decoded.buckets] == ["red", "blue"]
        assert decoded.buckets[0].doc_count == 3

    def test_decode_stats_and_value(self) -> None:
        result = SearchResult(
            aggregations={
                "st": {"count": 2, "min": 1.0, "max": 3.0, "avg": 2.0, "sum": 4.0},
                "avg_price": {"value": 12.5},
            }
        )
        assert decode_aggregation(result, "st", StatsAggResult).max == 3.0
        assert decode_aggregation(result, "avg_price", ValueAggResult).value == 12.5

    def test_missing_aggregation_is_none(self) -> None:
        assert decode_aggregation(SearchResult(), "nope", ValueAggResult) is None
