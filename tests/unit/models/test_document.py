"""Tests for the normalized document and result models."""

from __future__ import annotations

from dataclasses import dataclass

import pytest
from pydantic import BaseModel, ValidationError

from searchbridge.models.document import (
    Document,
    SearchResult,
    StatsAggResult,
    TermsAggResult,
    TotalRelation,
    ValueAggResult,
    decode_aggregation,
    decode_hits,
)


class Product(BaseModel):
    name: str
    price: int


@dataclass
class ProductRow:
    name: str
    price: int


def _doc(id: str, source: bytes) -> Document:
    return Document(id=id, index="products", source=source)


# ══════════════════════════════════════════════════════════════════════════════
# Document
# ══════════════════════════════════════════════════════════════════════════════


class TestDocument:
    def test_decode_plain_json(self) -> None:
        doc = _doc("1", b'{"name":"laptop","price":999}')
        assert doc.decode() == {"name": "laptop", "price": 999}

    def test_decode_into_model(self) -> None:
        doc = _doc("1", b'{"name":"laptop","price":999}')
        assert doc.decode(Product) == Product(name="laptop", price=999)

    def test_decode_into_dataclass(self) -> None:
        doc = _doc("1", b'{"name":"laptop","price":999}')
        assert doc.decode(ProductRow) == ProductRow(name="laptop", price=999)

    def test_decode_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            _doc("1", b'{"name":"laptop"}').decode(Product)

    def test_is_immutable(self) -> None:
        doc = _doc("1", b"{}")
        with pytest.raises(ValidationError):
            doc.id = "2"  # type: ignore[misc]

    def test_defaults(self) -> None:
        doc = Document(id="1", index="products")
        assert doc.source == b""
        assert doc.version is None
        assert doc.score is None
        assert doc.highlights == {}


# ══════════════════════════════════════════════════════════════════════════════
# SearchResult
# ══════════════════════════════════════════════════════════════════════════════


class TestSearchResult:
    def test_defaults_are_exact(self) -> None:
        result = SearchResult()
        assert result.total == 0
        assert result.total_relation is TotalRelation.EQ
        assert result.is_exact

    def test_lower_bound(self) -> None:
        assert not SearchResult(total=10000, total_relation="gte").is_exact

    def test_decode_hits_keeps_order(self) -> None:
        result = SearchResult(
            total=2,
            hits=[_doc("2", b'{"name":"b","price":2}'), _doc("1", b'{"name":"a","price":1}')],
        )
        assert [p.name for p in decode_hits(result, Product)] == ["b", "a"]


class TestAggregationDecoding:
    @pytest.fixture
    def result(self) -> SearchResult:
        return SearchResult(
            aggregations={
                "by_color": {"buckets": [{"key": "red", "doc_count": 3}, {"key": "blue", "doc_count": 1}]},
                "price_stats": {"count": 4, "min": 1.0, "max": 9.0, "avg": 4.5, "sum": 18.0},
                "avg_price": {"value": 4.5},
            }
        )

    def test_terms(self, result: SearchResult) -> None:
        agg = decode_aggregation(result, "by_color", TermsAggResult)
        assert agg is not None
        assert [(b.key, b.doc_count) for b in agg.buckets] == [("red", 3), ("blue", 1)]

    def test_stats_and_value(self, result: SearchResult) -> None:
        stats = decode_aggregation(result, "price_stats", StatsAggResult)
        assert stats is not None
        assert stats.max == 9.0
        value = decode_aggregation(result, "avg_price", ValueAggResult)
        assert value is not None
        assert value.value == 4.5

    def test_missing(self, result: SearchResult) -> None:
        assert decode_aggregation(result, "nope", ValueAggResult) is None
