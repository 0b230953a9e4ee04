"""Integration tests for the Elasticsearch and OpenSearch adapters against real clusters."""

from __future__ import annotations

import asyncio

import pytest

from searchbridge.adapters.base.exceptions import IndexNotFoundError, InvalidQueryError, NotFoundError
from searchbridge.adapters.elasticsearch.adapter import ElasticsearchAdapter
from searchbridge.adapters.opensearch.adapter import OpenSearchAdapter
from searchbridge.models.bulk import bulk_delete, bulk_index
from searchbridge.models.query import IndexOptions, SearchOptions, sort_asc
from searchbridge.query import Agg, Query, match, range_query, term, terms

pytestmark = [pytest.mark.integration, pytest.mark.elasticsearch]


@pytest.fixture(params=["elasticsearch", "opensearch"])
async def client(request):
    if request.param == "elasticsearch":
        adapter = ElasticsearchAdapter(hosts=[request.getfixturevalue("elasticsearch_ready")])
    else:
        adapter = OpenSearchAdapter(hosts=[request.getfixturevalue("opensearch_ready")])
    async with adapter:
        yield adapter


class TestHealth:
    async def test_health_check(self, client):
        health = await client.health_check()
        assert health.status in ("healthy", "degraded")
        assert health.latency_ms >= 0


class TestSearch:
    async def test_text_with_range_filter(self, client, index):
        query = Query().must(match("name", "laptop")).filter(range_query("price").lte(1000))
        result = await client.search(index, query)

        assert result.is_exact
        assert {hit.id for hit in result.hits} == {"1", "3"}

    async def test_terms_and_sort(self, client, index):
        query = Query().filter(terms("color", "red", "blue"))
        result = await client.search(index, query, SearchOptions(sort=[sort_asc("price")]))

        assert [hit.id for hit in result.hits] == ["3", "5", "4"]

    async def test_aggregations(self, client, index):
        options = SearchOptions(size=0, aggregations=Agg().terms("by_color", "color").avg("avg_price", "price"))
        result = await client.search(index, Query(), options)

        buckets = {b["key"]: b["doc_count"] for b in result.aggregations["by_color"]["buckets"]}
        assert buckets["red"] == 2
        assert result.hits == []

    async def test_count(self, client, index):
        assert await client.count(index, Query().filter(term("in_stock", True))) == 4

    async def test_invalid_query(self, client, index):
        with pytest.raises(InvalidQueryError):
            await client.search(index, Query().must({"no_such_query": {}}))

    async def test_missing_index(self, client):
        with pytest.raises(IndexNotFoundError):
            await client.search("searchbridge-no-such-index")

    async def test_concurrent_searches(self, client, index):
        query = Query().must(match("name", "laptop"))
        results = await asyncio.gather(*(client.search(index, query.copy()) for _ in range(20)))
        assert all(r.total == results[0].total for r in results)


class TestDocuments:
    async def test_round_trip(self, client, index):
        document = {"id": "rt-1", "name": "Round trip", "color": "green", "price": 1, "in_stock": False}
        await client.index(index, "rt-1", document, IndexOptions(refresh="wait_for"))

        doc = await client.get(index, "rt-1")
        assert doc.decode() == document

        await client.delete(index, "rt-1")
        with pytest.raises(NotFoundError):
            await client.get(index, "rt-1")

    async def test_ids_with_reserved_characters(self, client, index):
        await client.index(index, "x?y#z /w", {"name": "Reserved"}, IndexOptions(refresh="wait_for"))

        doc = await client.get(index, "x?y#z /w")
        assert doc.id == "x?y#z /w"
        assert doc.decode() == {"name": "Reserved"}
        with pytest.raises(NotFoundError):
            await client.get(index, "x")

        await client.delete(index, "x?y#z /w")

    async def test_bulk(self, client, index):
        result = await client.bulk(
            [
                bulk_index(index, "b-1", {"name": "Bulk one", "price": 1}),
                bulk_index(index, "b-2", {"name": "Bulk two", "price": "not a number"}),
                bulk_delete(index, "b-1"),
            ]
        )

        assert len(result.items) == 3
        assert result.error_count == 1
        assert result.items[1].status == 400
