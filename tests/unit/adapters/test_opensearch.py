"""Tests for the OpenSearch adapter."""

from __future__ import annotations

import json

import httpx
import pytest

from searchbridge.adapters.base.exceptions import IndexNotFoundError
from searchbridge.adapters.opensearch.adapter import OpenSearchAdapter
from searchbridge.models.query import SearchOptions
from searchbridge.query import Query, match, term

# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def search_response() -> dict:
    return {
        "took": 4,
        "timed_out": False,
        "hits": {
            "total": {"value": 1, "relation": "eq"},
            "hits": [
                {
                    "_index": "products",
                    "_id": "doc_001",
                    "_score": 8.5,
                    "_source": {"name": "laptop", "price": 999},
                    "highlight": {"name": ["<em>laptop</em>"]},
                }
            ],
        },
    }


# ── Properties ───────────────────────────────────────────────────────────────


class TestOpenSearchProperties:
    def test_backend(self) -> None:
        assert OpenSearchAdapter().backend == "opensearch"

    def test_hosts_are_normalized(self) -> None:
        adapter = OpenSearchAdapter(hosts=["https://os1:9200/", "https://os2:9200"])
        assert adapter._hosts == ["https://os1:9200", "https://os2:9200"]

    def test_extra_kwargs_are_kept(self) -> None:
        adapter = OpenSearchAdapter(index_pattern="logs-*")
        assert adapter._extra_kwargs == {"index_pattern": "logs-*"}

    async def test_constructor_arguments_reach_the_transport(self, mock_transport) -> None:
        transport = mock_transport(lambda r: httpx.Response(200, json={"count": 3}))
        adapter = OpenSearchAdapter(
            hosts=["https://os1:9200"],
            api_key="secret",
            headers={"X-Tenant": "acme"},
            http_client=httpx.AsyncClient(transport=transport),
        )

        assert await adapter.count("products") == 3
        request = transport.requests[0]
        assert request.headers["authorization"] == "ApiKey secret"
        assert request.headers["x-tenant"] == "acme"


# ── Requests ─────────────────────────────────────────────────────────────────


class TestOpenSearchRequests:
    async def test_search_uses_the_shared_wire_format(self, mock_transport, search_response) -> None:
        transport = mock_transport(lambda r: httpx.Response(200, json=search_response))
        adapter = OpenSearchAdapter(
            hosts=["https://os1:9200"],
            http_client=httpx.AsyncClient(transport=transport),
        )

        result = await adapter.search(
            "products",
            Query().must(match("name", "laptop")).filter(term("color", "silver")),
            SearchOptions(size=5),
        )

        request = transport.requests[0]
        assert str(request.url) == "https://os1:9200/products/_search"
        assert json.loads(request.content) == {
            "query": {
                "bool": {
                    "must": [{"match": {"name": "laptop"}}],
                    "filter": [{"term": {"color": "silver"}}],
                }
            },
            "size": 5,
        }
        assert result.total == 1
        assert result.is_exact
        assert result.hits[0].id == "doc_001"
        assert result.hits[0].highlights == {"name": ["<em>laptop</em>"]}

    async def test_error_envelope_is_translated(self, mock_transport) -> None:
        body = {"error": {"type": "index_not_found_exception", "reason": "no such index [nope]"}, "status": 404}
        transport = mock_transport(lambda r: httpx.Response(404, json=body))
        adapter = OpenSearchAdapter(http_client=httpx.AsyncClient(transport=transport))

        with pytest.raises(IndexNotFoundError) as exc_info:
            await adapter.search("nope")
        assert exc_info.value.reason == "no such index [nope]"
