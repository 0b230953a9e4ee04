"""Integration test fixtures — Docker-based search backends with seed data.

Expects backends to be reachable at (overridable through the environment):
    Elasticsearch  http://localhost:9200   SEARCHBRIDGE_TEST_ES_HOST
    OpenSearch     http://localhost:9201   SEARCHBRIDGE_TEST_OPENSEARCH_HOST
    Meilisearch    http://localhost:7700   SEARCHBRIDGE_TEST_MEILI_HOST (key: SEARCHBRIDGE_TEST_MEILI_KEY)

Tests for a backend that is not reachable are skipped. Seed data is loaded
through the adapters themselves, once per session.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import time
from typing import Any

import httpx
import pytest

from searchbridge.adapters.base.exceptions import IndexNotFoundError
from searchbridge.adapters.elasticsearch.adapter import ElasticsearchAdapter
from searchbridge.adapters.meilisearch.adapter import MeiliSearchAdapter
from searchbridge.adapters.opensearch.adapter import OpenSearchAdapter
from searchbridge.models.bulk import bulk_index
from searchbridge.models.index import IndexSettings

INDEX = "searchbridge-test-products"

PRODUCTS: list[dict[str, Any]] = [
    {"id": "1", "name": "Ultralight laptop", "color": "silver", "price": 999, "in_stock": True},
    {"id": "2", "name": "Gaming laptop", "color": "black", "price": 1899, "in_stock": True},
    {"id": "3", "name": "Laptop sleeve", "color": "red", "price": 29, "in_stock": False},
    {"id": "4", "name": "Mechanical keyboard", "color": "blue", "price": 149, "in_stock": True},
    {"id": "5", "name": "Wireless mouse", "color": "red", "price": 49, "in_stock": True},
]

ES_SETTINGS = IndexSettings(
    number_of_shards=1,
    number_of_replicas=0,
    mappings={
        "properties": {
            "id": {"type": "keyword"},
            "name": {"type": "text"},
            "color": {"type": "keyword"},
            "price": {"type": "integer"},
            "in_stock": {"type": "boolean"},
        }
    },
)

MEILI_SETTINGS = IndexSettings(
    searchable_attributes=["name"],
    filterable_attributes=["color", "price", "in_stock"],
    sortable_attributes=["price"],
)


def _wait_for_service(url: str, timeout: float = 10.0) -> bool:
    """Block until *url* returns HTTP 200, or timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            r = httpx.get(url, timeout=5)
            if r.status_code == 200:
                return True
        except httpx.HTTPError:
            pass
        time.sleep(1)
    return False


# ── Elasticsearch / OpenSearch ──────────────────────────────────


async def _seed_elasticsearch(client: ElasticsearchAdapter) -> None:
    async with client:
        with contextlib.suppress(IndexNotFoundError):
            await client.delete_index(INDEX)
        await client.create_index(INDEX, ES_SETTINGS)
        result = await client.bulk([bulk_index(INDEX, doc["id"], doc) for doc in PRODUCTS])
        assert not result.errors, result.failed_items()
        await client.refresh(INDEX)


@pytest.fixture(scope="session")
def elasticsearch_ready() -> str:
    """Ensure Elasticsearch is running and seeded."""
    host = os.environ.get("SEARCHBRIDGE_TEST_ES_HOST", "http://localhost:9200")
    if not _wait_for_service(host):
        pytest.skip(f"Elasticsearch not available at {host}")
    asyncio.run(_seed_elasticsearch(ElasticsearchAdapter(hosts=[host])))
    return host


@pytest.fixture(scope="session")
def opensearch_ready() -> str:
    """Ensure OpenSearch is running and seeded."""
    host = os.environ.get("SEARCHBRIDGE_TEST_OPENSEARCH_HOST", "http://localhost:9201")
    if not _wait_for_service(host):
        pytest.skip(f"OpenSearch not available at {host}")
    asyncio.run(_seed_elasticsearch(OpenSearchAdapter(hosts=[host])))
    return host


# ── Meilisearch ─────────────────────────────────────────────────


async def _seed_meilisearch(client: MeiliSearchAdapter) -> None:
    async with client:
        with contextlib.suppress(IndexNotFoundError):
            task = await client.delete_index(INDEX)
            await task.wait(timeout=30)
        task = await client.create_index(INDEX, MEILI_SETTINGS)
        await task.wait(timeout=30)
        result = await client.bulk([bulk_index(INDEX, doc["id"], doc) for doc in PRODUCTS])
        assert not result.errors, result.failed_items()
        await client.refresh(INDEX)


@pytest.fixture(scope="session")
def meilisearch_ready() -> tuple[str, str]:
    """Ensure Meilisearch is running and seeded. Returns ``(host, api_key)``."""
    host = os.environ.get("SEARCHBRIDGE_TEST_MEILI_HOST", "http://localhost:7700")
    api_key = os.environ.get("SEARCHBRIDGE_TEST_MEILI_KEY", "test-master-key")
    if not _wait_for_service(f"{host}/health"):
        pytest.skip(f"Meilisearch not available at {host}")
    asyncio.run(_seed_meilisearch(MeiliSearchAdapter(host=host, api_key=api_key)))
    return host, api_key


@pytest.fixture
def index() -> str:
    """Name of the seeded test index."""
    return INDEX
