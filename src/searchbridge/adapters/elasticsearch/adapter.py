"""Elasticsearch adapter — REST client for Elasticsearch (v7+/v8) and OpenSearch.

The neutral query dict maps almost 1:1 onto the Elasticsearch query DSL,
so compilation is literal: ``QueryBuilder.build_query()`` becomes the
``query`` field of the request body.

Requests go through ``httpx``. Each attempt picks the next node in
round-robin order; ``429``/``503``/``504`` responses and transport errors
are retried with linear backoff, and exhausting the retries raises
``ConnectionError``. Engine-reported errors are never retried.

Usage::

    async with ElasticsearchAdapter(hosts=["http://localhost:9200"]) as client:
        await client.index("products", "1", {"name": "laptop", "price": 999})
        result = await client.search(
            "products",
            Query().must(match("name", "laptop")).filter(range_query("price").lte(1000)),
        )
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from datetime import UTC, datetime
from typing import Any

import httpx

from searchbridge.adapters.base.adapter import AdapterHealth, CompletedWrite, SearchClient, WriteHandle
from searchbridge.adapters.base.encoding import encode_json, path_segment, to_jsonable
from searchbridge.adapters.base.exceptions import (
    BackendError,
    BadRequestError,
    ConflictError,
    ConnectionError,
    ForbiddenError,
    IndexNotFoundError,
    InvalidQueryError,
    NotFoundError,
    RequestTimeoutError,
    SearchError,
    UnauthorizedError,
)
from searchbridge.models.bulk import BulkItemResult, BulkOperation, BulkResult
from searchbridge.models.document import Document, SearchResult, TotalRelation
from searchbridge.models.index import IndexSettings
from searchbridge.models.query import HighlightConfig, IndexOptions, SearchOptions
from searchbridge.query.builder import QueryBuilder

logger = logging.getLogger(__name__)

RETRY_STATUSES = frozenset({429, 503, 504})

_ERROR_TYPES: dict[str, type[SearchError]] = {
    "index_not_found_exception": IndexNotFoundError,
    "document_missing_exception": NotFoundError,
    "version_conflict_engine_exception": ConflictError,
    "parsing_exception": InvalidQueryError,
    "query_shard_exception": InvalidQueryError,
}

_ERROR_STATUSES: dict[int, type[SearchError]] = {
    401: UnauthorizedError,
    403: ForbiddenError,
    408: RequestTimeoutError,
    504: RequestTimeoutError,
}


def _duration(seconds: float) -> str:
    """Format seconds as an Elasticsearch time value."""
    return f"{int(seconds * 1000)}ms"


class ElasticsearchAdapter(SearchClient):
    """Search client for Elasticsearch.

    Args:
        hosts: Node URLs, selected round-robin per attempt.
        username: Optional HTTP basic-auth username.
        password: Optional HTTP basic-auth password.
        api_key: Optional API key; sent as ``Authorization: ApiKey ...`` and
            preferred over basic auth.
        verify_certs: Whether to verify TLS certificates.
        max_retries: Retries after the first attempt on retryable failures.
        retry_backoff: Base backoff in seconds; attempt ``n`` sleeps ``n * retry_backoff``.
        timeout: HTTP request timeout in seconds.
        headers: Extra headers sent on every request.
        http_client: Pre-built ``httpx.AsyncClient`` (custom transport, proxies,
            test doubles). The adapter does not close a client it did not create.
        **kwargs: Extra keyword arguments stored for future use.
    """

    def __init__(
        self,
        hosts: list[str] | None = None,
        username: str | None = None,
        password: str | None = None,
        api_key: str | None = None,
        verify_certs: bool = True,
        max_retries: int = 3,
        retry_backoff: float = 0.1,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        self._hosts = [h.rstrip("/") for h in (hosts or ["http://localhost:9200"])]
        self._username = username
        self._password = password
        self._api_key = api_key
        self._max_retries = max(max_retries, 0)
        self._retry_backoff = retry_backoff
        self._headers = dict(headers or {})
        self._extra_kwargs = kwargs

        self._cursor = 0
        self._cursor_lock = threading.Lock()

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            verify=verify_certs,
        )

    @property
    def backend(self) -> str:
        return "elasticsearch"

    async def close(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._owns_client:
            await self._client.aclose()

    # ── Documents ────────────────────────────────────────────────────────

    async def index_with_options(
        self,
        index: str,
        id: str,
        document: Any,
        options: IndexOptions | None,
    ) -> WriteHandle:
        params: dict[str, str] = {}
        if options is not None:
            if options.refresh:
                params["refresh"] = options.refresh
            if options.routing:
                params["routing"] = options.routing
            if options.pipeline:
                params["pipeline"] = options.pipeline
            if options.version is not None:
                params["version"] = str(options.version)
            if options.version_type:
                params["version_type"] = options.version_type
            if options.op_type:
                params["op_type"] = options.op_type

        path = f"/{path_segment(index)}/_doc/{path_segment(id)}"
        resp = await self._request("PUT", path, params=params, body=encode_json(document))
        self._raise_for_status(resp)
        return CompletedWrite()

    async def get(self, index: str, id: str) -> Document:
        resp = await self._request("GET", f"/{path_segment(index)}/_doc/{path_segment(id)}")
        self._raise_for_status(resp)

        data = self._json(resp)
        if not data.get("found", True):
            raise NotFoundError(status=resp.status_code)

        return Document(
            id=data.get("_id", id),
            index=data.get("_index", index),
            source=encode_json(data.get("_source", {})),
            version=data.get("_version"),
        )

    async def delete(self, index: str, id: str) -> WriteHandle:
        resp = await self._request("DELETE", f"/{path_segment(index)}/_doc/{path_segment(id)}")
        self._raise_for_status(resp)
        return CompletedWrite()

    # ── Search ───────────────────────────────────────────────────────────

    async def search_with_options(
        self,
        index: str,
        query: QueryBuilder | None,
        options: SearchOptions | None,
    ) -> SearchResult:
        body, params = self._build_search_request(query, options)
        path = f"/{path_segment(index)}/_search"
        resp = await self._request("POST", path, params=params, body=encode_json(body))
        self._raise_for_status(resp)
        return self._parse_search_response(self._json(resp))

    async def count(self, index: str, query: QueryBuilder | None = None) -> int:
        """Exact count via the ``_count`` endpoint."""
        body = encode_json({"query": query.build_query()}) if query is not None else None
        resp = await self._request("POST", f"/{path_segment(index)}/_count", body=body)
        self._raise_for_status(resp)
        return int(self._json(resp).get("count", 0))

    async def update_by_query(self, index: str, query: QueryBuilder, script: str) -> int:
        """Run a painless ``script`` over matching documents; returns the updated count."""
        body = {"query": query.build_query(), "script": {"source": script}}
        path = f"/{path_segment(index)}/_update_by_query"
        resp = await self._request("POST", path, body=encode_json(body))
        self._raise_for_status(resp)
        return int(self._json(resp).get("updated", 0))

    async def delete_by_query(self, index: str, query: QueryBuilder) -> int:
        """Delete matching documents; returns the deleted count."""
        body = {"query": query.build_query()}
        path = f"/{path_segment(index)}/_delete_by_query"
        resp = await self._request("POST", path, body=encode_json(body))
        self._raise_for_status(resp)
        return int(self._json(resp).get("deleted", 0))

    async def scroll(self, scroll_id: str, keep_alive: float) -> SearchResult:
        """Fetch the next page of a scroll started with ``SearchOptions.scroll``."""
        body = {"scroll_id": scroll_id, "scroll": _duration(keep_alive)}
        resp = await self._request("POST", "/_search/scroll", body=encode_json(body))
        self._raise_for_status(resp)
        return self._parse_search_response(self._json(resp))

    async def clear_scroll(self, scroll_id: str) -> None:
        """Release a scroll context. Missing contexts are ignored."""
        resp = await self._request("DELETE", "/_search/scroll", body=encode_json({"scroll_id": scroll_id}))
        if resp.status_code >= 400 and resp.status_code != 404:
            raise self._error_from_response(resp)

    # ── Bulk ─────────────────────────────────────────────────────────────

    async def bulk(self, operations: list[BulkOperation]) -> BulkResult:
        """Send all operations in one ``_bulk`` request.

        Per-item failures are reported in the result; only a failure of the
        whole request raises.
        """
        if not operations:
            return BulkResult()

        resp = await self._request(
            "POST",
            "/_bulk",
            body=self._encode_bulk(operations),
            content_type="application/x-ndjson",
        )
        self._raise_for_status(resp)
        return self._parse_bulk_response(self._json(resp), operations)

    @staticmethod
    def _encode_bulk(operations: list[BulkOperation]) -> bytes:
        """Encode operations as alternating action/document NDJSON lines."""
        lines: list[bytes] = []
        for op in operations:
            meta: dict[str, Any] = {"_index": op.index, "_id": op.id}
            if op.routing:
                meta["routing"] = op.routing
            lines.append(encode_json({op.action: meta}))

            if op.action == "delete":
                continue
            document = op.document if op.document is not None else {}
            if op.action == "update":
                lines.append(encode_json({"doc": to_jsonable(document)}))
            else:
                lines.append(encode_json(document))
        return b"\n".join(lines) + b"\n"

    # ── Index lifecycle ──────────────────────────────────────────────────

    async def create_index(self, index: str, settings: IndexSettings | None = None) -> WriteHandle:
        body = encode_json(settings.to_dict()) if settings is not None else None
        resp = await self._request("PUT", f"/{path_segment(index)}", body=body)
        self._raise_for_status(resp)
        return CompletedWrite()

    async def delete_index(self, index: str) -> WriteHandle:
        resp = await self._request("DELETE", f"/{path_segment(index)}")
        if resp.status_code == 404:
            raise IndexNotFoundError(status=404)
        self._raise_for_status(resp)
        return CompletedWrite()

    async def index_exists(self, index: str) -> bool:
        resp = await self._request("HEAD", f"/{path_segment(index)}")
        if resp.status_code == 200:
            return True
        if resp.status_code == 404:
            return False
        raise self._error_from_response(resp)

    async def refresh(self, index: str) -> None:
        resp = await self._request("POST", f"/{path_segment(index)}/_refresh")
        self._raise_for_status(resp)

    # ── Health ───────────────────────────────────────────────────────────

    async def health_check(self) -> AdapterHealth:
        """Check cluster health."""
        try:
            start = time.monotonic()
            resp = await self._request("GET", "/_cluster/health")
            latency_ms = int((time.monotonic() - start) * 1000)
            self._raise_for_status(resp)
            health = self._json(resp)

            status_map = {"green": "healthy", "yellow": "degraded", "red": "unhealthy"}
            return AdapterHealth(
                status=status_map.get(health.get("status", "red"), "unhealthy"),
                latency_ms=latency_ms,
                last_check=datetime.now(UTC).isoformat(),
                message=f"Cluster: {health.get('cluster_name')}, Nodes: {health.get('number_of_nodes')}",
            )
        except SearchError as e:
            return AdapterHealth(status="unhealthy", message=str(e))

    # ── Transport ────────────────────────────────────────────────────────

    def _next_node(self) -> str:
        """Pick the next node, round-robin. Safe under concurrent callers."""
        with self._cursor_lock:
            node = self._hosts[self._cursor % len(self._hosts)]
            self._cursor += 1
        return node

    def _request_headers(self, has_body: bool, content_type: str) -> dict[str, str]:
        headers: dict[str, str] = {}
        if has_body:
            headers["Content-Type"] = content_type
        if self._api_key:
            headers["Authorization"] = f"ApiKey {self._api_key}"
        headers.update(self._headers)
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        body: bytes | None = None,
        content_type: str = "application/json",
    ) -> httpx.Response:
        """Send a request, retrying on transport errors and 429/503/504."""
        headers = self._request_headers(body is not None, content_type)
        auth = (
            httpx.BasicAuth(self._username, self._password or "")
            if self._username and not self._api_key
            else None
        )

        last_error: str = "no attempt made"
        last_exc: Exception | None = None

        for attempt in range(self._max_retries + 1):
            node = self._next_node()
            try:
                resp = await self._client.request(
                    method,
                    node + path,
                    params=params or None,
                    content=body,
                    headers=headers,
                    auth=auth,
                )
            except httpx.TransportError as e:
                last_error, last_exc = f"{type(e).__name__}: {e}", e
            else:
                if resp.status_code not in RETRY_STATUSES:
                    logger.debug("%s %s%s -> %d", method, node, path, resp.status_code)
                    return resp
                await resp.aclose()
                last_error, last_exc = f"received status {resp.status_code} from {node}", None

            if attempt < self._max_retries:
                delay = self._retry_backoff * (attempt + 1)
                logger.warning(
                    "Elasticsearch request %s %s failed (%s); retry %d/%d in %.2fs",
                    method,
                    path,
                    last_error,
                    attempt + 1,
                    self._max_retries,
                    delay,
                )
                await asyncio.sleep(delay)

        raise ConnectionError(f"search: connection error: {last_error}") from last_exc

    # ── Response handling ────────────────────────────────────────────────

    def _raise_for_status(self, resp: httpx.Response) -> None:
        if resp.status_code >= 400:
            raise self._error_from_response(resp)

    @staticmethod
    def _json(resp: httpx.Response) -> dict[str, Any]:
        try:
            return resp.json()
        except ValueError as e:
            raise BackendError(f"search: failed to decode response: {e}", status=resp.status_code) from e

    @staticmethod
    def _error_from_response(resp: httpx.Response) -> SearchError:
        """Translate an error response into the shared taxonomy.

        The ``{"error": {"type", "reason"}}`` envelope is consulted first,
        then the HTTP status code.
        """
        status = resp.status_code
        text = resp.text[:1024] if resp.content else ""

        error_type = reason = None
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            error_type = data["error"].get("type")
            reason = data["error"].get("reason")

        if error_type:
            exc_class = _ERROR_TYPES.get(error_type)
            if exc_class is InvalidQueryError:
                return InvalidQueryError(
                    f"search: invalid query: {reason}", status=status, error_type=error_type, reason=reason
                )
            if exc_class is not None:
                return exc_class(status=status, error_type=error_type, reason=reason)
            if status in _ERROR_STATUSES:
                return _ERROR_STATUSES[status](
                    f"search: {error_type}: {reason}", status=status, error_type=error_type, reason=reason
                )
            return BackendError(f"search: {error_type}: {reason}", status=status, error_type=error_type, reason=reason)

        if status == 404:
            return NotFoundError(status=status)
        if status == 400:
            return BadRequestError(f"search: bad request: {text}", status=status)
        if status in _ERROR_STATUSES:
            return _ERROR_STATUSES[status](status=status)
        return BackendError(f"search: request failed with status {status}: {text}", status=status)

    # ── Request / response mapping ───────────────────────────────────────

    def _build_search_request(
        self,
        query: QueryBuilder | None,
        options: SearchOptions | None,
    ) -> tuple[dict[str, Any], dict[str, str]]:
        body: dict[str, Any] = {}
        params: dict[str, str] = {}

        if query is not None:
            body["query"] = query.build_query()

        if options is None:
            return body, params

        if options.from_ > 0:
            body["from"] = options.from_
        if options.size is not None:
            body["size"] = options.size
        if options.sort:
            sort: list[dict[str, Any]] = []
            for s in options.sort:
                spec: dict[str, Any] = {"order": s.order}
                if s.mode:
                    spec["mode"] = s.mode
                sort.append({s.field: spec})
            body["sort"] = sort
        if options.source is not None and (options.source.includes or options.source.excludes):
            source: dict[str, Any] = {}
            if options.source.includes:
                source["includes"] = options.source.includes
            if options.source.excludes:
                source["excludes"] = options.source.excludes
            body["_source"] = source
        if options.highlight is not None:
            body["highlight"] = self._build_highlight(options.highlight)
        if options.aggregations:
            body["aggs"] = options.aggregations
        if options.track_total_hits is not None:
            body["track_total_hits"] = options.track_total_hits
        if options.min_score is not None:
            body["min_score"] = options.min_score
        if options.explain:
            body["explain"] = True
        if options.search_after:
            body["search_after"] = options.search_after

        if options.timeout is not None:
            params["timeout"] = _duration(options.timeout)
        if options.routing:
            params["routing"] = options.routing
        if options.preference:
            params["preference"] = options.preference
        if options.scroll is not None:
            params["scroll"] = _duration(options.scroll)

        return body, params

    @staticmethod
    def _build_highlight(cfg: HighlightConfig) -> dict[str, Any]:
        highlight: dict[str, Any] = {}
        if cfg.pre_tags:
            highlight["pre_tags"] = cfg.pre_tags
        if cfg.post_tags:
            highlight["post_tags"] = cfg.post_tags
        if cfg.fragment_size:
            highlight["fragment_size"] = cfg.fragment_size
        if cfg.number_of_fragments:
            highlight["number_of_fragments"] = cfg.number_of_fragments

        if cfg.fields:
            fields: dict[str, Any] = {}
            for name, field in cfg.fields.items():
                field_cfg: dict[str, Any] = {}
                if field is not None:
                    if field.fragment_size:
                        field_cfg["fragment_size"] = field.fragment_size
                    if field.number_of_fragments:
                        field_cfg["number_of_fragments"] = field.number_of_fragments
                    if field.pre_tags:
                        field_cfg["pre_tags"] = field.pre_tags
                    if field.post_tags:
                        field_cfg["post_tags"] = field.post_tags
                fields[name] = field_cfg
            highlight["fields"] = fields

        return highlight

    @staticmethod
    def _parse_search_response(data: dict[str, Any]) -> SearchResult:
        hits = data.get("hits", {})

        total = hits.get("total", 0)
        if isinstance(total, dict):
            total_value = int(total.get("value", 0))
            relation = TotalRelation(total.get("relation", "eq"))
        else:
            total_value = int(total or 0)
            relation = TotalRelation.EQ

        documents = [
            Document(
                id=hit.get("_id", ""),
                index=hit.get("_index", ""),
                source=encode_json(hit.get("_source", {})),
                version=hit.get("_version"),
                score=hit.get("_score"),
                highlights=hit.get("highlight") or {},
            )
            for hit in hits.get("hits", [])
        ]

        return SearchResult(
            total=total_value,
            total_relation=relation,
            hits=documents,
            aggregations=data.get("aggregations") or {},
            took=int(data.get("took", 0)),
            timed_out=bool(data.get("timed_out", False)),
            scroll_id=data.get("_scroll_id"),
        )

    @staticmethod
    def _parse_bulk_response(data: dict[str, Any], operations: list[BulkOperation]) -> BulkResult:
        result = BulkResult(took=int(data.get("took", 0)))
        items = data.get("items", [])

        for position, op in enumerate(operations):
            entry = items[position] if position < len(items) else None
            if not entry:
                result.add(
                    BulkItemResult(
                        action=op.action,
                        index=op.index,
                        id=op.id,
                        status=500,
                        error="missing from bulk response",
                    )
                )
                continue

            action, item = next(iter(entry.items()))
            error = item.get("error")
            if isinstance(error, dict):
                error = f"{error.get('type')}: {error.get('reason')}"
            result.add(
                BulkItemResult(
                    action=action,
                    index=item.get("_index", op.index),
                    id=str(item.get("_id", op.id)),
                    status=int(item.get("status", 0)),
                    error=error,
                )
            )

        return result
