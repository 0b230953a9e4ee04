"""MeiliSearch adapter — Instant, typo-tolerant search connector.

This adapter communicates via the official REST API using ``httpx``.

Meilisearch applies writes asynchronously: every mutating endpoint answers
``202 Accepted`` with a task, and the write becomes visible once that task
reaches ``succeeded``. Mutating calls therefore return a
:class:`MeilisearchTask`; ``await handle.wait()`` blocks until the write is
applied. ``IndexOptions(refresh="true")`` and :meth:`MeiliSearchAdapter.refresh`
wait in-call.

Queries are decomposed by :class:`MeilisearchTranslator` into a ``q``
string and a filter expression. Aggregations are not supported.

Usage::

    async with MeiliSearchAdapter(host="http://localhost:7700", api_key="key") as client:
        task = await client.index("products", "1", {"name": "laptop", "price": 999})
        await task.wait(timeout=5)
        result = await client.search("products", Query().must(match("name", "laptop")))
"""

from __future__ import annotations

import asyncio
import logging
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
    TaskCanceledError,
    TaskFailedError,
    UnauthorizedError,
)
from searchbridge.adapters.meilisearch.translator import MeilisearchTranslator
from searchbridge.models.bulk import BulkItemResult, BulkOperation, BulkResult
from searchbridge.models.document import Document, SearchResult, TotalRelation
from searchbridge.models.index import IndexSettings, MeilisearchIndexSettings
from searchbridge.models.query import IndexOptions, SearchOptions
from searchbridge.query.builder import QueryBuilder

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({"succeeded", "failed", "canceled"})

# Search-time fields Meilisearch adds to hits; not part of the stored document.
_HIT_METADATA = frozenset({"_formatted", "_rankingScore", "_rankingScoreDetails", "_matchesPosition"})

_ERROR_CODES: dict[str, type[SearchError]] = {
    "index_not_found": IndexNotFoundError,
    "document_not_found": NotFoundError,
    "invalid_api_key": UnauthorizedError,
    "missing_authorization_header": UnauthorizedError,
    "index_already_exists": ConflictError,
}

_ERROR_STATUSES: dict[int, type[SearchError]] = {
    401: UnauthorizedError,
    403: ForbiddenError,
    408: RequestTimeoutError,
    504: RequestTimeoutError,
}


class MeilisearchTask(WriteHandle):
    """Handle on an enqueued Meilisearch task.

    Args:
        client: Adapter used to poll the task.
        task_uid: Task identifier returned by the write.
        status: Status reported when the task was enqueued.
        ignore_codes: Failure codes treated as success (e.g. ``index_already_exists``).
    """

    def __init__(
        self,
        client: MeiliSearchAdapter,
        task_uid: int,
        status: str = "enqueued",
        ignore_codes: frozenset[str] = frozenset(),
    ) -> None:
        self._client = client
        self.task_uid = task_uid
        self.status = status
        self._ignore_codes = ignore_codes

    @property
    def done(self) -> bool:
        return self.status == "succeeded"

    async def wait(self, timeout: float | None = None) -> None:
        try:
            task = await self._client.wait_for_task(self.task_uid, timeout=timeout)
        except TaskCanceledError:
            self.status = "canceled"
            raise
        except (RequestTimeoutError, ConnectionError):
            raise
        except SearchError as e:
            if e.error_type is None or e.error_type not in self._ignore_codes:
                self.status = "failed"
                raise
            logger.debug("Task %d failed with ignored code %s", self.task_uid, e.error_type)
            task = {"status": "succeeded"}
        self.status = task.get("status", "succeeded")

    def __repr__(self) -> str:
        return f"MeilisearchTask(task_uid={self.task_uid}, status={self.status!r})"


class MeiliSearchAdapter(SearchClient):
    """Search client for MeiliSearch.

    Communicates with MeiliSearch via its `REST API`_ over HTTP.

    .. _REST API: https://www.meilisearch.com/docs/reference/api/overview

    Args:
        host: MeiliSearch instance URL, e.g. ``"http://localhost:7700"``.
        api_key: Master key or API key, sent as a bearer token.
        timeout: HTTP request timeout in seconds.
        task_poll_interval: Seconds between task status polls.
        exhaustive_count: Make :meth:`count` request an exact ``totalHits``.
        strict: Raise ``InvalidQueryError`` for clauses and aggregations that
            cannot be translated instead of dropping them with a warning.
        http_client: Pre-built ``httpx.AsyncClient``. The adapter does not
            close a client it did not create.
        **kwargs: Extra keyword arguments stored for future use.
    """

    def __init__(
        self,
        host: str = "http://localhost:7700",
        api_key: str | None = None,
        timeout: float = 30.0,
        task_poll_interval: float = 0.1,
        exhaustive_count: bool = False,
        strict: bool = False,
        http_client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        self._host = host.rstrip("/")
        self._api_key = api_key
        self._task_poll_interval = task_poll_interval
        self._exhaustive_count = exhaustive_count
        self._strict = strict
        self._translator = MeilisearchTranslator(strict=strict)
        self._extra_kwargs = kwargs

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    @property
    def backend(self) -> str:
        return "meilisearch"

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
        path = f"/indexes/{path_segment(index)}/documents"
        resp = await self._request("POST", path, body=[self.ensure_id(document, id)])
        self._raise_for_status(resp)
        task = self._task_from_response(resp)

        if options is not None and options.refresh in ("true", "wait_for"):
            await task.wait()
        return task

    async def get(self, index: str, id: str) -> Document:
        resp = await self._request("GET", f"/indexes/{path_segment(index)}/documents/{path_segment(id)}")
        self._raise_for_status(resp)
        return Document(id=id, index=index, source=encode_json(self._json(resp)))

    async def delete(self, index: str, id: str) -> WriteHandle:
        resp = await self._request("DELETE", f"/indexes/{path_segment(index)}/documents/{path_segment(id)}")
        self._raise_for_status(resp)
        return self._task_from_response(resp)

    @staticmethod
    def ensure_id(document: Any, id: str) -> dict[str, Any]:
        """Return the document as a JSON object carrying an ``id`` field.

        Raises:
            BadRequestError: If the document does not serialize to an object.
        """
        data = to_jsonable(document)
        if not isinstance(data, dict):
            raise BadRequestError(
                f"search: bad request: Meilisearch documents must be JSON objects, got {type(data).__name__}"
            )
        if "id" not in data:
            data = {**data, "id": id}
        return data

    # ── Search ───────────────────────────────────────────────────────────

    async def search_with_options(
        self,
        index: str,
        query: QueryBuilder | None,
        options: SearchOptions | None,
    ) -> SearchResult:
        body = self._build_search_body(query, options)
        resp = await self._request("POST", f"/indexes/{path_segment(index)}/search", body=body)
        self._raise_for_status(resp)
        return self._parse_search_response(self._json(resp), index)

    async def count(self, index: str, query: QueryBuilder | None = None) -> int:
        """Count matching documents.

        Without ``exhaustive_count`` this is Meilisearch's estimate unless the
        engine reports an exact ``totalHits``.
        """
        body = self._build_search_body(query, None)
        if self._exhaustive_count:
            body.update({"page": 1, "hitsPerPage": 0})
        else:
            body["limit"] = 0
        resp = await self._request("POST", f"/indexes/{path_segment(index)}/search", body=body)
        self._raise_for_status(resp)
        return self._parse_search_response(self._json(resp), index).total

    def _build_search_body(self, query: QueryBuilder | None, options: SearchOptions | None) -> dict[str, Any]:
        body: dict[str, Any] = {}

        if query is not None:
            translated = self._translator.translate(query)
            body["q"] = translated.q
            if translated.filter:
                body["filter"] = translated.filter

        if options is None:
            return body

        if options.track_total_hits is True:
            per_page = options.size if options.size is not None else 20
            if per_page > 0 and options.from_ % per_page == 0:
                body["page"] = options.from_ // per_page + 1
                body["hitsPerPage"] = per_page
            else:
                logger.warning(
                    "Exact totals need page-aligned offsets (from_=%d, size=%s); falling back to an estimate",
                    options.from_,
                    options.size,
                )

        if "page" not in body:
            if options.from_ > 0:
                body["offset"] = options.from_
            if options.size is not None:
                body["limit"] = options.size

        if options.sort:
            body["sort"] = [f"{s.field}:{s.order}" for s in options.sort]
        if options.source is not None and options.source.includes:
            body["attributesToRetrieve"] = options.source.includes
        if options.highlight is not None and options.highlight.fields:
            body["attributesToHighlight"] = list(options.highlight.fields)
            if options.highlight.pre_tags:
                body["highlightPreTag"] = options.highlight.pre_tags[0]
            if options.highlight.post_tags:
                body["highlightPostTag"] = options.highlight.post_tags[0]
        if options.aggregations:
            message = f"Meilisearch does not support aggregations ({', '.join(options.aggregations)})"
            if self._strict:
                raise InvalidQueryError(f"search: invalid query: {message}")
            logger.warning("%s; ignored", message)

        return body

    @staticmethod
    def _parse_search_response(data: dict[str, Any], index: str) -> SearchResult:
        if data.get("totalHits") is not None:
            total = int(data["totalHits"])
            relation = TotalRelation.EQ
        else:
            total = int(data.get("estimatedTotalHits", 0))
            relation = TotalRelation.GTE

        hits = []
        for hit in data.get("hits", []):
            formatted = hit.get("_formatted") or {}
            source = {key: value for key, value in hit.items() if key not in _HIT_METADATA}
            hits.append(
                Document(
                    id=str(hit["id"]) if "id" in hit else "",
                    index=index,
                    source=encode_json(source),
                    score=hit.get("_rankingScore"),
                    highlights={
                        field: [str(value)]
                        for field, value in formatted.items()
                        if field != "id" and not isinstance(value, dict | list)
                    },
                )
            )

        return SearchResult(
            total=total,
            total_relation=relation,
            hits=hits,
            took=int(data.get("processingTimeMs", 0)),
        )

    # ── Bulk ─────────────────────────────────────────────────────────────

    async def bulk(self, operations: list[BulkOperation]) -> BulkResult:
        """Apply operations grouped per index: one add, update and delete call each.

        A rejected group marks each of its operations failed; other groups
        still run. Items are returned in submission order. Each accepted
        group's task is tracked on the result: ``await result.wait()`` blocks
        until the writes are visible and marks the items of any task that
        failed.
        """
        start = time.monotonic()
        items: list[BulkItemResult | None] = [None] * len(operations)
        groups: dict[tuple[str, str], list[tuple[int, Any]]] = {}
        tasks: list[tuple[MeilisearchTask, list[int]]] = []

        for position, op in enumerate(operations):
            if op.action == "delete":
                groups.setdefault((op.index, "delete"), []).append((position, op.id))
                continue
            try:
                document = self.ensure_id(op.document if op.document is not None else {}, op.id)
            except BadRequestError as e:
                items[position] = BulkItemResult(
                    action=op.action, index=op.index, id=op.id, status=400, error=str(e)
                )
                continue
            kind = "update" if op.action == "update" else "add"
            groups.setdefault((op.index, kind), []).append((position, document))

        for (index, kind), members in groups.items():
            if kind == "delete":
                method, path = "POST", f"/indexes/{path_segment(index)}/documents/delete-batch"
            else:
                method, path = ("PUT" if kind == "update" else "POST"), f"/indexes/{path_segment(index)}/documents"

            status, error = 202, None
            try:
                resp = await self._request(method, path, body=[payload for _, payload in members])
                self._raise_for_status(resp)
                tasks.append((self._task_from_response(resp), [position for position, _ in members]))
            except SearchError as e:
                status, error = e.status or 500, str(e)
                logger.warning("Bulk %s on %s failed for %d documents: %s", kind, index, len(members), e)

            for position, _ in members:
                op = operations[position]
                items[position] = BulkItemResult(action=op.action, index=index, id=op.id, status=status, error=error)

        result = BulkResult(took=int((time.monotonic() - start) * 1000))
        for item in items:
            if item is not None:
                result.add(item)
        for task, positions in tasks:
            result.track(task, positions)
        return result

    # ── Index lifecycle ──────────────────────────────────────────────────

    async def create_index(self, index: str, settings: IndexSettings | None = None) -> WriteHandle:
        """Create an index (``primaryKey: id``) and apply attribute settings.

        An already-existing index is not an error.
        """
        resp = await self._request("POST", "/indexes", body={"uid": index, "primaryKey": "id"})
        handle: WriteHandle
        if resp.status_code == 409:
            logger.debug("Index %s already exists", index)
            handle = CompletedWrite()
        else:
            self._raise_for_status(resp)
            handle = self._task_from_response(resp, ignore_codes=frozenset({"index_already_exists"}))

        if settings is not None:
            payload = settings.meilisearch_settings()
            if payload.to_payload():
                return await self.update_settings(index, payload)
        return handle

    async def delete_index(self, index: str) -> WriteHandle:
        """Delete an index.

        Meilisearch accepts deletes of missing indexes and fails the task
        instead, so a missing index surfaces as ``IndexNotFoundError`` from
        either this call or the returned task's ``wait()``.
        """
        resp = await self._request("DELETE", f"/indexes/{path_segment(index)}")
        if resp.status_code == 404:
            raise IndexNotFoundError(status=404)
        self._raise_for_status(resp)
        return self._task_from_response(resp)

    async def index_exists(self, index: str) -> bool:
        resp = await self._request("GET", f"/indexes/{path_segment(index)}")
        if resp.status_code == 200:
            return True
        if resp.status_code == 404:
            return False
        raise self._error_from_response(resp)

    async def refresh(self, index: str) -> None:
        """Wait for every enqueued or processing task on ``index``."""
        resp = await self._request(
            "GET",
            "/tasks",
            params={"indexUids": index, "statuses": "enqueued,processing"},
        )
        self._raise_for_status(resp)
        pending = self._json(resp).get("results", [])
        logger.debug("Waiting for %d pending tasks on %s", len(pending), index)
        for task in pending:
            await self.wait_for_task(int(task.get("uid", task.get("taskUid"))))

    # ── Settings ─────────────────────────────────────────────────────────

    async def update_settings(self, index: str, settings: MeilisearchIndexSettings) -> MeilisearchTask:
        resp = await self._request("PATCH", f"/indexes/{path_segment(index)}/settings", body=settings.to_payload())
        self._raise_for_status(resp)
        return self._task_from_response(resp)

    async def get_settings(self, index: str) -> MeilisearchIndexSettings:
        resp = await self._request("GET", f"/indexes/{path_segment(index)}/settings")
        self._raise_for_status(resp)
        return MeilisearchIndexSettings.model_validate(self._json(resp))

    # ── Tasks ────────────────────────────────────────────────────────────

    async def get_task(self, task_uid: int) -> dict[str, Any]:
        resp = await self._request("GET", f"/tasks/{task_uid}")
        self._raise_for_status(resp)
        return self._json(resp)

    async def wait_for_task(self, task_uid: int, timeout: float | None = None) -> dict[str, Any]:
        """Poll a task until it reaches a terminal status.

        Args:
            task_uid: Task to wait for.
            timeout: Maximum seconds to wait; ``None`` waits indefinitely.

        Returns:
            The final task payload (status ``succeeded``).

        Raises:
            TaskFailedError: The task failed; the message carries the engine's reason.
                Failure codes with a taxonomy mapping (``index_not_found``,
                ``document_not_found``, ...) raise that error instead.
            TaskCanceledError: The task was canceled.
            RequestTimeoutError: ``timeout`` elapsed first.
        """
        try:
            async with asyncio.timeout(timeout):
                while True:
                    task = await self.get_task(task_uid)
                    status = task.get("status")
                    if status in TERMINAL_STATUSES:
                        break
                    await asyncio.sleep(self._task_poll_interval)
        except TimeoutError as e:
            raise RequestTimeoutError(f"search: operation timed out waiting for task {task_uid}") from e

        if status == "failed":
            error = task.get("error") or {}
            code, message = error.get("code"), error.get("message", "unknown error")
            exc_class = _ERROR_CODES.get(code, TaskFailedError)
            raise exc_class(f"search: task failed: {message}", error_type=code, reason=message)
        if status == "canceled":
            raise TaskCanceledError()
        return task

    def _task_from_response(self, resp: httpx.Response, ignore_codes: frozenset[str] = frozenset()) -> MeilisearchTask:
        data = self._json(resp)
        uid = data.get("taskUid", data.get("uid"))
        if uid is None:
            raise BackendError("search: Meilisearch response carried no task uid", status=resp.status_code)
        return MeilisearchTask(self, int(uid), status=data.get("status", "enqueued"), ignore_codes=ignore_codes)

    # ── Health ───────────────────────────────────────────────────────────

    async def health_check(self) -> AdapterHealth:
        """Check MeiliSearch health."""
        try:
            start = time.monotonic()
            resp = await self._request("GET", "/health")
            latency_ms = int((time.monotonic() - start) * 1000)

            if resp.status_code == 200:
                status = self._json(resp).get("status", "unknown")
                return AdapterHealth(
                    status="healthy" if status == "available" else "degraded",
                    latency_ms=latency_ms,
                    last_check=datetime.now(UTC).isoformat(),
                    message=f"status: {status}",
                )
            return AdapterHealth(
                status="degraded",
                latency_ms=latency_ms,
                last_check=datetime.now(UTC).isoformat(),
                message=f"MeiliSearch returned HTTP {resp.status_code}",
            )
        except SearchError as e:
            return AdapterHealth(status="unhealthy", message=str(e))

    # ── Transport ────────────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        headers: dict[str, str] = {}
        content = None
        if body is not None:
            headers["Content-Type"] = "application/json"
            content = encode_json(body)
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            resp = await self._client.request(
                method,
                self._host + path,
                params=params,
                content=content,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(f"search: operation timed out: {e}") from e
        except httpx.TransportError as e:
            raise ConnectionError(f"search: connection error: {e}") from e

        logger.debug("%s %s -> %d", method, path, resp.status_code)
        return resp

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
        """Translate a Meilisearch error (``{message, code, type}``) into the shared taxonomy."""
        status = resp.status_code
        text = resp.text[:1024] if resp.content else ""

        try:
            data = resp.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get("code"):
            code, message = data["code"], data.get("message", "")
            exc_class = _ERROR_CODES.get(code)
            if exc_class is not None:
                return exc_class(status=status, error_type=code, reason=message)
            if code.startswith("invalid_search_") or code.startswith("invalid_document_filter"):
                return InvalidQueryError(
                    f"search: invalid query: {message}", status=status, error_type=code, reason=message
                )
            if status in _ERROR_STATUSES:
                return _ERROR_STATUSES[status](
                    f"search: {code}: {message}", status=status, error_type=code, reason=message
                )
            return BackendError(f"search: {code}: {message}", status=status, error_type=code, reason=message)

        if status == 404:
            return NotFoundError(status=status)
        if status == 400:
            return BadRequestError(f"search: bad request: {text}", status=status)
        if status in _ERROR_STATUSES:
            return _ERROR_STATUSES[status](status=status)
        return BackendError(f"search: request failed with status {status}: {text}", status=status)
