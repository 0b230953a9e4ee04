"""Base search client — The contract every search backend implements.

Application code depends only on ``SearchClient``. Each adapter is
responsible for:
  1. Compiling ``QueryBuilder`` trees into its wire format
  2. Executing requests (with its own retry / polling policy)
  3. Normalizing responses into ``Document`` / ``SearchResult`` / ``BulkResult``
  4. Mapping native errors onto the shared exception taxonomy

Every mutating call returns a ``WriteHandle``. Backends with synchronous
writes return an already-completed handle; backends with asynchronous
writes return a handle whose ``wait()`` blocks until the write is visible.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from searchbridge.models.bulk import BulkOperation, BulkResult
from searchbridge.models.document import Document, SearchResult
from searchbridge.models.index import IndexSettings
from searchbridge.models.query import IndexOptions, SearchOptions
from searchbridge.query.builder import QueryBuilder


class AdapterHealth(BaseModel):
    """Health status of a search backend."""

    status: str = Field(description="Health status: healthy, degraded, unhealthy")
    latency_ms: int = Field(default=0, description="Latency of last health check in ms")
    last_check: str | None = Field(default=None, description="ISO timestamp of last health check")
    message: str | None = Field(default=None, description="Additional health message")


class WriteHandle(ABC):
    """Handle on a write that may become visible asynchronously."""

    @property
    @abstractmethod
    def done(self) -> bool:
        """Whether the write is known to be visible."""

    @abstractmethod
    async def wait(self, timeout: float | None = None) -> None:
        """Block until the write is visible.

        Args:
            timeout: Maximum seconds to wait; ``None`` waits indefinitely.

        Raises:
            RequestTimeoutError: If ``timeout`` elapses first.
            TaskFailedError: If the backend reports the write failed. Failures
                with a taxonomy mapping raise that error instead (e.g.
                ``IndexNotFoundError``).
        """


class CompletedWrite(WriteHandle):
    """A write that was applied synchronously."""

    @property
    def done(self) -> bool:
        return True

    async def wait(self, timeout: float | None = None) -> None:
        return None

    def __repr__(self) -> str:
        return "CompletedWrite()"


class SearchClient(ABC):
    """Abstract base class for search backend clients.

    Clients are safe to share between concurrent tasks. Use them as async
    context managers, or call :meth:`close` when done.
    """

    @property
    @abstractmethod
    def backend(self) -> str:
        """Backend identifier (e.g., 'elasticsearch', 'meilisearch')."""

    @abstractmethod
    async def close(self) -> None:
        """Release connections held by the client."""

    async def __aenter__(self) -> SearchClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── Documents ────────────────────────────────────────────────────────

    async def index(
        self,
        index: str,
        id: str,
        document: Any,
        options: IndexOptions | None = None,
    ) -> WriteHandle:
        """Index (create or replace) a document."""
        return await self.index_with_options(index, id, document, options)

    @abstractmethod
    async def index_with_options(
        self,
        index: str,
        id: str,
        document: Any,
        options: IndexOptions | None,
    ) -> WriteHandle:
        """Index a document with explicit options."""

    @abstractmethod
    async def get(self, index: str, id: str) -> Document:
        """Retrieve a document by ID.

        Raises:
            NotFoundError: If the document does not exist.
        """

    @abstractmethod
    async def delete(self, index: str, id: str) -> WriteHandle:
        """Delete a document by ID.

        Raises:
            NotFoundError: If the backend reports the document missing.
        """

    # ── Search ───────────────────────────────────────────────────────────

    async def search(
        self,
        index: str,
        query: QueryBuilder | None = None,
        options: SearchOptions | None = None,
    ) -> SearchResult:
        """Search an index."""
        return await self.search_with_options(index, query, options)

    @abstractmethod
    async def search_with_options(
        self,
        index: str,
        query: QueryBuilder | None,
        options: SearchOptions | None,
    ) -> SearchResult:
        """Search an index with explicit options."""

    @abstractmethod
    async def count(self, index: str, query: QueryBuilder | None = None) -> int:
        """Count documents matching ``query``."""

    # ── Bulk ─────────────────────────────────────────────────────────────

    @abstractmethod
    async def bulk(self, operations: list[BulkOperation]) -> BulkResult:
        """Apply a batch of operations.

        The result holds one item per operation, in input order.
        """

    # ── Index lifecycle ──────────────────────────────────────────────────

    @abstractmethod
    async def create_index(self, index: str, settings: IndexSettings | None = None) -> WriteHandle:
        """Create an index."""

    @abstractmethod
    async def delete_index(self, index: str) -> WriteHandle:
        """Delete an index.

        Raises:
            IndexNotFoundError: If the index does not exist.
        """

    @abstractmethod
    async def index_exists(self, index: str) -> bool:
        """Check whether an index exists."""

    @abstractmethod
    async def refresh(self, index: str) -> None:
        """Make all prior writes to ``index`` visible to search."""

    # ── Health ───────────────────────────────────────────────────────────

    @abstractmethod
    async def health_check(self) -> AdapterHealth:
        """Report backend health. Never raises."""
