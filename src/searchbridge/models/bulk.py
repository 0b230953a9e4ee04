"""Bulk operation models.

A ``BulkResult`` always carries exactly one item per submitted operation,
in submission order, whether or not the backend reports per-item status.
Backends with asynchronous writes attach the write handle of each batch so
the caller can wait for visibility and learn about late failures.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field, PrivateAttr

if TYPE_CHECKING:
    from searchbridge.adapters.base.adapter import WriteHandle

BulkAction = Literal["index", "create", "update", "delete"]


class BulkOperation(BaseModel):
    """A single operation in a bulk request."""

    action: BulkAction = Field(description="index, create, update or delete")
    index: str = Field(description="Target index")
    id: str = Field(description="Document identifier")
    document: Any = Field(default=None, description="Document body (partial body for update)")
    routing: str | None = Field(default=None, description="Custom shard routing")


class BulkItemResult(BaseModel):
    """Outcome of one bulk operation."""

    action: str
    index: str
    id: str
    status: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BulkResult(BaseModel):
    """Aggregate outcome of a bulk request."""

    took: int = Field(default=0, description="Processing time in ms")
    items: list[BulkItemResult] = Field(default_factory=list)
    success_count: int = 0
    error_count: int = 0

    _pending: list[tuple[Any, list[int]]] = PrivateAttr(default_factory=list)

    @property
    def errors(self) -> bool:
        return self.error_count > 0

    def add(self, item: BulkItemResult) -> None:
        self.items.append(item)
        if item.error is None:
            self.success_count += 1
        else:
            self.error_count += 1

    def failed_items(self) -> list[BulkItemResult]:
        return [item for item in self.items if item.error is not None]

    @property
    def handles(self) -> list[WriteHandle]:
        return [handle for handle, _ in self._pending]

    def track(self, handle: WriteHandle, positions: list[int]) -> None:
        """Attach the write handle that covers the items at ``positions``."""
        self._pending.append((handle, positions))

    async def wait(self, timeout: float | None = None) -> BulkResult:
        """Wait until every tracked write is visible.

        Items covered by a write that the backend later reports as failed
        are rewritten as failures carrying the backend's message.

        Args:
            timeout: Maximum seconds to wait in total; ``None`` waits indefinitely.

        Raises:
            RequestTimeoutError: If ``timeout`` elapses first.
            ConnectionError: If the backend cannot be reached while waiting.
        """
        from searchbridge.adapters.base.exceptions import ConnectionError, RequestTimeoutError, SearchError

        try:
            async with asyncio.timeout(timeout):
                for handle, positions in self._pending:
                    try:
                        await handle.wait()
                    except (RequestTimeoutError, ConnectionError):
                        raise
                    except SearchError as e:
                        self._fail(positions, e.status or 500, str(e))
        except TimeoutError as e:
            raise RequestTimeoutError("search: operation timed out waiting for bulk writes") from e
        return self

    def _fail(self, positions: list[int], status: int, error: str) -> None:
        for position in positions:
            item = self.items[position]
            if item.error is None:
                self.success_count -= 1
                self.error_count += 1
            self.items[position] = item.model_copy(update={"status": status, "error": error})


def bulk_index(index: str, id: str, document: Any) -> BulkOperation:
    return BulkOperation(action="index", index=index, id=id, document=document)


def bulk_create(index: str, id: str, document: Any) -> BulkOperation:
    """Create operation; fails if the document already exists (Elasticsearch)."""
    return BulkOperation(action="create", index=index, id=id, document=document)


def bulk_update(index: str, id: str, document: Any) -> BulkOperation:
    """Partial update operation."""
    return BulkOperation(action="update", index=index, id=id, document=document)


def bulk_delete(index: str, id: str) -> BulkOperation:
    return BulkOperation(action="delete", index=index, id=id)
