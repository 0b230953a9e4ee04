"""Standard document model — Backend-neutral shapes for retrieved documents.

Adapters map their native responses onto ``Document`` and ``SearchResult``
so application code never sees an engine-specific payload. ``Document.source``
keeps the raw JSON bytes; callers decode on demand.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, Field, TypeAdapter

T = TypeVar("T")


class TotalRelation(str, Enum):
    """How ``SearchResult.total`` relates to the true match count."""

    EQ = "eq"
    GTE = "gte"


class Document(BaseModel):
    """One indexed record as returned by ``get`` or ``search``."""

    model_config = {"frozen": True}

    id: str = Field(description="Document identifier")
    index: str = Field(description="Index the document belongs to")
    source: bytes = Field(default=b"", description="Raw JSON document source")
    version: int | None = Field(default=None, description="Document version, when the backend reports one")
    score: float | None = Field(default=None, description="Relevance score (search hits only)")
    highlights: dict[str, list[str]] = Field(default_factory=dict, description="Highlighted fragments per field")

    def decode(self, into: type[T] | None = None) -> Any:
        """Decode ``source``.

        Args:
            into: Optional target type (a pydantic model, dataclass, TypedDict,
                ...). When omitted, the plain JSON value is returned.
        """
        if into is None:
            return json.loads(self.source)
        return TypeAdapter(into).validate_json(self.source)


class SearchResult(BaseModel):
    """Normalized result of a search.

    ``hits`` keeps the engine's ranking/sort order.
    """

    total: int = Field(default=0, description="Total matching documents")
    total_relation: TotalRelation = Field(
        default=TotalRelation.EQ,
        description="'eq' for an exact total, 'gte' for a lower bound or estimate",
    )
    hits: list[Document] = Field(default_factory=list, description="Matching documents in engine order")
    aggregations: dict[str, Any] = Field(default_factory=dict, description="Raw aggregation payloads by name")
    took: int = Field(default=0, description="Engine processing time in ms")
    timed_out: bool = Field(default=False, description="Whether the engine hit its search timeout")
    scroll_id: str | None = Field(default=None, description="Scroll continuation token")

    @property
    def is_exact(self) -> bool:
        return self.total_relation == TotalRelation.EQ


# ── Aggregation result shapes ────────────────────────────────────────────────


class TermsBucket(BaseModel):
    key: Any
    doc_count: int = 0


class TermsAggResult(BaseModel):
    buckets: list[TermsBucket] = Field(default_factory=list)


class StatsAggResult(BaseModel):
    count: int = 0
    min: float | None = None
    max: float | None = None
    avg: float | None = None
    sum: float = 0.0


class ValueAggResult(BaseModel):
    value: float | None = None


# ── Decoding helpers ─────────────────────────────────────────────────────────


def decode_hits(result: SearchResult, into: type[T]) -> list[T]:
    """Decode every hit's source into ``into``."""
    adapter = TypeAdapter(into)
    return [adapter.validate_json(hit.source) for hit in result.hits]


def decode_aggregation(result: SearchResult, name: str, into: type[T]) -> T | None:
    """Decode a named aggregation payload, or return ``None`` if absent."""
    data = result.aggregations.get(name)
    if data is None:
        return None
    return TypeAdapter(into).validate_python(data)
