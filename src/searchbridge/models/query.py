"""Query and request option models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class SortOption(BaseModel):
    """A sort field and direction."""

    field: str
    order: Literal["asc", "desc"] = "asc"
    mode: str | None = Field(default=None, description="Multi-value mode: min, max, avg, sum, median")


class SourceFilter(BaseModel):
    """Controls which source fields are returned."""

    includes: list[str] = Field(default_factory=list)
    excludes: list[str] = Field(default_factory=list)


class HighlightField(BaseModel):
    fragment_size: int | None = None
    number_of_fragments: int | None = None
    pre_tags: list[str] = Field(default_factory=list)
    post_tags: list[str] = Field(default_factory=list)


class HighlightConfig(BaseModel):
    """Result highlighting configuration."""

    fields: dict[str, HighlightField | None] = Field(default_factory=dict)
    pre_tags: list[str] = Field(default_factory=list)
    post_tags: list[str] = Field(default_factory=list)
    fragment_size: int | None = None
    number_of_fragments: int | None = None


class IndexOptions(BaseModel):
    """Options for indexing a single document."""

    refresh: Literal["true", "false", "wait_for"] | None = Field(
        default=None,
        description="When the write becomes visible; 'true' blocks until searchable",
    )
    routing: str | None = Field(default=None, description="Custom shard routing (Elasticsearch)")
    version: int | None = Field(default=None, description="Expected version for optimistic concurrency")
    version_type: str | None = Field(default=None, description="Version type, e.g. 'external'")
    pipeline: str | None = Field(default=None, description="Ingest pipeline (Elasticsearch)")
    op_type: Literal["index", "create"] | None = Field(default=None, description="Operation type")


class SearchOptions(BaseModel):
    """Options controlling search behavior.

    Not every backend honours every option; unsupported ones are ignored
    by the adapter (see each adapter's docstring).
    """

    from_: int = Field(default=0, ge=0, description="Starting offset")
    size: int | None = Field(default=None, ge=0, description="Maximum number of hits to return")
    sort: list[SortOption] = Field(default_factory=list, description="Sort order")
    source: SourceFilter | None = Field(default=None, description="Source field filtering")
    highlight: HighlightConfig | None = Field(default=None, description="Highlighting configuration")
    aggregations: dict[str, Any] | None = Field(default=None, description="Named aggregations")
    track_total_hits: bool | int | None = Field(
        default=None,
        description="True = exact count, False = no count, int = count up to N",
    )
    timeout: float | None = Field(default=None, gt=0, description="Server-side search timeout in seconds")
    routing: str | None = Field(default=None, description="Custom shard routing")
    preference: str | None = Field(default=None, description="Search preference")
    search_after: list[Any] = Field(default_factory=list, description="search_after pagination values")
    scroll: float | None = Field(default=None, gt=0, description="Scroll keep-alive in seconds")
    min_score: float | None = Field(default=None, description="Minimum score threshold")
    explain: bool = Field(default=False, description="Include score explanations")

    @field_validator("aggregations", mode="before")
    @classmethod
    def _build_aggregations(cls, v: Any) -> Any:
        """Accept an ``AggregationBuilder`` as well as a plain mapping."""
        if hasattr(v, "build") and callable(v.build):
            return v.build()
        return v


def page(page_number: int, size: int) -> int:
    """Return the starting offset for a 1-based page number."""
    page_number = max(page_number, 1)
    return (page_number - 1) * size


def search_options_for_page(page_number: int, size: int) -> SearchOptions:
    return SearchOptions(from_=page(page_number, size), size=size)


def sort_asc(field: str) -> SortOption:
    return SortOption(field=field, order="asc")


def sort_desc(field: str) -> SortOption:
    return SortOption(field=field, order="desc")


def sort_by_score() -> SortOption:
    """Sort by relevance score, best first."""
    return SortOption(field="_score", order="desc")
