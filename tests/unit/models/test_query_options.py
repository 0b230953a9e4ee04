"""Tests for search / index option models and index settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from searchbridge.models.index import IndexSettings, MeilisearchIndexSettings, TypoToleranceSettings
from searchbridge.models.query import (
    IndexOptions,
    SearchOptions,
    SortOption,
    page,
    search_options_for_page,
    sort_asc,
    sort_by_score,
    sort_desc,
)
from searchbridge.query import Agg

# ── Search options ───────────────────────────────────────────────────────────


class TestSearchOptions:
    def test_defaults(self) -> None:
        options = SearchOptions()
        assert options.from_ == 0
        assert options.size is None
        assert options.sort == []
        assert options.aggregations is None
        assert not options.explain

    def test_aggregation_builder_is_built(self) -> None:
        options = SearchOptions(aggregations=Agg().terms("by_color", "color", size=5))
        assert options.aggregations == {"by_color": {"terms": {"field": "color", "size": 5}}}

    def test_negative_offset_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SearchOptions(from_=-1)

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            SearchOptions(timeout=0)

    def test_refresh_values(self) -> None:
        assert IndexOptions(refresh="wait_for").refresh == "wait_for"
        with pytest.raises(ValidationError):
            IndexOptions(refresh="sometimes")  # type: ignore[arg-type]


class TestPagingAndSorting:
    @pytest.mark.parametrize(("number", "size", "offset"), [(1, 10, 0), (3, 10, 20), (0, 10, 0), (-4, 25, 0)])
    def test_page(self, number: int, size: int, offset: int) -> None:
        assert page(number, size) == offset

    def test_search_options_for_page(self) -> None:
        options = search_options_for_page(2, 25)
        assert (options.from_, options.size) == (25, 25)

    def test_sort_helpers(self) -> None:
        assert sort_asc("name") == SortOption(field="name", order="asc")
        assert sort_desc("price") == SortOption(field="price", order="desc")
        assert sort_by_score() == SortOption(field="_score", order="desc")


# ── Index settings ───────────────────────────────────────────────────────────


class TestIndexSettings:
    def test_elasticsearch_body(self) -> None:
        settings = IndexSettings(
            settings={"refresh_interval": "1s"},
            number_of_shards=1,
            mappings={"properties": {"price": {"type": "integer"}}},
            aliases={"current": {}},
            searchable_attributes=["name"],
        )
        assert settings.to_dict() == {
            "settings": {"refresh_interval": "1s", "number_of_shards": 1},
            "mappings": {"properties": {"price": {"type": "integer"}}},
            "aliases": {"current": {}},
        }

    def test_empty_body(self) -> None:
        assert IndexSettings().to_dict() == {}

    def test_meilisearch_subset(self) -> None:
        settings = IndexSettings(
            number_of_shards=3,
            searchable_attributes=["name", "description"],
            sortable_attributes=["price"],
            settings={"stopWords": ["the"], "refresh_interval": "1s", "sortableAttributes": ["ignored"]},
        )
        assert settings.meilisearch_settings().to_payload() == {
            "searchableAttributes": ["name", "description"],
            "sortableAttributes": ["price"],
            "stopWords": ["the"],
        }

    def test_meilisearch_subset_can_be_empty(self) -> None:
        assert IndexSettings(number_of_replicas=2).meilisearch_settings().to_payload() == {}

    def test_meilisearch_settings_accept_field_names(self) -> None:
        settings = MeilisearchIndexSettings(
            distinct_attribute="sku",
            typo_tolerance=TypoToleranceSettings(enabled=False),
        )
        assert settings.to_payload() == {"distinctAttribute": "sku", "typoTolerance": {"enabled": False}}
