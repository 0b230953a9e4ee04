"""Index settings models.

``IndexSettings`` is the backend-neutral description used by
``create_index``. Elasticsearch consumes ``to_dict()``; Meilisearch only
understands attribute lists and its own ranking options, which
``meilisearch_settings()`` extracts.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MinTypos(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    one_typo: int | None = None
    two_typos: int | None = None


class TypoToleranceSettings(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    enabled: bool = True
    min_word_size_for_typos: MinTypos | None = None
    disable_on_words: list[str] | None = None
    disable_on_attributes: list[str] | None = None


class MeilisearchIndexSettings(BaseModel):
    """Meilisearch index settings (``PATCH /indexes/{index}/settings``)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    searchable_attributes: list[str] | None = None
    filterable_attributes: list[str] | None = None
    sortable_attributes: list[str] | None = None
    ranking_rules: list[str] | None = None
    stop_words: list[str] | None = None
    synonyms: dict[str, list[str]] | None = None
    distinct_attribute: str | None = None
    typo_tolerance: TypoToleranceSettings | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class IndexSettings(BaseModel):
    """Backend-neutral index configuration."""

    settings: dict[str, Any] = Field(default_factory=dict, description="Raw engine settings")
    mappings: dict[str, Any] | None = Field(default=None, description="Field mappings (Elasticsearch)")
    aliases: dict[str, Any] | None = Field(default=None, description="Index aliases (Elasticsearch)")
    number_of_shards: int | None = Field(default=None, gt=0, description="Primary shards (Elasticsearch)")
    number_of_replicas: int | None = Field(default=None, ge=0, description="Replica shards (Elasticsearch)")
    searchable_attributes: list[str] | None = Field(default=None, description="Searchable attributes (Meilisearch)")
    filterable_attributes: list[str] | None = Field(default=None, description="Filterable attributes (Meilisearch)")
    sortable_attributes: list[str] | None = Field(default=None, description="Sortable attributes (Meilisearch)")

    def to_dict(self) -> dict[str, Any]:
        """Elasticsearch index-creation body."""
        result: dict[str, Any] = {}

        settings = dict(self.settings)
        if self.number_of_shards is not None:
            settings["number_of_shards"] = self.number_of_shards
        if self.number_of_replicas is not None:
            settings["number_of_replicas"] = self.number_of_replicas
        if settings:
            result["settings"] = settings
        if self.mappings is not None:
            result["mappings"] = self.mappings
        if self.aliases is not None:
            result["aliases"] = self.aliases
        return result

    def meilisearch_settings(self) -> MeilisearchIndexSettings:
        """The subset of these settings Meilisearch understands.

        Explicit attribute lists win over camelCase keys found in ``settings``;
        every other key is ignored.
        """
        known = MeilisearchIndexSettings.model_fields
        aliases = {to_camel(name) for name in known}
        data = {key: value for key, value in self.settings.items() if key in aliases or key in known}
        for name in ("searchable_attributes", "filterable_attributes", "sortable_attributes"):
            value = getattr(self, name)
            if value is not None:
                data.pop(to_camel(name), None)
                data[name] = value
        return MeilisearchIndexSettings.model_validate(data)
