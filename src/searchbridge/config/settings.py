"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. YAML config file (if loaded with ``Settings.from_yaml``)
  2. Environment variables (SEARCHBRIDGE_ prefix)
  3. Default values
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class ElasticsearchSettings(BaseModel):
    """Elasticsearch / OpenSearch connection configuration."""

    hosts: list[str] = Field(default_factory=lambda: ["http://localhost:9200"], description="Node URLs")
    username: str | None = Field(default=None, description="HTTP basic-auth username")
    password: str | None = Field(default=None, description="HTTP basic-auth password")
    api_key: str | None = Field(default=None, description="API key (takes precedence over basic auth)")
    verify_certs: bool = Field(default=True, description="Verify TLS certificates")
    max_retries: int = Field(default=3, ge=0, description="Retries on 429/503/504 and transport errors")
    retry_backoff: float = Field(default=0.1, gt=0, description="Base backoff in seconds (linear)")
    timeout: float = Field(default=30.0, gt=0, description="HTTP request timeout in seconds")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra headers sent on every request")

    @field_validator("hosts", mode="before")
    @classmethod
    def _parse_hosts(cls, v: Any) -> list[str]:
        """Parse hosts from JSON string (env var), comma list or list."""
        if isinstance(v, str):
            import json

            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return [str(h) for h in parsed]
            except (json.JSONDecodeError, TypeError):
                pass
            return [h.strip() for h in v.split(",") if h.strip()]
        return list(v)

    def client_kwargs(self) -> dict[str, Any]:
        return self.model_dump()


class MeilisearchSettings(BaseModel):
    """Meilisearch connection configuration."""

    host: str = Field(default="http://localhost:7700", description="Meilisearch URL")
    api_key: str | None = Field(default=None, description="Master key or API key")
    timeout: float = Field(default=30.0, gt=0, description="HTTP request timeout in seconds")
    task_poll_interval: float = Field(default=0.1, gt=0, description="Task polling interval in seconds")
    exhaustive_count: bool = Field(default=False, description="Request exact totals from count()")
    strict: bool = Field(
        default=False,
        description="Raise on clauses/aggregations that cannot be translated instead of dropping them",
    )

    def client_kwargs(self) -> dict[str, Any]:
        return self.model_dump()


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root settings.

    Configuration is loaded from environment variables with the SEARCHBRIDGE_ prefix.
    Nested settings use double underscores.

    Example:
        SEARCHBRIDGE_BACKEND=meilisearch
        SEARCHBRIDGE_MEILISEARCH__HOST=http://search:7700
        SEARCHBRIDGE_ELASTICSEARCH__HOSTS='["http://es1:9200", "http://es2:9200"]'
    """

    model_config = {
        "env_prefix": "SEARCHBRIDGE_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    backend: str = Field(default="elasticsearch", description="Backend: elasticsearch, opensearch, meilisearch")

    elasticsearch: ElasticsearchSettings = Field(default_factory=ElasticsearchSettings)
    meilisearch: MeilisearchSettings = Field(default_factory=MeilisearchSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file override environment variables.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
