"""Adapter Registry — Maps backend names to client classes.

The registry is the dispatch point between configuration and concrete
clients: ``create_client(settings)`` returns whichever backend
``settings.backend`` names, built from that backend's settings section.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from searchbridge.adapters.base.adapter import SearchClient
from searchbridge.adapters.base.exceptions import ConfigurationError

if TYPE_CHECKING:
    from searchbridge.config.settings import Settings

logger = logging.getLogger(__name__)


class AdapterNotFoundError(ConfigurationError):
    """Raised when a requested backend is not registered."""


class AdapterRegistry:
    """Registry of search client classes by backend name.

    Example:
        >>> registry = AdapterRegistry()
        >>> registry.register("elasticsearch", ElasticsearchAdapter)
        >>> client = registry.create("elasticsearch", hosts=["http://localhost:9200"])
    """

    def __init__(self) -> None:
        self._classes: dict[str, type[SearchClient]] = {}

    def register(self, name: str, client_class: type[SearchClient]) -> None:
        """Register a client class under ``name``."""
        if name in self._classes:
            logger.warning("Overwriting existing adapter registration: %s", name)
        self._classes[name] = client_class
        logger.debug("Registered adapter: %s", name)

    def get(self, name: str) -> type[SearchClient]:
        """Return the class registered under ``name``.

        Raises:
            AdapterNotFoundError: If no class is registered under this name.
        """
        if name not in self._classes:
            raise AdapterNotFoundError(
                f"No adapter registered with name '{name}'. Available adapters: {self.registered_adapters}"
            )
        return self._classes[name]

    def create(self, name: str, **kwargs: Any) -> SearchClient:
        """Instantiate the client registered under ``name``."""
        client = self.get(name)(**kwargs)
        logger.info("Created %s search client", name)
        return client

    @property
    def registered_adapters(self) -> list[str]:
        return list(self._classes.keys())


def default_registry() -> AdapterRegistry:
    """A registry holding the built-in backends."""
    from searchbridge.adapters.elasticsearch.adapter import ElasticsearchAdapter
    from searchbridge.adapters.meilisearch.adapter import MeiliSearchAdapter
    from searchbridge.adapters.opensearch.adapter import OpenSearchAdapter

    registry = AdapterRegistry()
    registry.register("elasticsearch", ElasticsearchAdapter)
    registry.register("opensearch", OpenSearchAdapter)
    registry.register("meilisearch", MeiliSearchAdapter)
    return registry


def create_client(settings: Settings, registry: AdapterRegistry | None = None) -> SearchClient:
    """Build the client for ``settings.backend`` from its settings section."""
    registry = registry or default_registry()
    name = settings.backend
    if name in ("elasticsearch", "opensearch"):
        kwargs = settings.elasticsearch.client_kwargs()
    elif name == "meilisearch":
        kwargs = settings.meilisearch.client_kwargs()
    else:
        kwargs = {}
    return registry.create(name, **kwargs)
