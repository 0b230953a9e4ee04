"""OpenSearch adapter — Full-text search for OpenSearch (v2+).

OpenSearch is an AWS-maintained fork of Elasticsearch with a compatible
query DSL and REST surface, so this adapter reuses the Elasticsearch
transport, compilation and response mapping unchanged. Only the backend
identifier differs.
"""

from __future__ import annotations

from searchbridge.adapters.elasticsearch.adapter import ElasticsearchAdapter


class OpenSearchAdapter(ElasticsearchAdapter):
    """Search client for OpenSearch (v2+).

    Accepts the same arguments as :class:`ElasticsearchAdapter`.
    """

    @property
    def backend(self) -> str:
        return "opensearch"
