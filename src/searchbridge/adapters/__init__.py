"""Search adapter layer — Pluggable clients for search backends.

Built-in adapters:
  - elasticsearch: Elasticsearch v7+/v8 (REST, round-robin nodes, retries)
  - opensearch: OpenSearch v2+ (Elasticsearch-compatible REST API)
  - meilisearch: MeiliSearch (instant, typo-tolerant search; asynchronous writes)

Implement ``SearchClient`` to connect your own search backend.
"""
