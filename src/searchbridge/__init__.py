"""searchbridge — One search client contract over Elasticsearch, OpenSearch and Meilisearch.

Quick start::

    from searchbridge import Query, Settings, create_client, match, range_query

    async with create_client(Settings()) as client:
        query = Query().must(match("name", "laptop")).filter(range_query("price").lte(1000))
        result = await client.search("products", query)
"""

from searchbridge.adapters.base.adapter import AdapterHealth, CompletedWrite, SearchClient, WriteHandle
from searchbridge.adapters.base.exceptions import (
    BackendError,
    BadRequestError,
    ConfigurationError,
    ConflictError,
    ConnectionError,
    ErrorKind,
    ForbiddenError,
    IndexNotFoundError,
    InvalidQueryError,
    NotFoundError,
    RequestTimeoutError,
    SearchError,
    TaskCanceledError,
    TaskFailedError,
    UnauthorizedError,
)
from searchbridge.adapters.base.registry import AdapterRegistry, create_client, default_registry
from searchbridge.config.settings import Settings
from searchbridge.models.bulk import (
    BulkItemResult,
    BulkOperation,
    BulkResult,
    bulk_create,
    bulk_delete,
    bulk_index,
    bulk_update,
)
from searchbridge.models.document import Document, SearchResult, TotalRelation, decode_aggregation, decode_hits
from searchbridge.models.index import IndexSettings, MeilisearchIndexSettings
from searchbridge.models.query import (
    HighlightConfig,
    HighlightField,
    IndexOptions,
    SearchOptions,
    SortOption,
    SourceFilter,
    page,
    search_options_for_page,
    sort_asc,
    sort_by_score,
    sort_desc,
)
from searchbridge.query import (
    Agg,
    AggregationBuilder,
    Query,
    QueryBuilder,
    bool_query,
    exists,
    match,
    match_all,
    multi_match,
    query_string,
    range_query,
    term,
    terms,
)

__version__ = "0.1.0"

__all__ = [
    "AdapterHealth",
    "AdapterRegistry",
    "Agg",
    "AggregationBuilder",
    "BackendError",
    "BadRequestError",
    "BulkItemResult",
    "BulkOperation",
    "BulkResult",
    "CompletedWrite",
    "ConfigurationError",
    "ConflictError",
    "ConnectionError",
    "Document",
    "ErrorKind",
    "ForbiddenError",
    "HighlightConfig",
    "HighlightField",
    "IndexNotFoundError",
    "IndexOptions",
    "IndexSettings",
    "InvalidQueryError",
    "MeilisearchIndexSettings",
    "NotFoundError",
    "Query",
    "QueryBuilder",
    "RequestTimeoutError",
    "SearchClient",
    "SearchError",
    "SearchOptions",
    "SearchResult",
    "Settings",
    "SortOption",
    "SourceFilter",
    "TaskCanceledError",
    "TaskFailedError",
    "TotalRelation",
    "UnauthorizedError",
    "WriteHandle",
    "bool_query",
    "bulk_create",
    "bulk_delete",
    "bulk_index",
    "bulk_update",
    "create_client",
    "decode_aggregation",
    "decode_hits",
    "default_registry",
    "exists",
    "match",
    "match_all",
    "multi_match",
    "page",
    "query_string",
    "range_query",
    "search_options_for_page",
    "sort_asc",
    "sort_by_score",
    "sort_desc",
    "term",
    "terms",
]
