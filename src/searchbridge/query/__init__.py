"""Query DSL — Backend-neutral clauses, boolean builder and aggregations."""

from searchbridge.query.aggregations import Agg, AggregationBuilder
from searchbridge.query.builder import Query, QueryBuilder, bool_query, format_query
from searchbridge.query.clauses import (
    Clause,
    ClauseLike,
    ClauseVisitor,
    FunctionScoreQuery,
    FuzzyQuery,
    MultiMatchQuery,
    QueryStringQuery,
    RangeQuery,
    SimpleQueryStringQuery,
    boosting,
    constant_score,
    exists,
    function_score,
    fuzzy,
    geo_bounding_box,
    geo_distance,
    has_child,
    has_parent,
    ids,
    match,
    match_all,
    match_none,
    match_phrase,
    match_phrase_prefix,
    match_with_options,
    more_like_this,
    multi_match,
    nested,
    prefix,
    query_string,
    range_query,
    raw,
    regexp,
    script,
    simple_query_string,
    term,
    terms,
    wildcard,
)
from searchbridge.query.compiler import DictCompiler

__all__ = [
    "Agg",
    "AggregationBuilder",
    "Clause",
    "ClauseLike",
    "ClauseVisitor",
    "DictCompiler",
    "FunctionScoreQuery",
    "FuzzyQuery",
    "MultiMatchQuery",
    "Query",
    "QueryBuilder",
    "QueryStringQuery",
    "RangeQuery",
    "SimpleQueryStringQuery",
    "bool_query",
    "boosting",
    "constant_score",
    "exists",
    "format_query",
    "function_score",
    "fuzzy",
    "geo_bounding_box",
    "geo_distance",
    "has_child",
    "has_parent",
    "ids",
    "match",
    "match_all",
    "match_none",
    "match_phrase",
    "match_phrase_prefix",
    "match_with_options",
    "more_like_this",
    "multi_match",
    "nested",
    "prefix",
    "query_string",
    "range_query",
    "raw",
    "regexp",
    "script",
    "simple_query_string",
    "term",
    "terms",
    "wildcard",
]
