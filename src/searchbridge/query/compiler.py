"""Dict compiler — Serializes clause trees to the neutral query dict.

The neutral form follows the Elasticsearch query DSL, so the Elasticsearch
adapter embeds it as-is. Other backends translate clauses with their own
``ClauseVisitor`` instead of parsing this output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from searchbridge.query.clauses import (
    BoostingClause,
    Clause,
    ClauseVisitor,
    ConstantScoreClause,
    ExistsClause,
    FunctionScoreQuery,
    FuzzyQuery,
    GeoBoundingBoxClause,
    GeoDistanceClause,
    HasChildClause,
    HasParentClause,
    IdsClause,
    MatchAllClause,
    MatchClause,
    MatchNoneClause,
    MatchPhraseClause,
    MatchPhrasePrefixClause,
    MoreLikeThisClause,
    MultiMatchQuery,
    NestedClause,
    PrefixClause,
    QueryStringQuery,
    RangeQuery,
    RawClause,
    RegexpClause,
    ScriptClause,
    SimpleQueryStringQuery,
    TermClause,
    TermsClause,
    WildcardClause,
)

if TYPE_CHECKING:
    from searchbridge.query.builder import QueryBuilder


def _options(**values: Any) -> dict[str, Any]:
    """Keep only the options that were set."""
    return {key: value for key, value in values.items() if value is not None and value != []}


class DictCompiler(ClauseVisitor[dict[str, Any]]):
    """Compiles any clause (including nested bool builders) to a dict."""

    def visit_bool(self, builder: QueryBuilder) -> dict[str, Any]:
        must, should, must_not, filters = (
            builder.must_clauses,
            builder.should_clauses,
            builder.must_not_clauses,
            builder.filter_clauses,
        )
        # A lone must clause is emitted bare; translators rely on its exact shape.
        if len(must) == 1 and not should and not must_not and not filters:
            return self.visit(must[0])
        if builder.is_empty():
            return {"match_all": {}}

        body: dict[str, Any] = {}
        for key, clauses in (("must", must), ("should", should), ("must_not", must_not), ("filter", filters)):
            if clauses:
                body[key] = [self.visit(clause) for clause in clauses]
        if builder.minimum_should_match_ is not None:
            body["minimum_should_match"] = builder.minimum_should_match_
        if builder.boost_ is not None:
            body["boost"] = builder.boost_
        return {"bool": body}

    def visit_raw(self, clause: RawClause) -> dict[str, Any]:
        return clause.body

    def visit_match_all(self, clause: MatchAllClause) -> dict[str, Any]:
        return {"match_all": {}}

    def visit_match_none(self, clause: MatchNoneClause) -> dict[str, Any]:
        return {"match_none": {}}

    def visit_match(self, clause: MatchClause) -> dict[str, Any]:
        if clause.options:
            return {"match": {clause.field: {"query": clause.query, **clause.options}}}
        return {"match": {clause.field: clause.query}}

    def visit_match_phrase(self, clause: MatchPhraseClause) -> dict[str, Any]:
        return {"match_phrase": {clause.field: clause.query}}

    def visit_match_phrase_prefix(self, clause: MatchPhrasePrefixClause) -> dict[str, Any]:
        return {"match_phrase_prefix": {clause.field: clause.query}}

    def visit_multi_match(self, clause: MultiMatchQuery) -> dict[str, Any]:
        body = {"query": clause.query, "fields": clause.fields}
        body.update(
            _options(
                type=clause.match_type,
                operator=clause.operator_,
                fuzziness=clause.fuzziness_,
                boost=clause.boost_,
                analyzer=clause.analyzer_,
                tie_breaker=clause.tie_breaker_,
                minimum_should_match=clause.minimum_should_match_,
            )
        )
        return {"multi_match": body}

    def visit_term(self, clause: TermClause) -> dict[str, Any]:
        return {"term": {clause.field: clause.value}}

    def visit_terms(self, clause: TermsClause) -> dict[str, Any]:
        return {"terms": {clause.field: list(clause.values)}}

    def visit_exists(self, clause: ExistsClause) -> dict[str, Any]:
        return {"exists": {"field": clause.field}}

    def visit_prefix(self, clause: PrefixClause) -> dict[str, Any]:
        return {"prefix": {clause.field: clause.value}}

    def visit_wildcard(self, clause: WildcardClause) -> dict[str, Any]:
        return {"wildcard": {clause.field: clause.value}}

    def visit_regexp(self, clause: RegexpClause) -> dict[str, Any]:
        return {"regexp": {clause.field: clause.value}}

    def visit_fuzzy(self, clause: FuzzyQuery) -> dict[str, Any]:
        body: dict[str, Any] = {"value": clause.value}
        body.update(
            _options(
                fuzziness=clause.fuzziness_,
                prefix_length=clause.prefix_length_,
                max_expansions=clause.max_expansions_,
                transpositions=clause.transpositions_,
                rewrite=clause.rewrite_,
                boost=clause.boost_,
            )
        )
        return {"fuzzy": {clause.field: body}}

    def visit_range(self, clause: RangeQuery) -> dict[str, Any]:
        body: dict[str, Any] = dict(clause.bounds())
        body.update(_options(format=clause.format_, time_zone=clause.timezone_, boost=clause.boost_))
        return {"range": {clause.field: body}}

    def visit_ids(self, clause: IdsClause) -> dict[str, Any]:
        return {"ids": {"values": list(clause.values)}}

    def visit_query_string(self, clause: QueryStringQuery) -> dict[str, Any]:
        body: dict[str, Any] = {"query": clause.query}
        body.update(
            _options(
                default_field=clause.default_field_,
                fields=clause.fields_,
                default_operator=clause.default_operator_,
                analyzer=clause.analyzer_,
                fuzziness=clause.fuzziness_,
                minimum_should_match=clause.minimum_should_match_,
                boost=clause.boost_,
            )
        )
        return {"query_string": body}

    def visit_simple_query_string(self, clause: SimpleQueryStringQuery) -> dict[str, Any]:
        body: dict[str, Any] = {"query": clause.query}
        body.update(
            _options(
                fields=clause.fields_,
                default_operator=clause.default_operator_,
                analyzer=clause.analyzer_,
                flags=clause.flags_,
                boost=clause.boost_,
            )
        )
        return {"simple_query_string": body}

    def visit_nested(self, clause: NestedClause) -> dict[str, Any]:
        body = {"path": clause.path, "query": self.visit(clause.query)}
        if clause.score_mode:
            body["score_mode"] = clause.score_mode
        return {"nested": body}

    def visit_has_child(self, clause: HasChildClause) -> dict[str, Any]:
        return {"has_child": {"type": clause.child_type, "query": self.visit(clause.query)}}

    def visit_has_parent(self, clause: HasParentClause) -> dict[str, Any]:
        return {"has_parent": {"parent_type": clause.parent_type, "query": self.visit(clause.query)}}

    def visit_geo_distance(self, clause: GeoDistanceClause) -> dict[str, Any]:
        return {
            "geo_distance": {
                "distance": clause.distance,
                clause.field: {"lat": clause.lat, "lon": clause.lon},
            }
        }

    def visit_geo_bounding_box(self, clause: GeoBoundingBoxClause) -> dict[str, Any]:
        return {
            "geo_bounding_box": {
                clause.field: {
                    "top_left": {"lat": clause.top_lat, "lon": clause.top_lon},
                    "bottom_right": {"lat": clause.bottom_lat, "lon": clause.bottom_lon},
                }
            }
        }

    def visit_more_like_this(self, clause: MoreLikeThisClause) -> dict[str, Any]:
        return {"more_like_this": {"fields": list(clause.fields), "like": clause.like}}

    def visit_script(self, clause: ScriptClause) -> dict[str, Any]:
        body: dict[str, Any] = {"source": clause.source}
        if clause.params is not None:
            body["params"] = clause.params
        return {"script": {"script": body}}

    def visit_boosting(self, clause: BoostingClause) -> dict[str, Any]:
        return {
            "boosting": {
                "positive": self.visit(clause.positive),
                "negative": self.visit(clause.negative),
                "negative_boost": clause.negative_boost,
            }
        }

    def visit_constant_score(self, clause: ConstantScoreClause) -> dict[str, Any]:
        return {"constant_score": {"filter": self.visit(clause.filter), "boost": clause.boost}}

    def visit_function_score(self, clause: FunctionScoreQuery) -> dict[str, Any]:
        body: dict[str, Any] = {"query": self.visit(clause.query)}
        body.update(
            _options(
                functions=clause.functions,
                score_mode=clause.score_mode_,
                boost_mode=clause.boost_mode_,
                max_boost=clause.max_boost_,
                min_score=clause.min_score_,
            )
        )
        return {"function_score": body}

    def generic_visit(self, clause: Clause) -> dict[str, Any]:
        raise TypeError(f"Unsupported clause kind: {clause.kind}")
