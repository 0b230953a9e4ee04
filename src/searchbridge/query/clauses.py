"""Query clauses — Typed leaf and composite fragments of a search query.

Each clause is a small object tagged with a ``kind``. Backends never inspect
raw dicts to recover intent; they walk clauses with a ``ClauseVisitor``
(dispatch works like :class:`ast.NodeVisitor`: ``visit_<kind>`` or
``generic_visit``). The neutral dict form is produced by
:class:`searchbridge.query.compiler.DictCompiler`.

Fluent builders (``RangeQuery``, ``MultiMatchQuery``, ``FuzzyQuery``, …)
return ``self`` from every setter so they can be chained before use.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Any, ClassVar, Generic, TypeVar, Union

T = TypeVar("T")


class Clause:
    """Base class for every query clause."""

    kind: ClassVar[str] = "clause"

    def accept(self, visitor: ClauseVisitor[T]) -> T:
        return visitor.visit(self)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the neutral (Elasticsearch-shaped) dict form."""
        from searchbridge.query.compiler import DictCompiler

        return DictCompiler().visit(self)


ClauseLike = Union[Clause, Mapping[str, Any]]


class ClauseVisitor(Generic[T]):
    """Walks a clause and dispatches to ``visit_<kind>`` methods."""

    def visit(self, clause: Clause) -> T:
        method = getattr(self, f"visit_{clause.kind}", self.generic_visit)
        return method(clause)

    def generic_visit(self, clause: Clause) -> T:
        raise NotImplementedError(f"{type(self).__name__} cannot handle '{clause.kind}' clauses")


def as_clause(value: ClauseLike) -> Clause:
    """Wrap a plain mapping as a ``RawClause``; pass clauses through."""
    if isinstance(value, Clause):
        return value
    if isinstance(value, Mapping):
        return RawClause(dict(value))
    raise TypeError(f"Expected a Clause or mapping, got {type(value).__name__}")


# ── Simple leaf clauses ──────────────────────────────────────────────────────


@dataclass
class MatchAllClause(Clause):
    kind: ClassVar[str] = "match_all"


@dataclass
class MatchNoneClause(Clause):
    kind: ClassVar[str] = "match_none"


@dataclass
class MatchClause(Clause):
    """Full-text ``match`` on one field.

    ``options`` (operator, fuzziness, analyzer, …) switch the serialized
    form to ``{field: {"query": ..., **options}}``.
    """

    kind: ClassVar[str] = "match"

    field: str
    query: Any
    options: dict[str, Any] = dataclass_field(default_factory=dict)


@dataclass
class MatchPhraseClause(Clause):
    kind: ClassVar[str] = "match_phrase"

    field: str
    query: Any


@dataclass
class MatchPhrasePrefixClause(Clause):
    kind: ClassVar[str] = "match_phrase_prefix"

    field: str
    query: Any


@dataclass
class TermClause(Clause):
    """Exact match on a single value."""

    kind: ClassVar[str] = "term"

    field: str
    value: Any


@dataclass
class TermsClause(Clause):
    """Exact match on any of several values (OR)."""

    kind: ClassVar[str] = "terms"

    field: str
    values: list[Any]


@dataclass
class ExistsClause(Clause):
    kind: ClassVar[str] = "exists"

    field: str


@dataclass
class PrefixClause(Clause):
    kind: ClassVar[str] = "prefix"

    field: str
    value: str


@dataclass
class WildcardClause(Clause):
    kind: ClassVar[str] = "wildcard"

    field: str
    value: str


@dataclass
class RegexpClause(Clause):
    kind: ClassVar[str] = "regexp"

    field: str
    value: str


@dataclass
class IdsClause(Clause):
    kind: ClassVar[str] = "ids"

    values: list[str]


@dataclass
class RawClause(Clause):
    """A pre-built clause body, passed through to backends that accept it."""

    kind: ClassVar[str] = "raw"

    body: dict[str, Any]


# ── Compound / relational clauses ────────────────────────────────────────────


@dataclass
class NestedClause(Clause):
    kind: ClassVar[str] = "nested"

    path: str
    query: Clause
    score_mode: str | None = None


@dataclass
class HasChildClause(Clause):
    kind: ClassVar[str] = "has_child"

    child_type: str
    query: Clause


@dataclass
class HasParentClause(Clause):
    kind: ClassVar[str] = "has_parent"

    parent_type: str
    query: Clause


@dataclass
class GeoDistanceClause(Clause):
    kind: ClassVar[str] = "geo_distance"

    field: str
    lat: float
    lon: float
    distance: str


@dataclass
class GeoBoundingBoxClause(Clause):
    kind: ClassVar[str] = "geo_bounding_box"

    field: str
    top_lat: float
    top_lon: float
    bottom_lat: float
    bottom_lon: float


@dataclass
class MoreLikeThisClause(Clause):
    kind: ClassVar[str] = "more_like_this"

    fields: list[str]
    like: str


@dataclass
class ScriptClause(Clause):
    kind: ClassVar[str] = "script"

    source: str
    params: dict[str, Any] | None = None


@dataclass
class BoostingClause(Clause):
    kind: ClassVar[str] = "boosting"

    positive: Clause
    negative: Clause
    negative_boost: float


@dataclass
class ConstantScoreClause(Clause):
    kind: ClassVar[str] = "constant_score"

    filter: Clause
    boost: float


# ── Fluent builders ──────────────────────────────────────────────────────────


class MultiMatchQuery(Clause):
    """Builds a ``multi_match`` query across several fields."""

    kind: ClassVar[str] = "multi_match"

    def __init__(self, query: str, fields: Sequence[str]) -> None:
        self.query = query
        self.fields = list(fields)
        self.match_type: str | None = None
        self.operator_: str | None = None
        self.minimum_should_match_: Any = None
        self.fuzziness_: Any = None
        self.boost_: float | None = None
        self.analyzer_: str | None = None
        self.tie_breaker_: float | None = None

    def type(self, match_type: str) -> MultiMatchQuery:
        self.match_type = match_type
        return self

    def operator(self, op: str) -> MultiMatchQuery:
        self.operator_ = op
        return self

    def fuzziness(self, value: Any) -> MultiMatchQuery:
        self.fuzziness_ = value
        return self

    def boost(self, value: float) -> MultiMatchQuery:
        self.boost_ = value
        return self

    def analyzer(self, name: str) -> MultiMatchQuery:
        self.analyzer_ = name
        return self

    def tie_breaker(self, value: float) -> MultiMatchQuery:
        self.tie_breaker_ = value
        return self

    def minimum_should_match(self, value: Any) -> MultiMatchQuery:
        self.minimum_should_match_ = value
        return self

    def build(self) -> dict[str, Any]:
        return self.to_dict()


class FuzzyQuery(Clause):
    """Builds a ``fuzzy`` query on one field."""

    kind: ClassVar[str] = "fuzzy"

    def __init__(self, field: str, value: str) -> None:
        self.field = field
        self.value = value
        self.fuzziness_: Any = None
        self.prefix_length_: int | None = None
        self.max_expansions_: int | None = None
        self.transpositions_: bool | None = None
        self.rewrite_: str | None = None
        self.boost_: float | None = None

    def fuzziness(self, value: Any) -> FuzzyQuery:
        self.fuzziness_ = value
        return self

    def prefix_length(self, value: int) -> FuzzyQuery:
        self.prefix_length_ = value
        return self

    def max_expansions(self, value: int) -> FuzzyQuery:
        self.max_expansions_ = value
        return self

    def transpositions(self, value: bool) -> FuzzyQuery:
        self.transpositions_ = value
        return self

    def rewrite(self, value: str) -> FuzzyQuery:
        self.rewrite_ = value
        return self

    def boost(self, value: float) -> FuzzyQuery:
        self.boost_ = value
        return self

    def build(self) -> dict[str, Any]:
        return self.to_dict()


class RangeQuery(Clause):
    """Builds a ``range`` query on one field.

    Example::

        range_query("price").gte(10).lte(1000)
    """

    kind: ClassVar[str] = "range"

    def __init__(self, field: str) -> None:
        self.field = field
        self.gte_: Any = None
        self.gt_: Any = None
        self.lte_: Any = None
        self.lt_: Any = None
        self.format_: str | None = None
        self.timezone_: str | None = None
        self.boost_: float | None = None

    def gte(self, value: Any) -> RangeQuery:
        self.gte_ = value
        return self

    def gt(self, value: Any) -> RangeQuery:
        self.gt_ = value
        return self

    def lte(self, value: Any) -> RangeQuery:
        self.lte_ = value
        return self

    def lt(self, value: Any) -> RangeQuery:
        self.lt_ = value
        return self

    def between(self, lower: Any, upper: Any) -> RangeQuery:
        self.gte_ = lower
        self.lte_ = upper
        return self

    def format(self, fmt: str) -> RangeQuery:
        self.format_ = fmt
        return self

    def timezone(self, tz: str) -> RangeQuery:
        self.timezone_ = tz
        return self

    def boost(self, value: float) -> RangeQuery:
        self.boost_ = value
        return self

    def bounds(self) -> list[tuple[str, Any]]:
        """Return the set bounds as ``(operator, value)`` pairs, in gte/gt/lte/lt order."""
        pairs = [("gte", self.gte_), ("gt", self.gt_), ("lte", self.lte_), ("lt", self.lt_)]
        return [(op, value) for op, value in pairs if value is not None]

    def build(self) -> dict[str, Any]:
        return self.to_dict()


class QueryStringQuery(Clause):
    """Builds a Lucene-syntax ``query_string`` query."""

    kind: ClassVar[str] = "query_string"

    def __init__(self, query: str) -> None:
        self.query = query
        self.default_field_: str | None = None
        self.fields_: list[str] = []
        self.default_operator_: str | None = None
        self.analyzer_: str | None = None
        self.fuzziness_: Any = None
        self.minimum_should_match_: Any = None
        self.boost_: float | None = None

    def default_field(self, name: str) -> QueryStringQuery:
        self.default_field_ = name
        return self

    def fields(self, *names: str) -> QueryStringQuery:
        self.fields_ = list(names)
        return self

    def default_operator(self, op: str) -> QueryStringQuery:
        self.default_operator_ = op
        return self

    def analyzer(self, name: str) -> QueryStringQuery:
        self.analyzer_ = name
        return self

    def fuzziness(self, value: Any) -> QueryStringQuery:
        self.fuzziness_ = value
        return self

    def minimum_should_match(self, value: Any) -> QueryStringQuery:
        self.minimum_should_match_ = value
        return self

    def boost(self, value: float) -> QueryStringQuery:
        self.boost_ = value
        return self

    def build(self) -> dict[str, Any]:
        return self.to_dict()


class SimpleQueryStringQuery(Clause):
    kind: ClassVar[str] = "simple_query_string"

    def __init__(self, query: str) -> None:
        self.query = query
        self.fields_: list[str] = []
        self.default_operator_: str | None = None
        self.analyzer_: str | None = None
        self.flags_: str | None = None
        self.boost_: float | None = None

    def fields(self, *names: str) -> SimpleQueryStringQuery:
        self.fields_ = list(names)
        return self

    def default_operator(self, op: str) -> SimpleQueryStringQuery:
        self.default_operator_ = op
        return self

    def analyzer(self, name: str) -> SimpleQueryStringQuery:
        self.analyzer_ = name
        return self

    def flags(self, value: str) -> SimpleQueryStringQuery:
        self.flags_ = value
        return self

    def boost(self, value: float) -> SimpleQueryStringQuery:
        self.boost_ = value
        return self

    def build(self) -> dict[str, Any]:
        return self.to_dict()


class FunctionScoreQuery(Clause):
    """Builds a ``function_score`` query around an inner clause."""

    kind: ClassVar[str] = "function_score"

    def __init__(self, query: Clause) -> None:
        self.query = query
        self.functions: list[dict[str, Any]] = []
        self.score_mode_: str | None = None
        self.boost_mode_: str | None = None
        self.max_boost_: float | None = None
        self.min_score_: float | None = None

    def add_function(self, fn: Mapping[str, Any]) -> FunctionScoreQuery:
        self.functions.append(dict(fn))
        return self

    def score_mode(self, mode: str) -> FunctionScoreQuery:
        self.score_mode_ = mode
        return self

    def boost_mode(self, mode: str) -> FunctionScoreQuery:
        self.boost_mode_ = mode
        return self

    def max_boost(self, value: float) -> FunctionScoreQuery:
        self.max_boost_ = value
        return self

    def min_score(self, value: float) -> FunctionScoreQuery:
        self.min_score_ = value
        return self

    def build(self) -> dict[str, Any]:
        return self.to_dict()


# ── Constructors ─────────────────────────────────────────────────────────────


def match_all() -> MatchAllClause:
    return MatchAllClause()


def match_none() -> MatchNoneClause:
    return MatchNoneClause()


def match(field_name: str, query: Any) -> MatchClause:
    return MatchClause(field_name, query)


def match_with_options(field_name: str, query: Any, options: Mapping[str, Any]) -> MatchClause:
    return MatchClause(field_name, query, dict(options))


def match_phrase(field_name: str, query: Any) -> MatchPhraseClause:
    return MatchPhraseClause(field_name, query)


def match_phrase_prefix(field_name: str, query: Any) -> MatchPhrasePrefixClause:
    return MatchPhrasePrefixClause(field_name, query)


def multi_match(query: str, *fields: str) -> MultiMatchQuery:
    return MultiMatchQuery(query, fields)


def term(field_name: str, value: Any) -> TermClause:
    return TermClause(field_name, value)


def terms(field_name: str, *values: Any) -> TermsClause:
    return TermsClause(field_name, list(values))


def exists(field_name: str) -> ExistsClause:
    return ExistsClause(field_name)


def prefix(field_name: str, value: str) -> PrefixClause:
    return PrefixClause(field_name, value)


def wildcard(field_name: str, value: str) -> WildcardClause:
    return WildcardClause(field_name, value)


def regexp(field_name: str, value: str) -> RegexpClause:
    return RegexpClause(field_name, value)


def fuzzy(field_name: str, value: str) -> FuzzyQuery:
    return FuzzyQuery(field_name, value)


def range_query(field_name: str) -> RangeQuery:
    return RangeQuery(field_name)


def ids(*values: str) -> IdsClause:
    return IdsClause(list(values))


def query_string(query: str) -> QueryStringQuery:
    return QueryStringQuery(query)


def simple_query_string(query: str) -> SimpleQueryStringQuery:
    return SimpleQueryStringQuery(query)


def nested(path: str, query: ClauseLike, score_mode: str | None = None) -> NestedClause:
    return NestedClause(path, as_clause(query), score_mode)


def has_child(child_type: str, query: ClauseLike) -> HasChildClause:
    return HasChildClause(child_type, as_clause(query))


def has_parent(parent_type: str, query: ClauseLike) -> HasParentClause:
    return HasParentClause(parent_type, as_clause(query))


def geo_distance(field_name: str, lat: float, lon: float, distance: str) -> GeoDistanceClause:
    return GeoDistanceClause(field_name, lat, lon, distance)


def geo_bounding_box(
    field_name: str,
    top_lat: float,
    top_lon: float,
    bottom_lat: float,
    bottom_lon: float,
) -> GeoBoundingBoxClause:
    return GeoBoundingBoxClause(field_name, top_lat, top_lon, bottom_lat, bottom_lon)


def more_like_this(fields: Sequence[str], like: str) -> MoreLikeThisClause:
    return MoreLikeThisClause(list(fields), like)


def script(source: str, params: Mapping[str, Any] | None = None) -> ScriptClause:
    return ScriptClause(source, dict(params) if params is not None else None)


def boosting(positive: ClauseLike, negative: ClauseLike, negative_boost: float) -> BoostingClause:
    return BoostingClause(as_clause(positive), as_clause(negative), negative_boost)


def constant_score(filter_clause: ClauseLike, boost: float) -> ConstantScoreClause:
    return ConstantScoreClause(as_clause(filter_clause), boost)


def function_score(query: ClauseLike) -> FunctionScoreQuery:
    return FunctionScoreQuery(as_clause(query))


def raw(body: Mapping[str, Any]) -> RawClause:
    return RawClause(dict(body))
