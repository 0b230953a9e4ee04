"""Query builder — Boolean composition of clauses.

Usage::

    from searchbridge.query import Query, match, range_query

    query = Query().must(match("name", "laptop")).filter(range_query("price").lte(1000))
    query.build()
    # {"query": {"bool": {"must": [...], "filter": [...]}}}

Compilation rules:
  - no clauses at all compiles to ``match_all``
  - a single ``must`` clause and nothing else compiles to that clause
  - anything else compiles to a ``bool`` query

A builder is frozen once compiled; use :meth:`QueryBuilder.copy` to derive
a new one.
"""

from __future__ import annotations

import json
from typing import Any, ClassVar

from searchbridge.query.clauses import Clause, ClauseLike, as_clause
from searchbridge.query.compiler import DictCompiler


class QueryBuilder(Clause):
    """Accumulates ``must`` / ``should`` / ``must_not`` / ``filter`` clauses.

    A builder is itself a clause, so it can be nested inside another
    builder or inside compound clauses to form sub-``bool`` queries.
    """

    kind: ClassVar[str] = "bool"

    def __init__(self) -> None:
        self._must: list[Clause] = []
        self._should: list[Clause] = []
        self._must_not: list[Clause] = []
        self._filter: list[Clause] = []
        self.minimum_should_match_: Any = None
        self.boost_: float | None = None
        self._compiled = False

    # ── Fluent API ───────────────────────────────────────────────────────

    def must(self, *clauses: ClauseLike) -> QueryBuilder:
        """Add clauses that must match (AND)."""
        self._extend(self._must, clauses)
        return self

    def should(self, *clauses: ClauseLike) -> QueryBuilder:
        """Add clauses that should match (OR)."""
        self._extend(self._should, clauses)
        return self

    def must_not(self, *clauses: ClauseLike) -> QueryBuilder:
        """Add clauses that must not match (NOT)."""
        self._extend(self._must_not, clauses)
        return self

    def filter(self, *clauses: ClauseLike) -> QueryBuilder:
        """Add non-scoring clauses that must match."""
        self._extend(self._filter, clauses)
        return self

    def minimum_should_match(self, value: Any) -> QueryBuilder:
        self._check_mutable()
        self.minimum_should_match_ = value
        return self

    def boost(self, value: float) -> QueryBuilder:
        self._check_mutable()
        self.boost_ = value
        return self

    # ── Inspection ───────────────────────────────────────────────────────

    @property
    def must_clauses(self) -> tuple[Clause, ...]:
        return tuple(self._must)

    @property
    def should_clauses(self) -> tuple[Clause, ...]:
        return tuple(self._should)

    @property
    def must_not_clauses(self) -> tuple[Clause, ...]:
        return tuple(self._must_not)

    @property
    def filter_clauses(self) -> tuple[Clause, ...]:
        return tuple(self._filter)

    @property
    def compiled(self) -> bool:
        return self._compiled

    def is_empty(self) -> bool:
        return not (self._must or self._should or self._must_not or self._filter)

    # ── Compilation ──────────────────────────────────────────────────────

    def build(self) -> dict[str, Any]:
        """Compile to ``{"query": <query>}``."""
        return {"query": self.build_query()}

    def build_query(self) -> dict[str, Any]:
        """Compile to the bare query, without the ``{"query": ...}`` envelope."""
        self._compiled = True
        return DictCompiler().visit(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps({"query": DictCompiler().visit(self)}, indent=indent)

    def copy(self) -> QueryBuilder:
        """Return an unfrozen builder with the same clauses."""
        clone = QueryBuilder()
        clone._must = list(self._must)
        clone._should = list(self._should)
        clone._must_not = list(self._must_not)
        clone._filter = list(self._filter)
        clone.minimum_should_match_ = self.minimum_should_match_
        clone.boost_ = self.boost_
        return clone

    def __str__(self) -> str:
        return self.to_json()

    # ── Internals ────────────────────────────────────────────────────────

    def _extend(self, target: list[Clause], clauses: tuple[ClauseLike, ...]) -> None:
        self._check_mutable()
        target.extend(as_clause(clause) for clause in clauses)

    def _check_mutable(self) -> None:
        if self._compiled:
            raise RuntimeError("QueryBuilder is frozen after compilation; use copy() to derive a new query")


Query = QueryBuilder


def bool_query() -> QueryBuilder:
    """Start a nested ``bool`` query."""
    return QueryBuilder()


def format_query(query: dict[str, Any]) -> str:
    """Pretty-print a compiled query dict."""
    try:
        return json.dumps(query, indent=2)
    except (TypeError, ValueError) as e:
        return f"error: {e}"
