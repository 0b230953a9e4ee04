"""Meilisearch query translation.

Meilisearch has no boolean query language: a search is one free-text
``q`` string plus a SQL-like ``filter`` expression. The translator
decomposes a ``QueryBuilder`` into those two artifacts:

  - ``q`` is the first ``match`` / ``multi_match`` / ``query_string`` found
    in ``must``, then ``should``
  - ``filter`` joins ``term``, ``terms``, ``range``, ``exists`` and ``ids``
    clauses from ``filter`` and ``must`` with ``AND``; ``must_not`` clauses
    become ``NOT (...)``; nested builders become parenthesized groups

Example::

    >>> q = Query().must(match("name", "laptop")).filter(range_query("price").lte(1000))
    >>> MeilisearchTranslator().translate(q)
    MeilisearchQuery(q='laptop', filter='price <= 1000')
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from searchbridge.adapters.base.exceptions import InvalidQueryError
from searchbridge.query.builder import QueryBuilder
from searchbridge.query.clauses import (
    Clause,
    ClauseVisitor,
    ExistsClause,
    IdsClause,
    MatchClause,
    MultiMatchQuery,
    QueryStringQuery,
    RangeQuery,
    TermClause,
    TermsClause,
)

logger = logging.getLogger(__name__)

TEXT_KINDS = frozenset({"match", "multi_match", "query_string"})

# Clauses that place no restriction on the result set.
_NEUTRAL_KINDS = frozenset({"match_all"})

_RANGE_OPERATORS = {"gte": ">=", "gt": ">", "lte": "<=", "lt": "<"}


@dataclass(frozen=True)
class MeilisearchQuery:
    """The two halves of a translated query."""

    q: str = ""
    filter: str | None = None


def format_value(value: Any) -> str:
    """Render a value as a filter-expression literal; strings are quoted."""
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return str(value)
    return json.dumps(value)


def _is_wrapped(expression: str) -> bool:
    """Whether the whole expression sits inside one pair of parentheses."""
    if not (expression.startswith("(") and expression.endswith(")")):
        return False
    depth = 0
    quoted = escaped = False
    for position, char in enumerate(expression):
        if quoted:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                quoted = False
            continue
        if char == '"':
            quoted = True
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0 and position < len(expression) - 1:
                return False
    return True


def _group(expression: str) -> str:
    """Parenthesize compound expressions so they compose safely."""
    if _is_wrapped(expression):
        return expression
    if " AND " in expression or " OR " in expression:
        return f"({expression})"
    return expression


def _negate(expression: str) -> str:
    grouped = _group(expression)
    return f"NOT {grouped}" if _is_wrapped(grouped) else f"NOT ({grouped})"


class _TextExtractor(ClauseVisitor[str | None]):
    def visit_match(self, clause: MatchClause) -> str | None:
        return clause.query if isinstance(clause.query, str) else None

    def visit_multi_match(self, clause: MultiMatchQuery) -> str | None:
        return clause.query

    def visit_query_string(self, clause: QueryStringQuery) -> str | None:
        return clause.query

    def generic_visit(self, clause: Clause) -> str | None:
        return None


class _FilterCompiler(ClauseVisitor[str | None]):
    """Compiles one clause to a filter expression.

    Returns ``None`` for clauses that add no restriction. Untranslatable
    clauses raise in strict mode and are dropped with a warning otherwise.
    """

    def __init__(self, strict: bool) -> None:
        self.strict = strict

    def visit_term(self, clause: TermClause) -> str:
        if clause.value is None:
            return f"{clause.field} IS NULL"
        return f"{clause.field} = {format_value(clause.value)}"

    def visit_terms(self, clause: TermsClause) -> str | None:
        if not clause.values:
            return self.unsupported(clause, "empty terms list")
        return "(" + " OR ".join(f"{clause.field} = {format_value(v)}" for v in clause.values) + ")"

    def visit_range(self, clause: RangeQuery) -> str | None:
        parts = [f"{clause.field} {_RANGE_OPERATORS[op]} {format_value(v)}" for op, v in clause.bounds()]
        if not parts:
            return None
        return " AND ".join(parts)

    def visit_exists(self, clause: ExistsClause) -> str:
        return f"{clause.field} EXISTS"

    def visit_ids(self, clause: IdsClause) -> str | None:
        if not clause.values:
            return self.unsupported(clause, "empty ids list")
        return "id IN [" + ", ".join(format_value(v) for v in clause.values) + "]"

    def visit_match_all(self, clause: Clause) -> None:
        return None

    def visit_bool(self, clause: QueryBuilder) -> str | None:
        conjuncts = [expr for expr in map(self.visit, clause.filter_clauses + clause.must_clauses) if expr]

        should = [expr for expr in map(self.visit, clause.should_clauses) if expr]
        if should:
            conjuncts.append(_group(" OR ".join(_group(expr) for expr in should)))

        for negated in clause.must_not_clauses:
            expr = self.visit(negated)
            if expr:
                conjuncts.append(_negate(expr))

        if not conjuncts:
            return None
        return " AND ".join(conjuncts)

    def generic_visit(self, clause: Clause) -> None:
        return self.unsupported(clause)

    def unsupported(self, clause: Clause, detail: str | None = None) -> None:
        message = f"Meilisearch cannot translate '{clause.kind}' clauses into a filter"
        if detail:
            message = f"{message} ({detail})"
        if self.strict:
            raise InvalidQueryError(f"search: invalid query: {message}")
        logger.warning("%s; clause dropped", message)
        return None


class MeilisearchTranslator:
    """Translates a ``QueryBuilder`` into a :class:`MeilisearchQuery`.

    Args:
        strict: Raise ``InvalidQueryError`` on clauses that have no filter
            equivalent instead of dropping them.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict
        self._text = _TextExtractor()
        self._filters = _FilterCompiler(strict)

    def translate(self, query: QueryBuilder) -> MeilisearchQuery:
        return MeilisearchQuery(q=self.extract_text(query), filter=self.compile_filter(query))

    def extract_text(self, query: QueryBuilder) -> str:
        """Return the first free-text term in ``must``, then ``should``."""
        for clause in query.must_clauses + query.should_clauses:
            text = self._text.visit(clause)
            if text:
                return text
        return ""

    def compile_filter(self, query: QueryBuilder) -> str | None:
        """Compile the restricting clauses to one filter expression, or ``None``."""
        expressions: list[str] = []

        for clause in query.filter_clauses:
            expr = self._filters.visit(clause)
            if expr:
                expressions.append(expr)

        for clause in query.must_clauses:
            if clause.kind in TEXT_KINDS:
                continue
            expr = self._filters.visit(clause)
            if expr:
                expressions.append(expr)

        for clause in query.must_not_clauses:
            if clause.kind in _NEUTRAL_KINDS:
                self._filters.unsupported(clause, "a negated match_all matches nothing")
                continue
            expr = self._filters.visit(clause)
            if expr:
                expressions.append(_negate(expr))

        for clause in query.should_clauses:
            if clause.kind not in TEXT_KINDS:
                self._filters.unsupported(clause, "should clauses only contribute search text")

        if not expressions:
            return None
        return " AND ".join(expressions)
