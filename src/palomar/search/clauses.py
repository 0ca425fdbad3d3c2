"""Typed building blocks for backend query documents.

Every clause kind the compiler can emit is a small frozen dataclass with a
`to_dict()` method producing the backend's JSON-compatible form. Building
queries from these instead of ad-hoc nested dicts keeps the set of possible
documents closed: anything a `CompiledQuery` can hold is serializable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple, Union

# Operator syntax accepted by the simple_query_string scoring clause
SIMPLE_QUERY_FLAGS = "AND|NOT|OR|PHRASE|PRECEDENCE|WHITESPACE"

TermValue = Union[str, int, float, bool]


def format_datetime(value: datetime) -> str:
    """Render a datetime in the AT Protocol layout (UTC, millisecond precision, "Z").

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


@dataclass(frozen=True, slots=True)
class SimpleQueryString:
    """Lenient user-facing full-text match."""

    query: str
    fields: Tuple[str, ...] = ("everything",)
    flags: str = SIMPLE_QUERY_FLAGS
    default_operator: str = "and"
    lenient: bool = True
    analyze_wildcard: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "simple_query_string": {
                "query": self.query,
                "fields": list(self.fields),
                "flags": self.flags,
                "default_operator": self.default_operator,
                "lenient": self.lenient,
                "analyze_wildcard": self.analyze_wildcard,
            }
        }


@dataclass(frozen=True, slots=True)
class QueryString:
    """Full Lucene query_string grammar. Only for trusted callers."""

    query: str
    default_field: str = "everything"
    default_operator: str = "and"
    analyze_wildcard: bool = True
    allow_leading_wildcard: bool = False
    lenient: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query_string": {
                "query": self.query,
                "default_operator": self.default_operator,
                "analyze_wildcard": self.analyze_wildcard,
                "allow_leading_wildcard": self.allow_leading_wildcard,
                "lenient": self.lenient,
                "default_field": self.default_field,
            }
        }


@dataclass(frozen=True, slots=True)
class BoolPrefixMultiMatch:
    """multi_match of type bool_prefix: last token matches as a prefix."""

    query: str
    fields: Tuple[str, ...]
    operator: str = "and"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "multi_match": {
                "query": self.query,
                "type": "bool_prefix",
                "operator": self.operator,
                "fields": list(self.fields),
            }
        }


@dataclass(frozen=True, slots=True)
class Term:
    field: str
    value: TermValue

    def to_dict(self) -> Dict[str, Any]:
        return {"term": {self.field: self.value}}


@dataclass(frozen=True, slots=True)
class Terms:
    """Non-scoring set-membership filter."""

    field: str
    values: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"terms": {self.field: list(self.values)}}


@dataclass(frozen=True, slots=True)
class Range:
    """Inclusive range over a date field. Unset bounds are omitted."""

    field: str
    gte: Optional[datetime] = None
    lte: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        bounds: Dict[str, str] = {}
        if self.gte is not None:
            bounds["gte"] = format_datetime(self.gte)
        if self.lte is not None:
            bounds["lte"] = format_datetime(self.lte)
        return {"range": {self.field: bounds}}


@dataclass(frozen=True, slots=True)
class Bool:
    """Boolean combinator: one scoring `must`, optional `should` boosts, AND-ed filters."""

    must: "Clause"
    filter: Tuple["Clause", ...] = ()
    should: Tuple["Clause", ...] = ()
    minimum_should_match: Optional[int] = None
    boost: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "must": self.must.to_dict(),
            "filter": [f.to_dict() for f in self.filter],
        }
        if self.should:
            body["should"] = [s.to_dict() for s in self.should]
        if self.minimum_should_match is not None:
            body["minimum_should_match"] = self.minimum_should_match
        if self.boost is not None:
            body["boost"] = self.boost
        return {"bool": body}


Clause = Union[SimpleQueryString, QueryString, BoolPrefixMultiMatch, Term, Terms, Range, Bool]


@dataclass(frozen=True, slots=True)
class SortKey:
    field: str
    order: str = "desc"

    def to_dict(self) -> Dict[str, Any]:
        return {self.field: {"order": self.order}}


@dataclass(frozen=True, slots=True)
class CompiledQuery:
    """A complete search request body. Unset paging/sort members are left to backend defaults."""

    query: Clause
    sort: Tuple[SortKey, ...] = field(default_factory=tuple)
    size: Optional[int] = None
    offset: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {"query": self.query.to_dict()}
        if self.sort:
            doc["sort"] = [s.to_dict() for s in self.sort]
        if self.size is not None:
            doc["size"] = self.size
        if self.offset is not None:
            doc["from"] = self.offset
        return doc
