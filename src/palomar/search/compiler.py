"""Compile search requests into backend boolean query documents.

All functions here are pure: they take already-normalized text and filters
and return a `CompiledQuery`. Across every shape the scoring clause is the
only `must` entry, filters go to the non-scoring `filter` context, and
`should` only carries optional score boosts.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from palomar.search.clauses import (
    Bool,
    BoolPrefixMultiMatch,
    Clause,
    CompiledQuery,
    QueryString,
    Range,
    SimpleQueryString,
    SortKey,
    Term,
    Terms,
)
from palomar.search.parser import ParsedQuery

TYPEAHEAD_FIELDS = (
    # adding "handle^2" improves relevance but may be too expensive in prod
    "typeahead",
    "typeahead._2gram",
    "typeahead._3gram",
)

# Relevance only gates matches; profile ranking comes from the authority sort
PROFILE_BOOST = 0.5
PROFILE_BOOSTS = (Term("has_avatar", True), Term("has_banner", True))

SORT_BY_RECENCY = (SortKey("created_at", "desc"),)
SORT_BY_AUTHORITY = (SortKey("pagerank", "desc"),)


def _terms(field: str, values: Optional[Iterable[str]]) -> List[Clause]:
    vals = tuple(values or ())
    if not vals:
        return []
    return [Terms(field, vals)]


def compile_posts(
    parsed: ParsedQuery,
    *,
    offset: int,
    size: int,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    actors: Optional[Sequence[str]] = None,
    tags: Optional[Sequence[str]] = None,
    langs: Optional[Sequence[str]] = None,
    now: Optional[datetime] = None,
) -> CompiledQuery:
    """Posts matching the text, newest first.

    The created_at upper bound is always present: `until` when given, otherwise
    the compile time, so future-dated posts never show up.
    """
    upper = until if until is not None else (now or datetime.now(timezone.utc))
    filters: List[Clause] = list(parsed.filters)
    filters.append(Range("created_at", gte=since, lte=upper))
    filters += _terms("did", actors)
    filters += _terms("tag", tags)
    filters += _terms("lang", langs)

    return CompiledQuery(
        query=Bool(must=SimpleQueryString(parsed.text), filter=tuple(filters)),
        sort=SORT_BY_RECENCY,
        size=size,
        offset=offset,
    )


def compile_profiles(
    parsed: ParsedQuery,
    *,
    offset: int,
    size: int,
    following: Optional[Sequence[str]] = None,
) -> CompiledQuery:
    """Profiles matching the text, ranked by pagerank."""
    filters: List[Clause] = list(parsed.filters)
    filters += _terms("did", following)

    return CompiledQuery(
        query=Bool(
            must=SimpleQueryString(parsed.text),
            should=PROFILE_BOOSTS,
            minimum_should_match=0,
            filter=tuple(filters),
            boost=PROFILE_BOOST,
        ),
        sort=SORT_BY_AUTHORITY,
        size=size,
        offset=offset,
    )


def compile_profiles_typeahead(
    text: str,
    *,
    size: int,
    offset: Optional[int] = None,
    following: Optional[Sequence[str]] = None,
) -> CompiledQuery:
    """Prefix match over the typeahead field, ranked by pagerank.

    With `following` left as None this is the plain variant: a bare multi_match
    and no `from`. Passing a sequence (even empty) selects the structured
    variant, which wraps the match in a bool query.
    """
    match = BoolPrefixMultiMatch(text, fields=TYPEAHEAD_FIELDS)
    if following is None:
        return CompiledQuery(query=match, sort=SORT_BY_AUTHORITY, size=size, offset=offset)

    return CompiledQuery(
        query=Bool(must=match, filter=tuple(_terms("did", following))),
        sort=SORT_BY_AUTHORITY,
        size=size,
        offset=offset if offset is not None else 0,
    )


def compile_unrestricted(text: str) -> CompiledQuery:
    """Raw Lucene query_string search with backend-default paging and ordering.

    Exposes the backend's full query grammar. Never compile caller-supplied text
    with this unless the caller is trusted.
    """
    return CompiledQuery(query=QueryString(text))
