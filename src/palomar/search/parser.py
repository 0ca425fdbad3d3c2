"""Free-text query normalization.

A `QueryParser` turns the raw string a user typed into the text handed to the
scoring clause plus any filter clauses expressed inline. The compiler only
relies on that contract. `SyntaxQueryParser` understands:

- ``"quoted phrases"`` (kept verbatim)
- ``did:plc:...`` (restrict to that account)
- ``from:alice.example.com`` or ``from:@alice.example.com`` (resolved to a DID)
- ``#tag`` and ``lang:xx``

Handle resolution is best effort: a handle that does not resolve stays in the
text as a literal token.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List

from palomar.exceptions import IdentityError
from palomar.identity.resolver import HandleResolver, normalize_handle
from palomar.search.clauses import Clause, Term
from palomar.tracing import SearchContext


@dataclass(slots=True)
class ParsedQuery:
    """Normalized text for the scoring clause and the filters extracted from it."""

    text: str = ""
    filters: List[Clause] = field(default_factory=list)


class QueryParser(ABC):
    @abstractmethod
    async def parse(self, raw: str, ctx: SearchContext) -> ParsedQuery:
        """Normalize `raw`. Must accept the empty string."""
        raise NotImplementedError


def split_query(raw: str) -> List[str]:
    """Split on whitespace, keeping double-quoted phrases together."""
    parts: List[str] = []
    buf: List[str] = []
    quoted = False
    for ch in raw:
        if ch == '"':
            quoted = not quoted
        if ch.isspace() and not quoted:
            if buf:
                parts.append("".join(buf))
                buf = []
            continue
        buf.append(ch)
    if buf:
        parts.append("".join(buf))
    return parts


class SyntaxQueryParser(QueryParser):
    def __init__(self, resolver: HandleResolver) -> None:
        self._resolver = resolver

    async def parse(self, raw: str, ctx: SearchContext) -> ParsedQuery:
        keep: List[str] = []
        filters: List[Clause] = []
        for token in split_query(raw):
            if token.startswith('"'):
                keep.append(token)
            elif token.startswith("did:") and len(token) > 4:
                filters.append(Term("did", token))
            elif token.startswith("from:") and len(token) > 5:
                did = await self._resolve(token[5:], ctx)
                if did is None:
                    keep.append(token)
                else:
                    filters.append(Term("did", did))
            elif token.startswith("#") and len(token) > 1:
                filters.append(Term("tag", token[1:]))
            elif token.startswith("lang:") and len(token) > 5:
                filters.append(Term("lang", token[5:]))
            else:
                keep.append(token)

        text = " ".join(keep)
        if not text and filters:
            # filters alone should still match every document they allow
            text = "*"
        return ParsedQuery(text=text, filters=filters)

    async def _resolve(self, raw_handle: str, ctx: SearchContext) -> str | None:
        handle = normalize_handle(raw_handle)
        if handle is None:
            return None
        with ctx.tracer.start_as_current_span("resolveHandle", attributes={"handle": handle}):
            try:
                return await self._resolver.resolve_handle(handle)
            except IdentityError as e:
                ctx.log.warning("handle_resolution_failed", handle=handle, error=str(e))
                return None
