"""Search operations: validate, normalize, compile, execute.

`PalomarSearch` exposes the post and profile shapes that are safe for
untrusted callers. `UnrestrictedSearch` accepts raw backend query syntax and is
deliberately a separate object that only exists when explicitly enabled.

`SearchContext.timeout` bounds the whole call: handle resolution during
normalization and the backend request share one deadline.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

from opensearchpy import AsyncOpenSearch

from palomar.exceptions import ConfigError, TransportError
from palomar.search import compiler
from palomar.search.clauses import CompiledQuery
from palomar.search.executor import execute
from palomar.search.models import ActorSearchQuery, PostSearchQuery, SearchResponse
from palomar.search.pagination import check_params
from palomar.search.parser import QueryParser
from palomar.tracing import SearchContext

Compile = Callable[[], Awaitable[CompiledQuery]]


async def _run(
    client: AsyncOpenSearch,
    index: str,
    build: Compile,
    ctx: SearchContext,
) -> SearchResponse:
    """Build and execute a query within the context deadline."""

    async def pipeline() -> SearchResponse:
        query = await build()
        return await execute(client, index, query, ctx)

    if ctx.timeout is None:
        return await pipeline()
    try:
        return await asyncio.wait_for(pipeline(), ctx.timeout)
    except asyncio.TimeoutError as e:
        raise TransportError(f"search timed out after {ctx.timeout}s") from e


class PalomarSearch:
    """Post and profile search over a caller-owned backend client.

    Parameters
    ----------
    client: AsyncOpenSearch
        Backend client, shared across concurrent calls and never closed here.
    parser: QueryParser
        Free-text normalizer applied to every non-typeahead query.
    post_index: str
        Index holding post documents.
    profile_index: str
        Index holding profile documents.
    """

    def __init__(
        self,
        client: AsyncOpenSearch,
        parser: QueryParser,
        *,
        post_index: str,
        profile_index: str,
    ) -> None:
        self._client = client
        self._parser = parser
        self.post_index = post_index
        self.profile_index = profile_index

    async def _search(
        self,
        span_name: str,
        index: str,
        attributes: Dict[str, Any],
        offset: int,
        size: int,
        build: Compile,
        ctx: SearchContext,
    ) -> SearchResponse:
        attrs = {"index": index, "offset": offset, "size": size, **attributes}
        with ctx.tracer.start_as_current_span(span_name, attributes=attrs):
            check_params(offset, size)
            return await _run(self._client, index, build, ctx)

    async def search_posts(
        self, q: str, offset: int, size: int, ctx: Optional[SearchContext] = None
    ) -> SearchResponse:
        ctx = ctx or SearchContext()

        async def build() -> CompiledQuery:
            parsed = await self._parser.parse(q, ctx)
            return compiler.compile_posts(parsed, offset=offset, size=size)

        return await self._search(
            "DoSearchPosts", self.post_index, {"query": q}, offset, size, build, ctx
        )

    async def structured_search_posts(
        self, q: PostSearchQuery, ctx: Optional[SearchContext] = None
    ) -> SearchResponse:
        ctx = ctx or SearchContext()

        async def build() -> CompiledQuery:
            parsed = await self._parser.parse(q.query, ctx)
            return compiler.compile_posts(
                parsed,
                offset=q.offset,
                size=q.size,
                since=q.since,
                until=q.until,
                actors=q.actors,
                tags=q.tags,
                langs=q.langs,
            )

        attrs = {
            "query": q.query,
            "actors": len(q.actors),
            "tags": len(q.tags),
            "langs": len(q.langs),
        }
        return await self._search(
            "DoStructuredSearchPosts", self.post_index, attrs, q.offset, q.size, build, ctx
        )

    async def search_profiles(
        self, q: str, offset: int, size: int, ctx: Optional[SearchContext] = None
    ) -> SearchResponse:
        ctx = ctx or SearchContext()

        async def build() -> CompiledQuery:
            parsed = await self._parser.parse(q, ctx)
            return compiler.compile_profiles(parsed, offset=offset, size=size)

        return await self._search(
            "DoSearchProfiles", self.profile_index, {"query": q}, offset, size, build, ctx
        )

    async def structured_search_profiles(
        self, q: ActorSearchQuery, ctx: Optional[SearchContext] = None
    ) -> SearchResponse:
        ctx = ctx or SearchContext()

        async def build() -> CompiledQuery:
            parsed = await self._parser.parse(q.query, ctx)
            return compiler.compile_profiles(
                parsed, offset=q.offset, size=q.size, following=q.following
            )

        attrs = {"query": q.query, "following": len(q.following)}
        return await self._search(
            "DoStructuredSearchProfiles", self.profile_index, attrs, q.offset, q.size, build, ctx
        )

    async def search_profiles_typeahead(
        self, q: str, size: int, ctx: Optional[SearchContext] = None
    ) -> SearchResponse:
        ctx = ctx or SearchContext()

        # typeahead input is matched as typed; no inline filter syntax
        async def build() -> CompiledQuery:
            return compiler.compile_profiles_typeahead(q, size=size)

        return await self._search(
            "DoSearchProfilesTypeahead", self.profile_index, {"query": q}, 0, size, build, ctx
        )

    async def structured_search_profiles_typeahead(
        self, q: ActorSearchQuery, ctx: Optional[SearchContext] = None
    ) -> SearchResponse:
        ctx = ctx or SearchContext()

        async def build() -> CompiledQuery:
            return compiler.compile_profiles_typeahead(
                q.query, size=q.size, offset=q.offset, following=q.following
            )

        attrs = {"query": q.query, "following": len(q.following)}
        return await self._search(
            "DoStructuredSearchProfilesTypeahead",
            self.profile_index,
            attrs,
            q.offset,
            q.size,
            build,
            ctx,
        )

    async def search_actors(
        self, q: ActorSearchQuery, ctx: Optional[SearchContext] = None
    ) -> SearchResponse:
        """Dispatch a structured profile search on its `typeahead` flag."""
        if q.typeahead:
            return await self.structured_search_profiles_typeahead(q, ctx)
        return await self.structured_search_profiles(q, ctx)


class UnrestrictedSearch:
    """Full Lucene query_string search. Not safe to expose publicly.

    Raw query syntax allows expensive or probing queries against the backend,
    so construction fails unless `enabled` is explicitly true (normally
    `settings.search.allow_unrestricted`).
    """

    def __init__(self, client: AsyncOpenSearch, index: str, *, enabled: bool) -> None:
        if not enabled:
            raise ConfigError(
                "unrestricted search is disabled. Set PALOMAR_SEARCH__ALLOW_UNRESTRICTED=true "
                "only for trusted internal use."
            )
        self._client = client
        self.index = index

    async def search(self, q: str, ctx: Optional[SearchContext] = None) -> SearchResponse:
        ctx = ctx or SearchContext()

        async def build() -> CompiledQuery:
            return compiler.compile_unrestricted(q)

        with ctx.tracer.start_as_current_span(
            "DoSearchGeneric", attributes={"index": self.index, "query": q}
        ):
            return await _run(self._client, self.index, build, ctx)
