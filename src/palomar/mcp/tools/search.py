"""Search tools for FastMCP.

Expose the structured post and actor searches. Unrestricted query_string search
is intentionally not registered here.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from fastmcp import FastMCP

from palomar.search.models import ActorSearchQuery, PostSearchQuery, SearchResponse
from palomar.search.service import PalomarSearch
from palomar.tracing import SearchContext


def _serialize_response(resp: SearchResponse) -> Dict[str, Any]:
    return resp.model_dump(by_alias=True, exclude_none=True)


def register_search_tools(mcp: FastMCP, get_state: Callable[[], Any]) -> None:
    """Register search tools on the given FastMCP instance.

    Reads the `PalomarSearch` instance from state.search and the per-request
    deadline from state.settings.search.request_timeout.
    """

    def _get_search(state_obj: Any) -> PalomarSearch:
        search = getattr(state_obj, "search", None)
        if search is None:
            raise RuntimeError("Search backend is not configured. Set PALOMAR_OPENSEARCH__URL.")
        return search

    def _timeout(state_obj: Any) -> Optional[float]:
        settings = getattr(state_obj, "settings", None)
        scfg = getattr(settings, "search", None)
        return getattr(scfg, "request_timeout", None)

    @mcp.tool
    async def search_posts(
        query: str,
        *,
        offset: int = 0,
        size: int = 25,
        since: Optional[str] = None,
        until: Optional[str] = None,
        actors: Optional[List[str]] = None,
        tags: Optional[List[str]] = None,
        langs: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """Search posts, newest first.

        Parameters
        ----------
        query: str
            Free text. Supports "quoted phrases", from:<handle>, did:<did>, #tag and lang:<code>.
        offset: int
            Number of hits to skip (offset + size must not exceed 10000).
        size: int
            Number of hits to return (max 250).
        since: str | None
            Inclusive lower bound on creation time (RFC 3339).
        until: str | None
            Inclusive upper bound on creation time (RFC 3339). Defaults to now.
        actors, tags, langs: list[str] | None
            Restrict to posts by these DIDs, with these tags, or in these languages.
        """
        state = get_state()
        q = PostSearchQuery.model_validate(
            {
                "query": query,
                "offset": offset,
                "size": size,
                "from": since,
                "to": until,
                "actors": actors,
                "tags": tags,
                "langs": langs,
            }
        )
        ctx = SearchContext(timeout=_timeout(state))
        resp = await _get_search(state).structured_search_posts(q, ctx)
        return _serialize_response(resp)

    @mcp.tool
    async def search_actors(
        query: str,
        *,
        offset: int = 0,
        size: int = 25,
        following: Optional[List[str]] = None,
        typeahead: bool = False,
    ) -> Dict[str, Any]:
        """Search profiles, ranked by pagerank.

        Parameters
        ----------
        query: str
            Free text, or a name prefix when `typeahead` is true.
        following: list[str] | None
            Restrict to these DIDs (e.g. the accounts the viewer follows).
        typeahead: bool
            Use prefix matching for as-you-type suggestions.
        """
        state = get_state()
        q = ActorSearchQuery(
            query=query, offset=offset, size=size, following=following or [], typeahead=typeahead
        )
        ctx = SearchContext(timeout=_timeout(state))
        resp = await _get_search(state).search_actors(q, ctx)
        return _serialize_response(resp)
