"""Palomar MCP server entrypoint using FastMCP.

Exposes the post and actor search tools over a shared backend client.
Run with:
  - palomar-mcp
  - or: python -m palomar.mcp.server (ensure PYTHONPATH includes ./src)
"""
from __future__ import annotations

from typing import Optional

import structlog
from fastmcp import FastMCP
from opensearchpy import AsyncOpenSearch

from palomar.config import Settings, load_settings, make_backend_client
from palomar.identity.resolver import XrpcHandleResolver
from palomar.logging import configure_logging
from palomar.mcp.tools import register_search_tools
from palomar.search.parser import SyntaxQueryParser
from palomar.search.service import PalomarSearch

logger = structlog.get_logger(__name__)


class AppState:
    """Application state shared by MCP tools."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.backend: Optional[AsyncOpenSearch] = None
        self.search: Optional[PalomarSearch] = None

    def init_search(self) -> None:
        """Build the backend client and search service from configuration."""
        ocfg = self.settings.opensearch
        icfg = self.settings.identity
        self.backend = make_backend_client(ocfg)
        resolver = XrpcHandleResolver(service_url=icfg.service_url, timeout=icfg.timeout)
        self.search = PalomarSearch(
            self.backend,
            SyntaxQueryParser(resolver),
            post_index=ocfg.post_index,
            profile_index=ocfg.profile_index,
        )
        logger.info(
            "search_configured",
            backend=ocfg.url,
            post_index=ocfg.post_index,
            profile_index=ocfg.profile_index,
        )


# Global state and server instance
_state: Optional[AppState] = None
mcp = FastMCP("Palomar MCP Server")


# ----- Tools -----

@mcp.tool
def health() -> str:
    """Simple health check tool."""
    return "ok"


# ----- Entrypoint -----

def main() -> None:
    """Initialize state and run the MCP server."""
    global _state
    settings = load_settings()
    configure_logging(settings.app.log_level)
    _state = AppState(settings)
    _state.init_search()
    register_search_tools(mcp, get_state=lambda: _state)
    # Choose transport based on configuration: stdio (default), http, or sse
    transport = settings.app.transport
    if transport in ("http", "sse"):
        mcp.run(transport=transport, host=settings.app.host, port=settings.app.port)
    else:
        mcp.run()


if __name__ == "__main__":  # pragma: no cover
    main()
