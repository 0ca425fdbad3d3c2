"""Handle-to-DID resolution used by the free-text query parser.

`HandleResolver` is the capability the parser depends on; `XrpcHandleResolver`
implements it against any XRPC host exposing
`com.atproto.identity.resolveHandle`, via httpx.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from palomar.exceptions import IdentityError

_HANDLE_RE = re.compile(
    r"^([a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+"
    r"[a-zA-Z]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?$"
)


def normalize_handle(raw: str) -> Optional[str]:
    """Return the lowercased handle, or None if `raw` is not valid handle syntax.

    A single leading "@" is accepted and stripped.
    """
    h = raw[1:] if raw.startswith("@") else raw
    if not h or len(h) > 253 or not _HANDLE_RE.match(h):
        return None
    return h.lower()


class HandleResolver(ABC):
    """Resolves a handle (e.g. "alice.example.com") to a stable DID."""

    @abstractmethod
    async def resolve_handle(self, handle: str) -> str:
        """Return the DID for `handle`; raise `IdentityError` on any failure."""
        raise NotImplementedError


class XrpcHandleResolver(HandleResolver):
    def __init__(self, *, service_url: str, timeout: float = 5.0) -> None:
        self.service_url = service_url.rstrip("/")
        self.timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.service_url,
            timeout=self.timeout,
            headers={"Accept": "application/json"},
        )

    async def resolve_handle(self, handle: str) -> str:
        try:
            async with self._client() as client:
                resp = await client.get(
                    "/xrpc/com.atproto.identity.resolveHandle", params={"handle": handle}
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            raise IdentityError(
                f"resolving handle {handle!r}: status {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise IdentityError(f"resolving handle {handle!r}: {e}") from e

        did = data.get("did") if isinstance(data, dict) else None
        if not isinstance(did, str) or not did.startswith("did:"):
            raise IdentityError(f"resolving handle {handle!r}: no DID in response")
        return did
