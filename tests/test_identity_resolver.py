from typing import Any

import httpx
import pytest

from palomar.exceptions import IdentityError
from palomar.identity.resolver import XrpcHandleResolver, normalize_handle

# ---------- Helpers ----------


def patch_client_with_responder(resolver: XrpcHandleResolver, responder: Any) -> None:
    def _client() -> httpx.AsyncClient:  # type: ignore[override]
        return httpx.AsyncClient(
            transport=httpx.MockTransport(responder), base_url=resolver.service_url
        )

    setattr(resolver, "_client", _client)


def make_resolver() -> XrpcHandleResolver:
    return XrpcHandleResolver(service_url="https://xrpc.example.com/")


# ---------- normalize_handle ----------


def test_normalize_handle_strips_at_and_lowercases() -> None:
    assert normalize_handle("@Alice.Example.COM") == "alice.example.com"


@pytest.mark.parametrize("raw", ["", "@", "alice", "bad_char.com", "a..b.com", "x." + "a" * 260])
def test_normalize_handle_rejects_invalid(raw: str) -> None:
    assert normalize_handle(raw) is None


# ---------- XrpcHandleResolver ----------


@pytest.mark.asyncio
async def test_resolve_handle_returns_did() -> None:
    def responder(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/xrpc/com.atproto.identity.resolveHandle"
        assert request.url.params["handle"] == "alice.example.com"
        return httpx.Response(200, json={"did": "did:plc:alice"})

    resolver = make_resolver()
    patch_client_with_responder(resolver, responder)

    assert await resolver.resolve_handle("alice.example.com") == "did:plc:alice"


@pytest.mark.asyncio
async def test_resolve_handle_not_found_raises_identity_error() -> None:
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "InvalidRequest", "message": "Unable to resolve handle"})

    resolver = make_resolver()
    patch_client_with_responder(resolver, responder)

    with pytest.raises(IdentityError):
        await resolver.resolve_handle("nobody.example.com")


@pytest.mark.asyncio
async def test_resolve_handle_network_failure_raises_identity_error() -> None:
    def responder(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    resolver = make_resolver()
    patch_client_with_responder(resolver, responder)

    with pytest.raises(IdentityError):
        await resolver.resolve_handle("alice.example.com")


@pytest.mark.asyncio
async def test_resolve_handle_missing_did_raises_identity_error() -> None:
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"handle": "alice.example.com"})

    resolver = make_resolver()
    patch_client_with_responder(resolver, responder)

    with pytest.raises(IdentityError):
        await resolver.resolve_handle("alice.example.com")
