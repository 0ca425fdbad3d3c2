import pytest

from palomar.config import OpenSearchConfig, load_settings, make_backend_client


def test_settings_read_nested_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PALOMAR_OPENSEARCH__URL", "https://search.internal:9200")
    monkeypatch.setenv("PALOMAR_OPENSEARCH__POST_INDEX", "posts_v2")
    monkeypatch.setenv("PALOMAR_SEARCH__ALLOW_UNRESTRICTED", "true")

    settings = load_settings()

    assert settings.opensearch.url == "https://search.internal:9200"
    assert settings.opensearch.post_index == "posts_v2"
    assert settings.opensearch.profile_index == "palomar_profile"
    assert settings.search.allow_unrestricted is True


def test_unrestricted_search_disabled_by_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PALOMAR_SEARCH__ALLOW_UNRESTRICTED", raising=False)
    assert load_settings().search.allow_unrestricted is False


@pytest.mark.asyncio
async def test_make_backend_client_uses_host_auth_and_single_attempt() -> None:
    cfg = OpenSearchConfig(url="http://localhost:9200/", username="admin", password="secret")
    client = make_backend_client(cfg)
    try:
        transport = client.transport
        assert transport.hosts[0]["host"] == "localhost"
        assert transport.hosts[0]["port"] == 9200
        assert transport.kwargs["http_auth"] == ("admin", "secret")
        assert transport.max_retries == 0
        assert transport.retry_on_timeout is False
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_make_backend_client_without_credentials_sends_no_auth() -> None:
    client = make_backend_client(OpenSearchConfig(username="admin"))
    try:
        assert client.transport.kwargs["http_auth"] is None
    finally:
        await client.close()
