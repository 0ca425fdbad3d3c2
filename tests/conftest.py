import asyncio
import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from opensearchpy import AsyncOpenSearch, Connection
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

Responder = Callable[[Dict[str, Any]], Any]


class FakeConnection(Connection):
    """Answers backend requests from a test responder instead of the network.

    The responder receives ``{"method", "url", "body"}`` and returns
    ``(status, payload)``; it may be a coroutine function and may raise.
    """

    responder: Responder
    requests: List[Dict[str, Any]]

    async def perform_request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
        timeout: Optional[float] = None,
        ignore: Any = (),
        headers: Optional[Dict[str, str]] = None,
    ) -> Tuple[int, Dict[str, str], str]:
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        request = {"method": method, "url": url, "body": json.loads(body) if body else None}
        self.requests.append(request)

        result = self.responder(request)
        if asyncio.iscoroutine(result):
            result = await result
        status, payload = result
        raw = payload if isinstance(payload, str) else json.dumps(payload)
        if not 200 <= status < 300:
            self._raise_error(status, raw, "application/json")
        return status, {"content-type": "application/json"}, raw

    async def close(self) -> None:
        return None


def make_fake_client(responder: Responder) -> Tuple[AsyncOpenSearch, List[Dict[str, Any]]]:
    requests: List[Dict[str, Any]] = []
    conn_class = type(
        "BoundFakeConnection",
        (FakeConnection,),
        {"responder": staticmethod(responder), "requests": requests},
    )
    client = AsyncOpenSearch(
        hosts=[{"host": "search.test", "port": 9200}],
        connection_class=conn_class,
        max_retries=0,
        retry_on_timeout=False,
    )
    return client, requests


@pytest.fixture
def fake_backend() -> Callable[[Responder], Tuple[AsyncOpenSearch, List[Dict[str, Any]]]]:
    return make_fake_client


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def tracer(span_exporter: InMemorySpanExporter) -> Any:
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider.get_tracer("palomar-tests")
