"""Send compiled queries to the search backend and decode the response.

The backend client is an `opensearchpy.AsyncOpenSearch` owned by the caller.
This module never creates, mutates or closes it. Each call is a single
attempt; retry policy belongs to the caller (see `make_backend_client`, which
disables the client's own retries).
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from opensearchpy import AsyncOpenSearch
from opensearchpy import exceptions as os_exc
from pydantic import ValidationError

from palomar.exceptions import BackendError, DecodeError, SerializationError, TransportError
from palomar.search.clauses import CompiledQuery
from palomar.search.models import SearchResponse
from palomar.tracing import SearchContext


def serialize_query(query: CompiledQuery) -> str:
    try:
        return json.dumps(query.to_dict(), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"failed to serialize query: {e}") from e


def _error_body(info: Any) -> str:
    if isinstance(info, (dict, list)):
        return json.dumps(info)
    return "" if info is None else str(info)


async def execute(
    client: AsyncOpenSearch,
    index: str,
    query: CompiledQuery,
    ctx: SearchContext,
) -> SearchResponse:
    """Run `query` against `index` and return the decoded response.

    Task cancellation (`asyncio.CancelledError`) is not converted: it propagates
    unchanged, as asyncio expects. Callers wanting a transport-style error on
    expiry should set `ctx.timeout` instead of cancelling.

    Raises
    ------
    SerializationError
        The compiled document could not be encoded.
    TransportError
        The backend could not be reached, or `ctx.timeout` expired first.
    BackendError
        The backend answered with a non-2xx status.
    DecodeError
        A successful response body was not a valid search response.
    """
    with ctx.tracer.start_as_current_span("doSearch", attributes={"index": index}) as span:
        body = serialize_query(query)
        span.set_attributes({"query": body, "query_bytes": len(body)})
        ctx.log.info("sending_query", index=index, query=body)

        # a str body is sent as-is by the client's serializer
        request = client.search(index=index, body=body)
        try:
            if ctx.timeout is not None:
                data = await asyncio.wait_for(request, ctx.timeout)
            else:
                data = await request
        except asyncio.TimeoutError as e:
            raise TransportError(f"search query timed out after {ctx.timeout}s") from e
        except os_exc.ConnectionError as e:
            raise TransportError(f"search query error: {e}") from e
        except os_exc.SerializationError as e:
            raise DecodeError(f"decoding search response: {e}") from e
        except os_exc.TransportError as e:
            raw = _error_body(e.info)
            status = e.status_code if isinstance(e.status_code, int) else 0
            ctx.log.warning("search_query_error", resp=raw, status_code=status)
            span.set_attribute("status_code", status)
            raise BackendError(status, raw) from e

        try:
            out = SearchResponse.model_validate(data)
        except ValidationError as e:
            raise DecodeError(f"decoding search response: {e}") from e

        span.set_attributes(
            {"took": out.took, "hits": len(out.hits.hits), "timed_out": out.timed_out}
        )
        return out
