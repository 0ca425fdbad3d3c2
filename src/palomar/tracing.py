"""Per-call observability and deadline context.

Tracing and logging are side channels passed explicitly with each call via
`SearchContext`, so the compiler and executor can run without any global
observability setup. The default tracer comes from the OpenTelemetry API and
is a no-op until an SDK tracer provider is installed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import structlog
from opentelemetry import trace


@dataclass
class SearchContext:
    """Observers and deadline threaded through one compile+execute call."""

    tracer: trace.Tracer = field(default_factory=lambda: trace.get_tracer("palomar"))
    log: Any = field(default_factory=lambda: structlog.get_logger("palomar"))
    # Seconds allowed for the whole call (normalization and backend request);
    # None leaves timeouts to the clients
    timeout: Optional[float] = None
