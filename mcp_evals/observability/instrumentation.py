"""Tool-call instrumentation: call/error counters, latency histogram and spans.

The wrapper is optional. A session constructed without it calls tools through
exactly the same path, only without the metrics and spans.
"""

from __future__ import annotations

import dataclasses
import functools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

from opentelemetry import metrics, trace
from opentelemetry.metrics import Meter
from opentelemetry.trace import Status, StatusCode, Tracer

logger = logging.getLogger(__name__)

JSON = Dict[str, Any]
ToolHandler = Callable[[JSON], Awaitable[Any]]

TOOL_CALLS_METRIC = "mcp_tool_calls_total"
TOOL_ERRORS_METRIC = "mcp_tool_errors_total"
TOOL_LATENCY_METRIC = "mcp_tool_latency_seconds"
TOOL_LATENCY_BUCKETS = (0.1, 0.5, 1.0, 2.0, 5.0)


@dataclass(frozen=True)
class ToolRegistration:
    """Fixed-shape record of a callable tool."""
    name: str
    description: str
    input_schema: JSON = field(default_factory=dict)
    handler: Optional[ToolHandler] = None


class ToolCallInstrumentation:
    """Wraps tool handlers with OpenTelemetry metrics and a span per call."""

    def __init__(self, meter: Optional[Meter] = None, tracer: Optional[Tracer] = None):
        """Initialize instruments.

        Args:
            meter: Meter to create instruments on. Defaults to the global meter provider.
            tracer: Tracer for per-call spans. Defaults to the global tracer provider.
        """
        self.meter = meter or metrics.get_meter("mcp_evals.tools")
        self.tracer = tracer or trace.get_tracer("mcp_evals.tools")

        self.tool_calls = self.meter.create_counter(
            TOOL_CALLS_METRIC,
            description="Total number of tool calls",
        )
        self.tool_errors = self.meter.create_counter(
            TOOL_ERRORS_METRIC,
            description="Total number of tool errors",
        )
        self.tool_latency = self.meter.create_histogram(
            TOOL_LATENCY_METRIC,
            unit="s",
            description="Tool call latency in seconds",
        )

    def wrap(self, registration: ToolRegistration) -> ToolRegistration:
        """Return a copy of ``registration`` whose handler is instrumented."""
        if registration.handler is None:
            raise ValueError(f"Tool '{registration.name}' has no handler to instrument")

        handler = registration.handler
        name = registration.name
        attributes = {"tool_name": name}

        @functools.wraps(handler)
        async def instrumented(arguments: JSON) -> Any:
            start = time.perf_counter()
            with self.tracer.start_as_current_span(f"tool.{name}") as span:
                self.tool_calls.add(1, attributes)
                try:
                    result = await handler(arguments)
                except Exception as e:
                    self.tool_errors.add(1, attributes)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise
                finally:
                    self.tool_latency.record(time.perf_counter() - start, attributes)
                span.set_status(Status(StatusCode.OK))
                return result

        return dataclasses.replace(registration, handler=instrumented)
