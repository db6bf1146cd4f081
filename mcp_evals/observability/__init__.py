"""Optional observability for tool calls."""

from .instrumentation import ToolCallInstrumentation, ToolRegistration
from .tracing import enable_metrics, enable_tracing

__all__ = [
    "ToolCallInstrumentation",
    "ToolRegistration",
    "enable_metrics",
    "enable_tracing",
]
