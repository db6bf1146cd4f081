"""OpenTelemetry setup for tool-call tracing and metrics.

This module provides utilities for:
- OpenTelemetry tracing setup with an OTLP/HTTP span exporter
- A Prometheus scrape endpoint for the tool-call metrics
"""

import logging
import os
from typing import Optional

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.view import ExplicitBucketHistogramAggregation, View
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import start_http_server

from .instrumentation import TOOL_LATENCY_BUCKETS, TOOL_LATENCY_METRIC

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "mcp-evals"
DEFAULT_OTLP_ENDPOINT = "http://localhost:4318/v1/traces"

# Suppress noisy OTLP export errors when no collector is running
logging.getLogger("opentelemetry.sdk.trace.export").setLevel(logging.WARNING)


def _resource(service_name: Optional[str]) -> Resource:
    if service_name is None:
        service_name = os.getenv("OTEL_SERVICE_NAME", DEFAULT_SERVICE_NAME)
    return Resource.create({SERVICE_NAME: service_name})


def enable_tracing(
    service_name: Optional[str] = None,
    otlp_endpoint: Optional[str] = None,
    enabled: Optional[bool] = None,
) -> bool:
    """Enable OpenTelemetry tracing with an OTLP/HTTP exporter.

    Args:
        service_name: Service name for traces (defaults to OTEL_SERVICE_NAME or "mcp-evals")
        otlp_endpoint: OTLP endpoint URL (defaults to OTEL_EXPORTER_OTLP_ENDPOINT)
        enabled: Whether to enable tracing (defaults to OTEL_ENABLED or False)

    Returns:
        True if tracing was enabled, False otherwise
    """
    if enabled is None:
        enabled = os.getenv("OTEL_ENABLED", "false").lower() in ("true", "1", "yes")

    if not enabled:
        logger.debug("Tracing is disabled via configuration")
        return False

    # Check if already initialized (avoid double initialization)
    if isinstance(trace.get_tracer_provider(), TracerProvider):
        logger.debug("Tracing already initialized, skipping")
        return True

    if otlp_endpoint is None:
        otlp_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", DEFAULT_OTLP_ENDPOINT)

    tracer_provider = TracerProvider(resource=_resource(service_name))
    tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
    trace.set_tracer_provider(tracer_provider)

    logger.info("OpenTelemetry tracing initialized: otlp_endpoint=%s", otlp_endpoint)
    return True


def enable_metrics(port: int, service_name: Optional[str] = None) -> MeterProvider:
    """Serve the tool-call metrics on a Prometheus scrape endpoint.

    Args:
        port: Port for the /metrics HTTP server
        service_name: Service name resource attribute

    Returns:
        The installed MeterProvider
    """
    latency_view = View(
        instrument_name=TOOL_LATENCY_METRIC,
        aggregation=ExplicitBucketHistogramAggregation(boundaries=TOOL_LATENCY_BUCKETS),
    )
    meter_provider = MeterProvider(
        resource=_resource(service_name),
        metric_readers=[PrometheusMetricReader()],
        views=[latency_view],
    )
    metrics.set_meter_provider(meter_provider)
    start_http_server(port)
    logger.info("Metrics server listening on port %d", port)
    return meter_provider
