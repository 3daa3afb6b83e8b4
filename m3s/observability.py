"""Prometheus metrics and OpenTelemetry tracing init."""
from __future__ import annotations
import logging
import os
from prometheus_client import Counter, Histogram, start_http_server
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

CREATES = Counter("m3s_adapter_creates_total", "Adapter create calls", ["module", "adapter", "outcome"])
METHOD_ERRORS = Counter("m3s_adapter_method_errors_total", "Wrapped adapter method failures", ["context", "method"])
POLLS = Counter("m3s_watch_polls_total", "Outcome watcher poll attempts", ["kind"])
WATCH_LAT = Histogram("m3s_watch_latency_seconds", "Outcome watch duration", ["kind", "outcome"])


def init_prom(env: str = "PROM_PORT") -> None:
    port = int(os.getenv(env, "0") or "0")
    if port:
        start_http_server(port)


def init_tracing(service: str = "m3s") -> None:
    res = Resource.create({"service.name": service})
    provider = TracerProvider(resource=res)
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True)))
    trace.set_tracer_provider(provider)


tracer = trace.get_tracer(__name__)


def init_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
