from __future__ import annotations

import time
from collections.abc import Callable

from fastapi import FastAPI, Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    GCCollector,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from db.seed import SeedSummary


REGISTRY = CollectorRegistry()
ProcessCollector(registry=REGISTRY)
PlatformCollector(registry=REGISTRY)
GCCollector(registry=REGISTRY)

REQUEST_SUCCESS_TOTAL = Counter(
    "request_success_total",
    "Count of successful requests",
    ["service", "route", "method"],
    registry=REGISTRY,
)
REQUEST_LATENCY = Histogram(
    "request_latency_ms",
    "Request latency in milliseconds",
    ["service", "route", "method"],
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
    registry=REGISTRY,
)

SEED_RUNS_TOTAL = Counter("seed_runs_total", "Seeding runs by outcome", ["outcome"], registry=REGISTRY)
SEED_FAILURES_TOTAL = Counter("seed_failures_total", "Failed seeding runs by error kind", ["kind"], registry=REGISTRY)
SEED_ROWS_INSERTED_TOTAL = Counter(
    "seed_rows_inserted_total",
    "Rows inserted by seeding runs",
    ["table"],
    registry=REGISTRY,
)
SEED_DURATION = Histogram(
    "seed_duration_ms",
    "Seeding run duration in milliseconds",
    buckets=(50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000),
    registry=REGISTRY,
)


def record_seed_success(summary: SeedSummary) -> None:
    SEED_RUNS_TOTAL.labels("success").inc()
    SEED_DURATION.observe(summary.duration_ms)
    for t in summary.tables:
        SEED_ROWS_INSERTED_TOTAL.labels(t.table).inc(t.inserted)


def record_seed_failure(kind: str) -> None:
    SEED_RUNS_TOTAL.labels("failure").inc()
    SEED_FAILURES_TOTAL.labels(kind).inc()


def setup_tracing(app: FastAPI, service_name: str) -> None:
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter()))
    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine) -> None:
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


def add_metrics_middleware(app: FastAPI, service_name: str) -> None:
    @app.middleware("http")
    async def _metrics(request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        resp = await call_next(request)
        route = request.scope.get("path", "unknown")
        method = request.method
        REQUEST_LATENCY.labels(service_name, route, method).observe((time.perf_counter() - start) * 1000)
        if resp.status_code < 500:
            REQUEST_SUCCESS_TOTAL.labels(service_name, route, method).inc()
        return resp

    @app.get("/metrics")
    async def metrics() -> Response:
        return Response(generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
