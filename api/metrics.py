"""
Prometheus Metrics for the PSP Router
=====================================

Exposes routing outcome, attempt and latency metrics for scraping.
"""
from __future__ import annotations

from typing import Any, Callable

from fastapi import APIRouter, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)

from psp_router.classifier import classify
from psp_router.models import RoutingResult

# Create metrics router
router = APIRouter()


def _get_or_create(name: str, factory: Callable[..., Any], *args, **kwargs):
    """
    Return an existing collector from the global REGISTRY if present,
    otherwise create one. Avoids duplicate registration when modules are reloaded.
    """
    if name in REGISTRY._names_to_collectors:
        return REGISTRY._names_to_collectors[name]
    return factory(name, *args, **kwargs)


# ============================================================================
# METRICS DEFINITIONS
# ============================================================================

routing_requests_total = _get_or_create(
    "routing_requests_total",
    Counter,
    "Routing decisions made, by strategy and final result",
    labelnames=("strategy", "result"),
)

routing_attempts_per_request = _get_or_create(
    "routing_attempts_per_request",
    Histogram,
    "Provider attempts needed per routing decision",
    buckets=(1, 2, 3, 4, 5),
)

provider_attempts_total = _get_or_create(
    "provider_attempts_total",
    Counter,
    "Provider attempts, by provider and outcome category",
    labelnames=("provider_id", "result"),
)

routing_latency_ms = _get_or_create(
    "routing_latency_ms",
    Histogram,
    "Total simulated latency per routing decision (ms)",
    buckets=(100, 250, 500, 750, 1000, 1500, 2000),
)

reports_generated_total = _get_or_create(
    "reports_generated_total",
    Counter,
    "Performance reports generated",
)


def record_routing(result: RoutingResult) -> None:
    routing_requests_total.labels(
        strategy=result.strategy.value,
        result="approved" if result.approved else "declined",
    ).inc()
    routing_attempts_per_request.observe(result.total_attempts)
    routing_latency_ms.observe(result.total_latency_ms)
    for attempt in result.attempts:
        if attempt.approved:
            label = "approved"
        else:
            label = classify(attempt.outcome.decline_reason).value
        provider_attempts_total.labels(provider_id=attempt.provider_id, result=label).inc()


# ============================================================================
# METRICS ENDPOINT
# ============================================================================

@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format for scraping.
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
