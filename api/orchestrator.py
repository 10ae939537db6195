"""
FastAPI Orchestrator for the PSP Router
=======================================

Endpoints:
- GET  /health         - Liveness and version
- POST /api/authorize  - Route one payment through the country's providers
- POST /api/report     - No-retry vs. smart-retry performance report
- GET  /metrics        - Prometheus metrics
"""

import hashlib
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from psp_router import __version__, config
from psp_router.dataset import generate_test_data
from psp_router.exceptions import InvalidStrategy, InvalidTransaction, UnknownCountry
from psp_router.models import RoutingStrategy, Transaction
from psp_router.report import generate_report
from psp_router.router import RoutingEngine

from api.metrics import record_routing, reports_generated_total, router as metrics_router

logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
logger = logging.getLogger(__name__)

app = FastAPI(title="PSP Router", version=__version__)
app.include_router(metrics_router)

ENGINE = RoutingEngine()

# ============================================================================
# MODELS
# ============================================================================

class AuthorizationRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    currency: str
    country: str
    card_bin: str = Field(..., pattern=r"^\d{6,8}$")
    card_last4: str = Field(..., pattern=r"^\d{4}$")
    customer_id: str = Field(..., min_length=1)
    routing_strategy: Optional[str] = None


class AttemptResponse(BaseModel):
    provider_id: str
    provider_name: str
    approved: bool
    decline_reason: Optional[str] = None
    latency_ms: int
    attempt_number: int


class RoutingResultResponse(BaseModel):
    transaction_id: str
    strategy: str
    approved: bool
    final_provider: Optional[str] = None
    total_attempts: int
    total_latency_ms: int
    attempts: List[AttemptResponse]


class ReportRequest(BaseModel):
    transaction_count: int = Field(default=config.REPORT_SIZE, gt=0, le=10000)
    routing_strategy: Optional[str] = None


# ============================================================================
# HELPERS
# ============================================================================

def transaction_id_for(req: AuthorizationRequest) -> str:
    """Deterministic id, so resubmitting the same request replays the same decision."""
    payload = "|".join([req.card_bin, req.card_last4, req.customer_id, f"{req.amount:.2f}"])
    return "txn_" + hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


def _client_error(error: str, details: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": error, "details": details})


@app.exception_handler(UnknownCountry)
async def unknown_country_handler(request: Request, exc: UnknownCountry):
    return _client_error("Unsupported country", str(exc))


@app.exception_handler(InvalidStrategy)
async def invalid_strategy_handler(request: Request, exc: InvalidStrategy):
    return _client_error("Invalid routing strategy", str(exc))


@app.exception_handler(InvalidTransaction)
async def invalid_transaction_handler(request: Request, exc: InvalidTransaction):
    return _client_error("Validation failed", str(exc))


# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.get("/health")
async def health_check() -> Dict[str, str]:
    return {"status": "ok", "version": __version__}


@app.post("/api/authorize", response_model=RoutingResultResponse)
def authorize(request: AuthorizationRequest):
    """Route one transaction with failover"""
    strategy = RoutingStrategy.parse(request.routing_strategy or config.DEFAULT_STRATEGY)

    transaction = Transaction(
        transaction_id=transaction_id_for(request),
        amount=request.amount,
        currency=request.currency,
        country=request.country,
        card_bin=request.card_bin,
        card_last4=request.card_last4,
        customer_id=request.customer_id,
        timestamp=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
    )

    result = ENGINE.route(transaction, strategy)
    record_routing(result)
    return result.to_dict()


@app.post("/api/report")
def performance_report(request: ReportRequest):
    """Compare no-retry and smart-retry routing over a generated batch"""
    strategy = RoutingStrategy.parse(request.routing_strategy or config.DEFAULT_STRATEGY)
    transactions = generate_test_data(request.transaction_count, seed=config.DATA_SEED)
    report = generate_report(transactions, ENGINE, strategy)
    reports_generated_total.inc()
    return report.to_dict()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
