"""
Performance report: no-retry baseline vs. smart retry routing.

Routes the same batch twice - once through ``route_single_attempt`` (the
current single-processor behaviour) and once through ``route`` - and
aggregates authorization rates, attempts and latency overall, per country
and per provider.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, Sequence

import pandas as pd

from .models import RoutingStrategy, Transaction
from .router import RoutingEngine

logger = logging.getLogger(__name__)


@dataclass
class ScenarioResult:
    approved: int
    declined: int
    authorization_rate: float  # percent, 0-100
    avg_attempts: float
    avg_latency_ms: float


@dataclass
class ImprovementMetrics:
    rate_lift_percentage: float  # percentage points
    additional_approvals: int
    # summed per currency; amounts are never converted
    revenue_recovered: Dict[str, float] = field(default_factory=dict)


@dataclass
class CountryMetrics:
    no_retry_rate: float
    smart_retry_rate: float
    improvement: float
    total_transactions: int


@dataclass
class ProviderMetrics:
    provider_name: str
    total_attempts: int
    approvals: int
    declines: int
    unavailable: int
    approval_rate: float
    avg_latency_ms: float


@dataclass
class PerformanceReport:
    total_transactions: int
    strategy: str
    no_retry: ScenarioResult
    smart_retry: ScenarioResult
    improvement: ImprovementMetrics
    by_country: Dict[str, CountryMetrics]
    by_provider: Dict[str, ProviderMetrics]

    def to_dict(self) -> Dict:
        return asdict(self)


def _pct(part: float, whole: float) -> float:
    return round(part / whole * 100.0, 2) if whole else 0.0


def _scenario(df: pd.DataFrame, prefix: str) -> ScenarioResult:
    if df.empty:
        return ScenarioResult(0, 0, 0.0, 0.0, 0.0)
    approved = int(df[f"{prefix}_approved"].sum())
    return ScenarioResult(
        approved=approved,
        declined=int(len(df) - approved),
        authorization_rate=_pct(approved, len(df)),
        avg_attempts=round(float(df[f"{prefix}_attempts"].mean()), 2),
        avg_latency_ms=round(float(df[f"{prefix}_latency_ms"].mean()), 2),
    )


def _by_country(df: pd.DataFrame) -> Dict[str, CountryMetrics]:
    out = {}
    if df.empty:
        return out
    for country, group in df.groupby("country", sort=True):
        no_retry = _pct(group["no_retry_approved"].sum(), len(group))
        smart = _pct(group["smart_approved"].sum(), len(group))
        out[str(country)] = CountryMetrics(
            no_retry_rate=no_retry,
            smart_retry_rate=smart,
            improvement=round(smart - no_retry, 2),
            total_transactions=int(len(group)),
        )
    return out


def _by_provider(attempts: pd.DataFrame) -> Dict[str, ProviderMetrics]:
    out = {}
    if attempts.empty:
        return out
    for provider_id, group in attempts.groupby("provider_id", sort=True):
        approvals = int(group["approved"].sum())
        unavailable = int((group["decline_reason"] == "provider_unavailable").sum())
        out[str(provider_id)] = ProviderMetrics(
            provider_name=str(group["provider_name"].iloc[0]),
            total_attempts=int(len(group)),
            approvals=approvals,
            declines=int(len(group) - approvals),
            unavailable=unavailable,
            approval_rate=_pct(approvals, len(group)),
            avg_latency_ms=round(float(group["latency_ms"].mean()), 2),
        )
    return out


def generate_report(
    transactions: Sequence[Transaction],
    engine: RoutingEngine | None = None,
    strategy=RoutingStrategy.APPROVAL_OPTIMIZED,
) -> PerformanceReport:
    strategy = RoutingStrategy.parse(strategy)
    engine = engine or RoutingEngine()

    rows = []
    attempt_rows = []
    for tx in transactions:
        baseline = engine.route_single_attempt(tx)
        smart = engine.route(tx, strategy)
        rows.append({
            "transaction_id": tx.transaction_id,
            "country": tx.country.value,
            "currency": tx.currency.value,
            "amount": float(tx.amount),
            "no_retry_approved": baseline.approved,
            "no_retry_attempts": baseline.total_attempts,
            "no_retry_latency_ms": baseline.total_latency_ms,
            "smart_approved": smart.approved,
            "smart_attempts": smart.total_attempts,
            "smart_latency_ms": smart.total_latency_ms,
        })
        attempt_rows.extend(a.to_dict() for a in smart.attempts)

    df = pd.DataFrame(rows)
    attempts = pd.DataFrame(attempt_rows)

    no_retry = _scenario(df, "no_retry")
    smart_retry = _scenario(df, "smart")

    revenue: Dict[str, float] = {}
    if not df.empty:
        recovered = df[df["smart_approved"] & ~df["no_retry_approved"]]
        revenue = {
            str(currency): round(float(amount), 2)
            for currency, amount in recovered.groupby("currency")["amount"].sum().items()
        }

    report = PerformanceReport(
        total_transactions=len(df),
        strategy=strategy.value,
        no_retry=no_retry,
        smart_retry=smart_retry,
        improvement=ImprovementMetrics(
            rate_lift_percentage=round(smart_retry.authorization_rate - no_retry.authorization_rate, 2),
            additional_approvals=smart_retry.approved - no_retry.approved,
            revenue_recovered=revenue,
        ),
        by_country=_by_country(df),
        by_provider=_by_provider(attempts),
    )
    logger.info(
        "Report over %d transactions: no-retry %.1f%% -> smart %.1f%% (%s)",
        report.total_transactions, no_retry.authorization_rate,
        smart_retry.authorization_rate, strategy.value,
    )
    return report
