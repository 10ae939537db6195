"""Shared builders for the routing tests."""
from decimal import Decimal
from typing import Dict, List

from psp_router.models import (
    Country,
    Currency,
    DeclineReason,
    Outcome,
    ProviderProfile,
    Transaction,
)


def make_transaction(bin_: str = "411111", last4: str = "1234", amount="150.00",
                     country: Country = Country.BRAZIL, tx_id: str = None) -> Transaction:
    currency = {Country.BRAZIL: Currency.BRL, Country.MEXICO: Currency.MXN, Country.COLOMBIA: Currency.COP}[country]
    return Transaction(
        transaction_id=tx_id or f"test_{bin_}_{last4}",
        amount=Decimal(str(amount)),
        currency=currency,
        country=country,
        card_bin=bin_,
        card_last4=last4,
        customer_id="test_cust",
        timestamp="2025-01-15T10:00:00Z",
    )


def make_provider(provider_id: str, approval_rate: float = 0.8, fee_pct: float = 3.0,
                  fee_fixed: float = 0.25, country: Country = Country.BRAZIL) -> ProviderProfile:
    return ProviderProfile(
        provider_id=provider_id,
        name=provider_id.upper(),
        country=country,
        approval_rate=approval_rate,
        latency_min_ms=100,
        latency_max_ms=300,
        fee_percentage=fee_pct,
        fee_fixed=fee_fixed,
        decline_bias=DeclineReason.ISSUER_UNAVAILABLE,
    )


class ScriptedSimulator:
    """Returns canned outcomes per provider id and records the call order."""

    def __init__(self, script: Dict[str, Outcome], default: Outcome = None):
        self.script = script
        self.default = default or Outcome.approve(100)
        self.calls: List[str] = []

    def simulate(self, transaction, provider):
        self.calls.append(provider.provider_id)
        return self.script.get(provider.provider_id, self.default)


def approved(latency=100):
    return Outcome.approve(latency)


def declined(reason: DeclineReason, latency=100):
    return Outcome.decline(reason, latency)


