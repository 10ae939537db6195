"""
psp_router.router
Routing engine that wires together the ProviderCatalog, provider ordering,
OutcomeSimulator and decline classification.
"""
from __future__ import annotations

import logging
from typing import Iterable, List

from .catalog import ProviderCatalog
from .classifier import DeclineCategory, classify
from .models import AttemptRecord, RoutingResult, RoutingStrategy, Transaction
from .selector import order_providers
from .simulator import OutcomeSimulator

logger = logging.getLogger(__name__)

MAX_DECLINE_ATTEMPTS = 3


class RoutingEngine:
    """
    Decides which providers to try for a transaction, in what order, and when
    to stop.
    Responsibilities:
      - Resolve the country's providers and order them by strategy
      - Walk the ordered list, simulating one attempt per provider
      - Stop on approval, on a terminal decline, or when the retry budget is spent
    Holds no per-call state; a single engine can serve concurrent callers.
    """

    def __init__(
        self,
        catalog: ProviderCatalog | None = None,
        simulator: OutcomeSimulator | None = None,
    ) -> None:
        self.catalog = catalog or ProviderCatalog()
        self.simulator = simulator or OutcomeSimulator()

    def route(self, transaction: Transaction, strategy=RoutingStrategy.APPROVAL_OPTIMIZED) -> RoutingResult:
        """
        Route with failover across the country's providers.
        Raises:
          InvalidStrategy for an unrecognised strategy tag.
          UnknownCountry if the catalog has no providers for the country.
        """
        strategy = RoutingStrategy.parse(strategy)
        return self._run(transaction, strategy, MAX_DECLINE_ATTEMPTS)

    def route_single_attempt(self, transaction: Transaction, strategy=RoutingStrategy.APPROVAL_OPTIMIZED) -> RoutingResult:
        """
        No-retry baseline: stop after the first counted decline, whatever its
        category. Unavailable providers are still skipped.
        """
        strategy = RoutingStrategy.parse(strategy)
        return self._run(transaction, strategy, 1)

    def route_batch(self, transactions: Iterable[Transaction], strategy=RoutingStrategy.APPROVAL_OPTIMIZED) -> List[RoutingResult]:
        strategy = RoutingStrategy.parse(strategy)
        return [self._run(tx, strategy, MAX_DECLINE_ATTEMPTS) for tx in transactions]

    def _run(self, transaction: Transaction, strategy: RoutingStrategy, decline_budget: int) -> RoutingResult:
        providers = order_providers(self.catalog.providers_for(transaction.country), strategy)

        trail: List[AttemptRecord] = []
        decline_attempts = 0
        final_provider = None

        for provider in providers:
            outcome = self.simulator.simulate(transaction, provider)
            category = None if outcome.approved else classify(outcome.decline_reason)
            trail.append(AttemptRecord(
                provider_id=provider.provider_id,
                provider_name=provider.name,
                outcome=outcome,
                attempt_number=len(trail) + 1,
                counts_toward_budget=category is not DeclineCategory.CASCADE,
            ))
            logger.debug(
                "tx_id=%s attempt=%d provider=%s approved=%s reason=%s",
                transaction.transaction_id, len(trail), provider.provider_id, outcome.approved,
                outcome.decline_reason.value if outcome.decline_reason else None,
            )

            if outcome.approved:
                final_provider = provider.provider_id
                break
            if category is DeclineCategory.CASCADE:
                continue
            if category is DeclineCategory.TERMINAL:
                break
            decline_attempts += 1
            if decline_attempts >= decline_budget:
                break

        result = RoutingResult(
            transaction_id=transaction.transaction_id,
            approved=final_provider is not None,
            final_provider=final_provider,
            attempts=tuple(trail),
            total_latency_ms=sum(a.latency_ms for a in trail),
            strategy=strategy,
        )
        logger.info(
            "Routed tx_id=%s strategy=%s approved=%s attempts=%d latency=%dms",
            result.transaction_id, strategy.value, result.approved,
            result.total_attempts, result.total_latency_ms,
        )
        return result
