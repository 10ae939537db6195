"""
Provider ordering strategies.

Every strategy returns a new list and relies on ``sorted`` being stable, so
ties keep catalog order.
"""
from typing import Dict, List, Sequence

from .models import ProviderProfile, RoutingStrategy

APPROVAL_WEIGHT = 0.7
COST_WEIGHT = 0.3


def normalized_fees(providers: Sequence[ProviderProfile]) -> Dict[str, float]:
    """Each provider's effective fee as a fraction of the most expensive one in the set."""
    if not providers:
        return {}
    max_fee = max(p.effective_fee for p in providers)
    return {
        p.provider_id: p.effective_fee / max_fee if max_fee > 0 else 0.0
        for p in providers
    }


def balanced_scores(providers: Sequence[ProviderProfile]) -> Dict[str, float]:
    # a decline earns nothing, so approval carries most of the weight
    norm = normalized_fees(providers)
    return {
        p.provider_id: p.approval_rate * APPROVAL_WEIGHT + (1.0 - norm[p.provider_id]) * COST_WEIGHT
        for p in providers
    }


def order_providers(providers: Sequence[ProviderProfile], strategy) -> List[ProviderProfile]:
    strategy = RoutingStrategy.parse(strategy)
    if len(providers) <= 1:
        return list(providers)

    if strategy is RoutingStrategy.APPROVAL_OPTIMIZED:
        return sorted(providers, key=lambda p: -p.approval_rate)
    if strategy is RoutingStrategy.COST_OPTIMIZED:
        return sorted(providers, key=lambda p: p.effective_fee)

    scores = balanced_scores(providers)
    return sorted(providers, key=lambda p: -scores[p.provider_id])
