"""
Outcome Simulator
=================

Stands in for the network call to a payment processor. Every outcome is a
pure function of (transaction, provider): each decision step draws from its
own ``random.Random`` seeded with a SHA-256 digest of specific business
fields, so replaying the same pair always gives the same answer.

Decision steps, in order:

1. Terminal card decline (~6%) - seed: card bin + last4 only
2. Provider unavailable (~8%)  - seed: transaction id + provider id
3. Approval roll               - seed: card bin + last4 + provider id + amount
4. Retryable decline reason    - same generator as step 3, weighted by the
                                 provider's decline bias
5. Latency                     - seed: transaction id + provider id

Step 3 is what makes failover worthwhile: the provider id is part of the
seed, so the same card and amount can decline at one provider and approve at
the next. Step 1 leaves the provider out and runs before anything
provider-specific, so a card that is terminally declined is declined at
every provider with the same reason.
"""

import hashlib
import logging
import random
from typing import Optional, Sequence, Tuple

from .models import DeclineReason, Outcome, ProviderProfile, Transaction

logger = logging.getLogger(__name__)

TERMINAL_DECLINE_RATE = 0.06
PROVIDER_UNAVAILABLE_RATE = 0.08

# cumulative thresholds over a single uniform draw
TERMINAL_REASON_WEIGHTS: Tuple[Tuple[DeclineReason, float], ...] = (
    (DeclineReason.INSUFFICIENT_FUNDS, 0.45),
    (DeclineReason.CARD_EXPIRED, 0.30),
    (DeclineReason.INVALID_CARD, 0.15),
    (DeclineReason.STOLEN_CARD, 0.10),
)

_SEED_MASK = (1 << 64) - 1


def stable_seed(*parts) -> int:
    """64-bit seed from the SHA-256 digest of the given fields."""
    payload = "\x1f".join(str(p) for p in parts).encode("utf-8")
    return int.from_bytes(hashlib.sha256(payload).digest()[:8], "big")


def _draw(seed: int) -> random.Random:
    return random.Random(seed & _SEED_MASK)


def _pick_weighted(roll: float, weights: Sequence[Tuple[DeclineReason, float]]) -> DeclineReason:
    cumulative = 0.0
    for reason, weight in weights:
        cumulative += weight
        if roll < cumulative:
            return reason
    # float rounding can leave the sum a hair under 1.0
    return weights[-1][0]


class OutcomeSimulator:
    """Stateless processor simulator; one instance can be shared across threads."""

    def simulate(self, transaction: Transaction, provider: ProviderProfile) -> Outcome:
        latency_ms = self.latency_for(transaction, provider)

        terminal = self.terminal_reason_for_card(transaction.card_bin, transaction.card_last4)
        if terminal is not None:
            return Outcome.decline(terminal, latency_ms)

        if self.is_provider_unavailable(transaction, provider):
            logger.debug("%s unavailable for %s", provider.provider_id, transaction.transaction_id)
            return Outcome.decline(DeclineReason.PROVIDER_UNAVAILABLE, latency_ms)

        rng = _draw(stable_seed(
            transaction.card_bin,
            transaction.card_last4,
            provider.provider_id,
            transaction.amount_minor,
        ))
        if rng.random() < provider.approval_rate:
            return Outcome.approve(latency_ms)

        reason = _pick_weighted(rng.random(), provider.decline_weights)
        return Outcome.decline(reason, latency_ms)

    def terminal_reason_for_card(self, card_bin: str, card_last4: str) -> Optional[DeclineReason]:
        """Terminal decline reason for a card, or None. Provider-independent."""
        card_seed = stable_seed(card_bin, card_last4, "card_seed")
        if _draw(card_seed).random() >= TERMINAL_DECLINE_RATE:
            return None
        roll = _draw(card_seed + 1).random()
        return _pick_weighted(roll, TERMINAL_REASON_WEIGHTS)

    def is_provider_unavailable(self, transaction: Transaction, provider: ProviderProfile) -> bool:
        seed = stable_seed(transaction.transaction_id, provider.provider_id, "unavailable_check")
        return _draw(seed).random() < PROVIDER_UNAVAILABLE_RATE

    def latency_for(self, transaction: Transaction, provider: ProviderProfile) -> int:
        seed = stable_seed(transaction.transaction_id, provider.provider_id, "latency")
        span = provider.latency_max_ms - provider.latency_min_ms + 1
        return provider.latency_min_ms + int(_draw(seed).random() * span)
