"""Decline classification: decides whether the routing loop stops, retries or cascades."""
from enum import Enum
from typing import Dict

from .models import DeclineReason


class DeclineCategory(Enum):
  TERMINAL = "terminal"    # stop, no provider can succeed
  RETRYABLE = "retryable"  # try the next provider, costs one retry
  CASCADE = "cascade"      # provider down, try the next one for free


_CATEGORY_BY_REASON: Dict[DeclineReason, DeclineCategory] = {
  DeclineReason.INSUFFICIENT_FUNDS: DeclineCategory.TERMINAL,
  DeclineReason.CARD_EXPIRED: DeclineCategory.TERMINAL,
  DeclineReason.INVALID_CARD: DeclineCategory.TERMINAL,
  DeclineReason.STOLEN_CARD: DeclineCategory.TERMINAL,
  DeclineReason.ISSUER_UNAVAILABLE: DeclineCategory.RETRYABLE,
  DeclineReason.SUSPECTED_FRAUD: DeclineCategory.RETRYABLE,
  DeclineReason.DO_NOT_HONOR: DeclineCategory.RETRYABLE,
  DeclineReason.PROCESSOR_DECLINED: DeclineCategory.RETRYABLE,
  DeclineReason.PROVIDER_UNAVAILABLE: DeclineCategory.CASCADE,
}


def classify(reason: DeclineReason) -> DeclineCategory:
  if not isinstance(reason, DeclineReason):
    raise TypeError(f"Expected a DeclineReason, got {reason!r}")
  return _CATEGORY_BY_REASON[reason]


def is_terminal(reason: DeclineReason) -> bool:
  return classify(reason) is DeclineCategory.TERMINAL


def is_retryable(reason: DeclineReason) -> bool:
  return classify(reason) is DeclineCategory.RETRYABLE


def is_cascade(reason: DeclineReason) -> bool:
  return classify(reason) is DeclineCategory.CASCADE
