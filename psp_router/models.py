import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .exceptions import InvalidStrategy, InvalidTransaction, UnknownCountry

CENTS = Decimal("0.01")
CARD_BIN_PATTERN = re.compile(r"^\d{6,8}$")
CARD_LAST4_PATTERN = re.compile(r"^\d{4}$")


class Country(Enum):
  BRAZIL = "Brazil"
  MEXICO = "Mexico"
  COLOMBIA = "Colombia"

  @classmethod
  def parse(cls, value) -> "Country":
    if isinstance(value, cls):
      return value
    for country in cls:
      if str(value).strip().lower() in (country.value.lower(), country.name.lower()):
        return country
    raise UnknownCountry(value)


class Currency(Enum):
  BRL = "BRL"
  MXN = "MXN"
  COP = "COP"


COUNTRY_CURRENCY: Dict[Country, Currency] = {
  Country.BRAZIL: Currency.BRL,
  Country.MEXICO: Currency.MXN,
  Country.COLOMBIA: Currency.COP,
}


class DeclineReason(Enum):
  """Closed set of decline tags a provider can answer with."""
  # terminal: the card itself is the problem
  INSUFFICIENT_FUNDS = "insufficient_funds"
  CARD_EXPIRED = "card_expired"
  INVALID_CARD = "invalid_card"
  STOLEN_CARD = "stolen_card"
  # retryable: another provider may approve
  ISSUER_UNAVAILABLE = "issuer_unavailable"
  SUSPECTED_FRAUD = "suspected_fraud"
  DO_NOT_HONOR = "do_not_honor"
  PROCESSOR_DECLINED = "processor_declined"
  # cascade: provider is down, skip without penalty
  PROVIDER_UNAVAILABLE = "provider_unavailable"


TERMINAL_REASONS: Tuple[DeclineReason, ...] = (
  DeclineReason.INSUFFICIENT_FUNDS,
  DeclineReason.CARD_EXPIRED,
  DeclineReason.INVALID_CARD,
  DeclineReason.STOLEN_CARD,
)

RETRYABLE_REASONS: Tuple[DeclineReason, ...] = (
  DeclineReason.ISSUER_UNAVAILABLE,
  DeclineReason.SUSPECTED_FRAUD,
  DeclineReason.DO_NOT_HONOR,
  DeclineReason.PROCESSOR_DECLINED,
)


class RoutingStrategy(str, Enum):
  APPROVAL_OPTIMIZED = "approval_optimized"
  COST_OPTIMIZED = "cost_optimized"
  BALANCED = "balanced"

  @classmethod
  def parse(cls, value) -> "RoutingStrategy":
    """Accept the enum, its value or name, or the legacy labels (OptimizeForApprovals, ...)."""
    if isinstance(value, cls):
      return value
    if isinstance(value, str):
      key = value.strip()
      for strategy in cls:
        if key.lower() in (strategy.value, strategy.name.lower()):
          return strategy
      if key in _LEGACY_STRATEGY_LABELS:
        return _LEGACY_STRATEGY_LABELS[key]
    raise InvalidStrategy(value)


_LEGACY_STRATEGY_LABELS = {
  "OptimizeForApprovals": RoutingStrategy.APPROVAL_OPTIMIZED,
  "OptimizeForCost": RoutingStrategy.COST_OPTIMIZED,
  "Balanced": RoutingStrategy.BALANCED,
}


@dataclass(frozen=True)
class Transaction:
  transaction_id: str
  amount: Decimal
  currency: Currency
  country: Country
  card_bin: str
  card_last4: str
  customer_id: str
  timestamp: str = ""

  def __post_init__(self):
    try:
      amount = Decimal(str(self.amount)).quantize(CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as exc:
      raise InvalidTransaction(f"Invalid amount: {self.amount!r}") from exc
    if amount <= 0:
      raise InvalidTransaction(f"Amount must be greater than 0, got {amount}")
    if not isinstance(self.card_bin, str) or not CARD_BIN_PATTERN.fullmatch(self.card_bin):
      raise InvalidTransaction("card_bin must be a 6-8 digit prefix, never a full card number")
    if not isinstance(self.card_last4, str) or not CARD_LAST4_PATTERN.fullmatch(self.card_last4):
      raise InvalidTransaction("card_last4 must be exactly 4 digits")

    country = Country.parse(self.country)
    try:
      currency = self.currency if isinstance(self.currency, Currency) else Currency(str(self.currency).upper())
    except ValueError as exc:
      raise InvalidTransaction(f"Unsupported currency: {self.currency!r}") from exc
    if COUNTRY_CURRENCY[country] is not currency:
      raise InvalidTransaction(
        f"Currency {currency.value} is not valid for {country.value} "
        f"(expected {COUNTRY_CURRENCY[country].value})"
      )

    object.__setattr__(self, "amount", amount)
    object.__setattr__(self, "country", country)
    object.__setattr__(self, "currency", currency)

  @property
  def amount_minor(self) -> int:
    return int(self.amount * 100)

  def to_dict(self) -> Dict:
    return {
      "id": self.transaction_id,
      "amount": float(self.amount),
      "currency": self.currency.value,
      "country": self.country.value,
      "card_bin": self.card_bin,
      "card_last4": self.card_last4,
      "customer_id": self.customer_id,
      "timestamp": self.timestamp,
    }


@dataclass(frozen=True)
class ProviderProfile:
    """Payment processor behaviour profile"""
    provider_id: str
    name: str
    country: Country

    # Approval
    approval_rate: float  # base approval probability, (0, 1)

    # Latency
    latency_min_ms: int
    latency_max_ms: int

    # Fees
    fee_percentage: float  # e.g. 2.9 for 2.9%
    fee_fixed: float  # fixed fee per transaction, currency units

    # Decline profile
    decline_bias: DeclineReason  # retryable reason this provider over-reports
    bias_weight: float = 0.45

    def __post_init__(self):
        if not 0.0 < self.approval_rate < 1.0:
            raise ValueError(f"{self.provider_id}: approval_rate must be in (0, 1)")
        if self.latency_min_ms < 0 or self.latency_min_ms > self.latency_max_ms:
            raise ValueError(f"{self.provider_id}: invalid latency bounds")
        if self.decline_bias not in RETRYABLE_REASONS:
            raise ValueError(f"{self.provider_id}: decline bias must be a retryable reason")
        if not 0.0 <= self.bias_weight <= 1.0:
            raise ValueError(f"{self.provider_id}: bias_weight must be in [0, 1]")

    @property
    def effective_fee(self) -> float:
        return self.fee_percentage + self.fee_fixed

    @property
    def decline_weights(self) -> List[Tuple[DeclineReason, float]]:
        rest = (1.0 - self.bias_weight) / (len(RETRYABLE_REASONS) - 1)
        return [
            (reason, self.bias_weight if reason is self.decline_bias else rest)
            for reason in RETRYABLE_REASONS
        ]


@dataclass(frozen=True)
class Outcome:
  approved: bool
  decline_reason: Optional[DeclineReason]
  latency_ms: int

  def __post_init__(self):
    if self.approved == (self.decline_reason is not None):
      raise ValueError("Outcome must be either approved or carry exactly one decline reason")

  @classmethod
  def approve(cls, latency_ms: int) -> "Outcome":
    return cls(approved=True, decline_reason=None, latency_ms=latency_ms)

  @classmethod
  def decline(cls, reason: DeclineReason, latency_ms: int) -> "Outcome":
    return cls(approved=False, decline_reason=reason, latency_ms=latency_ms)


@dataclass(frozen=True)
class AttemptRecord:
  provider_id: str
  provider_name: str
  outcome: Outcome
  attempt_number: int
  counts_toward_budget: bool = True

  @property
  def approved(self) -> bool:
    return self.outcome.approved

  @property
  def latency_ms(self) -> int:
    return self.outcome.latency_ms

  def to_dict(self) -> Dict:
    reason = self.outcome.decline_reason
    return {
      "provider_id": self.provider_id,
      "provider_name": self.provider_name,
      "approved": self.outcome.approved,
      "decline_reason": reason.value if reason else None,
      "latency_ms": self.outcome.latency_ms,
      "attempt_number": self.attempt_number,
    }


@dataclass(frozen=True)
class RoutingResult:
  transaction_id: str
  approved: bool
  final_provider: Optional[str]
  attempts: Tuple[AttemptRecord, ...]
  total_latency_ms: int
  strategy: RoutingStrategy

  @property
  def total_attempts(self) -> int:
    return len(self.attempts)

  @property
  def decline_attempts(self) -> int:
    return sum(1 for a in self.attempts if a.counts_toward_budget and not a.approved)

  def to_dict(self) -> Dict:
    return {
      "transaction_id": self.transaction_id,
      "strategy": self.strategy.value,
      "approved": self.approved,
      "final_provider": self.final_provider,
      "total_attempts": self.total_attempts,
      "total_latency_ms": self.total_latency_ms,
      "attempts": [a.to_dict() for a in self.attempts],
    }
