"""psp_router package"""
from .router import RoutingEngine
from .catalog import ProviderCatalog
from .simulator import OutcomeSimulator
from .classifier import DeclineCategory, classify
from .selector import order_providers
from .exceptions import InvalidStrategy, InvalidTransaction, RoutingError, UnknownCountry
from .models import (
Country,
Currency,
DeclineReason,
Transaction,
ProviderProfile,
Outcome,
AttemptRecord,
RoutingResult,
RoutingStrategy,
)

__version__ = "0.1.0"

__all__ = [
"RoutingEngine",
"ProviderCatalog",
"OutcomeSimulator",
"DeclineCategory",
"classify",
"order_providers",
"InvalidStrategy",
"InvalidTransaction",
"RoutingError",
"UnknownCountry",
"Country",
"Currency",
"DeclineReason",
"Transaction",
"ProviderProfile",
"Outcome",
"AttemptRecord",
"RoutingResult",
"RoutingStrategy",
]
