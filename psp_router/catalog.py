from typing import Dict, Iterable, List, Optional

from .exceptions import UnknownCountry
from .models import Country, DeclineReason, ProviderProfile


DEFAULT_PROVIDERS = (
    # Brazil
    ProviderProfile(
        provider_id="psp_br_1",
        name="PagSeguro",
        country=Country.BRAZIL,
        approval_rate=0.78,
        latency_min_ms=200,
        latency_max_ms=400,
        fee_percentage=2.9,
        fee_fixed=0.30,
        decline_bias=DeclineReason.ISSUER_UNAVAILABLE,
    ),
    ProviderProfile(
        provider_id="psp_br_2",
        name="Cielo",
        country=Country.BRAZIL,
        approval_rate=0.82,
        latency_min_ms=150,
        latency_max_ms=250,
        fee_percentage=3.2,
        fee_fixed=0.25,
        decline_bias=DeclineReason.SUSPECTED_FRAUD,
    ),
    ProviderProfile(
        provider_id="psp_br_3",
        name="Stone",
        country=Country.BRAZIL,
        approval_rate=0.68,
        latency_min_ms=300,
        latency_max_ms=600,
        fee_percentage=2.5,
        fee_fixed=0.35,
        decline_bias=DeclineReason.DO_NOT_HONOR,
    ),
    # Mexico
    ProviderProfile(
        provider_id="psp_mx_1",
        name="Conekta",
        country=Country.MEXICO,
        approval_rate=0.75,
        latency_min_ms=180,
        latency_max_ms=350,
        fee_percentage=2.8,
        fee_fixed=0.28,
        decline_bias=DeclineReason.PROCESSOR_DECLINED,
    ),
    ProviderProfile(
        provider_id="psp_mx_2",
        name="OpenPay",
        country=Country.MEXICO,
        approval_rate=0.80,
        latency_min_ms=200,
        latency_max_ms=300,
        fee_percentage=3.1,
        fee_fixed=0.22,
        decline_bias=DeclineReason.ISSUER_UNAVAILABLE,
    ),
    ProviderProfile(
        provider_id="psp_mx_3",
        name="SR Pago",
        country=Country.MEXICO,
        approval_rate=0.70,
        latency_min_ms=250,
        latency_max_ms=500,
        fee_percentage=2.6,
        fee_fixed=0.32,
        decline_bias=DeclineReason.SUSPECTED_FRAUD,
    ),
    # Colombia
    ProviderProfile(
        provider_id="psp_co_1",
        name="PayU",
        country=Country.COLOMBIA,
        approval_rate=0.76,
        latency_min_ms=190,
        latency_max_ms=380,
        fee_percentage=2.7,
        fee_fixed=0.29,
        decline_bias=DeclineReason.DO_NOT_HONOR,
    ),
    ProviderProfile(
        provider_id="psp_co_2",
        name="Wompi",
        country=Country.COLOMBIA,
        approval_rate=0.83,
        latency_min_ms=160,
        latency_max_ms=280,
        fee_percentage=3.3,
        fee_fixed=0.20,
        decline_bias=DeclineReason.ISSUER_UNAVAILABLE,
    ),
    ProviderProfile(
        provider_id="psp_co_3",
        name="Bold",
        country=Country.COLOMBIA,
        approval_rate=0.65,
        latency_min_ms=280,
        latency_max_ms=550,
        fee_percentage=2.4,
        fee_fixed=0.38,
        decline_bias=DeclineReason.PROCESSOR_DECLINED,
    ),
)


class ProviderCatalog:
  """Read-only table of processors, grouped by country in configuration order."""

  def __init__(self, providers: Optional[Iterable[ProviderProfile]] = None):
    profiles = tuple(DEFAULT_PROVIDERS if providers is None else providers)
    self._providers: Dict[str, ProviderProfile] = {p.provider_id: p for p in profiles}
    by_country: Dict[Country, List[ProviderProfile]] = {}
    for p in profiles:
      by_country.setdefault(p.country, []).append(p)
    self._by_country = {c: tuple(ps) for c, ps in by_country.items()}


  def providers_for(self, country) -> List[ProviderProfile]:
    key = Country.parse(country)
    providers = self._by_country.get(key)
    if not providers:
      raise UnknownCountry(key.value)
    return list(providers)


  def get_provider(self, provider_id: str) -> Optional[ProviderProfile]:
    return self._providers.get(provider_id)


  def get_all_providers(self) -> List[ProviderProfile]:
    return list(self._providers.values())


  def countries(self) -> List[Country]:
    return list(self._by_country)
