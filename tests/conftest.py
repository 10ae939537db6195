import pytest

from psp_router.catalog import ProviderCatalog

from helpers import make_provider


@pytest.fixture
def catalog() -> ProviderCatalog:
    return ProviderCatalog()


@pytest.fixture
def four_provider_catalog() -> ProviderCatalog:
    """Brazil with four providers, in descending approval order, so the retry cap is observable."""
    return ProviderCatalog([
        make_provider("p1", approval_rate=0.90),
        make_provider("p2", approval_rate=0.85),
        make_provider("p3", approval_rate=0.80),
        make_provider("p4", approval_rate=0.75),
    ])
