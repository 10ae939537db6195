"""
Test transaction dataset
========================

Reproducible synthetic transactions for Brazil, Mexico and Colombia, used by
the performance report, the CLI runner and the demo API.

Distribution:
- countries rotate by index, so each gets an equal share
- three fake BINs per country
- 15 customers: 30% of traffic from the top 3, 30% from 4-8, 40% from 9-15
- amounts: 40% 10-100, 35% 100-300, 25% 300-500 (local currency)
- timestamps spread across 2025-01-15 08:00-20:00 UTC
"""

import logging
from decimal import Decimal
from typing import List, Sequence

import numpy as np
import pandas as pd

from .models import COUNTRY_CURRENCY, Country, Transaction

logger = logging.getLogger(__name__)

DATA_SEED = 42
DEFAULT_DATASET_SIZE = 210

COUNTRY_BINS = {
    Country.BRAZIL: ("411111", "510510", "376411"),
    Country.MEXICO: ("424242", "551234", "371449"),
    Country.COLOMBIA: ("431940", "520082", "378282"),
}

COUNTRY_ROTATION = (Country.BRAZIL, Country.MEXICO, Country.COLOMBIA)


def _select_customer(rng: np.random.Generator) -> int:
    roll = rng.random()
    if roll < 0.30:
        return int(rng.integers(1, 4))
    if roll < 0.60:
        return int(rng.integers(4, 9))
    return int(rng.integers(9, 16))


def _generate_amount(rng: np.random.Generator) -> Decimal:
    roll = rng.random()
    if roll < 0.40:
        amount = rng.uniform(10.0, 100.0)
    elif roll < 0.75:
        amount = rng.uniform(100.0, 300.0)
    else:
        amount = rng.uniform(300.0, 500.0)
    return Decimal(f"{amount:.2f}")


def generate_test_data(count: int, seed: int = DATA_SEED) -> List[Transaction]:
    """Generate ``count`` transactions; the same seed always yields the same data."""
    rng = np.random.default_rng(seed)
    transactions = []

    for i in range(count):
        country = COUNTRY_ROTATION[i % len(COUNTRY_ROTATION)]
        bins = COUNTRY_BINS[country]
        card_bin = bins[int(rng.integers(0, len(bins)))]
        card_last4 = f"{int(rng.integers(0, 10000)):04d}"
        customer_id = f"cust_{_select_customer(rng):03d}"
        amount = _generate_amount(rng)

        hour = 8 + (i * 12 // count)
        minute = int(rng.integers(0, 60))
        second = int(rng.integers(0, 60))

        transactions.append(Transaction(
            transaction_id=f"txn_{i + 1:04d}",
            amount=amount,
            currency=COUNTRY_CURRENCY[country],
            country=country,
            card_bin=card_bin,
            card_last4=card_last4,
            customer_id=customer_id,
            timestamp=f"2025-01-15T{hour:02d}:{minute:02d}:{second:02d}Z",
        ))

    logger.info("Generated %d test transactions (seed=%d)", len(transactions), seed)
    return transactions


def get_test_dataset() -> List[Transaction]:
    """The canonical 210-transaction dataset used by reports and demos."""
    return generate_test_data(DEFAULT_DATASET_SIZE)


def transactions_to_frame(transactions: Sequence[Transaction]) -> pd.DataFrame:
    return pd.DataFrame([tx.to_dict() for tx in transactions])
