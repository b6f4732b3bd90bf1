"""Cost in EUR and margin against a sale price for scrape results."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional

from .models import PriceComparison, ScrapeResult

logger = logging.getLogger("price_discovery.comparison")

FX_TO_EUR: Dict[str, Decimal] = {
    "EUR": Decimal("1"),
    "USD": Decimal("0.93"),
    "GBP": Decimal("1.17"),
}

CENT = Decimal("0.01")
TENTH = Decimal("0.1")


def to_eur(value: Decimal, currency: str) -> Optional[Decimal]:
    rate = FX_TO_EUR.get((currency or "EUR").upper())
    if rate is None:
        return None
    return (value * rate).quantize(CENT, rounding=ROUND_HALF_UP)


def compare_prices(
    results: Iterable[ScrapeResult], sale_price: Optional[Decimal] = None
) -> List[PriceComparison]:
    """Convert results to EUR; with a sale price add margins and rank by margin.

    Without a sale price rows are ranked by ascending cost. Results in a currency
    missing from ``FX_TO_EUR`` are left out.
    """
    rows: List[PriceComparison] = []
    for result in results:
        cost = to_eur(result.price_value, result.currency)
        if cost is None:
            logger.info(
                "Skipping %s: no EUR rate for %s", result.supplier_name, result.currency
            )
            continue

        row = PriceComparison(
            supplier_id=result.supplier_id,
            supplier_name=result.supplier_name,
            product_url=result.product_url,
            price_value=result.price_value,
            currency=result.currency,
            cost_eur=cost,
        )
        if sale_price is not None:
            row.margin_abs = (sale_price - cost).quantize(CENT, rounding=ROUND_HALF_UP)
            if sale_price != 0:
                row.margin_pct = (row.margin_abs / sale_price * 100).quantize(
                    TENTH, rounding=ROUND_HALF_UP
                )
        rows.append(row)

    if sale_price is None:
        rows.sort(key=lambda row: row.cost_eur)
    else:
        rows.sort(key=lambda row: row.margin_abs, reverse=True)
    return rows
