"""Valuation rule.

A business is valued as EBITDA times a multiplier picked from annual revenue
(amounts in IDR). Both helpers are total: missing inputs count as zero and
nothing raises.
"""

from typing import Optional

# (exclusive upper bound, multiplier), ascending
REVENUE_MULTIPLIER_BANDS = (
    (1_000_000_000, 1.0),
    (5_000_000_000, 2.0),
    (10_000_000_000, 3.0),
    (50_000_000_000, 4.0),
)
TOP_BAND_MULTIPLIER = 5.0


def ebitda_multiplier(revenue: Optional[float]) -> float:
    """Return the EBITDA multiplier for an annual revenue."""
    revenue = revenue or 0.0
    for upper_bound, multiplier in REVENUE_MULTIPLIER_BANDS:
        if revenue < upper_bound:
            return multiplier
    return TOP_BAND_MULTIPLIER


def market_cap(ebitda: Optional[float], revenue: Optional[float]) -> float:
    """Return EBITDA times its revenue multiplier, or 0 for non-positive EBITDA."""
    ebitda = ebitda or 0.0
    if ebitda <= 0:
        return 0.0
    return ebitda * ebitda_multiplier(revenue)
