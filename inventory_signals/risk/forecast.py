"""
Stockout forecast: days until stock reaches zero at the current daily rate.

Status determination (evaluated in order: first match wins):
    1. UNKNOWN  : daily_sales <= 0 (no velocity to project from)
    2. CRITICAL : days_until_stockout <= 3
    3. WARNING  : days_until_stockout <= 7
    4. SAFE     : everything else

Pure functions: no I/O, no configuration lookups.
"""

from __future__ import annotations

import math

from inventory_signals.models.assessment import ForecastAssessment

CRITICAL_DAYS = 3
WARNING_DAYS = 7


def compute_forecast(
    stock: int,
    daily_sales: float,
    critical_days: int = CRITICAL_DAYS,
    warning_days: int = WARNING_DAYS,
) -> ForecastAssessment:
    """Project days until stockout and classify the result.

    Args:
        stock:         Units on hand. Negative values are treated as 0.
        daily_sales:   Average units sold per day.
        critical_days: Upper bound (inclusive) of the ``critical`` band.
        warning_days:  Upper bound (inclusive) of the ``warning`` band.

    Returns:
        ForecastAssessment; ``days_until_stockout`` is ``None`` iff the status
        is ``unknown``.
    """
    if daily_sales <= 0:
        return ForecastAssessment(days_until_stockout=None, status="unknown")

    days = math.ceil(max(stock, 0) / daily_sales)
    return ForecastAssessment(
        days_until_stockout=days,
        status=forecast_status(days, critical_days, warning_days),
    )


def forecast_status(
    days_until_stockout: int,
    critical_days: int = CRITICAL_DAYS,
    warning_days: int = WARNING_DAYS,
) -> str:
    """Map a projected day count to ``critical`` / ``warning`` / ``safe``."""
    if days_until_stockout <= critical_days:
        return "critical"
    if days_until_stockout <= warning_days:
        return "warning"
    return "safe"
