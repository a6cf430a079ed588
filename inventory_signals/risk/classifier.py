"""
Per-product risk tagging: forecast + staleness in one call.

This is what the route layer (or the CLI ``classify`` command) runs over the
catalog before deciding which products get suggestions or alerts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from inventory_signals.config import ForecastConfig
from inventory_signals.models.assessment import ForecastAssessment, StalenessAssessment
from inventory_signals.models.product import ProductSignal
from inventory_signals.risk.forecast import compute_forecast
from inventory_signals.risk.staleness import StalenessPolicy, compute_staleness
from inventory_signals.utils.time_utils import DateLike

logger = logging.getLogger(__name__)


@dataclass
class ProductRisk:
    """Forecast and staleness for one product.

    Attributes:
        product:   The input signal.
        forecast:  Stockout projection.
        staleness: Time-without-sale tier.
    """

    product:   ProductSignal
    forecast:  ForecastAssessment
    staleness: StalenessAssessment

    @property
    def is_flagged(self) -> bool:
        """True if either dimension needs merchant attention."""
        return (
            self.forecast.status in ("critical", "warning")
            or self.staleness.tier != "fresh"
        )


def classify_product(
    product: ProductSignal,
    now: DateLike,
    policy: StalenessPolicy,
    forecast_config: ForecastConfig = ForecastConfig(),
) -> ProductRisk:
    """Tag one product with its forecast and staleness assessments."""
    forecast = compute_forecast(
        product.stock,
        product.daily_sales,
        critical_days=forecast_config.critical_days,
        warning_days=forecast_config.warning_days,
    )
    staleness = compute_staleness(product.created_at, product.last_sold_date, now, policy)
    return ProductRisk(product=product, forecast=forecast, staleness=staleness)


def classify_catalog(
    products: Iterable[ProductSignal],
    now: DateLike,
    policy: StalenessPolicy,
    forecast_config: ForecastConfig = ForecastConfig(),
) -> list[ProductRisk]:
    """Tag every product; order is preserved."""
    risks = [classify_product(p, now, policy, forecast_config) for p in products]
    logger.debug(
        "Classified %d products with %r (%d flagged)",
        len(risks), policy, sum(1 for r in risks if r.is_flagged),
    )
    return risks
