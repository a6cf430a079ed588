"""
Rule-based remediation suggestions for slow-moving products.

Rules (each evaluated unconditionally, each appends at most one suggestion)
---------------------------------------------------------------------------
Let ``since = days_since_last_sale`` and ``T = threshold_days``.

    1. DISCOUNT     : since > T
                      pct = min(50, floor(since / 10) * 5 + 15)
                      urgency high if since > 2T else medium
    2. BUNDLE       : always; template drawn from BUNDLE_TEMPLATES
    3. SEASONAL     : days_in_store > 60
    4. MARKETING    : daily_sales < 0.1
    5. LIQUIDATION  : stock > 20 and since > T          (urgency high)

Ordering
--------
Output is sorted by urgency weight (high=3, medium=2, low=1) descending.
``sorted`` is stable, so suggestions of equal urgency keep rule order 1 → 5.
"""

from __future__ import annotations

import logging
import random
from typing import Optional

from inventory_signals.models.assessment import StalenessAssessment
from inventory_signals.models.product import ProductSignal
from inventory_signals.models.suggestion import Suggestion
from inventory_signals.suggestions.selection import make_rng

logger = logging.getLogger(__name__)

BUNDLE_TEMPLATES: tuple[str, ...] = (
    "Starter Kit Bundle - Pair with popular bestsellers",
    "Complete Solution Bundle - Add complementary accessories",
    "Beginner's Bundle - Combine with tutorial/guide products",
    "Seasonal Bundle - Group with seasonal items",
    "Value Pack Bundle - Multiple quantities at discount",
)

SEASONAL_MIN_DAYS_IN_STORE = 60
LOW_VELOCITY_DAILY = 0.1
LIQUIDATION_MIN_STOCK = 20
MAX_DISCOUNT_PCT = 50


def discount_percentage(days_since_last_sale: int) -> int:
    """Graduated clearance discount: 15% base + 5% per 10 idle days, capped at 50%."""
    return min(MAX_DISCOUNT_PCT, (days_since_last_sale // 10) * 5 + 15)


def generate(
    product: ProductSignal,
    staleness: StalenessAssessment,
    threshold_days: int,
    rng: Optional[random.Random] = None,
    selection_mode: str = "random",
) -> list[Suggestion]:
    """Build the prioritized suggestion list for one product.

    Args:
        product:        Stock, velocity and identity of the product.
        staleness:      Elapsed-day counts (the tier itself is not consulted).
        threshold_days: Merchant's days-without-sale threshold ``T``.
        rng:            Explicit generator for the bundle pick (tests).
        selection_mode: ``"random"`` or ``"stable"`` when ``rng`` is None.

    Returns:
        Suggestions sorted by urgency, high first.
    """
    since = staleness.days_since_last_sale
    suggestions: list[Suggestion] = []

    if since > threshold_days:
        suggestions.append(_discount(since, threshold_days))

    suggestions.append(
        _bundle(make_rng(product.id, selection_mode, rng, salt="bundle"))
    )

    if staleness.days_in_store > SEASONAL_MIN_DAYS_IN_STORE:
        suggestions.append(_seasonal())

    if product.daily_sales < LOW_VELOCITY_DAILY:
        suggestions.append(_marketing())

    if product.stock > LIQUIDATION_MIN_STOCK and since > threshold_days:
        suggestions.append(_liquidation())

    ordered = sorted(suggestions, key=lambda s: s.weight, reverse=True)
    logger.debug(
        "Generated %d suggestions for %s (since=%d, T=%d)",
        len(ordered), product.id, since, threshold_days,
    )
    return ordered


# ── Rule builders ─────────────────────────────────────────────────────────────

def _discount(since: int, threshold_days: int) -> Suggestion:
    pct = discount_percentage(since)
    return Suggestion(
        type="discount",
        title=f"{pct}% Clearance Sale",
        description=(
            f"Product hasn't sold in {since} days. "
            "Implement graduated discount to move inventory."
        ),
        urgency="high" if since > threshold_days * 2 else "medium",
        expected_impact="Could increase sales velocity by 200-400%",
        action_steps=(
            f"Start with {pct // 2}% discount",
            f"Increase to {pct}% if no sales in 7 days",
            'Feature in "Clearance" section',
            "Send email to previous customers",
        ),
    )


def _bundle(rng: random.Random) -> Suggestion:
    return Suggestion(
        type="bundle",
        title=rng.choice(BUNDLE_TEMPLATES),
        description=(
            "Create attractive bundle to move slow-selling inventory "
            "while increasing average order value."
        ),
        urgency="medium",
        expected_impact="40-80% increase in product movement",
        action_steps=(
            "Identify 2-3 complementary products",
            "Price bundle at 15-25% discount vs individual items",
            "Create appealing bundle name and description",
            "Feature bundle prominently on homepage",
            "Promote via email and social media",
        ),
    )


def _seasonal() -> Suggestion:
    return Suggestion(
        type="seasonal",
        title="Seasonal Repositioning",
        description=(
            "Long-term inventory may benefit from seasonal marketing angle "
            "or use case expansion."
        ),
        urgency="medium",
        expected_impact="New customer segments, 30-60% sales increase",
        action_steps=(
            "Research seasonal trends for this product category",
            "Create seasonal landing page",
            "Update product description with seasonal benefits",
            "Run targeted ads for seasonal keywords",
        ),
    )


def _marketing() -> Suggestion:
    return Suggestion(
        type="marketing",
        title="Product Positioning Review",
        description=(
            "Low sales velocity suggests product positioning or description "
            "may need optimization."
        ),
        urgency="medium",
        expected_impact="Better conversion rates, clearer value proposition",
        action_steps=(
            "Analyze competitor product descriptions",
            "A/B test new product titles",
            "Add customer reviews and social proof",
            "Improve product photography",
            "Highlight unique selling points",
        ),
    )


def _liquidation() -> Suggestion:
    # Typed "reposition"; the title carries the liquidation wording.
    return Suggestion(
        type="reposition",
        title="Inventory Liquidation Strategy",
        description=(
            "High stock levels with poor sales velocity require immediate "
            "action to prevent dead inventory."
        ),
        urgency="high",
        expected_impact="Recover inventory investment, free up warehouse space",
        action_steps=(
            'Create "Buy 2 Get 1 Free" promotion',
            "Offer to wholesale/bulk buyers",
            "Consider donation for tax benefits",
            "Use as customer acquisition loss leader",
        ),
    )
