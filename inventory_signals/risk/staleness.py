"""
Staleness classification: how long a product has gone without a sale.

Two policies exist and are kept as separate named strategies. Callers pick
one explicitly; they are not interchangeable because their tier vocabularies
and cutoffs differ.

ThresholdStalenessPolicy ("threshold")
--------------------------------------
Relative to a merchant-selected threshold ``T`` (days without sales):

    days_since_last_sale <= T/2  → fresh
    days_since_last_sale <= T    → aging
    days_since_last_sale <= 2T   → stale
    otherwise                    → critical

``days_in_store`` does not participate.

FixedCutpointStalenessPolicy ("fixed")
--------------------------------------
Hardcoded cutoffs, first match wins:

    days_since_last_sale > 90                          → critical
    days_since_last_sale > 60  or days_in_store > 180  → warning
    days_since_last_sale > 30  or days_in_store > 90   → attention
    otherwise                                          → fresh

In both policies ``days_since_last_sale`` dominates: it alone can reach the
top tier.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar, Optional

from inventory_signals.models.assessment import StalenessAssessment
from inventory_signals.utils.time_utils import DateLike, elapsed_days


class StalenessPolicy(ABC):
    """Common interface for staleness tier assignment.

    Subclasses set ``name`` and ``tiers`` (ordered least → most severe) and
    implement ``classify()``.
    """

    name: ClassVar[str]
    tiers: ClassVar[tuple[str, ...]]

    @abstractmethod
    def classify(self, days_in_store: int, days_since_last_sale: int) -> str:
        """Return the tier name for the given elapsed-day counts."""

    def severity(self, tier: str) -> int:
        """Rank of ``tier`` within this policy (0 = least severe)."""
        return self.tiers.index(tier)


class ThresholdStalenessPolicy(StalenessPolicy):
    """Tiers relative to a configurable days-without-sale threshold.

    Args:
        threshold_days: ``T``: the merchant's "stale after" setting. Must be > 0.
    """

    name = "threshold"
    tiers = ("fresh", "aging", "stale", "critical")

    def __init__(self, threshold_days: int = 30) -> None:
        if threshold_days <= 0:
            raise ValueError(f"threshold_days must be > 0, got {threshold_days}.")
        self.threshold_days = threshold_days

    def classify(self, days_in_store: int, days_since_last_sale: int) -> str:
        t = self.threshold_days
        if days_since_last_sale <= t / 2:
            return "fresh"
        if days_since_last_sale <= t:
            return "aging"
        if days_since_last_sale <= t * 2:
            return "stale"
        return "critical"

    def __repr__(self) -> str:
        return f"ThresholdStalenessPolicy(threshold_days={self.threshold_days})"


class FixedCutpointStalenessPolicy(StalenessPolicy):
    """Tiers from hardcoded 30/60/90-day sale and 90/180-day shelf-age cutoffs."""

    name = "fixed"
    tiers = ("fresh", "attention", "warning", "critical")

    def classify(self, days_in_store: int, days_since_last_sale: int) -> str:
        if days_since_last_sale > 90:
            return "critical"
        if days_since_last_sale > 60 or days_in_store > 180:
            return "warning"
        if days_since_last_sale > 30 or days_in_store > 90:
            return "attention"
        return "fresh"

    def __repr__(self) -> str:
        return "FixedCutpointStalenessPolicy()"


_POLICIES: dict[str, type[StalenessPolicy]] = {
    ThresholdStalenessPolicy.name: ThresholdStalenessPolicy,
    FixedCutpointStalenessPolicy.name: FixedCutpointStalenessPolicy,
}


def get_staleness_policy(name: str, threshold_days: int = 30) -> StalenessPolicy:
    """Build a policy by name.

    Args:
        name:           ``"threshold"`` or ``"fixed"``.
        threshold_days: Used only by the threshold policy.

    Raises:
        ValueError: If ``name`` is not a known policy.
    """
    if name not in _POLICIES:
        raise ValueError(
            f"Unknown staleness policy '{name}'. Expected one of {sorted(_POLICIES)}."
        )
    if name == ThresholdStalenessPolicy.name:
        return ThresholdStalenessPolicy(threshold_days)
    return FixedCutpointStalenessPolicy()


def compute_staleness(
    created_at: DateLike,
    last_sold_date: Optional[DateLike],
    now: DateLike,
    policy: StalenessPolicy,
) -> StalenessAssessment:
    """Compute elapsed days and assign a staleness tier.

    A product that has never sold is measured from its creation date.

    Args:
        created_at:     Date the product was added to the store.
        last_sold_date: Date of the last sale, or ``None``.
        now:            Reference date for the assessment.
        policy:         Tier assignment strategy.

    Returns:
        StalenessAssessment tagged with ``policy.name``.
    """
    days_in_store = elapsed_days(created_at, now)
    last_sale: DateLike = last_sold_date if last_sold_date is not None else created_at
    days_since_last_sale = elapsed_days(last_sale, now)

    return StalenessAssessment(
        days_in_store=days_in_store,
        days_since_last_sale=days_since_last_sale,
        tier=policy.classify(days_in_store, days_since_last_sale),
        policy=policy.name,
    )


def is_flagged(assessment: StalenessAssessment) -> bool:
    """True for every tier except ``fresh`` (the products a merchant should review)."""
    return assessment.tier != "fresh"
