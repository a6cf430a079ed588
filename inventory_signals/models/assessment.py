"""
Risk assessment outputs produced by ``inventory_signals.risk``.

Both models are frozen: an assessment is derived deterministically from its
inputs and never mutated afterwards.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, model_validator

ForecastStatus = Literal["critical", "warning", "safe", "unknown"]


class ForecastAssessment(BaseModel):
    """Projected days until stockout and the resulting status.

    ``status == "unknown"`` if and only if ``days_until_stockout is None``
    (no sales velocity to project from).
    """

    model_config = ConfigDict(frozen=True)

    days_until_stockout: Optional[int] = None
    status: ForecastStatus = "unknown"

    @model_validator(mode="after")
    def validate_unknown_pairing(self) -> "ForecastAssessment":
        if (self.status == "unknown") != (self.days_until_stockout is None):
            raise ValueError(
                "status 'unknown' must be paired with days_until_stockout=None "
                f"(got status={self.status!r}, days_until_stockout={self.days_until_stockout!r})."
            )
        if self.days_until_stockout is not None and self.days_until_stockout < 0:
            raise ValueError("days_until_stockout must be non-negative.")
        return self


class StalenessAssessment(BaseModel):
    """How long a product has been in the store and without a sale.

    Attributes:
        days_in_store:        Days since the product was created.
        days_since_last_sale: Days since the last sale (creation date if never sold).
        tier:                 Tier name from the policy's vocabulary.
        policy:               Name of the policy that assigned ``tier``.
    """

    model_config = ConfigDict(frozen=True)

    days_in_store: int
    days_since_last_sale: int
    tier: str
    policy: str

    @model_validator(mode="after")
    def validate_non_negative(self) -> "StalenessAssessment":
        if self.days_in_store < 0 or self.days_since_last_sale < 0:
            raise ValueError("Elapsed day counts must be non-negative.")
        return self
