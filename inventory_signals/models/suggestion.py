"""
Remediation suggestion models.

Two schemas coexist on purpose:

``Suggestion``
    Output of the rule-based engine (``suggestions.rules.generate``):
    urgency, expected impact and an ordered list of action steps.

``DataDrivenSuggestion``
    Output of the velocity/turnover path
    (``suggestions.data_driven.generate_data_driven``): a single action line
    and a confidence percentage string. It has no urgency and is not sorted.

Suggestions are produced fresh on every request and never persisted.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

SuggestionType = Literal[
    "discount", "bundle", "reposition", "seasonal", "marketing", "clearance",
    "liquidation", "promotion", "cross-sell", "visibility", "category",
]
Urgency = Literal["low", "medium", "high"]

URGENCY_WEIGHT: dict[str, int] = {"high": 3, "medium": 2, "low": 1}


class Suggestion(BaseModel):
    """A prioritized remediation step for a slow-moving product."""

    model_config = ConfigDict(frozen=True)

    type: SuggestionType
    title: str
    description: str
    urgency: Urgency
    expected_impact: str
    action_steps: tuple[str, ...] = ()

    @property
    def weight(self) -> int:
        return URGENCY_WEIGHT[self.urgency]


class DataDrivenSuggestion(BaseModel):
    """A confidence-scored suggestion derived from stock turnover and velocity."""

    model_config = ConfigDict(frozen=True)

    type: SuggestionType
    title: str
    description: str
    action: str
    confidence: str

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, v: str) -> str:
        if not v.endswith("%") or not v[:-1].replace(".", "", 1).isdigit():
            raise ValueError(f"confidence must be a percentage string like '95%', got {v!r}.")
        return v
