"""
Storefront visibility models.

``VisibilityPolicy`` is the merchant's desired-state policy. ``CatalogProduct``
is one row of the platform's actual state. ``ReconciliationOutcome`` is built
fresh per bulk update / sync pass.

Platform statuses: ``ACTIVE`` (visible on the storefront) and ``DRAFT`` (hidden)
are the only ones reconciliation reads or writes. Any other status the
platform reports (``ARCHIVED``, ``UNLISTED``, ...) is kept as given and never
touched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

STATUS_ACTIVE = "ACTIVE"
STATUS_DRAFT = "DRAFT"


class VisibilityPolicy(BaseModel):
    """Desired visibility rules.

    Attributes:
        enabled:             Master switch; when False no platform calls are made.
        hide_out_of_stock:   Move products with zero stock to DRAFT.
        show_when_restocked: Move products with positive stock back to ACTIVE.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    hide_out_of_stock: bool = True
    show_when_restocked: bool = True

    def should_hide(self, stock: int) -> bool:
        return self.hide_out_of_stock and stock == 0

    def should_show(self, stock: int) -> bool:
        return self.show_when_restocked and stock > 0


class StockLevel(BaseModel):
    """Product id with its current stock; the input unit of a bulk update."""

    model_config = ConfigDict(frozen=True)

    id: str
    stock: int

    @field_validator("stock")
    @classmethod
    def clamp_stock(cls, v: int) -> int:
        return v if v > 0 else 0


class CatalogProduct(StockLevel):
    """A product as currently recorded by the commerce platform.

    ``stock`` is the sum of inventory quantities across all variants.
    """

    title: str = ""
    status: str = STATUS_ACTIVE


@dataclass
class VisibilityUpdateResult:
    """Result of a single ``update_visibility`` platform call."""

    success: bool
    status: Optional[str] = None
    error: Optional[str] = None


@dataclass
class VisibilityStatus:
    """Current and desired visibility for one product."""

    id: str
    title: str
    status: str
    stock: int
    is_visible: bool
    should_be_visible: bool
    should_be_hidden: bool


@dataclass
class ReconciliationOutcome:
    """Result of a bulk update or a full sync pass.

    ``hidden`` and ``shown`` are disjoint: each product is evaluated for at
    most one directional change per pass.

    Attributes:
        success: False only for early returns (disabled, fetch failure,
                 invalid input); per-item failures still yield True.
        message: Summary line for the caller.
        hidden:  Product ids moved to DRAFT.
        shown:   Product ids moved to ACTIVE.
        errors:  ``"<id>: <reason>"`` for each failed item.
        total:   Number of products considered.
    """

    success: bool
    message: str = ""
    hidden: list[str] = field(default_factory=list)
    shown: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    total: int = 0

    @property
    def summary(self) -> dict[str, int]:
        return {
            "hidden": len(self.hidden),
            "shown": len(self.shown),
            "errors": len(self.errors),
            "total": self.total,
        }
