"""
Product input models.

``ProductSignal`` is the per-product input to the risk classifier and the
suggestion engine: current stock, sales velocity, and catalog dates. It is
supplied by the external catalog source and treated as immutable for the
duration of one invocation.

``ShopInfo`` identifies the store an alert is about; it is only used for
message shaping by the notification channels.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SalesVelocity(BaseModel):
    """Average units sold per day, week and month."""

    model_config = ConfigDict(frozen=True)

    daily: float = Field(default=0.0, ge=0.0)
    weekly: float = Field(default=0.0, ge=0.0)
    monthly: float = Field(default=0.0, ge=0.0)


class ProductSignal(BaseModel):
    """Stock and sales snapshot for one product.

    Negative stock (oversold inventory) is clamped to 0 so every downstream
    rule sees a non-negative quantity.

    Attributes:
        id:             Platform product id (e.g. a Shopify GID).
        name:           Display title.
        stock:          Units on hand across all variants.
        velocity:       Sales velocity.
        created_at:     Date the product was added to the store.
        last_sold_date: Date of the most recent sale, or ``None`` if never sold.
        price:          Unit price in store currency.
        category:       Product type / category, if known.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    stock: int = 0
    velocity: SalesVelocity = SalesVelocity()
    created_at: date
    last_sold_date: Optional[date] = None
    price: float = Field(default=0.0, ge=0.0)
    category: Optional[str] = None

    @field_validator("stock")
    @classmethod
    def clamp_stock(cls, v: int) -> int:
        return v if v > 0 else 0

    @field_validator("id")
    @classmethod
    def validate_id_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Product id must not be empty.")
        return v

    @property
    def daily_sales(self) -> float:
        return self.velocity.daily


class AlertProduct(BaseModel):
    """Minimal product shape consumed by the notification channels."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    stock: int
    price: float = 0.0
    category: Optional[str] = None


class ShopInfo(BaseModel):
    """Store identity used in alert subjects, sender addresses and links."""

    model_config = ConfigDict(frozen=True)

    name: str
    email: str = ""
    myshopify_domain: str = ""
    contact_email: Optional[str] = None
