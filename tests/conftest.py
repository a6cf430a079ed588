"""
Shared pytest fixtures for the Inventory Signals test suite.

Provides:
  - Sample domain objects (``ProductSignal``, ``AlertProduct``, ``ShopInfo``).
  - In-memory fakes for every port: ``FakeEmailSender``, ``FakeWebhookSender``,
    ``FakePlatform``. Fakes record their calls so tests can assert on them
    without any network.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

import pytest

from inventory_signals.exceptions import ConfigurationError, PlatformError
from inventory_signals.models.notification import (
    DiscordChannelConfig,
    DispatchResult,
    EmailChannelConfig,
    NotificationSettings,
    SlackChannelConfig,
)
from inventory_signals.models.product import AlertProduct, ProductSignal, SalesVelocity, ShopInfo
from inventory_signals.models.visibility import CatalogProduct, VisibilityUpdateResult
from inventory_signals.notifications.dispatcher import ChannelSenders

TODAY = date(2025, 6, 30)


# ── Fakes ─────────────────────────────────────────────────────────────────────

class FakeEmailSender:
    """Records ``send`` calls; optionally raises."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.calls: list[tuple[EmailChannelConfig, list[AlertProduct], int]] = []
        self.rendered: list = []

    def send(self, config, products, shop, threshold) -> DispatchResult:
        if not config.is_configured:
            raise ConfigurationError("email not configured")
        self.calls.append((config, list(products), threshold))
        if self.error is not None:
            raise self.error
        return DispatchResult("email", True, f"Email alert sent successfully to {config.recipient_email}")

    def send_rendered(self, rendered, recipient, shop) -> str:
        if self.error is not None:
            raise self.error
        self.rendered.append((rendered, recipient))
        return "fake-message-id"


class FakeWebhookSender:
    """Records ``send`` calls for one chat channel; optionally fails."""

    def __init__(self, channel: str, success: bool = True, error: Optional[Exception] = None) -> None:
        self.channel = channel
        self.success = success
        self.error = error
        self.calls: list[list[AlertProduct]] = []

    def send(self, config, products, shop) -> DispatchResult:
        self.calls.append(list(products))
        if self.error is not None:
            raise self.error
        message = "sent" if self.success else f"Failed to send {self.channel} notification: boom"
        return DispatchResult(self.channel, self.success, message)


class FakePlatform:
    """In-memory commerce platform.

    ``failing`` maps product id → error message returned as a failed result;
    ``raising`` is a set of ids whose update raises ``PlatformError``.
    """

    def __init__(
        self,
        catalog: Optional[list[CatalogProduct]] = None,
        failing: Optional[dict[str, str]] = None,
        raising: Optional[set[str]] = None,
        catalog_error: Optional[Exception] = None,
    ) -> None:
        self.catalog = list(catalog or [])
        self.failing = failing or {}
        self.raising = raising or set()
        self.catalog_error = catalog_error
        self.updates: list[tuple[str, str]] = []
        self.catalog_queries = 0

    def query_catalog(self) -> list[CatalogProduct]:
        self.catalog_queries += 1
        if self.catalog_error is not None:
            raise self.catalog_error
        return list(self.catalog)

    def get_product(self, product_id: str) -> Optional[CatalogProduct]:
        return next((p for p in self.catalog if p.id == product_id), None)

    def update_visibility(self, product_id: str, status: str) -> VisibilityUpdateResult:
        self.updates.append((product_id, status))
        if product_id in self.raising:
            raise PlatformError("connection reset")
        if product_id in self.failing:
            return VisibilityUpdateResult(success=False, error=self.failing[product_id])
        return VisibilityUpdateResult(success=True, status=status)


# ── Domain object fixtures ────────────────────────────────────────────────────

@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def shop() -> ShopInfo:
    return ShopInfo(name="Acme Goods", email="owner@acme.test", myshopify_domain="acme.myshopify.com")


@pytest.fixture
def sample_product() -> ProductSignal:
    """A slow seller: 40 units, 1/16 per day, last sale 75 days before TODAY."""
    return ProductSignal(
        id="gid://shopify/Product/1",
        name="Ceramic Mug",
        stock=40,
        velocity=SalesVelocity(daily=0.0625, weekly=0.4375, monthly=1.875),
        created_at=date(2024, 12, 1),
        last_sold_date=date(2025, 4, 16),
        price=20.0,
        category="Kitchen",
    )


@pytest.fixture
def alert_products() -> list[AlertProduct]:
    """Stocks [0, 2, 50]: one out of stock, one low, one healthy."""
    return [
        AlertProduct(id="p0", name="Out Widget", stock=0, price=10.0),
        AlertProduct(id="p2", name="Low Widget", stock=2, price=12.0),
        AlertProduct(id="p50", name="Plenty Widget", stock=50, price=8.0),
    ]


@pytest.fixture
def all_channels_settings() -> NotificationSettings:
    """All three channels enabled and configured."""
    return NotificationSettings(
        email=EmailChannelConfig(enabled=True, recipient_email="alerts@acme.test"),
        slack=SlackChannelConfig(enabled=True, webhook_url="https://hooks.slack.test/T/B/X"),
        discord=DiscordChannelConfig(enabled=True, webhook_url="https://discord.test/api/webhooks/1/a"),
    )


@pytest.fixture
def fake_senders() -> ChannelSenders:
    return ChannelSenders(
        email=FakeEmailSender(),
        slack=FakeWebhookSender("slack"),
        discord=FakeWebhookSender("discord"),
    )
