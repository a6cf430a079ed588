"""
Multi-channel alert dispatch with partial-failure aggregation.

Dispatch order: email → slack → discord. Each channel is attempted only if it
is enabled and has its recipient / webhook URL, and each is isolated: an
exception in one channel becomes a failed ``DispatchResult`` and the next
channel is still attempted. Channels run sequentially.

Candidate products per channel
------------------------------
Email (threshold-relative, toggle-driven):
    oos_alerts_enabled       → stock == 0
    critical_alerts_enabled  → 0 < stock <= threshold / 2
    neither toggle set       → 0 < stock <= threshold, plus stock == 0
    Deduplicated by product id (first occurrence wins). An empty set is a
    success with an explanatory message and no transport call.

Slack / Discord:
    All products are handed to the sender, which always reports stock == 0
    and 0 < stock <= 5 regardless of the e-mail toggles or threshold.

Aggregate (``summarize``)
-------------------------
    all succeeded  → "... sent successfully to all N channels"
    some succeeded → "... sent to M/N channels"
    none succeeded → failure
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from inventory_signals.config import NotificationConfig
from inventory_signals.exceptions import ValidationError
from inventory_signals.models.notification import (
    DispatchReport,
    DispatchResult,
    NotificationSettings,
)
from inventory_signals.models.product import AlertProduct, ShopInfo
from inventory_signals.notifications.mailer import EmailSender, build_email_sender
from inventory_signals.notifications.webhooks import (
    DiscordWebhookSender,
    SlackWebhookSender,
    WebhookSender,
)

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 5

NO_MATCH_MESSAGE = "No products match selected alert criteria"

TEST_PRODUCTS: tuple[AlertProduct, ...] = (
    AlertProduct(
        id="test-1", name="Test Product - Out of Stock", stock=0, price=29.99, category="Test"
    ),
    AlertProduct(
        id="test-2", name="Test Product - Low Stock", stock=2, price=19.99, category="Test"
    ),
)


@dataclass
class ChannelSenders:
    """The transports the dispatcher talks to (ports, swapped for fakes in tests)."""

    email: EmailSender
    slack: WebhookSender
    discord: WebhookSender


def build_senders(config: NotificationConfig = NotificationConfig()) -> ChannelSenders:
    """Default transports from configuration."""
    return ChannelSenders(
        email=build_email_sender(config),
        slack=SlackWebhookSender(
            timeout=config.webhook_timeout_seconds, low_stock_max=config.chat_low_stock_max
        ),
        discord=DiscordWebhookSender(
            timeout=config.webhook_timeout_seconds, low_stock_max=config.chat_low_stock_max
        ),
    )


# ── Candidate selection ───────────────────────────────────────────────────────

def select_email_products(
    products: Sequence[AlertProduct],
    threshold: int,
    oos_alerts_enabled: bool,
    critical_alerts_enabled: bool,
) -> list[AlertProduct]:
    """Products the e-mail channel should report, deduplicated by id."""
    out_of_stock = [p for p in products if p.stock == 0]
    candidates: list[AlertProduct] = []

    if oos_alerts_enabled:
        candidates.extend(out_of_stock)
    if critical_alerts_enabled:
        candidates.extend(p for p in products if 0 < p.stock <= threshold / 2)
    if not oos_alerts_enabled and not critical_alerts_enabled:
        low_stock = [p for p in products if 0 < p.stock <= threshold]
        candidates = low_stock + out_of_stock

    seen: set[str] = set()
    unique: list[AlertProduct] = []
    for p in candidates:
        if p.id not in seen:
            seen.add(p.id)
            unique.append(p)
    return unique


# ── Dispatch ──────────────────────────────────────────────────────────────────

def send_all(
    settings: NotificationSettings,
    products: Sequence[AlertProduct],
    shop: ShopInfo,
    threshold: int = DEFAULT_THRESHOLD,
    senders: Optional[ChannelSenders] = None,
) -> list[DispatchResult]:
    """Send alerts to every configured channel.

    Args:
        settings:  Channel settings (enabled flags, recipients, webhooks, toggles).
        products:  Products to report on.
        shop:      Store identity for message shaping.
        threshold: Low-stock threshold for the e-mail channel.
        senders:   Transports; defaults to ``build_senders()``.

    Returns:
        One result per attempted channel, in dispatch order. Channels that are
        disabled or missing their target are not attempted and not reported.
    """
    senders = senders or build_senders()
    results: list[DispatchResult] = []

    if settings.email.is_configured:
        results.append(_send_email(settings, products, shop, threshold, senders.email))

    if settings.slack.is_configured:
        results.append(
            _guarded("slack", lambda: senders.slack.send(settings.slack, products, shop))
        )

    if settings.discord.is_configured:
        results.append(
            _guarded("discord", lambda: senders.discord.send(settings.discord, products, shop))
        )

    logger.info(
        "Dispatch complete: %d/%d channels succeeded",
        sum(1 for r in results if r.success), len(results),
    )
    return results


def test_all(
    settings: NotificationSettings,
    shop: ShopInfo,
    senders: Optional[ChannelSenders] = None,
) -> list[DispatchResult]:
    """Send the canned out-of-stock / low-stock pair through every configured channel."""
    return send_all(settings, list(TEST_PRODUCTS), shop, DEFAULT_THRESHOLD, senders)


test_all.__test__ = False  # keep pytest from collecting it when imported into tests


def _send_email(
    settings: NotificationSettings,
    products: Sequence[AlertProduct],
    shop: ShopInfo,
    threshold: int,
    sender: EmailSender,
) -> DispatchResult:
    email = settings.email
    selected = select_email_products(
        products, threshold, email.oos_alerts_enabled, email.critical_alerts_enabled
    )
    if not selected:
        logger.info("Email channel: no products match the selected alert criteria")
        return DispatchResult(channel="email", success=True, message=NO_MATCH_MESSAGE)

    try:
        result = sender.send(email, selected, shop, threshold)
    except Exception as exc:
        logger.error("Email channel failed: %s", exc)
        return DispatchResult(channel="email", success=False, message=f"Email error: {exc}")
    return result


def _guarded(channel: str, send: Callable[[], DispatchResult]) -> DispatchResult:
    """Run one channel send, converting any raised error into a failed result."""
    try:
        return send()
    except Exception as exc:
        logger.error("%s channel failed: %s", channel, exc)
        return DispatchResult(channel=channel, success=False, message=f"{channel} error: {exc}")


# ── Aggregation ───────────────────────────────────────────────────────────────

_WORDING = {
    "alert": (
        "Alerts sent successfully to all {n} channels",
        "Alerts sent to {m}/{n} channels",
        "Failed to send alerts to any channels",
    ),
    "test": (
        "Test notifications sent successfully to all {n} channels",
        "Test sent to {m}/{n} channels",
        "Failed to send test notifications",
    ),
}


def summarize(results: Sequence[DispatchResult], kind: str = "alert") -> DispatchReport:
    """Aggregate per-channel results into one caller-facing report.

    Args:
        results: Output of ``send_all`` / ``test_all``.
        kind:    ``"alert"`` or ``"test"`` (message wording only).
    """
    all_ok, partial, failed = _WORDING[kind]
    total = len(results)
    success_count = sum(1 for r in results if r.success)

    if total == 0:
        return DispatchReport(False, "No notification channels are enabled", list(results))
    if success_count == total:
        return DispatchReport(True, all_ok.format(n=total), list(results))
    if success_count > 0:
        return DispatchReport(True, partial.format(m=success_count, n=total), list(results))
    return DispatchReport(False, failed, list(results))


def _validate_alert_products(
    products: Optional[Sequence[AlertProduct]], threshold: int
) -> list[AlertProduct]:
    """Return the low + out-of-stock products to alert on.

    Raises:
        ValidationError: If no products were supplied or none qualify.
    """
    if not products:
        raise ValidationError("No product data available")

    low_stock = [p for p in products if 0 < p.stock <= threshold]
    out_of_stock = [p for p in products if p.stock == 0]
    if not low_stock and not out_of_stock:
        raise ValidationError("No low stock or out of stock products to alert about")
    return low_stock + out_of_stock


def dispatch_alerts(
    settings: NotificationSettings,
    products: Optional[Sequence[AlertProduct]],
    shop: ShopInfo,
    threshold: int = DEFAULT_THRESHOLD,
    senders: Optional[ChannelSenders] = None,
) -> DispatchReport:
    """Validate the request, send to all channels, and aggregate.

    Only low-stock and out-of-stock products are forwarded to ``send_all``.
    Missing or non-qualifying input returns ``success=False`` without
    attempting any channel.
    """
    try:
        to_alert = _validate_alert_products(products, threshold)
    except ValidationError as exc:
        logger.info("Alert dispatch rejected: %s", exc)
        return DispatchReport(success=False, message=str(exc))

    return summarize(send_all(settings, to_alert, shop, threshold, senders), kind="alert")


def dispatch_test(
    settings: NotificationSettings,
    shop: ShopInfo,
    senders: Optional[ChannelSenders] = None,
) -> DispatchReport:
    """``test_all`` + ``summarize`` with test wording."""
    return summarize(test_all(settings, shop, senders), kind="test")
