"""
Chat channels: Slack incoming webhooks and Discord webhooks.

Unlike the e-mail channel, chat alerts ignore the merchant's alert-type
toggles and the configured threshold: every message reports all out-of-stock
products and every product with ``0 < stock <= CHAT_LOW_STOCK_MAX``.

Payload shaping
---------------
Slack   : one attachment, color ``danger`` if anything is out of stock else
          ``warning``, two short fields (Out of Stock / Low Stock).
Discord : one embed, color red (0xFF0000) or orange (0xFFA500), two inline
          fields.

Each sender POSTs JSON with ``httpx`` and returns a ``DispatchResult``; HTTP
errors and non-2xx responses become ``success=False`` results.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, ClassVar, Optional, Sequence

import httpx

from inventory_signals.exceptions import ChannelError, ConfigurationError
from inventory_signals.models.notification import (
    DiscordChannelConfig,
    DispatchResult,
    SlackChannelConfig,
)
from inventory_signals.models.product import AlertProduct, ShopInfo
from inventory_signals.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

CHAT_LOW_STOCK_MAX = 5

SLACK_COLOR_DANGER = "danger"
SLACK_COLOR_WARNING = "warning"
DISCORD_COLOR_RED = 0xFF0000
DISCORD_COLOR_ORANGE = 0xFFA500

FOOTER_TEXT = "Shopify Inventory Management"
DISCORD_AVATAR_URL = "https://cdn.shopify.com/s/files/1/0533/2089/files/shopify_glyph.png"


def partition_chat_products(
    products: Sequence[AlertProduct],
    low_stock_max: int = CHAT_LOW_STOCK_MAX,
) -> tuple[list[AlertProduct], list[AlertProduct]]:
    """Split products into (out_of_stock, low_stock) for chat messages."""
    out_of_stock = [p for p in products if p.stock == 0]
    low_stock = [p for p in products if 0 < p.stock <= low_stock_max]
    return out_of_stock, low_stock


def _format_out_of_stock(products: Sequence[AlertProduct]) -> str:
    return "\n".join(f"• {p.name}" for p in products) if products else "None"


def _format_low_stock(products: Sequence[AlertProduct]) -> str:
    return "\n".join(f"• {p.name} ({p.stock} left)" for p in products) if products else "None"


def build_slack_payload(
    products: Sequence[AlertProduct],
    shop: ShopInfo,
    channel: str,
    low_stock_max: int = CHAT_LOW_STOCK_MAX,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Build the Slack incoming-webhook JSON body."""
    now = now or utcnow()
    out_of_stock, low_stock = partition_chat_products(products, low_stock_max)
    attachment = {
        "color": SLACK_COLOR_DANGER if out_of_stock else SLACK_COLOR_WARNING,
        "title": f"📦 Inventory Alert for {shop.name}",
        "fields": [
            {"title": "🚨 Out of Stock", "value": _format_out_of_stock(out_of_stock), "short": True},
            {
                "title": f"⚠️ Low Stock (≤{low_stock_max})",
                "value": _format_low_stock(low_stock),
                "short": True,
            },
        ],
        "footer": FOOTER_TEXT,
        "ts": int(now.timestamp()),
    }
    return {
        "channel": channel,
        "username": "Inventory Bot",
        "icon_emoji": ":package:",
        "text": f"Inventory alert for {shop.name}",
        "attachments": [attachment],
    }


def build_discord_payload(
    products: Sequence[AlertProduct],
    shop: ShopInfo,
    username: str,
    low_stock_max: int = CHAT_LOW_STOCK_MAX,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Build the Discord webhook JSON body."""
    now = now or utcnow()
    out_of_stock, low_stock = partition_chat_products(products, low_stock_max)
    embed = {
        "title": f"📦 Inventory Alert for {shop.name}",
        "color": DISCORD_COLOR_RED if out_of_stock else DISCORD_COLOR_ORANGE,
        "fields": [
            {"name": "🚨 Out of Stock", "value": _format_out_of_stock(out_of_stock), "inline": True},
            {
                "name": f"⚠️ Low Stock (≤{low_stock_max})",
                "value": _format_low_stock(low_stock),
                "inline": True,
            },
        ],
        "footer": {"text": FOOTER_TEXT},
        "timestamp": now.isoformat(),
    }
    return {"username": username, "avatar_url": DISCORD_AVATAR_URL, "embeds": [embed]}


class WebhookSender:
    """POST a JSON payload to a webhook URL.

    Subclasses set ``channel`` / ``label`` and implement ``build_payload()``.

    Args:
        client:        Optional ``httpx.Client`` (tests pass one backed by
                       ``httpx.MockTransport``). ``None`` → one-off ``httpx.post``.
        timeout:       Request timeout in seconds.
        low_stock_max: Upper bound of the chat low-stock band.
    """

    channel: ClassVar[str]
    label: ClassVar[str]

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
        low_stock_max: int = CHAT_LOW_STOCK_MAX,
    ) -> None:
        self.client = client
        self.timeout = timeout
        self.low_stock_max = low_stock_max

    def build_payload(self, config: Any, products: Sequence[AlertProduct], shop: ShopInfo) -> dict:
        raise NotImplementedError

    def send(self, config: Any, products: Sequence[AlertProduct], shop: ShopInfo) -> DispatchResult:
        """Send one alert; failures come back as ``success=False``."""
        if not config.is_configured:
            raise ConfigurationError(f"{self.label} webhook is disabled or has no URL")

        payload = self.build_payload(config, products, shop)
        try:
            self._post(config.webhook_url, payload)
        except ChannelError as exc:
            logger.warning("%s notification failed: %s", self.label, exc)
            return DispatchResult(
                channel=self.channel,
                success=False,
                message=f"Failed to send {self.label} notification: {exc}",
            )

        logger.info("%s notification sent (%d products)", self.label, len(products))
        return DispatchResult(
            channel=self.channel,
            success=True,
            message=f"{self.label} notification sent successfully",
        )

    def _post(self, url: str, payload: dict) -> None:
        """POST JSON; raise ``ChannelError`` on transport errors and non-2xx responses."""
        try:
            if self.client is not None:
                resp = self.client.post(url, json=payload, timeout=self.timeout)
            else:
                resp = httpx.post(url, json=payload, timeout=self.timeout)
        except httpx.HTTPError as exc:
            raise ChannelError(f"{self.label} request error: {exc}") from exc

        if resp.is_error:
            raise ChannelError(
                f"{self.label} API error: {resp.status_code}", status_code=resp.status_code
            )


class SlackWebhookSender(WebhookSender):
    """Slack incoming-webhook sender."""

    channel = "slack"
    label = "Slack"

    def build_payload(
        self, config: SlackChannelConfig, products: Sequence[AlertProduct], shop: ShopInfo
    ) -> dict:
        return build_slack_payload(products, shop, config.channel, self.low_stock_max)


class DiscordWebhookSender(WebhookSender):
    """Discord webhook sender."""

    channel = "discord"
    label = "Discord"

    def build_payload(
        self, config: DiscordChannelConfig, products: Sequence[AlertProduct], shop: ShopInfo
    ) -> dict:
        return build_discord_payload(products, shop, config.username, self.low_stock_max)
