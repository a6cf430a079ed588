"""
Tests for Slack and Discord webhook senders.

What we test
------------
1. Payload shape: colors, field titles, "None" placeholders, low-stock cutoff.
2. Senders POST JSON to the configured URL (httpx.MockTransport).
3. Non-2xx and transport errors become failure results, never exceptions.
4. An unconfigured channel raises ConfigurationError.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx
import pytest

from inventory_signals.exceptions import ConfigurationError
from inventory_signals.models.notification import DiscordChannelConfig, SlackChannelConfig
from inventory_signals.models.product import AlertProduct
from inventory_signals.notifications.webhooks import (
    DiscordWebhookSender,
    SlackWebhookSender,
    build_discord_payload,
    build_slack_payload,
)

NOW = datetime(2025, 6, 30, 12, 0, tzinfo=timezone.utc)

SLACK = SlackChannelConfig(enabled=True, webhook_url="https://hooks.slack.test/T/B/X", channel="#ops")
DISCORD = DiscordChannelConfig(enabled=True, webhook_url="https://discord.test/api/webhooks/1/a")


def _client(status: int = 200, captured: list | None = None, error: Exception | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if error is not None:
            raise error
        if captured is not None:
            captured.append(request)
        return httpx.Response(status, text="ok")

    return httpx.Client(transport=httpx.MockTransport(handler))


class TestSlackPayload:
    def test_danger_when_out_of_stock(self, alert_products, shop):
        payload = build_slack_payload(alert_products, shop, "#ops", now=NOW)
        attachment = payload["attachments"][0]
        assert attachment["color"] == "danger"
        assert attachment["fields"][0] == {"title": "🚨 Out of Stock", "value": "• Out Widget", "short": True}
        assert attachment["fields"][1]["title"] == "⚠️ Low Stock (≤5)"
        assert attachment["fields"][1]["value"] == "• Low Widget (2 left)"
        assert attachment["footer"] == "Shopify Inventory Management"
        assert attachment["ts"] == int(NOW.timestamp())
        assert payload["channel"] == "#ops"

    def test_warning_and_none_placeholder(self, shop):
        payload = build_slack_payload([AlertProduct(id="l", name="Low", stock=5)], shop, "", now=NOW)
        attachment = payload["attachments"][0]
        assert attachment["color"] == "warning"
        assert attachment["fields"][0]["value"] == "None"

    def test_ignores_products_above_chat_cutoff(self, shop):
        payload = build_slack_payload([AlertProduct(id="m", name="Mid", stock=6)], shop, "", now=NOW)
        assert [f["value"] for f in payload["attachments"][0]["fields"]] == ["None", "None"]


class TestDiscordPayload:
    def test_colors(self, alert_products, shop):
        red = build_discord_payload(alert_products, shop, "Inventory Bot", now=NOW)
        orange = build_discord_payload(alert_products[1:], shop, "Inventory Bot", now=NOW)
        assert red["embeds"][0]["color"] == 0xFF0000
        assert orange["embeds"][0]["color"] == 0xFFA500

    def test_username_and_fields(self, alert_products, shop):
        payload = build_discord_payload(alert_products, shop, "Stock Bot", now=NOW)
        embed = payload["embeds"][0]
        assert payload["username"] == "Stock Bot"
        assert embed["fields"][0]["inline"] is True
        assert embed["timestamp"] == NOW.isoformat()


class TestWebhookSenders:
    def test_slack_posts_json(self, alert_products, shop):
        captured: list[httpx.Request] = []
        sender = SlackWebhookSender(client=_client(captured=captured))
        result = sender.send(SLACK, alert_products, shop)

        assert result.success
        assert result.message == "Slack notification sent successfully"
        assert str(captured[0].url) == SLACK.webhook_url
        body = json.loads(captured[0].content)
        assert body["attachments"][0]["color"] == "danger"

    def test_discord_non_2xx_is_failure(self, alert_products, shop):
        result = DiscordWebhookSender(client=_client(status=429)).send(DISCORD, alert_products, shop)
        assert not result.success
        assert result.channel == "discord"
        assert result.message == "Failed to send Discord notification: Discord API error: 429"

    def test_transport_error_is_failure(self, alert_products, shop):
        sender = SlackWebhookSender(client=_client(error=httpx.ConnectError("refused")))
        result = sender.send(SLACK, alert_products, shop)
        assert not result.success
        assert result.message.startswith("Failed to send Slack notification:")

    def test_low_stock_max_is_configurable(self, shop):
        captured: list[httpx.Request] = []
        sender = SlackWebhookSender(client=_client(captured=captured), low_stock_max=10)
        sender.send(SLACK, [AlertProduct(id="m", name="Mid", stock=8)], shop)
        body = json.loads(captured[0].content)
        assert body["attachments"][0]["fields"][1]["value"] == "• Mid (8 left)"

    def test_unconfigured_raises(self, alert_products, shop):
        with pytest.raises(ConfigurationError):
            SlackWebhookSender(client=_client()).send(SlackChannelConfig(enabled=True), alert_products, shop)
