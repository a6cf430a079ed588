"""
Notification channel settings and dispatch results.

Channel settings are frozen pydantic models and are replaced wholesale when a
merchant saves them (see ``settings_store.SettingsStore``). No per-field
validation happens on save; a channel that is enabled but missing its
recipient or webhook URL is simply not attempted at send time.

``DispatchResult`` / ``DispatchReport`` are plain dataclasses built fresh on
every dispatch call and never stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict


class EmailChannelConfig(BaseModel):
    """E-mail alert channel.

    When neither ``oos_alerts_enabled`` nor ``critical_alerts_enabled`` is set
    the channel falls back to alerting on every low-stock and out-of-stock
    product.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    recipient_email: str = ""
    oos_alerts_enabled: bool = False
    critical_alerts_enabled: bool = False

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.recipient_email.strip())


class SlackChannelConfig(BaseModel):
    """Slack incoming-webhook channel."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    webhook_url: str = ""
    channel: str = ""

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.webhook_url.strip())


class DiscordChannelConfig(BaseModel):
    """Discord webhook channel."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    webhook_url: str = ""
    username: str = "Inventory Bot"

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.webhook_url.strip())


class NotificationSettings(BaseModel):
    """All channel settings for one store."""

    model_config = ConfigDict(frozen=True)

    email: EmailChannelConfig = EmailChannelConfig()
    slack: SlackChannelConfig = SlackChannelConfig()
    discord: DiscordChannelConfig = DiscordChannelConfig()


@dataclass
class DispatchResult:
    """Outcome of one attempted channel.

    Attributes:
        channel: ``"email"``, ``"slack"`` or ``"discord"``.
        success: True if the channel accepted the alert (or had nothing to send).
        message: Human-readable outcome or error detail.
    """

    channel: str
    success: bool
    message: str


@dataclass
class DispatchReport:
    """Caller-facing aggregate over all attempted channels.

    Attributes:
        success:       False only when no channel succeeded.
        message:       "sent to all N" / "sent to M/N" / failure wording.
        results:       Per-channel results in dispatch order.
    """

    success: bool
    message: str
    results: list[DispatchResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)
