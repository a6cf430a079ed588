"""
Process-wide settings holder for notification channels and visibility policy.

Both settings objects are frozen pydantic models. The store never mutates
them field by field: every update builds a new object and swaps the
reference under a lock, so two concurrent partial updates cannot leave a
half-applied mix. The last complete write wins.

The store is passed explicitly to the components that need it
(``VisibilityReconciler``, the CLI); nothing reads a module-level global.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from inventory_signals.models.notification import NotificationSettings
from inventory_signals.models.visibility import VisibilityPolicy

logger = logging.getLogger(__name__)


class SettingsStore:
    """Thread-safe holder of the current ``NotificationSettings`` and ``VisibilityPolicy``.

    Args:
        notifications: Initial channel settings (all channels disabled by default).
        visibility:    Initial visibility policy (disabled by default).
    """

    def __init__(
        self,
        notifications: Optional[NotificationSettings] = None,
        visibility: Optional[VisibilityPolicy] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._notifications = notifications or NotificationSettings()
        self._visibility = visibility or VisibilityPolicy()

    # ── Notifications ─────────────────────────────────────────────────────────

    @property
    def notifications(self) -> NotificationSettings:
        return self._notifications

    def replace_notifications(self, settings: NotificationSettings) -> NotificationSettings:
        """Replace channel settings wholesale (the "save" action)."""
        with self._lock:
            self._notifications = settings
        logger.info(
            "Notification settings saved (email=%s, slack=%s, discord=%s)",
            settings.email.enabled, settings.slack.enabled, settings.discord.enabled,
        )
        return settings

    # ── Visibility ────────────────────────────────────────────────────────────

    @property
    def visibility(self) -> VisibilityPolicy:
        return self._visibility

    def update_visibility(self, **changes: bool) -> VisibilityPolicy:
        """Shallow-merge ``changes`` into the current policy and swap it in.

        Unknown field names are rejected so a typo cannot silently no-op.

        Raises:
            ValueError: If a key is not a ``VisibilityPolicy`` field.
        """
        unknown = set(changes) - set(VisibilityPolicy.model_fields)
        if unknown:
            raise ValueError(f"Unknown visibility setting(s): {sorted(unknown)}")

        with self._lock:
            merged = VisibilityPolicy(**{**self._visibility.model_dump(), **changes})
            self._visibility = merged
        logger.info(
            "Visibility policy updated: enabled=%s hide_out_of_stock=%s show_when_restocked=%s",
            merged.enabled, merged.hide_out_of_stock, merged.show_when_restocked,
        )
        return merged

    def replace_visibility(self, policy: VisibilityPolicy) -> VisibilityPolicy:
        """Replace the visibility policy wholesale."""
        with self._lock:
            self._visibility = policy
        return policy
