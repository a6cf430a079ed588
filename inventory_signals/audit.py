"""
Audit sink: write-only record of visibility changes.

The engine appends one ``AuditEntry`` per applied change and never waits for
or depends on persistence. A sink that raises is logged and ignored; the
reconciliation result does not change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol

from inventory_signals.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

_audit_logger = logging.getLogger("inventory_signals.audit")


@dataclass(frozen=True)
class AuditEntry:
    """One audited change.

    Attributes:
        action:     ``"hidden"`` or ``"shown"``.
        product_id: Platform product id.
        new_status: Status written to the platform.
        source:     Operation that made the change (``bulk_update``, ``sync_all``, ...).
        recorded_at: UTC timestamp.
    """

    action:      str
    product_id:  str
    new_status:  str
    source:      str = "bulk_update"
    recorded_at: datetime = field(default_factory=utcnow)


class AuditSink(Protocol):
    """Port for the audit log."""

    def append(self, entry: AuditEntry) -> None:
        ...


class LoggingAuditSink:
    """Write audit entries to the ``inventory_signals.audit`` logger."""

    def append(self, entry: AuditEntry) -> None:
        _audit_logger.info(
            "%s %s -> %s (source=%s)",
            entry.action, entry.product_id, entry.new_status, entry.source,
            extra={
                "audit_action": entry.action,
                "product_id": entry.product_id,
                "new_status": entry.new_status,
                "recorded_at": entry.recorded_at.isoformat(),
            },
        )


class MemoryAuditSink:
    """Keep entries in a list (CLI dry runs and tests)."""

    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []

    def append(self, entry: AuditEntry) -> None:
        self.entries.append(entry)


def record(sink: Optional[AuditSink], entry: AuditEntry) -> None:
    """Append ``entry`` to ``sink``; a failing sink is logged, never raised."""
    if sink is None:
        return
    try:
        sink.append(entry)
    except Exception as exc:
        logger.warning("Audit sink rejected entry for %s: %s", entry.product_id, exc)
