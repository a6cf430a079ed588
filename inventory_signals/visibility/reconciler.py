"""
Storefront visibility reconciliation.

Compares the desired visibility (``VisibilityPolicy`` in the ``SettingsStore``)
against the platform's actual product status and issues one status mutation
per product that is out of line:

  should_hide = hide_out_of_stock   and stock == 0   → DRAFT
  should_show = show_when_restocked and stock  > 0   → ACTIVE

Hide wins when both apply; a product matching neither is skipped. Mutations
run sequentially with a ``Throttle`` between them; one failing product never
stops the pass, whatever the adapter raises for it. Only ``ACTIVE`` and
``DRAFT`` products are ever part of a sync diff.

Every public method returns a result object; expected failures (feature
disabled, catalog fetch failed, empty input) come back as ``success=False``.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from inventory_signals.audit import AuditEntry, AuditSink, record
from inventory_signals.exceptions import DisabledError, ValidationError
from inventory_signals.models.visibility import (
    STATUS_ACTIVE,
    STATUS_DRAFT,
    CatalogProduct,
    ReconciliationOutcome,
    StockLevel,
    VisibilityPolicy,
    VisibilityStatus,
)
from inventory_signals.settings_store import SettingsStore
from inventory_signals.visibility.platform import CommercePlatform
from inventory_signals.visibility.throttle import FixedDelayThrottle, Throttle

logger = logging.getLogger(__name__)

DISABLED_MESSAGE = "Storefront visibility management is disabled"
IN_SYNC_MESSAGE = "All products are already in sync"
NO_OUT_OF_STOCK_MESSAGE = "No out-of-stock products found"


def needs_update(product: CatalogProduct, policy: VisibilityPolicy) -> bool:
    """True when the product's current status differs from the desired one."""
    if policy.should_hide(product.stock) and product.status == STATUS_ACTIVE:
        return True
    if policy.should_show(product.stock) and product.status == STATUS_DRAFT:
        return True
    return False


def target_status(stock: int, policy: VisibilityPolicy) -> Optional[str]:
    """Desired status for ``stock`` under ``policy``, or None to leave as is."""
    if policy.should_hide(stock):
        return STATUS_DRAFT
    if policy.should_show(stock):
        return STATUS_ACTIVE
    return None


class VisibilityReconciler:
    """Applies the visibility policy to the platform catalog.

    Args:
        platform:         Commerce platform adapter.
        store:            Settings holder; the policy is re-read on every call.
        throttle_factory: Builds a fresh ``Throttle`` per pass.
        audit:            Optional audit sink; one entry per applied change.
    """

    def __init__(
        self,
        platform: CommercePlatform,
        store: SettingsStore,
        throttle_factory: Callable[[], Throttle] = FixedDelayThrottle,
        audit: Optional[AuditSink] = None,
    ) -> None:
        self.platform = platform
        self.store = store
        self.throttle_factory = throttle_factory
        self.audit = audit

    def _require_enabled(self) -> VisibilityPolicy:
        policy = self.store.visibility
        if not policy.enabled:
            raise DisabledError(DISABLED_MESSAGE)
        return policy

    # ── Bulk update ───────────────────────────────────────────────────────────

    def bulk_update(
        self,
        products: Sequence[StockLevel],
        source: str = "bulk_update",
    ) -> ReconciliationOutcome:
        """Hide or show each product according to its stock.

        Returns:
            ``success=False`` only when the policy is disabled (no platform
            calls are made). Otherwise ``success=True`` with per-product
            outcomes; ``total`` is ``len(products)``.
        """
        try:
            policy = self._require_enabled()
        except DisabledError as exc:
            logger.info("Bulk update skipped: %s", exc)
            return ReconciliationOutcome(success=False, message=str(exc))

        outcome = ReconciliationOutcome(success=True, total=len(products))
        throttle = self.throttle_factory()

        for product in products:
            status = target_status(product.stock, policy)
            if status is None:
                continue

            throttle.wait()
            try:
                result = self.platform.update_visibility(product.id, status)
            except Exception as exc:
                logger.warning("Visibility update failed for %s: %s", product.id, exc)
                outcome.errors.append(f"{product.id}: {exc}")
                throttle.record(False)
                continue

            throttle.record(result.success)
            if not result.success:
                outcome.errors.append(f"{product.id}: {result.error or 'Unknown error'}")
                continue

            action = "hidden" if status == STATUS_DRAFT else "shown"
            (outcome.hidden if action == "hidden" else outcome.shown).append(product.id)
            record(self.audit, AuditEntry(action, product.id, status, source))

        changed = len(outcome.hidden) + len(outcome.shown)
        outcome.message = (
            f"Updated {changed} products: {len(outcome.hidden)} hidden, {len(outcome.shown)} shown"
        )
        logger.info("%s (%d errors)", outcome.message, len(outcome.errors))
        return outcome

    # ── Full sync ─────────────────────────────────────────────────────────────

    def sync_all(self) -> ReconciliationOutcome:
        """Fetch the catalog and reconcile only the products out of line."""
        try:
            policy = self._require_enabled()
        except DisabledError as exc:
            return ReconciliationOutcome(success=False, message=str(exc))

        try:
            catalog = self.platform.query_catalog()
        except Exception as exc:
            logger.error("Catalog fetch failed: %s", exc)
            return ReconciliationOutcome(success=False, message=f"Sync failed: {exc}")

        diff = [p for p in catalog if needs_update(p, policy)]
        logger.info("Found %d products that need visibility updates", len(diff))

        if not diff:
            return ReconciliationOutcome(success=True, message=IN_SYNC_MESSAGE, total=len(catalog))

        outcome = self.bulk_update(diff, source="sync_all")
        if not outcome.success:
            return outcome
        outcome.message = (
            f"Sync completed: {len(outcome.hidden)} hidden, "
            f"{len(outcome.shown)} shown, {len(outcome.errors)} errors"
        )
        return outcome

    # ── Merchant actions ──────────────────────────────────────────────────────

    def product_status(self, product_id: str) -> Optional[VisibilityStatus]:
        """Current and desired visibility of one product; None if not found."""
        try:
            product = self.platform.get_product(product_id)
        except Exception as exc:
            logger.error("Product lookup failed for %s: %s", product_id, exc)
            return None
        if product is None:
            return None

        policy = self.store.visibility
        return VisibilityStatus(
            id=product.id,
            title=product.title,
            status=product.status,
            stock=product.stock,
            is_visible=product.status == STATUS_ACTIVE,
            should_be_visible=policy.should_show(product.stock),
            should_be_hidden=policy.should_hide(product.stock),
        )

    def hide_out_of_stock(self) -> ReconciliationOutcome:
        """Switch the policy fully on, then hide every zero-stock product."""
        self.store.update_visibility(enabled=True, hide_out_of_stock=True, show_when_restocked=True)

        try:
            catalog = self.platform.query_catalog()
        except Exception as exc:
            logger.error("Catalog fetch failed: %s", exc)
            return ReconciliationOutcome(success=False, message="Failed to fetch products")

        out_of_stock = [p for p in catalog if p.stock == 0]
        if not out_of_stock:
            return ReconciliationOutcome(success=True, message=NO_OUT_OF_STOCK_MESSAGE)
        return self.bulk_update(out_of_stock, source="hide_out_of_stock")

    def hide_selected(self, product_ids: Optional[Sequence[str]]) -> ReconciliationOutcome:
        """Hide the given products regardless of their stock."""
        try:
            ids = _validate_ids(product_ids)
        except ValidationError as exc:
            return ReconciliationOutcome(success=False, message=str(exc))

        self.store.update_visibility(enabled=True, hide_out_of_stock=True)
        outcome = self.bulk_update(
            [StockLevel(id=pid, stock=0) for pid in ids], source="hide_selected"
        )
        if outcome.success:
            plural = "s" if len(ids) > 1 else ""
            outcome.message = f"Successfully processed {len(ids)} selected product{plural}"
        return outcome


def _validate_ids(product_ids: Optional[Sequence[str]]) -> list[str]:
    if not product_ids:
        raise ValidationError("No products selected")
    ids = [pid.strip() for pid in product_ids if pid and pid.strip()]
    if not ids:
        raise ValidationError("No valid product IDs provided")
    return ids
