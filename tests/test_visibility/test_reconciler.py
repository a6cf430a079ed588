"""
Tests for VisibilityReconciler.

What we test
------------
1. Disabled policy: success=False, zero platform calls (bulk and sync).
2. bulk_update: hide/show/skip decisions, per-item error capture, summary.
3. Throttle pacing between platform calls only.
4. Audit entries per applied change; a failing sink changes nothing.
5. sync_all: diff against actual status, in-sync short-circuit, fetch failure.
6. product_status, hide_out_of_stock, hide_selected.
7. Adapter failures of any type (plain exceptions, non-JSON bodies) are
   recorded per item or returned as results; unknown statuses are skipped.
"""

from __future__ import annotations

import json

import httpx
import pytest

from conftest import FakePlatform
from inventory_signals.audit import MemoryAuditSink
from inventory_signals.exceptions import PlatformError
from inventory_signals.models.visibility import CatalogProduct, StockLevel, VisibilityPolicy
from inventory_signals.settings_store import SettingsStore
from inventory_signals.visibility.platform import ShopifyAdminClient
from inventory_signals.visibility.reconciler import VisibilityReconciler
from inventory_signals.visibility.throttle import FixedDelayThrottle, NoThrottle


def _reconciler(platform, policy=None, audit=None, throttle_factory=NoThrottle):
    store = SettingsStore(visibility=policy or VisibilityPolicy(enabled=True))
    return VisibilityReconciler(platform, store, throttle_factory=throttle_factory, audit=audit)


class BrokenSink:
    def append(self, entry):
        raise OSError("disk full")


class TestBulkUpdate:
    def test_disabled_makes_no_calls(self):
        platform = FakePlatform()
        outcome = _reconciler(platform, VisibilityPolicy(enabled=False)).bulk_update(
            [StockLevel(id="a", stock=0)]
        )
        assert not outcome.success
        assert outcome.message == "Storefront visibility management is disabled"
        assert platform.updates == []

    def test_hide_show_and_errors(self):
        platform = FakePlatform(failing={"c": "Product is locked"}, raising={"d"})
        outcome = _reconciler(platform).bulk_update([
            StockLevel(id="a", stock=0),
            StockLevel(id="b", stock=5),
            StockLevel(id="c", stock=0),
            StockLevel(id="d", stock=2),
        ])
        assert outcome.success
        assert outcome.hidden == ["a"]
        assert outcome.shown == ["b"]
        assert outcome.errors == ["c: Product is locked", "d: connection reset"]
        assert outcome.summary == {"hidden": 1, "shown": 1, "errors": 2, "total": 4}
        assert outcome.message == "Updated 2 products: 1 hidden, 1 shown"
        assert platform.updates == [("a", "DRAFT"), ("b", "ACTIVE"), ("c", "DRAFT"), ("d", "ACTIVE")]

    def test_skips_when_no_rule_applies(self):
        platform = FakePlatform()
        policy = VisibilityPolicy(enabled=True, hide_out_of_stock=False, show_when_restocked=True)
        outcome = _reconciler(platform, policy).bulk_update([StockLevel(id="a", stock=0)])
        assert outcome.success
        assert outcome.summary == {"hidden": 0, "shown": 0, "errors": 0, "total": 1}
        assert platform.updates == []

    def test_negative_stock_hidden(self):
        platform = FakePlatform()
        outcome = _reconciler(platform).bulk_update([StockLevel(id="a", stock=-2)])
        assert outcome.hidden == ["a"]

    def test_throttle_between_calls_only(self):
        sleeps: list[float] = []
        platform = FakePlatform()
        reconciler = _reconciler(
            platform, throttle_factory=lambda: FixedDelayThrottle(0.1, sleep=sleeps.append)
        )
        policy = VisibilityPolicy(enabled=True, hide_out_of_stock=True, show_when_restocked=False)
        reconciler.store.replace_visibility(policy)
        reconciler.bulk_update([
            StockLevel(id="a", stock=0),
            StockLevel(id="skip", stock=9),
            StockLevel(id="b", stock=0),
            StockLevel(id="c", stock=0),
        ])
        assert len(platform.updates) == 3
        assert sleeps == [0.1, 0.1]

    def test_audit_entries(self):
        sink = MemoryAuditSink()
        _reconciler(FakePlatform(failing={"x": "nope"}), audit=sink).bulk_update([
            StockLevel(id="a", stock=0), StockLevel(id="b", stock=3), StockLevel(id="x", stock=0),
        ])
        assert [(e.action, e.product_id, e.new_status) for e in sink.entries] == [
            ("hidden", "a", "DRAFT"), ("shown", "b", "ACTIVE"),
        ]
        assert sink.entries[0].source == "bulk_update"

    def test_failing_audit_sink_ignored(self):
        outcome = _reconciler(FakePlatform(), audit=BrokenSink()).bulk_update(
            [StockLevel(id="a", stock=0)]
        )
        assert outcome.success
        assert outcome.hidden == ["a"]


class TestSyncAll:
    @pytest.fixture
    def catalog(self):
        return [
            CatalogProduct(id="A", title="Gone", stock=0, status="ACTIVE"),
            CatalogProduct(id="B", title="Back", stock=3, status="DRAFT"),
            CatalogProduct(id="C", title="Fine", stock=4, status="ACTIVE"),
            CatalogProduct(id="D", title="Old", stock=0, status="ARCHIVED"),
            CatalogProduct(id="E", title="Hidden", stock=0, status="DRAFT"),
        ]

    def test_disabled_makes_no_calls(self, catalog):
        platform = FakePlatform(catalog)
        outcome = _reconciler(platform, VisibilityPolicy()).sync_all()
        assert not outcome.success
        assert platform.catalog_queries == 0

    def test_reconciles_only_the_diff(self, catalog):
        platform = FakePlatform(catalog)
        sink = MemoryAuditSink()
        outcome = _reconciler(platform, audit=sink).sync_all()
        assert outcome.success
        assert outcome.message == "Sync completed: 1 hidden, 1 shown, 0 errors"
        assert platform.updates == [("A", "DRAFT"), ("B", "ACTIVE")]
        assert {e.source for e in sink.entries} == {"sync_all"}

    def test_in_sync_catalog(self):
        platform = FakePlatform([
            CatalogProduct(id="C", stock=4, status="ACTIVE"),
            CatalogProduct(id="E", stock=0, status="DRAFT"),
        ])
        outcome = _reconciler(platform).sync_all()
        assert outcome.success
        assert outcome.message == "All products are already in sync"
        assert platform.updates == []

    def test_errors_counted(self, catalog):
        platform = FakePlatform(catalog, failing={"B": "Invalid status"})
        outcome = _reconciler(platform).sync_all()
        assert outcome.message == "Sync completed: 1 hidden, 0 shown, 1 errors"

    def test_fetch_failure(self):
        platform = FakePlatform(catalog_error=PlatformError("Admin API error: 503", status_code=503))
        outcome = _reconciler(platform).sync_all()
        assert not outcome.success
        assert outcome.message == "Sync failed: Admin API error: 503"


class TestProductStatus:
    def test_found(self):
        platform = FakePlatform([CatalogProduct(id="A", title="Gone", stock=0, status="ACTIVE")])
        status = _reconciler(platform).product_status("A")
        assert status.is_visible
        assert status.should_be_hidden
        assert not status.should_be_visible

    def test_not_found(self):
        assert _reconciler(FakePlatform()).product_status("missing") is None


class TestHideOutOfStock:
    def test_enables_policy_and_hides(self):
        platform = FakePlatform([
            CatalogProduct(id="A", stock=0), CatalogProduct(id="B", stock=7),
        ])
        reconciler = _reconciler(platform, VisibilityPolicy(enabled=False, show_when_restocked=False))
        outcome = reconciler.hide_out_of_stock()
        assert outcome.hidden == ["A"]
        assert platform.updates == [("A", "DRAFT")]
        assert reconciler.store.visibility == VisibilityPolicy(
            enabled=True, hide_out_of_stock=True, show_when_restocked=True
        )

    def test_none_out_of_stock(self):
        outcome = _reconciler(FakePlatform([CatalogProduct(id="B", stock=7)])).hide_out_of_stock()
        assert outcome.success
        assert outcome.message == "No out-of-stock products found"


class TestHideSelected:
    def test_no_selection(self):
        assert _reconciler(FakePlatform()).hide_selected([]).message == "No products selected"

    def test_blank_ids(self):
        outcome = _reconciler(FakePlatform()).hide_selected(["  ", ""])
        assert not outcome.success
        assert outcome.message == "No valid product IDs provided"

    def test_hides_regardless_of_stock(self):
        platform = FakePlatform()
        reconciler = _reconciler(
            platform, VisibilityPolicy(enabled=False, hide_out_of_stock=False, show_when_restocked=False)
        )
        outcome = reconciler.hide_selected(["a", " b "])
        assert outcome.message == "Successfully processed 2 selected products"
        assert platform.updates == [("a", "DRAFT"), ("b", "DRAFT")]
        policy = reconciler.store.visibility
        assert policy.enabled and policy.hide_out_of_stock
        assert not policy.show_when_restocked


class ErraticPlatform(FakePlatform):
    """Fake whose adapter raises plain exceptions rather than PlatformError."""

    def __init__(self, catalog=None, bad_ids=(), lookup_error=None, **kwargs):
        super().__init__(catalog, **kwargs)
        self.bad_ids = set(bad_ids)
        self.lookup_error = lookup_error

    def update_visibility(self, product_id, status):
        if product_id in self.bad_ids:
            self.updates.append((product_id, status))
            raise RuntimeError("adapter bug")
        return super().update_visibility(product_id, status)

    def get_product(self, product_id):
        if self.lookup_error is not None:
            raise self.lookup_error
        return super().get_product(product_id)


def _shopify(handler) -> ShopifyAdminClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return ShopifyAdminClient("acme.myshopify.com", "shpat_test", client=http)


class TestAdapterFailures:
    def test_unexpected_item_error_does_not_stop_pass(self):
        platform = ErraticPlatform(bad_ids={"a"})
        outcome = _reconciler(platform).bulk_update([
            StockLevel(id="a", stock=0),
            StockLevel(id="b", stock=0),
        ])
        assert outcome.success
        assert outcome.hidden == ["b"]
        assert outcome.errors == ["a: adapter bug"]
        assert platform.updates == [("a", "DRAFT"), ("b", "DRAFT")]

    def test_unexpected_catalog_error(self):
        platform = ErraticPlatform(catalog_error=KeyError("products"))
        outcome = _reconciler(platform).sync_all()
        assert not outcome.success
        assert outcome.message.startswith("Sync failed:")

        outcome = _reconciler(platform).hide_out_of_stock()
        assert not outcome.success
        assert outcome.message == "Failed to fetch products"

    def test_unexpected_lookup_error(self):
        platform = ErraticPlatform(lookup_error=ValueError("bad node"))
        assert _reconciler(platform).product_status("a") is None

    def test_unlisted_status_left_alone(self):
        platform = FakePlatform([
            CatalogProduct(id="u", stock=0, status="UNLISTED"),
            CatalogProduct(id="a", stock=0, status="ACTIVE"),
        ])
        outcome = _reconciler(platform).sync_all()
        assert outcome.success
        assert platform.updates == [("a", "DRAFT")]

    def test_non_json_platform_response_recorded(self):
        platform = _shopify(lambda r: httpx.Response(200, text="<html>maintenance</html>"))
        outcome = _reconciler(platform).bulk_update([
            StockLevel(id="a", stock=0),
            StockLevel(id="b", stock=4),
        ])
        assert outcome.success
        assert len(outcome.errors) == 2
        assert outcome.errors[0].startswith("a: Admin API returned a non-JSON body")
        assert outcome.errors[1].startswith("b: ")

    def test_unlisted_node_from_shopify(self):
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            if "productUpdate" in body["query"]:
                return httpx.Response(200, json={"data": {"productUpdate": {
                    "product": {"id": "2", "status": "DRAFT"}, "userErrors": [],
                }}})
            return httpx.Response(200, json={"data": {"products": {
                "edges": [
                    {"node": {"id": "1", "title": "Hidden listing", "status": "UNLISTED",
                              "variants": {"edges": []}}},
                    {"node": {"id": "2", "title": "Mug", "status": "ACTIVE",
                              "variants": {"edges": [{"node": {"id": "v", "inventoryQuantity": 0}}]}}},
                ],
                "pageInfo": {"hasNextPage": False, "endCursor": None},
            }}})

        outcome = _reconciler(_shopify(handler)).sync_all()
        assert outcome.success
        assert outcome.hidden == ["2"]
        assert outcome.message == "Sync completed: 1 hidden, 0 shown, 0 errors"
