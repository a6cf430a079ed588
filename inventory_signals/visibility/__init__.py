"""
Storefront visibility: keep product status in line with stock.

Modules
-------
platform   : CommercePlatform port + ShopifyAdminClient (Admin GraphQL over httpx).
throttle   : Throttle / FixedDelayThrottle / BackoffThrottle / NoThrottle.
reconciler : VisibilityReconciler: bulk_update(), sync_all(), product_status(),
             hide_out_of_stock(), hide_selected().
"""
