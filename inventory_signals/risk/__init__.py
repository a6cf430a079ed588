"""
Risk classification: pure functions from stock, velocity and dates to tiers.

Modules
-------
forecast   : compute_forecast(): days until stockout + critical/warning/safe/unknown.
staleness  : StalenessPolicy strategies (threshold, fixed) + compute_staleness().
classifier : ProductRisk + classify_product() / classify_catalog().
"""
