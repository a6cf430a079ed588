"""
Inventory Signals: inventory risk classification, remediation suggestions,
multi-channel stock alerts, and storefront visibility reconciliation.
"""

__version__ = "0.1.0"
