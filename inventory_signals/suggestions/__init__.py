"""
Suggestion engine: remediation ideas for slow-moving or overstocked products.

Modules
-------
rules       : generate(): five independent rules, urgency-sorted Suggestion list.
data_driven : generate_data_driven(): turnover/velocity checks with confidence strings.
selection   : make_rng(): random vs product-id-seeded draws for bundle/category picks.
"""
