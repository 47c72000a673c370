"""
Shopify Bulk Operation Sourcing

A hexagonal architecture implementation that drives Shopify bulk export jobs
to completion and turns their results into content nodes for a host.
"""

__version__ = "1.0.0"
__description__ = "Shopify bulk operation sourcing with hexagonal architecture"
