"""
Shopify Admin GraphQL adapters
"""

from .client import ShopifyOperationClient, format_user_errors
from .results import HttpResultFetcher
from .queries import BULK_QUERIES

__all__ = [
    "ShopifyOperationClient",
    "HttpResultFetcher",
    "BULK_QUERIES",
    "format_user_errors",
]
