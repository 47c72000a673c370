"""
Adapters layer

Concrete implementations of the core ports: Shopify Admin API client,
result download, media materialization, progress timers and local host.
"""
