"""
HTTP boundary: remote product feed used to seed the catalog.
"""

from copilot_store.boundary.http.product_source import ProductSourceClient

__all__ = ["ProductSourceClient"]
