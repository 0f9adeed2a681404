"""
Remote product feed client.

Downloads the vectorized product JSON array used to seed an empty catalog.
The download is best effort: an unreachable source or a non-success status
yields no products rather than an error.

Dependencies: httpx, pydantic
System role: Catalog bootstrap source
"""

import logging

import httpx
from pydantic import TypeAdapter, ValidationError

from copilot_store.models.product import Product

logger = logging.getLogger(__name__)

_products_adapter: TypeAdapter[list[Product]] = TypeAdapter(list[Product])


class ProductSourceClient:
    """
    Fetches product records from a JSON URI.

    Accepts an externally owned httpx.AsyncClient so the host can share its
    connection pool (and tests can inject a MockTransport).
    """

    def __init__(self, client: httpx.AsyncClient | None = None, timeout_seconds: float = 60.0) -> None:
        """
        Initialize product source client.

        Args:
            client: Shared async HTTP client; a private one is created per fetch when None
            timeout_seconds: Request timeout for a private client
        """
        self._client = client
        self._timeout = timeout_seconds

    async def fetch_products(self, uri: str) -> list[Product]:
        """
        GET ``uri`` and parse a JSON array of products.

        Args:
            uri: Location of the product JSON array

        Returns:
            list[Product]: Parsed products, empty when the source is unavailable
        """
        logger.info(f"{__name__}:fetch_products - Downloading product feed from {uri}")
        try:
            if self._client is not None:
                response = await self._client.get(uri)
            else:
                async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                    response = await client.get(uri)
        except httpx.HTTPError as e:
            logger.warning(f"{__name__}:fetch_products - Product feed unreachable: {type(e).__name__}: {e}")
            return []

        if not response.is_success:
            logger.warning(f"{__name__}:fetch_products - Product feed returned HTTP {response.status_code}")
            return []

        try:
            products = _products_adapter.validate_json(response.content)
        except ValidationError as e:
            logger.warning(
                f"{__name__}:fetch_products - Product feed is not a valid product array "
                f"({e.error_count()} errors)"
            )
            return []

        logger.info(f"{__name__}:fetch_products - Parsed {len(products)} products")
        return products
