"""
Catalog Source Client
httpx client for the paginated external product catalog.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import ExternalCallFailed, SourceUnavailable

logger = logging.getLogger(__name__)


class CatalogClient:
    """
    Client for `GET /products?limit=<n>&offset=<n>`.

    Owns its httpx.AsyncClient unless one is injected.
    """

    def __init__(
        self,
        base_url: str,
        ping_url: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize catalog client.

        Args:
            base_url: Catalog API root, e.g. https://api.escuelajs.co/api/v1
            ping_url: URL for the startup ping (defaults to a one-item page)
            timeout: Request timeout in seconds
            client: Pre-built httpx client (tests inject a MockTransport here)
        """
        self.base_url = base_url.rstrip("/")
        self.products_url = f"{self.base_url}/products"
        self.ping_url = ping_url or f"{self.products_url}?limit=1"
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()

    async def ping(self) -> int:
        """
        Issue one GET to the ping URL.

        Returns:
            HTTP status code

        Raises:
            ExternalCallFailed: On transport error or non-success status
        """
        try:
            response = await self.client.get(self.ping_url)
        except httpx.HTTPError as e:
            raise ExternalCallFailed(self.ping_url, reason=str(e) or e.__class__.__name__)

        if not response.is_success:
            raise ExternalCallFailed(self.ping_url, status_code=response.status_code)

        return response.status_code

    async def fetch_page(self, limit: int, offset: int) -> List[Dict[str, Any]]:
        """
        Fetch one page of raw catalog items.

        Args:
            limit: Page size
            offset: Number of items to skip

        Returns:
            List of raw item dicts (empty when the source is exhausted)

        Raises:
            SourceUnavailable: On a non-success status
            httpx.HTTPError: On transport errors
            ValueError: If the body is not a JSON array
        """
        response = await self.client.get(
            self.products_url, params={"limit": limit, "offset": offset}
        )

        if not response.is_success:
            raise SourceUnavailable(offset=offset, status_code=response.status_code)

        payload = response.json()
        if not isinstance(payload, list):
            raise ValueError(
                f"Expected JSON array from catalog, got {type(payload).__name__}"
            )

        logger.debug(f"Fetched {len(payload)} catalog items at offset {offset}")
        return payload
