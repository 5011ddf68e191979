from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from storefront.models import Product

logger = logging.getLogger(__name__)


class OrderRejected(Exception):
    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class StorefrontClient:
    """Async HTTP client for the storefront API (used by the bot)."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def close(self) -> None:
        await self.client.aclose()

    async def fetch_products(self) -> List[Product]:
        response = await self.client.get("/api/products")
        response.raise_for_status()
        return [Product.model_validate(p) for p in response.json()]

    async def submit_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await self.client.post("/api/order", json=payload)
        if response.is_success:
            return response.json()

        message = "Failed to submit order"
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("error"):
            message = str(data["error"])
        logger.warning("Order rejected (%s): %s", response.status_code, message)
        raise OrderRejected(message, response.status_code)

    async def health(self) -> bool:
        try:
            response = await self.client.get("/api/health")
        except httpx.HTTPError:
            return False
        return response.is_success and response.json().get("status") == "ok"
