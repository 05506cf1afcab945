"""Shopify Admin API order ledger."""

from dataclasses import dataclass

import httpx

from storefront_customizer.domain.errors import LedgerUnavailableError
from storefront_customizer.services.orders import (
    ORDER_PAGE_SIZE,
    ORDER_STATUS_ANY,
    OrderLedger,
)


@dataclass
class HttpxShopifyOrderLedger(OrderLedger):
    """Reads orders from the Shopify Admin REST API."""

    shop_domain: str | None
    access_token: str | None
    api_version: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, shop_domain: str | None, access_token: str | None, api_version: str
    ) -> "HttpxShopifyOrderLedger":
        """Create a ledger client with a managed httpx session."""
        return cls(
            shop_domain=shop_domain,
            access_token=access_token,
            api_version=api_version,
            http_client=httpx.AsyncClient(),
        )

    @property
    def configured(self) -> bool:
        """Whether shop credentials are present."""
        return bool(self.shop_domain and self.access_token)

    async def list_orders(
        self, page_size: int = ORDER_PAGE_SIZE, status: str = ORDER_STATUS_ANY
    ) -> list[dict[str, object]]:
        """Return up to `page_size` orders with the given status."""
        if not self.configured:
            raise LedgerUnavailableError("Shopify credentials not configured")
        url = f"https://{self.shop_domain}/admin/api/{self.api_version}/orders.json"
        try:
            response = await self.http_client.get(
                url,
                params={"limit": page_size, "status": status},
                headers={"X-Shopify-Access-Token": self.access_token or ""},
                timeout=15,
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise LedgerUnavailableError(f"Failed to fetch orders: {exc}") from exc
        orders = payload.get("orders") if isinstance(payload, dict) else None
        return [order for order in orders or [] if isinstance(order, dict)]

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
