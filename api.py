"""Shop API client."""

import logging
from decimal import Decimal
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from product import OrderConfirmation, OrderRequest, Product

logger = logging.getLogger(__name__)


class ShopAPIError(Exception):
    """Catalog fetch or order submission failed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProductPayload(BaseModel):
    """Product as returned by the API."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    title: str
    description: str = ""
    image: str = ""
    category: str = ""
    price: Optional[Decimal] = Field(None, ge=0, description="None when not for sale")


class ProductListPayload(BaseModel):
    total: int = 0
    items: list[ProductPayload] = Field(default_factory=list)


class OrderResultPayload(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    total: Decimal


class ShopAPI:
    """Async client for the catalog and order endpoints."""

    def __init__(
        self,
        base_url: str,
        cdn_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: API root, e.g. https://host/api/weblarek
            cdn_url: Prefix for product image paths
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.cdn_url = cdn_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "ShopAPI":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def get_product_list(self) -> list[Product]:
        """Fetch the full catalog."""
        data = await self._request("GET", "/product/")
        try:
            payload = ProductListPayload.model_validate(data)
        except ValidationError as e:
            raise ShopAPIError(f"Malformed product list: {e}") from e

        logger.info(f"Fetched {len(payload.items)} products (total={payload.total})")
        return [
            Product(
                id=item.id,
                title=item.title,
                description=item.description,
                image=self._image_url(item.image),
                category=item.category,
                price=item.price,
            )
            for item in payload.items
        ]

    async def order_products(self, order: OrderRequest) -> OrderConfirmation:
        """Submit an order and return the server's confirmation."""
        data = await self._request("POST", "/order", json=order.to_payload())
        try:
            payload = OrderResultPayload.model_validate(data)
        except ValidationError as e:
            raise ShopAPIError(f"Malformed order response: {e}") from e

        logger.info(f"Order {payload.id} accepted, total={payload.total}")
        return OrderConfirmation(id=payload.id, total=payload.total)

    def _image_url(self, image: str) -> str:
        if not image:
            return ""
        return f"{self.cdn_url}/{image.lstrip('/')}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise ShopAPIError(f"Request failed: {e}") from e

        if response.is_success:
            try:
                return response.json()
            except ValueError as e:
                raise ShopAPIError("Response is not valid JSON", response.status_code) from e

        # The API reports failures as {"error": "..."}; fall back to the reason phrase.
        message = response.reason_phrase
        try:
            body = response.json()
            if isinstance(body, dict) and body.get("error"):
                message = str(body["error"])
        except ValueError:
            pass
        logger.error(f"{method} {url} returned {response.status_code}: {message}")
        raise ShopAPIError(message, response.status_code)
