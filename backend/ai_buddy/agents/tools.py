"""
Agent tool definitions.

Each tool calls a downstream shop service as the connected user, forwarding
the connection's bearer token. Tools are advertised to the model through
the registry built by build_default_registry(); the set is fixed at startup.

Current tools:
  - searchProduct:    product catalogue search
  - addProductToCart: add a product to the user's cart
"""

import json
import math
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ai_buddy.agents.registry import AgentTool, ToolRegistry
from ai_buddy.auth.models import Identity
from ai_buddy.core.config import Settings, get_settings
from ai_buddy.core.errors import ToolExecutionError
from ai_buddy.core.logging import get_logger

log = get_logger(__name__)

_DEFAULT_HTTP_TIMEOUT = 10.0


class _ServiceTool(AgentTool):
    """Shared plumbing for tools backed by an HTTP service."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = _DEFAULT_HTTP_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self, context: Identity) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {context.token}"},
            timeout=self.timeout,
            transport=self._transport,
        )


# ── searchProduct ─────────────────────────────────────────────────────────────

class SearchProductArgs(BaseModel):
    query: str = Field(description="The search query for the product")


class SearchProductTool(_ServiceTool):
    name = "searchProduct"
    description = "Search for a product by query"
    args_schema = SearchProductArgs

    async def invoke(self, arguments: SearchProductArgs, context: Identity) -> str:
        async with self._client(context) as client:
            response = await client.get(
                "/api/products",
                params={"skip": 0, "limit": 5, "q": arguments.query},
            )
            response.raise_for_status()

        log.debug("search_product", query=arguments.query, status=response.status_code)
        return json.dumps(response.json())


# ── addProductToCart ──────────────────────────────────────────────────────────

class AddProductToCartArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId", description="The ID of the product to add")
    quantity: float | None = Field(default=1, description="The quantity of the product to add")

    @field_validator("product_id", mode="before")
    @classmethod
    def _coerce_product_id(cls, value: Any) -> str:
        # Models sometimes pass the whole product document instead of its id
        if isinstance(value, dict):
            value = value.get("_id") or value.get("id") or json.dumps(value)
        return "" if value is None else str(value)

    @field_validator("quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, value: Any) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return 1.0


def normalize_quantity(quantity: float | None) -> int:
    """Whole number of items, at least one."""
    if quantity is None or not math.isfinite(quantity):
        return 1
    return max(1, math.floor(quantity))


class AddProductToCartTool(_ServiceTool):
    name = "addProductToCart"
    description = "Add a product to the shopping cart"
    args_schema = AddProductToCartArgs

    async def invoke(self, arguments: AddProductToCartArgs, context: Identity) -> str:
        product_id = arguments.product_id.strip()
        if not product_id:
            raise ToolExecutionError("addProductToCart: productId is required")
        qty = normalize_quantity(arguments.quantity)

        async with self._client(context) as client:
            response = await client.post(
                "/api/cart/items",
                json={"productId": product_id, "qty": qty},
            )
            response.raise_for_status()

        log.info("cart_item_added", product_id=product_id, qty=qty)
        return f"Product with ID {product_id} added to cart with quantity {qty}."


def build_default_registry(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ToolRegistry:
    """Registry with every shop tool, pointed at the configured services."""
    settings = settings or get_settings()
    return ToolRegistry(
        [
            SearchProductTool(settings.product_service_url, transport=transport),
            AddProductToCartTool(settings.cart_service_url, transport=transport),
        ]
    )
