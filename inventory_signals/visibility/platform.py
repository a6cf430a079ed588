"""
Commerce platform port and the Shopify Admin GraphQL adapter.

Port
----
``CommercePlatform.query_catalog()``            → list[CatalogProduct]
``CommercePlatform.update_visibility(id, st)``  → VisibilityUpdateResult
``CommercePlatform.get_product(id)``            → CatalogProduct | None

Adapter
-------
``ShopifyAdminClient`` talks to ``https://{shop}/admin/api/{version}/graphql.json``
with an Admin API access token (``SHOPIFY_ACCESS_TOKEN`` in .env).

  * Catalog: ``products(first: N, after: cursor)`` pages until
    ``hasNextPage`` is false; stock is the sum of ``inventoryQuantity`` over
    the first 5 variants of each product (null quantities count as 0).
  * Mutation: ``productUpdate(input: {id, status})``. ``userErrors`` come back
    as ``success=False`` with the messages joined; transport failures and
    GraphQL ``errors`` raise ``PlatformError``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx

from inventory_signals.config import PlatformConfig
from inventory_signals.exceptions import ConfigurationError, PlatformError
from inventory_signals.models.visibility import (
    STATUS_ACTIVE,
    CatalogProduct,
    VisibilityUpdateResult,
)

logger = logging.getLogger(__name__)

CATALOG_QUERY = """
query getProducts($first: Int!, $after: String) {
  products(first: $first, after: $after) {
    edges {
      node {
        id
        title
        status
        variants(first: 5) {
          edges { node { id inventoryQuantity } }
        }
      }
    }
    pageInfo { hasNextPage endCursor }
  }
}
"""

PRODUCT_QUERY = """
query getProduct($id: ID!) {
  product(id: $id) {
    id
    title
    status
    variants(first: 5) {
      edges { node { id inventoryQuantity } }
    }
  }
}
"""

UPDATE_STATUS_MUTATION = """
mutation productUpdate($input: ProductInput!) {
  productUpdate(input: $input) {
    product { id status }
    userErrors { field message }
  }
}
"""


class CommercePlatform(Protocol):
    """Port for the commerce platform."""

    def query_catalog(self) -> list[CatalogProduct]:
        ...

    def get_product(self, product_id: str) -> Optional[CatalogProduct]:
        ...

    def update_visibility(self, product_id: str, status: str) -> VisibilityUpdateResult:
        ...


def _total_stock(node: dict[str, Any]) -> int:
    edges = (node.get("variants") or {}).get("edges") or []
    return sum(int((edge.get("node") or {}).get("inventoryQuantity") or 0) for edge in edges)


def _parse_product(node: Any) -> CatalogProduct:
    """Build a ``CatalogProduct`` from a GraphQL product node.

    Raises:
        PlatformError: If the node is missing fields or holds unusable values.
    """
    try:
        return CatalogProduct(
            id=node["id"],
            title=node.get("title") or "",
            stock=_total_stock(node),
            status=node.get("status") or STATUS_ACTIVE,
        )
    except (KeyError, TypeError, AttributeError, ValueError) as exc:
        raise PlatformError(f"Malformed product in Admin API response: {exc}") from exc


class ShopifyAdminClient:
    """Shopify Admin GraphQL adapter.

    Usage::

        client = ShopifyAdminClient(
            shop_domain="example.myshopify.com",
            access_token=os.environ["SHOPIFY_ACCESS_TOKEN"],
        )
        catalog = client.query_catalog()

    Args:
        shop_domain:  ``<store>.myshopify.com``.
        access_token: Admin API access token.
        api_version:  Admin API version string.
        page_size:    Products per catalog page.
        timeout:      Request timeout in seconds.
        client:       Optional ``httpx.Client`` (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        api_version: str = "2024-10",
        page_size: int = 100,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        if not shop_domain or not access_token:
            raise ConfigurationError(
                "SHOPIFY_SHOP_DOMAIN and SHOPIFY_ACCESS_TOKEN must be set in .env."
            )
        self.shop_domain = shop_domain
        self.access_token = access_token
        self.api_version = api_version
        self.page_size = page_size
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_config(cls, config: PlatformConfig, page_size: int = 100) -> "ShopifyAdminClient":
        return cls(
            shop_domain=config.shop_domain,
            access_token=config.access_token,
            api_version=config.api_version,
            page_size=page_size,
            timeout=config.timeout_seconds,
        )

    @property
    def endpoint(self) -> str:
        return f"https://{self.shop_domain}/admin/api/{self.api_version}/graphql.json"

    # ── Port methods ──────────────────────────────────────────────────────────

    def query_catalog(self) -> list[CatalogProduct]:
        """Fetch every product with its summed variant stock and current status.

        Raises:
            PlatformError: On a failed request, a malformed page, or a page
                that claims more results without a new cursor.
        """
        products: list[CatalogProduct] = []
        cursor: Optional[str] = None
        while True:
            data = self._graphql(CATALOG_QUERY, {"first": self.page_size, "after": cursor})
            connection = data.get("products") or {}
            edges = connection.get("edges")
            if edges is None:
                raise PlatformError("Failed to fetch products")
            try:
                nodes = [edge["node"] for edge in edges]
            except (KeyError, TypeError) as exc:
                raise PlatformError(f"Malformed product page in Admin API response: {exc}") from exc
            products.extend(_parse_product(node) for node in nodes)

            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            next_cursor = page_info.get("endCursor")
            if not next_cursor or next_cursor == cursor:
                raise PlatformError("Admin API reported more products without a new page cursor")
            cursor = next_cursor

        logger.info("Fetched %d products from %s", len(products), self.shop_domain)
        return products

    def get_product(self, product_id: str) -> Optional[CatalogProduct]:
        data = self._graphql(PRODUCT_QUERY, {"id": product_id})
        node = data.get("product")
        return _parse_product(node) if node else None

    def update_visibility(self, product_id: str, status: str) -> VisibilityUpdateResult:
        """Set a product's status to ``ACTIVE`` (visible) or ``DRAFT`` (hidden)."""
        data = self._graphql(UPDATE_STATUS_MUTATION, {"input": {"id": product_id, "status": status}})
        payload = data.get("productUpdate") or {}
        user_errors = payload.get("userErrors") or []
        if user_errors:
            message = "; ".join(e.get("message", "unknown error") for e in user_errors)
            logger.warning("productUpdate %s rejected: %s", product_id, message)
            return VisibilityUpdateResult(success=False, error=message)

        product = payload.get("product") or {}
        logger.info("Product %s status set to %s", product_id, product.get("status", status))
        return VisibilityUpdateResult(success=True, status=product.get("status", status))

    # ── Transport ─────────────────────────────────────────────────────────────

    def _graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """POST a GraphQL document and return its ``data`` object.

        Raises:
            PlatformError: On transport errors, non-2xx responses, unreadable
                bodies, or GraphQL ``errors``.
        """
        try:
            resp = self._client.post(
                self.endpoint,
                json={"query": query, "variables": variables},
                headers={
                    "X-Shopify-Access-Token": self.access_token,
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise PlatformError(
                f"Admin API error: {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise PlatformError(f"Admin API request failed: {exc}") from exc

        try:
            body = resp.json()
        except ValueError as exc:
            raise PlatformError(f"Admin API returned a non-JSON body: {exc}") from exc
        if not isinstance(body, dict):
            raise PlatformError("Admin API returned an unexpected response shape")

        errors = body.get("errors")
        if errors:
            if isinstance(errors, list):
                messages = "; ".join(
                    str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors
                )
            else:
                messages = str(errors)
            raise PlatformError(f"GraphQL errors: {messages}")
        return body.get("data") or {}
