"""Catalog Client - HTTP client for the product catalog backend.

Wraps every remote operation the editor performs: product and variant
writes, image uploads, supplier links, marketplace channels/listings,
categories and meta enums. Failures are raised as ``CatalogAPIError``.
"""

from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import BaseModel

from product_editor.config import settings
from product_editor.core.auth_events import AuthChangeNotifier
from product_editor.infra.logging import get_logger
from product_editor.models.draft import StagedImage
from product_editor.models.options import Option, country_options
from product_editor.schemas.payloads import (
    BulkListingPayload,
    CategoryPayload,
    MarketplaceChannelPayload,
    MarketplaceListingPatch,
    MarketplaceListingPayload,
    SupplierLinkPayload,
)
from product_editor.schemas.responses import (
    Category,
    CreatedProduct,
    CreatedVariant,
    MarketplaceChannel,
    MarketplaceListing,
    ProductDetail,
    ProductImage,
    Supplier,
    channel_rows,
    listing_rows,
)

logger = get_logger(__name__)


class CatalogAPIError(Exception):
    """Raised when a catalog call fails (HTTP error status or transport error)."""

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.message = message
        self.status_code = status_code


class MissingIdentifierError(ValueError):
    """Raised when a call is made without an id it needs."""


def _require(value: Any, label: str) -> str:
    text = "" if value is None else str(value).strip()
    if not text:
        raise MissingIdentifierError(f"{label} is required")
    return text


def _unwrap(body: Any) -> Any:
    """Return ``body["data"]`` when the backend wraps its result."""
    if isinstance(body, dict) and body.get("data") is not None:
        return body["data"]
    return body


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text[:500] or f"HTTP {response.status_code}"


def _wire(payload: BaseModel | dict[str, Any]) -> dict[str, Any]:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", exclude_unset=True)
    return payload


class CatalogClient:
    """HTTP client for the catalog backend API."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        api_token: str | None = None,
        tenant_id: str | None = None,
        auth_events: AuthChangeNotifier | None = None,
    ) -> None:
        """Initialize catalog client.

        Args:
            base_url: Backend base URL (defaults to settings)
            timeout: Request timeout in seconds (defaults to settings)
            api_token: Bearer token (defaults to settings)
            tenant_id: Tenant sent as X-Tenant-ID (defaults to settings)
            auth_events: Notified when the backend rejects the credentials
        """
        self.base_url = base_url or settings.backend_url
        self.timeout = timeout or settings.backend_timeout
        self.api_token = api_token if api_token is not None else settings.api_token
        self.tenant_id = tenant_id if tenant_id is not None else settings.tenant_id
        self.auth_events = auth_events
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        if self.tenant_id:
            headers["X-Tenant-ID"] = self.tenant_id
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._headers(),
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _send(self, operation: str, method: str, path: str, **kwargs: Any) -> Any:
        """Issue a request and return the unwrapped JSON body.

        Raises:
            CatalogAPIError: On an error status or a transport failure
        """
        client = await self._get_client()
        send = getattr(client, method)

        try:
            response = await send(path, **kwargs)
            response.raise_for_status()

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            message = _error_message(e.response)
            logger.error(
                "Catalog backend returned error",
                operation=operation,
                path=path,
                status_code=status_code,
                response_text=e.response.text[:500],
            )
            if status_code == 401 and self.auth_events is not None:
                await self.auth_events.publish("unauthorized")
            raise CatalogAPIError(operation, message, status_code) from e

        except httpx.HTTPError as e:
            logger.error(
                "Catalog request failed",
                operation=operation,
                path=path,
                error=str(e),
            )
            raise CatalogAPIError(operation, str(e) or type(e).__name__) from e

        logger.debug(
            "Catalog request completed",
            operation=operation,
            path=path,
            status_code=response.status_code,
        )
        if response.status_code == 204 or not response.content:
            return None
        return _unwrap(response.json())

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def get_product_meta_enums(self) -> dict[str, list[str]]:
        data = await self._send("get_product_meta_enums", "get", "/products/meta/enums")
        return data if isinstance(data, dict) else {}

    async def get_product_by_id(self, product_id: str) -> ProductDetail:
        pid = _require(product_id, "Product id")
        data = await self._send("get_product_by_id", "get", f"/products/{pid}")
        return ProductDetail.model_validate(data)

    async def create_product(self, payload: BaseModel | dict[str, Any]) -> CreatedProduct:
        data = await self._send("create_product", "post", "/products", json=_wire(payload))
        return CreatedProduct.model_validate(data)

    async def update_product_parent(
        self,
        product_id: str,
        payload: BaseModel | dict[str, Any],
    ) -> Any:
        pid = _require(product_id, "Product id")
        return await self._send(
            "update_product_parent", "patch", f"/products/{pid}", json=_wire(payload)
        )

    async def update_product_variant(
        self,
        product_id: str,
        variant_id: str,
        payload: BaseModel | dict[str, Any],
    ) -> Any:
        pid = _require(product_id, "Product id")
        vid = _require(variant_id, "Variant id")
        return await self._send(
            "update_product_variant",
            "patch",
            f"/products/{pid}/variants/{vid}",
            json=_wire(payload),
        )

    async def add_product_variant(
        self,
        product_id: str,
        payload: BaseModel | dict[str, Any],
    ) -> CreatedVariant:
        pid = _require(product_id, "Product id")
        data = await self._send(
            "add_product_variant", "post", f"/products/{pid}/variants", json=_wire(payload)
        )
        return CreatedVariant.model_validate(data)

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    async def upload_product_images(
        self,
        product_id: str,
        files: Sequence[StagedImage],
        variant_id: str | None = None,
    ) -> Any:
        """Upload images to a product, or to one of its variants.

        Args:
            product_id: Product to attach the images to
            files: Staged image files
            variant_id: Variant to attach to (optional)
        """
        pid = _require(product_id, "Product id")
        multipart = [
            ("images", (image.filename, image.content, image.content_type))
            for image in files
        ]
        params = {"variantId": variant_id} if variant_id else None
        data = {"variantId": variant_id} if variant_id else None
        result = await self._send(
            "upload_product_images",
            "post",
            f"/products/{pid}/images",
            files=multipart,
            params=params,
            data=data,
        )
        logger.info(
            "Product images uploaded",
            product_id=pid,
            variant_id=variant_id,
            count=len(multipart),
        )
        return result

    async def list_product_images(self, product_id: str) -> list[ProductImage]:
        pid = _require(product_id, "Product id")
        data = await self._send("list_product_images", "get", f"/products/{pid}/images")
        return [ProductImage.model_validate(row) for row in data or []]

    async def delete_product_image(self, product_id: str, image_id: str) -> Any:
        pid = _require(product_id, "Product id")
        iid = _require(image_id, "Image id")
        return await self._send(
            "delete_product_image", "delete", f"/products/{pid}/images/{iid}"
        )

    # ------------------------------------------------------------------
    # Suppliers
    # ------------------------------------------------------------------

    async def list_suppliers(self) -> list[Supplier]:
        data = await self._send("list_suppliers", "get", "/suppliers")
        return [Supplier.model_validate(row) for row in data or []]

    async def link_supplier_products(
        self,
        supplier_id: str,
        product_ids: Sequence[str],
        last_purchase_price: float | None = None,
        currency: str | None = None,
    ) -> Any:
        """Link products to a supplier; re-linking updates the price."""
        sid = _require(supplier_id, "Supplier id")
        fields: dict[str, Any] = {"productIds": [str(p) for p in product_ids]}
        if last_purchase_price is not None:
            fields["lastPurchasePrice"] = last_purchase_price
        if currency:
            fields["currency"] = currency
        payload = SupplierLinkPayload(**fields)
        return await self._send(
            "link_supplier_products",
            "post",
            f"/suppliers/{sid}/products",
            json=payload.to_wire(),
        )

    async def unlink_supplier_product(self, supplier_id: str, product_id: str) -> Any:
        sid = _require(supplier_id, "Supplier id")
        pid = _require(product_id, "Product id")
        return await self._send(
            "unlink_supplier_product", "delete", f"/suppliers/{sid}/products/{pid}"
        )

    # ------------------------------------------------------------------
    # Marketplace
    # ------------------------------------------------------------------

    async def search_marketplace_channels(
        self,
        q: str = "",
        page: int = 1,
        per_page: int = 20,
    ) -> list[MarketplaceChannel]:
        params: dict[str, Any] = {"page": page, "perPage": per_page}
        if q.strip():
            params["q"] = q.strip()
        data = await self._send(
            "search_marketplace_channels",
            "get",
            "/products/marketplaces/channels",
            params=params,
        )
        return channel_rows(data)

    async def create_marketplace_channel(self, marketplace: str) -> MarketplaceChannel:
        name = _require(marketplace, "Marketplace name")
        payload = MarketplaceChannelPayload(marketplace=name)
        data = await self._send(
            "create_marketplace_channel",
            "post",
            "/products/marketplaces/channels",
            json=payload.to_wire(),
        )
        return MarketplaceChannel.model_validate(data)

    async def list_product_marketplace_listings(
        self,
        product_id: str,
        variant_id: str | None = None,
    ) -> list[MarketplaceListing]:
        pid = _require(product_id, "Product id")
        params = {"variantId": variant_id} if variant_id else None
        data = await self._send(
            "list_product_marketplace_listings",
            "get",
            f"/products/{pid}/marketplaces/listings",
            params=params,
        )
        return listing_rows(data)

    async def add_product_marketplace_listing(
        self,
        product_id: str,
        payload: MarketplaceListingPayload,
    ) -> MarketplaceListing:
        """Add a listing at product level, or at variant level when it names a variant."""
        pid = _require(product_id, "Product id")
        scope = "variant" if payload.variantId else "product"
        data = await self._send(
            "add_product_marketplace_listing",
            "post",
            f"/products/{pid}/marketplaces/listings/{scope}",
            json=payload.to_wire(),
        )
        return MarketplaceListing.model_validate(data)

    async def update_product_marketplace_listing(
        self,
        product_id: str,
        listing_id: str,
        patch: MarketplaceListingPatch,
    ) -> Any:
        pid = _require(product_id, "Product id")
        lid = _require(listing_id, "Listing id")
        return await self._send(
            "update_product_marketplace_listing",
            "patch",
            f"/products/{pid}/marketplaces/listings/{lid}",
            json=patch.to_wire(),
        )

    async def delete_product_marketplace_listing(self, product_id: str, listing_id: str) -> Any:
        pid = _require(product_id, "Product id")
        lid = _require(listing_id, "Listing id")
        return await self._send(
            "delete_product_marketplace_listing",
            "delete",
            f"/products/{pid}/marketplaces/listings/{lid}",
        )

    async def bulk_add_marketplace_listings(
        self,
        product_id: str,
        rows: Sequence[MarketplaceListingPayload],
    ) -> Any:
        pid = _require(product_id, "Product id")
        payload = BulkListingPayload(rows=list(rows))
        return await self._send(
            "bulk_add_marketplace_listings",
            "post",
            f"/products/{pid}/marketplaces/listings/bulk",
            json=payload.to_wire(),
        )

    async def search_listing_product_names(self, q: str = "") -> list[str]:
        params = {"q": q.strip()} if q.strip() else None
        data = await self._send(
            "search_listing_product_names",
            "get",
            "/products/marketplaces/product-names",
            params=params,
        )
        rows = data.get("providers", []) if isinstance(data, dict) else data or []
        names = [row.get("provider", "") if isinstance(row, dict) else str(row) for row in rows]
        return [name for name in names if name]

    # ------------------------------------------------------------------
    # Categories and countries
    # ------------------------------------------------------------------

    async def list_categories(self, search: str | None = None) -> list[Category]:
        params = {"search": search.strip()} if search and search.strip() else None
        data = await self._send(
            "list_categories", "get", "/products/meta/categories", params=params
        )
        return [Category.model_validate(row) for row in data or []]

    async def create_category(self, name: str) -> Category:
        label = _require(name, "Category name")
        payload = CategoryPayload(name=label)
        data = await self._send(
            "create_category",
            "post",
            "/products/meta/categories",
            json=payload.to_wire(),
        )
        return Category.model_validate(data)

    async def list_countries(self) -> tuple[Option, ...]:
        """Load origin options from the public countries endpoint.

        Uses its own short-lived client so catalog credentials are never
        sent to the third-party host.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(settings.countries_url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Failed to load country list", error=str(e))
            raise CatalogAPIError("list_countries", str(e) or type(e).__name__) from e
        return country_options(response.json())


# Singleton instance
_catalog_client: CatalogClient | None = None


def get_catalog_client() -> CatalogClient:
    """Get catalog client singleton."""
    global _catalog_client
    if _catalog_client is None:
        _catalog_client = CatalogClient()
    return _catalog_client
