"""Request payloads sent to the catalog backend.

Field names follow the backend's camelCase DTOs. Payloads are serialized
with ``exclude_unset`` so fields a builder never set are left out of the
request, while fields explicitly set to None are sent as null.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict holding only the fields that were set."""
        return self.model_dump(mode="json", exclude_unset=True)


class MeasurementFields(_WireModel):
    """Weight, dimensions and packaging."""

    weight: float | None = None
    weightUnit: str | None = None
    length: float | None = None
    width: float | None = None
    height: float | None = None
    dimensionUnit: str | None = None
    packagingType: str | None = None
    packagingQuantity: int | None = None


class PricingFields(_WireModel):
    """Prices with their currencies."""

    retailPrice: float | None = None
    retailCurrency: str | None = None
    originalPrice: float | None = None
    originalCurrency: str | None = None
    lastPurchasePrice: float | None = None
    lastPurchaseCurr: str | None = None


class ProductEnvelope(_WireModel):
    """Parent-level fields shared by simple and variant payloads."""

    sku: str | None = None
    name: str
    brand: str | None = None
    status: str | None = None
    originCountry: str | None = None
    category: str | None = None
    isDraft: bool = False
    publishedAt: datetime | None = None


class VariantRowPayload(MeasurementFields, PricingFields):
    """One variant row, used inside a create payload or on its own."""

    sku: str = ""
    sizeId: str | None = None
    sizeText: str = ""
    colorText: str = ""
    barcode: str | None = None
    status: str | None = None
    condition: str | None = None
    isDraft: bool | None = None
    stockOnHand: int | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)


class SimpleProductPayload(ProductEnvelope, MeasurementFields, PricingFields):
    """Create payload for a product without variants."""

    condition: str | None = None
    sizeText: str | None = None
    colorText: str | None = None
    barcode: str | None = None
    stockOnHand: int = 0
    variants: list[VariantRowPayload] = Field(default_factory=list)


class VariantProductPayload(ProductEnvelope):
    """Create payload for a product with variant rows."""

    variants: list[VariantRowPayload] = Field(default_factory=list)


class ParentPatchPayload(MeasurementFields, PricingFields):
    """Partial update of parent-level fields."""

    name: str | None = None
    sku: str | None = None
    brand: str | None = None
    status: str | None = None
    isDraft: bool | None = None
    originCountry: str | None = None
    category: str | None = None
    condition: str | None = None
    sizeText: str | None = None
    colorText: str | None = None
    barcode: str | None = None
    stockOnHand: int | None = None


class VariantSkuPatch(_WireModel):
    """Keeps the backing variant of a simple product on the parent SKU."""

    sku: str


class SupplierLinkPayload(_WireModel):
    """Idempotent link (or re-price) of products to a supplier."""

    productIds: list[str]
    lastPurchasePrice: float | None = None
    currency: str | None = None


class MarketplaceChannelPayload(_WireModel):
    marketplace: str = Field(min_length=1)


class MarketplaceListingPayload(_WireModel):
    """Listing of a product (or one of its variants) on a marketplace channel."""

    productName: str
    marketplace: str
    channelId: str | None = None
    units: int = 0
    externalSku: str | None = None
    price: float | None = None
    variantId: str | None = None


class MarketplaceListingPatch(_WireModel):
    units: int | None = None
    externalSku: str | None = None
    price: float | None = None


class BulkListingPayload(_WireModel):
    rows: list[MarketplaceListingPayload]


class CategoryPayload(_WireModel):
    name: str = Field(min_length=1)
