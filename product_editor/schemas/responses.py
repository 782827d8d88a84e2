"""Response models for catalog backend calls.

Only the fields the editor reads are declared; anything else the backend
returns is ignored. Identifiers are normalized to strings.
"""

from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field

Identifier = Annotated[str, BeforeValidator(lambda v: str(v) if isinstance(v, int) else v)]


class _ResponseModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CreatedVariant(_ResponseModel):
    id: Identifier
    sku: str | None = None


class CreatedProduct(_ResponseModel):
    """Result of a product create, echoing created variants with their SKUs."""

    id: Identifier
    variants: list[CreatedVariant] = Field(
        default_factory=list,
        validation_alias=AliasChoices("variants", "ProductVariant"),
    )

    def variant_ids_by_sku(self) -> dict[str, str]:
        return {v.sku: v.id for v in self.variants if v.sku}


class SizeRef(_ResponseModel):
    code: str | None = None
    name: str | None = None


class VariantDetail(_ResponseModel):
    """A saved variant as returned inside a product aggregate."""

    id: Identifier
    sku: str | None = None
    barcode: str | None = None
    size: SizeRef | None = None
    sizeText: str | None = None
    colorText: str | None = None
    status: str | None = None
    weight: float | None = None
    weightUnit: str | None = None
    length: float | None = None
    width: float | None = None
    height: float | None = None
    dimensionUnit: str | None = None
    packagingType: str | None = None
    packagingQuantity: int | None = None
    stockOnHand: int | None = None
    retailPrice: float | None = None
    originalPrice: float | None = None
    avgCostPerUnit: float | None = None
    lastPurchasePrice: float | None = None


class SupplierRef(_ResponseModel):
    id: Identifier | None = None
    name: str | None = None


class SupplierLinkDetail(_ResponseModel):
    supplier: SupplierRef | None = None
    lastPurchasePrice: float | None = None


class ProductImage(_ResponseModel):
    id: Identifier
    url: str = ""
    variantId: Identifier | None = None


class ProductDetail(_ResponseModel):
    """Full product aggregate used to hydrate an edit session."""

    id: Identifier
    kind: str | None = None
    variantId: Identifier | None = None
    sku: str | None = None
    name: str | None = None
    brand: str | None = None
    status: str | None = None
    condition: str | None = None
    originCountry: str | None = None
    category: str | None = None
    weight: float | None = None
    weightUnit: str | None = None
    length: float | None = None
    width: float | None = None
    height: float | None = None
    dimensionUnit: str | None = None
    sizeText: str | None = None
    colorText: str | None = None
    barcode: str | None = None
    packagingType: str | None = None
    packagingQuantity: int | None = None
    stockOnHand: int | None = None
    retailPrice: float | None = None
    originalPrice: float | None = None
    avgCostPerUnit: float | None = None
    lastPurchasePrice: float | None = None
    hasPurchaseOrders: bool = False
    variants: list[VariantDetail] = Field(
        default_factory=list,
        validation_alias=AliasChoices("variants", "ProductVariant"),
    )
    supplierLinks: list[SupplierLinkDetail] = Field(default_factory=list)
    images: list[ProductImage] = Field(default_factory=list)


class Supplier(_ResponseModel):
    id: Identifier
    name: str = ""


class MarketplaceChannel(_ResponseModel):
    id: Identifier
    marketplace: str = Field(
        default="",
        validation_alias=AliasChoices("marketplace", "name"),
    )


class MarketplaceListing(_ResponseModel):
    """A listing row, flattened from product- and variant-level listings."""

    id: Identifier
    marketplace: str | None = None
    channelId: Identifier | None = None
    productName: str | None = None
    units: int | None = None
    price: float | None = None
    sku: str | None = Field(
        default=None,
        validation_alias=AliasChoices("sku", "externalSku"),
    )
    variantId: Identifier | None = Field(
        default=None,
        validation_alias=AliasChoices("variantId", "productVariantId"),
    )


class Category(_ResponseModel):
    id: Identifier | None = None
    name: str


def listing_rows(data: Any) -> list[MarketplaceListing]:
    """Flatten ``{productListings, variantListings}`` into one list."""
    if isinstance(data, list):
        raw = data
    elif isinstance(data, dict):
        raw = [*(data.get("productListings") or []), *(data.get("variantListings") or [])]
    else:
        raw = []
    return [MarketplaceListing.model_validate(row) for row in raw]


def channel_rows(data: Any) -> list[MarketplaceChannel]:
    """Extract channel rows from any of the paging envelopes the backend uses."""
    if isinstance(data, dict):
        for key in ("data", "items", "rows", "channels"):
            if isinstance(data.get(key), list):
                data = data[key]
                break
    if not isinstance(data, list):
        return []
    return [MarketplaceChannel.model_validate(row) for row in data]
