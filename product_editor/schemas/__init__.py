"""Pydantic schemas for catalog backend requests and responses."""

from product_editor.schemas.payloads import (
    MarketplaceListingPayload,
    ParentPatchPayload,
    SimpleProductPayload,
    VariantProductPayload,
    VariantRowPayload,
)
from product_editor.schemas.responses import (
    CreatedProduct,
    MarketplaceChannel,
    MarketplaceListing,
    ProductDetail,
)

__all__ = [
    "MarketplaceListingPayload",
    "ParentPatchPayload",
    "SimpleProductPayload",
    "VariantProductPayload",
    "VariantRowPayload",
    "CreatedProduct",
    "MarketplaceChannel",
    "MarketplaceListing",
    "ProductDetail",
]
