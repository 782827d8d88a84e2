"""Tests for backend response models."""

import pytest
from pydantic import ValidationError

from product_editor.schemas.payloads import MarketplaceChannelPayload, ParentPatchPayload
from product_editor.schemas.responses import (
    CreatedProduct,
    ProductDetail,
    channel_rows,
    listing_rows,
)


class TestResponses:
    """Tests for response parsing."""

    def test_numeric_ids_become_strings(self):
        created = CreatedProduct.model_validate({"id": 7, "ProductVariant": [{"id": 8, "sku": "A"}]})

        assert created.id == "7"
        assert created.variant_ids_by_sku() == {"A": "8"}

    def test_unknown_fields_ignored(self):
        detail = ProductDetail.model_validate({"id": "p", "somethingNew": True})
        assert detail.variants == []
        assert detail.hasPurchaseOrders is False

    def test_optional_identifier_accepts_none(self):
        detail = ProductDetail.model_validate({"id": "p", "variantId": None})
        assert detail.variantId is None

    def test_listing_rows_accepts_plain_list(self):
        rows = listing_rows([{"id": 1, "productVariantId": 4}])
        assert rows[0].variantId == "4"

    def test_listing_rows_unexpected_payload(self):
        assert listing_rows("nope") == []

    def test_channel_rows(self):
        rows = channel_rows([{"id": 1, "marketplace": "eBay"}])
        assert [(row.id, row.marketplace) for row in rows] == [("1", "eBay")]
        assert channel_rows({"data": [{"id": 2, "name": "Etsy"}]})[0].marketplace == "Etsy"
        assert channel_rows(None) == []


class TestPayloads:
    """Tests for request payload serialization."""

    def test_explicit_none_is_sent(self):
        patch = ParentPatchPayload(packagingType=None, name="A")
        assert patch.to_wire() == {"packagingType": None, "name": "A"}

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            ParentPatchPayload(unknownField=1)

    def test_blank_marketplace_rejected(self):
        with pytest.raises(ValidationError):
            MarketplaceChannelPayload(marketplace="")
