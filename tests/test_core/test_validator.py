"""Tests for missing-field validation and the pricing gate."""

import pytest

from product_editor.core.sync_engine import SyncEngine
from product_editor.core.validator import (
    can_save,
    collect_missing,
    has_required_variants,
    row_key,
)
from product_editor.models.draft import ExistingRowId, ProductDraft, VariantRow


def _complete_simple() -> ProductDraft:
    return ProductDraft(
        name="Mug",
        status="active",
        condition="NEW",
        origin="US",
        retail_price="12.00",
        cost_price="4.00",
    )


class TestCollectMissing:
    """Tests for collect_missing."""

    def test_draft_save_needs_only_name(self):
        draft = ProductDraft()
        assert collect_missing(draft, is_draft=True) == {"name": "Product Name"}

        draft.name = "Mug"
        assert collect_missing(draft, is_draft=True) == {}

    def test_simple_requirements(self):
        draft = ProductDraft(name="Mug")
        draft.status = ""
        draft.condition = ""

        missing = collect_missing(draft, is_draft=False)

        assert missing == {
            "status": "Status",
            "origin": "Place of origin",
            "condition": "Condition",
        }

    def test_simple_quantity_needed(self):
        draft = _complete_simple()
        draft.packaging_type = "UNITS"
        assert collect_missing(draft, is_draft=False) == {
            "packagingQuantity": "Packaging quantity",
        }

        draft.packaging_quantity = "6"
        assert collect_missing(draft, is_draft=False) == {}

    def test_pricing_is_not_a_missing_field(self):
        draft = _complete_simple()
        draft.retail_price = ""
        assert collect_missing(draft, is_draft=False) == {}

    def test_variant_mode_without_rows(self):
        draft = _complete_simple()
        draft.variant_enabled = True

        assert collect_missing(draft, is_draft=False) == {
            "variants.none": "At least one Variant row",
        }

    def test_variant_row_keys(self):
        draft = _complete_simple()
        draft.variant_enabled = True
        row = VariantRow(
            row_id=ExistingRowId("v1"),
            size_text="—",
            packaging_type="PIECES_PER_PACK",
        )
        draft.append_variant(row)

        missing = collect_missing(draft, is_draft=False)

        assert missing == {
            "v:v1:size": "Variant #1: Size",
            "v:v1:sku": "Variant #1: Variant SKU",
            "v:v1:packaging": "Variant #1: Packaging quantity",
        }

    def test_variant_mode_skips_condition(self):
        draft = _complete_simple()
        draft.condition = ""
        draft.variant_enabled = True
        draft.append_variant(VariantRow(row_id=ExistingRowId("v1"), size_code="M", sku="A-M"))

        assert collect_missing(draft, is_draft=False) == {}

    def test_row_key(self):
        row = VariantRow(row_id=ExistingRowId("9"))
        assert row_key(row, "sku") == "v:9:sku"


class TestCanSave:
    """Tests for the pricing gate."""

    def test_draft_needs_name(self):
        assert can_save(ProductDraft(), is_draft=True) is False
        assert can_save(ProductDraft(name="x"), is_draft=True) is True

    def test_simple_needs_pricing(self):
        draft = _complete_simple()
        assert can_save(draft, is_draft=False) is True

        draft.cost_price = ""
        assert can_save(draft, is_draft=False) is False

    def test_variants_need_row_pricing(self):
        draft = _complete_simple()
        engine = SyncEngine(draft)
        engine.set_variant_enabled(True)
        row = draft.variants[0]
        engine.set_variant_size(row.row_id, "M", "Medium")
        assert has_required_variants(draft) is True

        engine.set_variant_price(row.row_id, retail="")
        assert can_save(draft, is_draft=False) is False

    @pytest.mark.parametrize("origin", ["", "Select"])
    def test_origin_required(self, origin):
        draft = _complete_simple()
        draft.origin = origin
        assert can_save(draft, is_draft=False) is False
