"""Sync engine between parent fields and variant rows.

The draft is in one of two states, Simple or Variant, selected by
``ProductDraft.variant_enabled``. Every mutation enters through
``apply_field_change`` / ``apply_variant_change`` so propagation runs
in the same call as the edit.
"""

from collections.abc import Callable

from product_editor.core.calculators import (
    auto_child_sku,
    coerce_packaging_quantity,
    derive_size_code,
    quantity_for_type_change,
)
from product_editor.core.sanitizers import is_non_empty, sanitize_decimal, sanitize_integer
from product_editor.infra.logging import get_logger
from product_editor.models.draft import (
    ProductDraft,
    RowId,
    VariantPrice,
    VariantRow,
    new_row_id,
)

logger = get_logger(__name__)


class VariantModeLockedError(ValueError):
    """Raised when enabling variants on a simple product loaded for editing."""


class UnknownFieldError(KeyError):
    """Raised when a field name is not editable."""


class UnknownVariantError(KeyError):
    """Raised when a row id is not present on the draft."""


def _text(value: object) -> str:
    return "" if value is None else str(value)


PARENT_FIELDS: dict[str, Callable[[object], str]] = {
    "name": _text,
    "sku": _text,
    "barcode": _text,
    "barcode_type": _text,
    "brand": _text,
    "status": _text,
    "category": _text,
    "origin": _text,
    "condition": _text,
    "weight_main": sanitize_decimal,
    "weight_sub": sanitize_decimal,
    "weight_unit": _text,
    "length": sanitize_decimal,
    "width": sanitize_decimal,
    "height": sanitize_decimal,
    "dimension_unit": _text,
    "packaging_type": _text,
    "packaging_quantity": sanitize_integer,
    "size_text": _text,
    "color_text": _text,
    "stock_on_hand": sanitize_integer,
    "retail_price": sanitize_decimal,
    "cost_price": sanitize_decimal,
    "last_purchase_price": sanitize_decimal,
}

# Parent fields mirrored into blank variant fields while in Variant state
SHARED_FIELDS = frozenset({
    "weight_main",
    "weight_sub",
    "weight_unit",
    "length",
    "width",
    "height",
    "dimension_unit",
    "packaging_type",
    "packaging_quantity",
    "retail_price",
    "cost_price",
})

VARIANT_FIELDS: dict[str, Callable[[object], str]] = {
    "size_code": _text,
    "size_text": _text,
    "color_text": _text,
    "sku": _text,
    "barcode": _text,
    "weight_main": sanitize_decimal,
    "weight_sub": sanitize_decimal,
    "weight_unit": _text,
    "length": sanitize_decimal,
    "width": sanitize_decimal,
    "height": sanitize_decimal,
    "dimension_unit": _text,
    "packaging_type": _text,
    "packaging_quantity": sanitize_integer,
    "stock_on_hand": sanitize_integer,
}


class SyncEngine:
    """Keeps parent fields and variant rows consistent on a draft."""

    def __init__(self, draft: ProductDraft) -> None:
        self.draft = draft

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def set_variant_enabled(self, enabled: bool) -> None:
        """Toggle between Simple and Variant state.

        Raises:
            VariantModeLockedError: If the draft is a locked simple product
        """
        draft = self.draft
        if enabled == draft.variant_enabled:
            return
        if enabled and draft.is_edit_simple:
            raise VariantModeLockedError(
                "A simple product cannot switch to variants while editing"
            )

        if enabled:
            if draft.variants:
                self.backfill_variants()
            else:
                self.seed_from_parent()
            draft.variant_enabled = True
            self.refresh_auto_skus()
        else:
            self.pull_first_variant_into_parent()
            draft.variant_enabled = False

        logger.debug(
            "Variant mode toggled",
            enabled=enabled,
            rows=len(draft.variants),
        )

    def seed_from_parent(self) -> VariantRow:
        """Create the first row from the current parent fields."""
        draft = self.draft
        size_text = draft.size_text.strip()
        size_code = derive_size_code(size_text)
        row = VariantRow(
            row_id=new_row_id(),
            size_code=size_code,
            size_text=size_text,
            sku=auto_child_sku(draft.sku, size_code, 0),
            weight_main=draft.weight_main,
            weight_sub=draft.weight_sub,
            weight_unit=draft.weight_unit,
            length=draft.length,
            width=draft.width,
            height=draft.height,
            dimension_unit=draft.dimension_unit,
            packaging_type=draft.packaging_type.strip(),
            packaging_quantity=coerce_packaging_quantity(
                draft.packaging_type, draft.packaging_quantity
            ),
            active=True,
            auto_sku=True,
        )
        price = VariantPrice(retail=draft.retail_price, original=draft.cost_price)
        draft.append_variant(row, price)
        return row

    def backfill_variants(self) -> None:
        """Copy parent values into variant fields that are still blank.

        Non-empty variant values are never overwritten.
        """
        draft = self.draft
        parent_type = draft.packaging_type.strip()

        for row in draft.variants:
            weight_blank = not is_non_empty(row.weight_main) and not is_non_empty(
                row.weight_sub
            )
            if not is_non_empty(row.weight_main) and is_non_empty(draft.weight_main):
                row.weight_main = draft.weight_main
            if not is_non_empty(row.weight_sub) and is_non_empty(draft.weight_sub):
                row.weight_sub = draft.weight_sub
            # Unit only follows the parent when the row had no weight of its own.
            if weight_blank and (
                is_non_empty(draft.weight_main) or is_non_empty(draft.weight_sub)
            ):
                row.weight_unit = draft.weight_unit
            for dim in ("length", "width", "height"):
                if not is_non_empty(getattr(row, dim)):
                    setattr(row, dim, getattr(draft, dim))
            if not is_non_empty(row.dimension_unit):
                row.dimension_unit = draft.dimension_unit

            row_type = row.packaging_type.strip()
            if not row_type and parent_type:
                row.packaging_type = parent_type
                row.packaging_quantity = coerce_packaging_quantity(
                    parent_type, draft.packaging_quantity
                )
            elif row_type:
                row.packaging_quantity = coerce_packaging_quantity(
                    row_type, row.packaging_quantity
                )

            price = draft.price_for(row.row_id)
            if not is_non_empty(price.retail) and is_non_empty(draft.retail_price):
                price.retail = draft.retail_price
            if not is_non_empty(price.original) and is_non_empty(draft.cost_price):
                price.original = draft.cost_price

        draft.ensure_price_parity()

    def pull_first_variant_into_parent(self) -> None:
        """Copy the first row's measurements, packaging and pricing to the parent."""
        draft = self.draft
        if not draft.variants:
            return
        first = draft.variants[0]
        draft.weight_main = first.weight_main
        draft.weight_sub = first.weight_sub
        draft.weight_unit = first.weight_unit or draft.weight_unit
        draft.length = first.length
        draft.width = first.width
        draft.height = first.height
        draft.dimension_unit = first.dimension_unit or draft.dimension_unit
        draft.packaging_type = first.packaging_type.strip()
        draft.packaging_quantity = coerce_packaging_quantity(
            first.packaging_type, first.packaging_quantity
        )

        price = draft.variant_prices.get(first.row_id)
        if price is not None:
            if is_non_empty(price.retail):
                draft.retail_price = price.retail
            if is_non_empty(price.original):
                draft.cost_price = price.original
            if is_non_empty(price.purchase):
                draft.last_purchase_price = price.purchase

    # ------------------------------------------------------------------
    # Parent edits
    # ------------------------------------------------------------------

    def apply_field_change(self, field_name: str, value: object) -> None:
        """Set a parent field and run any propagation it requires.

        Raises:
            UnknownFieldError: If the field is not a settable parent field
        """
        sanitizer = PARENT_FIELDS.get(field_name)
        if sanitizer is None:
            raise UnknownFieldError(field_name)
        draft = self.draft

        if field_name == "packaging_type":
            new_type = sanitizer(value).strip()
            draft.packaging_type = new_type
            draft.packaging_quantity = quantity_for_type_change(new_type)
        elif field_name == "packaging_quantity":
            draft.packaging_quantity = coerce_packaging_quantity(draft.packaging_type, value)
        else:
            setattr(draft, field_name, sanitizer(value))

        if not draft.variant_enabled:
            return
        if field_name in SHARED_FIELDS:
            self.backfill_variants()
        elif field_name == "sku":
            self.refresh_auto_skus()

    # ------------------------------------------------------------------
    # Row edits
    # ------------------------------------------------------------------

    def _require_row(self, row_id: RowId) -> VariantRow:
        row = self.draft.find_variant(row_id)
        if row is None:
            raise UnknownVariantError(row_id)
        return row

    def apply_variant_change(self, row_id: RowId, field_name: str, value: object) -> None:
        """Set a field on one row.

        A direct SKU edit turns auto-SKU off for the row for good.

        Raises:
            UnknownVariantError: If the row does not exist
            UnknownFieldError: If the field is not editable on rows
        """
        row = self._require_row(row_id)
        if field_name == "active":
            row.active = bool(value)
            return
        sanitizer = VARIANT_FIELDS.get(field_name)
        if sanitizer is None:
            raise UnknownFieldError(field_name)

        if field_name == "sku":
            row.sku = sanitizer(value)
            row.auto_sku = False
        elif field_name == "packaging_type":
            row.packaging_type = sanitizer(value).strip()
            row.packaging_quantity = quantity_for_type_change(row.packaging_type)
        elif field_name == "packaging_quantity":
            row.packaging_quantity = coerce_packaging_quantity(row.packaging_type, value)
        elif field_name == "size_code":
            row.size_code = sanitizer(value).strip()
            self._refresh_row_sku(row)
        else:
            setattr(row, field_name, sanitizer(value))

    def set_variant_size(self, row_id: RowId, code: str, text: str) -> None:
        """Select a size for a row, recomputing its SKU when automatic."""
        row = self._require_row(row_id)
        row.size_code = (code or "").strip()
        row.size_text = (text or "").strip()
        self._refresh_row_sku(row)

    def set_variant_price(
        self,
        row_id: RowId,
        retail: object | None = None,
        original: object | None = None,
        purchase: object | None = None,
    ) -> VariantPrice:
        """Update a row's pricing entry; None leaves a component untouched."""
        self._require_row(row_id)
        price = self.draft.price_for(row_id)
        if retail is not None:
            price.retail = sanitize_decimal(retail)
        if original is not None:
            price.original = sanitize_decimal(original)
        if purchase is not None:
            price.purchase = sanitize_decimal(purchase)
        return price

    def _refresh_row_sku(self, row: VariantRow) -> None:
        if row.auto_sku:
            position = self.draft.variant_index(row.row_id)
            row.sku = auto_child_sku(self.draft.sku, row.size_code, position)

    def refresh_auto_skus(self) -> None:
        """Recompute the SKU of every auto-SKU row at its current position."""
        for position, row in enumerate(self.draft.variants):
            if row.auto_sku:
                row.sku = auto_child_sku(self.draft.sku, row.size_code, position)

    # ------------------------------------------------------------------
    # Row add / duplicate / delete
    # ------------------------------------------------------------------

    def add_variant(self) -> VariantRow:
        """Append a blank row with an automatic SKU for its position."""
        draft = self.draft
        position = len(draft.variants)
        row = VariantRow(
            row_id=new_row_id(),
            sku=auto_child_sku(draft.sku, "", position),
            weight_unit=draft.weight_unit,
            dimension_unit=draft.dimension_unit,
            auto_sku=True,
        )
        draft.append_variant(row)
        return row

    def duplicate_last_variant(self) -> VariantRow:
        """Copy the last row under a new id with a fresh automatic SKU."""
        draft = self.draft
        if not draft.variants:
            return self.add_variant()
        last = draft.variants[-1]
        position = len(draft.variants)
        row = last.copy_as(
            new_row_id(),
            sku=auto_child_sku(draft.sku, last.size_code, position),
            auto_sku=True,
            avg_cost_per_unit=None,
            last_purchase_price=None,
        )
        source_price = draft.price_for(last.row_id)
        draft.append_variant(
            row,
            VariantPrice(
                retail=source_price.retail,
                original=source_price.original,
                purchase=source_price.purchase,
            ),
        )
        return row

    def delete_variant(self, row_id: RowId) -> None:
        """Remove a row and renumber the automatic SKUs after it.

        Raises:
            UnknownVariantError: If the row does not exist
        """
        if self.draft.remove_variant(row_id) is None:
            raise UnknownVariantError(row_id)
        self.refresh_auto_skus()
