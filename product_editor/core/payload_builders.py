"""Payload builders: draft -> wire payloads.

Pure functions. Blank optional fields are left unset on the payload models
so they are dropped from the request body.
"""

from datetime import datetime, timezone
from typing import Any

from product_editor.core.calculators import (
    PackagingPayload,
    auto_sku_from_name,
    compose_weight,
    resolve_packaging,
)
from product_editor.core.sanitizers import is_non_empty, to_number
from product_editor.models.draft import ProductDraft, VariantRow
from product_editor.schemas.payloads import (
    ParentPatchPayload,
    SimpleProductPayload,
    VariantProductPayload,
    VariantRowPayload,
)


def _compact(values: dict[str, Any], keep_null: tuple[str, ...] = ()) -> dict[str, Any]:
    """Drop None values except for keys that must be sent as null."""
    return {k: v for k, v in values.items() if v is not None or k in keep_null}


def _trimmed(value: str | None) -> str | None:
    return value.strip() if is_non_empty(value) else None


def _int_or_none(value: Any) -> int | None:
    number = to_number(value)
    return int(number) if number is not None else None


def build_packaging_payload(packaging_type: str | None, quantity: Any) -> PackagingPayload:
    """Resolve the packaging pair for the wire (PAIR ships 2)."""
    return resolve_packaging(packaging_type, quantity)


def final_sku(draft: ProductDraft) -> str | None:
    """The parent SKU to send, generated from the name when left blank."""
    if is_non_empty(draft.sku):
        return draft.sku.strip()
    if is_non_empty(draft.name):
        return auto_sku_from_name(draft.name)
    return None


def _envelope(draft: ProductDraft, is_draft: bool, now: datetime | None) -> dict[str, Any]:
    published = None if is_draft else (now or datetime.now(timezone.utc))
    return {
        **_compact({
            "sku": final_sku(draft),
            "name": draft.name.strip(),
            "brand": _trimmed(draft.brand),
            "status": draft.status or None,
            "originCountry": draft.origin if draft.origin_is_set else None,
            "category": draft.category_value,
        }),
        "isDraft": bool(is_draft),
        "publishedAt": published,
    }


def _packaging_fields(packaging: PackagingPayload) -> dict[str, Any]:
    return {
        "packagingType": packaging.packagingType,
        "packagingQuantity": packaging.packagingQuantity,
    }


def _pricing(
    draft: ProductDraft,
    retail: str,
    original: str,
    purchase: str,
) -> dict[str, Any]:
    fields = _compact({
        "retailPrice": to_number(retail),
        "retailCurrency": draft.currency,
        "originalPrice": to_number(original),
        "originalCurrency": draft.currency,
    })
    if is_non_empty(purchase):
        fields["lastPurchasePrice"] = to_number(purchase)
        fields["lastPurchaseCurr"] = draft.currency
    return fields


def build_simple_payload(
    draft: ProductDraft,
    is_draft: bool,
    now: datetime | None = None,
) -> SimpleProductPayload:
    """Build the create payload for a product without variants."""
    packaging = build_packaging_payload(draft.packaging_type, draft.packaging_quantity)
    return SimpleProductPayload(
        **_envelope(draft, is_draft, now),
        **_compact({
            "condition": draft.condition or None,
            "weight": compose_weight(draft.weight_main, draft.weight_sub, draft.weight_unit),
            "weightUnit": draft.weight_unit,
            "length": to_number(draft.length),
            "width": to_number(draft.width),
            "height": to_number(draft.height),
            "dimensionUnit": draft.dimension_unit,
            "sizeText": _trimmed(draft.size_text),
            "colorText": _trimmed(draft.color_text),
            "barcode": _trimmed(draft.barcode),
        }),
        **_packaging_fields(packaging),
        **_pricing(draft, draft.retail_price, draft.cost_price, draft.last_purchase_price),
        stockOnHand=_int_or_none(draft.stock_on_hand) or 0,
        variants=[],
    )


def build_variant_row_payload(
    draft: ProductDraft,
    row: VariantRow,
    is_draft: bool | None = None,
) -> VariantRowPayload:
    """Map one variant row.

    Inside a create payload the row carries the parent status. When
    ``is_draft`` is given the row is written on its own, so it carries its
    own draft flag and an active/inactive status from the row toggle.
    """
    price = draft.variant_prices.get(row.row_id)
    weight_unit = row.weight_unit or "lb"
    packaging = build_packaging_payload(row.packaging_type, row.packaging_quantity)

    if is_draft is None:
        status = draft.status or None
    else:
        status = "active" if row.active else "inactive"

    fields: dict[str, Any] = {
        "sku": row.sku.strip(),
        "sizeId": None,
        "sizeText": row.size_text.strip() or row.size_code.strip(),
        "colorText": row.color_text.strip(),
        **_compact({
            "barcode": _trimmed(row.barcode),
            "status": status,
            "condition": draft.condition or None,
            "weight": compose_weight(row.weight_main, row.weight_sub, weight_unit),
            "length": to_number(row.length),
            "width": to_number(row.width),
            "height": to_number(row.height),
        }),
        "weightUnit": weight_unit,
        "dimensionUnit": row.dimension_unit or draft.dimension_unit,
        **_packaging_fields(packaging),
        **_pricing(
            draft,
            price.retail if price else "",
            price.original if price else "",
            price.purchase if price else "",
        ),
        "stockOnHand": _int_or_none(row.stock_on_hand) or 0,
        "attributes": {},
    }
    if is_draft is not None:
        fields["isDraft"] = bool(is_draft)
    return VariantRowPayload(**fields)


def build_variant_payload(
    draft: ProductDraft,
    is_draft: bool,
    now: datetime | None = None,
) -> VariantProductPayload:
    """Build the create payload for a product with variant rows.

    Parent-level pricing, weight and dimensions are not sent; they live on
    the rows.
    """
    return VariantProductPayload(
        **_envelope(draft, is_draft, now),
        variants=[build_variant_row_payload(draft, row) for row in draft.variants],
    )


def build_product_payload(
    draft: ProductDraft,
    is_draft: bool,
    now: datetime | None = None,
) -> SimpleProductPayload | VariantProductPayload:
    """Pick the simple or variant payload for the draft's mode."""
    if draft.using_variants:
        return build_variant_payload(draft, is_draft, now)
    return build_simple_payload(draft, is_draft, now)


def build_parent_patch_payload(
    draft: ProductDraft,
    is_draft: bool,
    sku: str | None = None,
) -> ParentPatchPayload:
    """Build the parent update for an edit save.

    Shared parent fields are always sent. Pricing, measurements, packaging
    and simple-only attributes are sent only when the product has no
    variant rows in play.
    """
    fields: dict[str, Any] = {
        **_compact({
            "name": draft.name.strip(),
            "sku": sku if sku is not None else final_sku(draft),
            "brand": _trimmed(draft.brand),
            "status": draft.status or None,
            "originCountry": draft.origin if draft.origin_is_set else None,
            "category": draft.category_value,
            "condition": draft.condition or None,
        }),
        "isDraft": bool(is_draft),
    }
    if draft.using_variants:
        return ParentPatchPayload(**fields)

    packaging = build_packaging_payload(draft.packaging_type, draft.packaging_quantity)
    fields.update(_compact({
        "retailPrice": to_number(draft.retail_price),
        "retailCurrency": draft.currency,
        "originalPrice": to_number(draft.cost_price),
        "originalCurrency": draft.currency,
        "lastPurchasePrice": to_number(draft.last_purchase_price),
        "lastPurchaseCurr": draft.currency,
        "sizeText": _trimmed(draft.size_text),
        "colorText": _trimmed(draft.color_text),
        "barcode": _trimmed(draft.barcode),
        "weight": compose_weight(draft.weight_main, draft.weight_sub, draft.weight_unit),
        "weightUnit": draft.weight_unit,
        "length": to_number(draft.length),
        "width": to_number(draft.width),
        "height": to_number(draft.height),
        "dimensionUnit": draft.dimension_unit,
        "stockOnHand": _int_or_none(draft.stock_on_hand),
    }))
    fields.update(_packaging_fields(packaging))
    return ParentPatchPayload(**fields)
