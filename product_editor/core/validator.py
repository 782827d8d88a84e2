"""Missing-field validation and the pricing save-gate."""

from product_editor.core.calculators import packaging_needs_quantity, positive_int
from product_editor.core.sanitizers import is_non_empty
from product_editor.models.draft import ProductDraft, VariantRow
from product_editor.models.options import SIZE_PLACEHOLDER


def row_key(row: VariantRow, suffix: str) -> str:
    """Row-scoped field key, e.g. ``v:local-ab12:sku``."""
    return f"v:{row.row_id.key}:{suffix}"


def row_has_size(row: VariantRow) -> bool:
    text = row.size_text.strip()
    return is_non_empty(row.size_code) or (bool(text) and text != SIZE_PLACEHOLDER)


def _quantity_missing(packaging_type: str, quantity: str) -> bool:
    return packaging_needs_quantity(packaging_type) and positive_int(quantity) is None


def collect_missing(draft: ProductDraft, is_draft: bool) -> dict[str, str]:
    """Collect required fields that are still blank for a save intent.

    Args:
        draft: Draft being saved
        is_draft: True for a draft save (only the name is required)

    Returns:
        Mapping of field key to human-readable label, empty when complete
    """
    missing: dict[str, str] = {}
    if not is_non_empty(draft.name):
        missing["name"] = "Product Name"
    if is_draft:
        return missing

    if not is_non_empty(draft.status):
        missing["status"] = "Status"
    if not draft.origin_is_set:
        missing["origin"] = "Place of origin"

    if not draft.using_variants:
        if not is_non_empty(draft.condition):
            missing["condition"] = "Condition"
        if _quantity_missing(draft.packaging_type, draft.packaging_quantity):
            missing["packagingQuantity"] = "Packaging quantity"
        return missing

    if not draft.variants:
        missing["variants.none"] = "At least one Variant row"
        return missing

    for position, row in enumerate(draft.variants, 1):
        if not row_has_size(row):
            missing[row_key(row, "size")] = f"Variant #{position}: Size"
        if not is_non_empty(row.sku):
            missing[row_key(row, "sku")] = f"Variant #{position}: Variant SKU"
        if _quantity_missing(row.packaging_type, row.packaging_quantity):
            missing[row_key(row, "packaging")] = f"Variant #{position}: Packaging quantity"
    return missing


def has_required_simple(draft: ProductDraft) -> bool:
    """Whether a simple product has everything a published save needs, pricing included."""
    return all(
        is_non_empty(value)
        for value in (
            draft.name,
            draft.condition,
            draft.status,
            draft.retail_price,
            draft.cost_price,
        )
    ) and draft.origin_is_set


def has_required_variants(draft: ProductDraft) -> bool:
    """Whether every variant row has a size, SKU, retail and original price."""
    if not draft.variants:
        return False
    for row in draft.variants:
        price = draft.variant_prices.get(row.row_id)
        if price is None:
            return False
        if not (
            row_has_size(row)
            and is_non_empty(row.sku)
            and is_non_empty(price.retail)
            and is_non_empty(price.original)
        ):
            return False
    return True


def can_save(draft: ProductDraft, is_draft: bool) -> bool:
    """The save-gate: drafts need a name, published saves need full pricing."""
    if is_draft:
        return is_non_empty(draft.name)
    if not draft.using_variants:
        return has_required_simple(draft)
    return (
        is_non_empty(draft.name)
        and is_non_empty(draft.status)
        and draft.origin_is_set
        and has_required_variants(draft)
    )
