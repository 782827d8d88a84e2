"""In-memory draft of one product being authored.

The draft holds parent fields, variant rows with their pricing side-table,
supplier link rows and staged images. Mutations to the row list go through
the draft's own helpers so the pricing table always mirrors the rows.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, ClassVar
from uuid import uuid4

ORIGIN_UNSET = "Select"
CATEGORY_UNSET = "Select"
LOCAL_ID_PREFIX = "local-"


@dataclass(frozen=True)
class NewRowId:
    """Session-local id of a variant row not yet saved."""

    temp_id: str
    is_local: ClassVar[bool] = True

    @property
    def key(self) -> str:
        return self.temp_id


@dataclass(frozen=True)
class ExistingRowId:
    """Durable backend id of a saved variant."""

    id: str
    is_local: ClassVar[bool] = False

    @property
    def key(self) -> str:
        return self.id


RowId = NewRowId | ExistingRowId


def new_row_id() -> NewRowId:
    """Mint a fresh session-local row id."""
    return NewRowId(temp_id=f"{LOCAL_ID_PREFIX}{uuid4().hex}")


@dataclass
class VariantRow:
    """One sellable child row of a variant product."""

    row_id: RowId
    size_code: str = ""
    size_text: str = ""
    color_text: str = ""
    sku: str = ""
    barcode: str = ""
    weight_main: str = ""
    weight_sub: str = ""
    weight_unit: str = "lb"
    length: str = ""
    width: str = ""
    height: str = ""
    dimension_unit: str = ""
    packaging_type: str = ""
    packaging_quantity: str = ""
    active: bool = True
    stock_on_hand: str = ""
    auto_sku: bool = True

    # Read-only values from hydration
    avg_cost_per_unit: float | None = None
    last_purchase_price: float | None = None

    def copy_as(self, row_id: RowId, **changes: Any) -> "VariantRow":
        """Return a copy of this row under another id."""
        return replace(self, row_id=row_id, **changes)


@dataclass
class VariantPrice:
    """Per-row pricing kept beside the variant rows."""

    retail: str = ""
    original: str = ""
    purchase: str = ""


@dataclass
class SupplierRow:
    """A supplier selection with its last purchase price."""

    supplier_id: str | None = None
    price: str = ""


@dataclass(frozen=True)
class SupplierLink:
    """A supplier link as loaded from the backend."""

    supplier_id: str
    last_purchase_price: float | None = None


@dataclass
class SupplierLinkEdit:
    """Overlay on an existing supplier link.

    ``supplier_id`` re-points the link, ``price`` re-prices it and
    ``removed`` drops it at save time.
    """

    supplier_id: str | None = None
    price: str | None = None
    removed: bool = False


@dataclass(frozen=True)
class StagedImage:
    """An image file picked locally and waiting for upload."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass(frozen=True)
class ExistingImage:
    """An image already attached to the product on the backend."""

    id: str
    url: str


@dataclass(frozen=True)
class DraftDefaults:
    """Values a fresh draft starts with."""

    status: str = "active"
    condition: str = "NEW"
    weight_unit: str = "lb"
    dimension_unit: str = "inch"
    currency: str = "USD"
    barcode_type: str = "UPC"


@dataclass
class ProductDraft:
    """Complete unsaved state of one product edit session."""

    defaults: DraftDefaults = field(default_factory=DraftDefaults, repr=False)

    # Identity
    product_id: str | None = None
    loaded_kind: str | None = None
    backing_variant_id: str | None = None
    original_sku: str = ""

    variant_enabled: bool = False

    # Parent fields
    name: str = ""
    sku: str = ""
    barcode: str = ""
    barcode_type: str = ""
    brand: str = ""
    status: str = ""
    category: str | None = None
    origin: str = ORIGIN_UNSET
    condition: str = ""
    weight_main: str = ""
    weight_sub: str = ""
    weight_unit: str = ""
    length: str = ""
    width: str = ""
    height: str = ""
    dimension_unit: str = ""
    packaging_type: str = ""
    packaging_quantity: str = ""
    size_text: str = ""
    color_text: str = ""
    stock_on_hand: str = ""
    retail_price: str = ""
    cost_price: str = ""
    last_purchase_price: str = ""
    currency: str = ""
    has_purchase_orders: bool = False

    # Variant rows and pricing side-table
    variants: list[VariantRow] = field(default_factory=list)
    variant_prices: dict[RowId, VariantPrice] = field(default_factory=dict)

    # Suppliers
    supplier_rows: list[SupplierRow] = field(default_factory=lambda: [SupplierRow()])
    original_links: list[SupplierLink] = field(default_factory=list)
    link_edits: dict[str, SupplierLinkEdit] = field(default_factory=dict)
    pending_links: list[SupplierRow] = field(default_factory=list)

    # Images
    images: list[StagedImage] = field(default_factory=list)
    variant_images: dict[RowId, list[StagedImage]] = field(default_factory=dict)
    existing_images: list[ExistingImage] = field(default_factory=list)

    missing: dict[str, str] = field(default_factory=dict)
    saved_products: list[dict[str, Any]] = field(default_factory=list)
    focus_field: str | None = None

    def __post_init__(self) -> None:
        self.status = self.status or self.defaults.status
        self.condition = self.condition or self.defaults.condition
        self.weight_unit = self.weight_unit or self.defaults.weight_unit
        self.dimension_unit = self.dimension_unit or self.defaults.dimension_unit
        self.currency = self.currency or self.defaults.currency
        self.barcode_type = self.barcode_type or self.defaults.barcode_type

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def is_edit(self) -> bool:
        return self.product_id is not None

    @property
    def is_edit_simple(self) -> bool:
        """A simple product loaded for editing; variant mode stays locked."""
        return self.is_edit and self.loaded_kind == "simple"

    @property
    def using_variants(self) -> bool:
        return self.variant_enabled and not self.is_edit_simple

    @property
    def origin_is_set(self) -> bool:
        return bool(self.origin) and self.origin != ORIGIN_UNSET

    @property
    def category_value(self) -> str | None:
        if not self.category or self.category == CATEGORY_UNSET:
            return None
        return self.category

    # ------------------------------------------------------------------
    # Variant rows
    # ------------------------------------------------------------------

    def find_variant(self, row_id: RowId) -> VariantRow | None:
        for row in self.variants:
            if row.row_id == row_id:
                return row
        return None

    def variant_index(self, row_id: RowId) -> int:
        for idx, row in enumerate(self.variants):
            if row.row_id == row_id:
                return idx
        return -1

    def price_for(self, row_id: RowId) -> VariantPrice:
        """Pricing entry of a row, created on demand for present rows."""
        price = self.variant_prices.get(row_id)
        if price is None:
            price = VariantPrice()
            if self.find_variant(row_id) is not None:
                self.variant_prices[row_id] = price
        return price

    def append_variant(self, row: VariantRow, price: VariantPrice | None = None) -> None:
        self.variants.append(row)
        self.variant_prices[row.row_id] = price or VariantPrice()
        self.ensure_price_parity()

    def remove_variant(self, row_id: RowId) -> VariantRow | None:
        """Remove a row together with its pricing and staged images."""
        row = self.find_variant(row_id)
        if row is None:
            return None
        self.variants.remove(row)
        self.ensure_price_parity()
        return row

    def replace_variants(
        self,
        rows: list[VariantRow],
        prices: dict[RowId, VariantPrice] | None = None,
    ) -> None:
        self.variants = list(rows)
        self.variant_prices = dict(prices or {})
        self.ensure_price_parity()

    def clear_variants(self) -> None:
        self.replace_variants([])

    def rekey_variant(self, old_id: RowId, new_id: RowId) -> None:
        """Move a row, its pricing and staged images onto a new id."""
        row = self.find_variant(old_id)
        if row is None:
            return
        row.row_id = new_id
        if old_id in self.variant_prices:
            self.variant_prices[new_id] = self.variant_prices.pop(old_id)
        if old_id in self.variant_images:
            self.variant_images[new_id] = self.variant_images.pop(old_id)
        self.ensure_price_parity()

    def ensure_price_parity(self) -> None:
        """Make pricing keys equal the row ids and drop orphaned images."""
        ids = [row.row_id for row in self.variants]
        present = set(ids)
        for row_id in ids:
            self.variant_prices.setdefault(row_id, VariantPrice())
        for row_id in list(self.variant_prices):
            if row_id not in present:
                del self.variant_prices[row_id]
        for row_id in list(self.variant_images):
            if row_id not in present:
                del self.variant_images[row_id]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self, defaults: DraftDefaults | None = None) -> None:
        """Restore every field to the defaults of a fresh draft."""
        fresh = ProductDraft(defaults=defaults or self.defaults)
        for f in fields(self):
            setattr(self, f.name, getattr(fresh, f.name))

    def clear_for_next_item(self, payload: dict[str, Any]) -> None:
        """Keep batch-wide fields after a "save & add another".

        Per-item identifiers, rows, images and supplier selections are
        cleared; status, origin, units and pricing defaults stay.
        """
        self.saved_products.append(payload)
        self.missing = {}
        self.sku = ""
        self.barcode = ""
        self.name = ""
        self.brand = ""
        self.clear_variants()
        self.variant_images = {}
        self.images = []
        self.supplier_rows = [SupplierRow()]
        self.pending_links = []
        self.focus_field = "sku"

    def is_pristine_entry(self) -> bool:
        """No name typed and no rows added since the last batch save."""
        return not self.name.strip() and not self.variants
