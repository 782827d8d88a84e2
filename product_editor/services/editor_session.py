"""Editor Session - the host-facing editing surface for one product.

Owns the draft for the lifetime of an open editor: hydration from the
backend, field setters routed through the sync engine, supplier rows,
staged images with their previews, marketplace listings and submission
through the save orchestrator.
"""

import uuid
from collections.abc import Callable, Sequence

from product_editor.config import settings
from product_editor.core.auth_events import AuthChangeNotifier
from product_editor.core.calculators import (
    coerce_packaging_quantity,
    decompose_weight,
    format_price,
    positive_int,
)
from product_editor.core.catalog_config import CatalogConfig, load_catalog_config
from product_editor.core.sanitizers import is_non_empty, sanitize_decimal, to_number
from product_editor.core.save_orchestrator import (
    SaveOrchestrator,
    SaveOutcome,
    is_saving,
)
from product_editor.core.save_context import SaveMode
from product_editor.core.sync_engine import SyncEngine, UnknownVariantError
from product_editor.core.validator import can_save, collect_missing
from product_editor.infra.logging import bind_editor_context, clear_editor_context, get_logger
from product_editor.infra.previews import PRODUCT_OWNER, PreviewHandle, PreviewRegistry
from product_editor.models.draft import (
    ORIGIN_UNSET,
    DraftDefaults,
    ExistingImage,
    ExistingRowId,
    ProductDraft,
    RowId,
    StagedImage,
    SupplierLink,
    SupplierLinkEdit,
    SupplierRow,
    VariantPrice,
    VariantRow,
)
from product_editor.models.options import (
    CategoryCatalog,
    ColorCatalog,
    MetaEnums,
    Option,
    SizeCatalog,
)
from product_editor.schemas.payloads import MarketplaceListingPatch, MarketplaceListingPayload
from product_editor.schemas.responses import (
    MarketplaceChannel,
    MarketplaceListing,
    ProductDetail,
    Supplier,
    VariantDetail,
)
from product_editor.services.backend_client import CatalogAPIError, CatalogClient
from product_editor.services.notifier import Notifier

logger = get_logger(__name__)

REQUIRED_FIELDS_MESSAGE = "Please complete required fields."
REQUIRED_DRAFT_FIELDS_MESSAGE = "Please fill required fields for Draft."


class SessionBusyError(RuntimeError):
    """Raised when closing the editor while a save is in flight."""


class SessionStateError(RuntimeError):
    """Raised when an operation needs a saved product and there is none."""


class DuplicateSupplierError(ValueError):
    """Raised when a supplier is selected twice in the active set."""


def _number_text(value: float | int | None) -> str:
    """Render a backend number as a draft string ("" when absent)."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return sanitize_decimal(value)


def _error_text(error: Exception, fallback: str) -> str:
    if isinstance(error, CatalogAPIError) and error.message:
        return error.message
    return str(error) or fallback


class EditorSession:
    """One open product editor."""

    def __init__(
        self,
        client: CatalogClient,
        notifier: Notifier | None = None,
        auth_events: AuthChangeNotifier | None = None,
        previews: PreviewRegistry | None = None,
        catalog: CatalogConfig | None = None,
        currency_provider: Callable[[], str | None] | None = None,
    ) -> None:
        self.client = client
        self.notifier = notifier or Notifier()
        self.auth_events = auth_events
        self.previews = previews or PreviewRegistry()
        self.catalog = catalog or load_catalog_config()
        self.currency_provider = currency_provider
        self.orchestrator = SaveOrchestrator(client, self.notifier)

        self.enums = MetaEnums.from_response(None, self.catalog.fallback_enums)
        self.draft = ProductDraft(defaults=self._defaults())
        self.engine = SyncEngine(self.draft)
        self.sizes = SizeCatalog(self.catalog.sizes)
        self.colors = ColorCatalog(self.catalog.colors)
        self.categories = CategoryCatalog()
        self.countries: tuple[Option, ...] = ()
        self.suppliers: list[Supplier] = []

        self.is_open = False
        self._unsubscribe: Callable[[], None] | None = None
        self.session_id = uuid.uuid4().hex[:12]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _currency(self) -> str:
        if self.currency_provider is not None:
            currency = self.currency_provider()
            if currency:
                return currency
        return settings.default_currency

    def _defaults(self) -> DraftDefaults:
        return DraftDefaults(
            status=self.enums.default_status,
            condition=self.enums.default_condition,
            weight_unit=settings.default_weight_unit,
            dimension_unit=self.enums.default_dimension_unit(settings.default_dimension_unit),
            currency=self._currency(),
            barcode_type=self.catalog.barcode_types[0] if self.catalog.barcode_types else "UPC",
        )

    async def open(self, product_id: str | None = None) -> ProductDraft:
        """Open the editor, fresh or hydrated from an existing product.

        Raises:
            CatalogAPIError: If the product to edit cannot be loaded
        """
        try:
            enums = await self.client.get_product_meta_enums()
        except CatalogAPIError as e:
            logger.warning("Meta enums unavailable, using fallbacks", error=e.message)
            enums = None
        self.enums = MetaEnums.from_response(enums, self.catalog.fallback_enums)
        self.draft.reset(self._defaults())

        if self.auth_events is not None and self._unsubscribe is None:
            self._unsubscribe = self.auth_events.subscribe(self._on_auth_changed)

        try:
            self.categories = CategoryCatalog([c.name for c in await self.client.list_categories()])
        except CatalogAPIError as e:
            logger.warning("Categories unavailable", error=e.message)

        self.is_open = True
        bind_editor_context(self.session_id, product_id)
        if product_id is not None:
            try:
                detail = await self.client.get_product_by_id(product_id)
            except CatalogAPIError as e:
                self.notifier.error(_error_text(e, "Failed to load product"))
                raise
            self.hydrate(detail)

        logger.info(
            "Editor opened",
            product_id=product_id,
            kind=self.draft.loaded_kind,
            variants=len(self.draft.variants),
        )
        return self.draft

    def _on_auth_changed(self, reason: str) -> None:
        currency = self._currency()
        logger.info("Tenant context refreshed", reason=reason, currency=currency)
        self.draft.currency = currency

    def close(self) -> None:
        """Close the editor, discarding the draft.

        Raises:
            SessionBusyError: While a save is in flight
        """
        if is_saving():
            raise SessionBusyError("Cannot close the editor while saving")
        self.previews.release_all()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.draft.reset(self._defaults())
        self.is_open = False
        logger.info("Editor closed")
        clear_editor_context()

    async def load_countries(self) -> tuple[Option, ...]:
        try:
            self.countries = await self.client.list_countries()
        except CatalogAPIError as e:
            logger.warning("Country list unavailable", error=e.message)
        return self.countries

    async def load_suppliers(self) -> list[Supplier]:
        try:
            self.suppliers = await self.client.list_suppliers()
        except CatalogAPIError as e:
            logger.warning("Supplier list unavailable", error=e.message)
        return self.suppliers

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    def hydrate(self, detail: ProductDetail) -> None:
        """Fill the draft from a fetched product aggregate."""
        draft = self.draft
        draft.product_id = detail.id
        draft.loaded_kind = detail.kind
        draft.sku = detail.sku or ""
        draft.original_sku = draft.sku
        draft.name = detail.name or ""
        draft.brand = detail.brand or ""
        draft.status = detail.status or self.enums.default_status
        draft.condition = detail.condition or self.enums.default_condition
        draft.origin = detail.originCountry or ORIGIN_UNSET
        draft.category = detail.category or None
        draft.barcode = detail.barcode or ""

        weight_unit = detail.weightUnit or "lb"
        draft.weight_unit = weight_unit
        draft.weight_main, draft.weight_sub = decompose_weight(detail.weight, weight_unit)
        draft.dimension_unit = detail.dimensionUnit or draft.dimension_unit
        draft.length = _number_text(detail.length)
        draft.width = _number_text(detail.width)
        draft.height = _number_text(detail.height)

        draft.has_purchase_orders = detail.hasPurchaseOrders
        draft.retail_price = format_price(detail.retailPrice)
        draft.cost_price = format_price(
            detail.avgCostPerUnit if detail.hasPurchaseOrders else detail.originalPrice
        )
        draft.last_purchase_price = format_price(detail.lastPurchasePrice)

        draft.size_text = detail.sizeText or ""
        draft.color_text = detail.colorText or ""
        draft.packaging_type = detail.packagingType or ""
        draft.packaging_quantity = coerce_packaging_quantity(
            draft.packaging_type, detail.packagingQuantity
        )
        draft.stock_on_hand = _number_text(detail.stockOnHand)

        if detail.kind == "simple":
            draft.backing_variant_id = detail.variantId or (
                detail.variants[0].id if detail.variants else None
            )
            draft.clear_variants()
            draft.variant_enabled = False
        else:
            rows: list[VariantRow] = []
            prices: dict[RowId, VariantPrice] = {}
            for variant in detail.variants:
                row = self._row_from_detail(variant)
                rows.append(row)
                prices[row.row_id] = VariantPrice(
                    retail=format_price(variant.retailPrice),
                    original=format_price(
                        variant.avgCostPerUnit if detail.hasPurchaseOrders else variant.originalPrice
                    ),
                    purchase=format_price(variant.lastPurchasePrice),
                )
                self.sizes.merge(row.size_code, row.size_text)
                self.colors.add(row.color_text)
            draft.replace_variants(rows, prices)
            draft.variant_enabled = bool(rows)

        draft.original_links = [
            SupplierLink(str(link.supplier.id), link.lastPurchasePrice)
            for link in detail.supplierLinks
            if link.supplier is not None and link.supplier.id
        ]
        draft.link_edits = {}
        draft.pending_links = []
        draft.supplier_rows = []
        draft.existing_images = [ExistingImage(image.id, image.url) for image in detail.images]
        if draft.category:
            self.categories.add(draft.category)

    def _row_from_detail(self, variant: VariantDetail) -> VariantRow:
        code = (variant.size.code if variant.size else None) or ""
        text = variant.sizeText or (variant.size.name if variant.size else None) or code
        weight_unit = variant.weightUnit or "lb"
        weight_main, weight_sub = decompose_weight(variant.weight, weight_unit)
        packaging_type = variant.packagingType or ""
        return VariantRow(
            row_id=ExistingRowId(variant.id),
            size_code=code,
            size_text=text,
            color_text=variant.colorText or "",
            sku=variant.sku or "",
            barcode=variant.barcode or "",
            weight_main=weight_main,
            weight_sub=weight_sub,
            weight_unit=weight_unit,
            length=_number_text(variant.length),
            width=_number_text(variant.width),
            height=_number_text(variant.height),
            dimension_unit=variant.dimensionUnit or self.draft.dimension_unit,
            packaging_type=packaging_type,
            packaging_quantity=coerce_packaging_quantity(packaging_type, variant.packagingQuantity),
            active=(variant.status or "active") == "active",
            stock_on_hand=_number_text(variant.stockOnHand or 0),
            auto_sku=False,
            avg_cost_per_unit=variant.avgCostPerUnit,
            last_purchase_price=variant.lastPurchasePrice,
        )

    # ------------------------------------------------------------------
    # Field setters
    # ------------------------------------------------------------------

    def set_field(self, field_name: str, value: object) -> None:
        self.engine.apply_field_change(field_name, value)

    def toggle_variants(self, enabled: bool) -> None:
        self.engine.set_variant_enabled(enabled)

    def add_variant(self) -> VariantRow:
        return self.engine.add_variant()

    def duplicate_last_variant(self) -> VariantRow:
        return self.engine.duplicate_last_variant()

    def delete_variant(self, row_id: RowId) -> None:
        self.engine.delete_variant(row_id)
        self.previews.release_owner(row_id)

    def set_variant_field(self, row_id: RowId, field_name: str, value: object) -> None:
        self.engine.apply_variant_change(row_id, field_name, value)

    def set_variant_price(
        self,
        row_id: RowId,
        retail: object | None = None,
        original: object | None = None,
        purchase: object | None = None,
    ) -> VariantPrice:
        return self.engine.set_variant_price(row_id, retail, original, purchase)

    def select_variant_size(self, row_id: RowId, code: str) -> None:
        """Pick a size from the catalog for a row."""
        option = self.sizes.find(code=code)
        text = option.label if option else code
        self.engine.set_variant_size(row_id, code, text)

    def add_size(self, text: str, row_id: RowId | None = None) -> Option | None:
        """Add a size to the catalog and apply it to a row or to the parent."""
        option = self.sizes.add(text)
        if option is None:
            return None
        if row_id is not None:
            self.engine.set_variant_size(row_id, option.value, option.label)
        else:
            self.draft.size_text = option.label
        return option

    def add_color(self, text: str, row_id: RowId | None = None) -> str | None:
        """Add a colour to the catalog and apply it to a row or to the parent."""
        color = self.colors.add(text)
        if color is None:
            return None
        if row_id is not None:
            self.engine.apply_variant_change(row_id, "color_text", color)
        else:
            self.draft.color_text = color
        return color

    async def create_category(self, name: str) -> str | None:
        try:
            category = await self.client.create_category(name)
        except CatalogAPIError as e:
            self.notifier.error(_error_text(e, "Failed to create category"))
            return None
        label = self.categories.add(category.name)
        self.draft.category = label
        return label

    # ------------------------------------------------------------------
    # Suppliers
    # ------------------------------------------------------------------

    def _active_supplier_ids(self) -> list[str]:
        draft = self.draft
        if not draft.is_edit:
            return [row.supplier_id for row in draft.supplier_rows if row.supplier_id]
        ids: list[str] = []
        for link in draft.original_links:
            edit = draft.link_edits.get(link.supplier_id)
            if edit is not None and edit.removed:
                continue
            ids.append((edit.supplier_id if edit and edit.supplier_id else None) or link.supplier_id)
        ids.extend(row.supplier_id for row in draft.pending_links if row.supplier_id)
        return ids

    def _ensure_unique(self, supplier_id: str | None, current: str | None) -> None:
        if not supplier_id or supplier_id == current:
            return
        if supplier_id in self._active_supplier_ids():
            raise DuplicateSupplierError(f"Supplier {supplier_id} is already selected")

    def _rows(self) -> list[SupplierRow]:
        return self.draft.pending_links if self.draft.is_edit else self.draft.supplier_rows

    def add_supplier_row(self) -> int:
        """Add a blank supplier row (pending link when editing)."""
        rows = self._rows()
        rows.append(SupplierRow())
        return len(rows) - 1

    def set_supplier_row(
        self,
        index: int,
        supplier_id: str | None = None,
        price: object | None = None,
    ) -> SupplierRow:
        """Select a supplier and/or price on a row.

        Raises:
            DuplicateSupplierError: If the supplier is already selected
        """
        row = self._rows()[index]
        if supplier_id is not None:
            self._ensure_unique(supplier_id, row.supplier_id)
            row.supplier_id = supplier_id or None
        if price is not None:
            row.price = sanitize_decimal(price)
        return row

    def remove_supplier_row(self, index: int) -> None:
        rows = self._rows()
        del rows[index]
        if not rows and not self.draft.is_edit:
            rows.append(SupplierRow())

    def edit_existing_link(
        self,
        original_supplier_id: str,
        supplier_id: str | None = None,
        price: object | None = None,
        removed: bool | None = None,
    ) -> SupplierLinkEdit:
        """Re-point, re-price or remove an existing supplier link."""
        draft = self.draft
        if not any(link.supplier_id == original_supplier_id for link in draft.original_links):
            raise KeyError(original_supplier_id)
        edit = draft.link_edits.setdefault(original_supplier_id, SupplierLinkEdit())
        if supplier_id is not None:
            current = edit.supplier_id or original_supplier_id
            self._ensure_unique(supplier_id, current)
            edit.supplier_id = supplier_id
        if price is not None:
            edit.price = sanitize_decimal(price)
        if removed is not None:
            edit.removed = removed
        return edit

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def stage_images(self, files: Sequence[StagedImage]) -> list[PreviewHandle]:
        """Replace the staged product images, regenerating previews."""
        self.draft.images = list(files)
        return self.previews.replace(PRODUCT_OWNER, self.draft.images)

    async def stage_variant_images(
        self,
        row_id: RowId,
        files: Sequence[StagedImage],
    ) -> list[PreviewHandle]:
        """Stage images for a row; saved rows of an edited product upload at once."""
        if self.draft.find_variant(row_id) is None:
            raise UnknownVariantError(row_id)
        files = list(files)

        if self.draft.is_edit and isinstance(row_id, ExistingRowId):
            try:
                await self.client.upload_product_images(
                    self.draft.product_id, files, variant_id=row_id.id
                )
            except CatalogAPIError as e:
                logger.error("Variant image upload failed", variant_id=row_id.id, error=e.message)
                self.notifier.error("Failed to upload variant images")
                return []
            self.notifier.success("Variant images uploaded")
            return []

        self.draft.variant_images[row_id] = files
        self.notifier.success("Variant images selected")
        return self.previews.replace(row_id, files)

    async def delete_existing_image(self, image_id: str) -> bool:
        draft = self._require_saved_product()
        try:
            await self.client.delete_product_image(draft.product_id, image_id)
        except CatalogAPIError as e:
            self.notifier.error(_error_text(e, "Failed to delete image"))
            return False
        draft.existing_images = [i for i in draft.existing_images if i.id != image_id]
        self.notifier.success("Image deleted")
        return True

    async def refresh_images(self) -> list[ExistingImage]:
        """Reload the product's attached images from the backend."""
        draft = self._require_saved_product()
        try:
            images = await self.client.list_product_images(draft.product_id)
        except CatalogAPIError as e:
            logger.warning(
                "Product images not refreshed", product_id=draft.product_id, error=e.message
            )
            return draft.existing_images
        draft.existing_images = [ExistingImage(image.id, image.url) for image in images]
        return draft.existing_images

    # ------------------------------------------------------------------
    # Marketplace
    # ------------------------------------------------------------------

    def _require_saved_product(self) -> ProductDraft:
        if not self.draft.product_id:
            raise SessionStateError("The product must be saved first")
        return self.draft

    async def search_channels(self, query: str = "") -> list[MarketplaceChannel]:
        return await self.client.search_marketplace_channels(query)

    async def create_channel(self, marketplace: str) -> MarketplaceChannel | None:
        name = (marketplace or "").strip()
        if not name:
            return None
        try:
            channel = await self.client.create_marketplace_channel(name)
        except CatalogAPIError as e:
            logger.error("Marketplace channel not created", marketplace=name, error=e.message)
            self.notifier.error("Failed to add marketplace")
            return None
        self.notifier.success(f"Added marketplace: {name}")
        return channel

    async def list_listings(self, variant_id: str | None = None) -> list[MarketplaceListing]:
        draft = self._require_saved_product()
        return await self.client.list_product_marketplace_listings(draft.product_id, variant_id)

    async def add_listing(
        self,
        channel: MarketplaceChannel,
        units: object,
        product_name: str | None = None,
        external_sku: str | None = None,
        price: object | None = None,
        variant_id: str | None = None,
    ) -> MarketplaceListing | None:
        """List the product (or one variant) on a marketplace channel."""
        draft = self._require_saved_product()
        name = (product_name or draft.name).strip()
        if not name:
            self.notifier.error("Enter a product name")
            return None
        unit_count = positive_int(units)
        if unit_count is None:
            self.notifier.error("Enter the number of units")
            return None

        fields: dict[str, object] = {
            "productName": name,
            "marketplace": channel.marketplace,
            "channelId": channel.id,
            "units": unit_count,
        }
        if is_non_empty(external_sku):
            fields["externalSku"] = external_sku.strip()
        if is_non_empty(price):
            fields["price"] = to_number(price)
        if variant_id:
            fields["variantId"] = variant_id

        try:
            listing = await self.client.add_product_marketplace_listing(
                draft.product_id, MarketplaceListingPayload(**fields)
            )
        except CatalogAPIError as e:
            self.notifier.error(_error_text(e, "Failed to add listing"))
            return None
        self.notifier.success("Listing added")
        return listing

    async def search_product_names(self, query: str = "") -> list[str]:
        """Product names already used on listings, for the listing name picker."""
        try:
            return await self.client.search_listing_product_names(query)
        except CatalogAPIError as e:
            logger.warning("Listing product names unavailable", error=e.message)
            return []

    async def update_listing(
        self,
        listing_id: str,
        units: object | None = None,
        external_sku: str | None = None,
        price: object | None = None,
    ) -> bool:
        """Patch the units, external SKU or price of one listing."""
        draft = self._require_saved_product()
        fields: dict[str, object] = {}
        if units is not None:
            unit_count = positive_int(units)
            if unit_count is None:
                self.notifier.error("Enter the number of units")
                return False
            fields["units"] = unit_count
        if is_non_empty(external_sku):
            fields["externalSku"] = external_sku.strip()
        if is_non_empty(price):
            fields["price"] = to_number(price)
        if not fields:
            return False

        try:
            await self.client.update_product_marketplace_listing(
                draft.product_id, listing_id, MarketplaceListingPatch(**fields)
            )
        except CatalogAPIError as e:
            self.notifier.error(_error_text(e, "Failed to update listing"))
            return False
        self.notifier.success("Listing updated")
        return True

    async def add_variant_listings(
        self,
        channel: MarketplaceChannel,
        units: object,
        product_name: str | None = None,
    ) -> int:
        """List every saved variant row on one channel in a single request.

        Each row is listed under its own SKU. Rows not yet saved are skipped.

        Returns:
            Number of rows sent
        """
        draft = self._require_saved_product()
        name = (product_name or draft.name).strip()
        if not name:
            self.notifier.error("Enter a product name")
            return 0
        unit_count = positive_int(units)
        if unit_count is None:
            self.notifier.error("Enter the number of units")
            return 0

        rows: list[MarketplaceListingPayload] = []
        for row in draft.variants:
            if not isinstance(row.row_id, ExistingRowId):
                continue
            fields: dict[str, object] = {
                "productName": name,
                "marketplace": channel.marketplace,
                "channelId": channel.id,
                "units": unit_count,
                "variantId": row.row_id.id,
            }
            if row.sku.strip():
                fields["externalSku"] = row.sku.strip()
            rows.append(MarketplaceListingPayload(**fields))
        if not rows:
            self.notifier.error("Save the variants first")
            return 0

        try:
            await self.client.bulk_add_marketplace_listings(draft.product_id, rows)
        except CatalogAPIError as e:
            self.notifier.error(_error_text(e, "Failed to add listings"))
            return 0
        logger.info(
            "Variant listings added",
            product_id=draft.product_id,
            marketplace=channel.marketplace,
            rows=len(rows),
        )
        self.notifier.success(f"Listed {len(rows)} variant(s)")
        return len(rows)

    async def delete_listing(self, listing_id: str) -> bool:
        draft = self._require_saved_product()
        try:
            await self.client.delete_product_marketplace_listing(draft.product_id, listing_id)
        except CatalogAPIError as e:
            self.notifier.error(_error_text(e, "Failed to delete"))
            return False
        self.notifier.success("Listing deleted")
        return True

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    async def submit(self, mode: SaveMode = "single", is_draft: bool = False) -> SaveOutcome:
        """Validate and save the draft.

        A "single" save with an untouched entry after a batch of
        "save & add another" just closes the editor ("Done").
        """
        draft = self.draft
        if is_saving():
            return SaveOutcome(status="ignored")

        if mode == "single" and not is_draft and draft.saved_products and draft.is_pristine_entry():
            self.close()
            return SaveOutcome(status="done", close_requested=True)

        missing = collect_missing(draft, is_draft)
        draft.missing = missing
        if missing:
            self.notifier.error(
                REQUIRED_DRAFT_FIELDS_MESSAGE if is_draft else REQUIRED_FIELDS_MESSAGE
            )
            logger.info("Save blocked by missing fields", missing=sorted(missing))
            return SaveOutcome(status="blocked", missing=missing)

        if not can_save(draft, is_draft):
            self.notifier.error(REQUIRED_FIELDS_MESSAGE)
            logger.info("Save blocked by incomplete pricing")
            return SaveOutcome(status="blocked", pricing_incomplete=True)

        outcome = await self.orchestrator.save(draft, mode=mode, is_draft=is_draft)
        if outcome.close_requested:
            self.close()
        elif outcome.status == "saved":
            self.previews.release_all()
        return outcome
