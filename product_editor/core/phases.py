"""Concrete save phases for the create and edit flows."""

from product_editor.core.payload_builders import (
    build_parent_patch_payload,
    build_variant_row_payload,
)
from product_editor.core.sanitizers import is_non_empty, to_number
from product_editor.core.save_context import SaveContext
from product_editor.core.save_phase import PartialPhaseFailure, SavePhase
from product_editor.infra.logging import get_logger
from product_editor.models.draft import (
    ExistingRowId,
    NewRowId,
    ProductDraft,
    SupplierLink,
)
from product_editor.schemas.payloads import VariantSkuPatch

logger = get_logger(__name__)


def _price(value: object) -> float | None:
    return to_number(value) if is_non_empty(value) else None


# =============================================================================
# Create flow
# =============================================================================


class CreateProductPhase(SavePhase):
    """Create the product from the simple or variant payload."""

    hard_stop = True

    @property
    def name(self) -> str:
        return "create_product"

    async def execute(self, ctx: SaveContext) -> SaveContext:
        created = await ctx.client.create_product(ctx.payload)
        logger.info(
            "Product created",
            product_id=created.id,
            variants=len(created.variants),
            is_draft=ctx.is_draft,
        )
        ctx.notifier.success("Draft saved" if ctx.is_draft else "Product created")
        return ctx.with_product(created.id, created)


class LinkSuppliersPhase(SavePhase):
    """Link each selected supplier to the new product with its price."""

    failure_message = "Product created but failed to link some suppliers"
    failure_level = "warning"

    @property
    def name(self) -> str:
        return "link_suppliers"

    def applies(self, ctx: SaveContext) -> bool:
        return any(row.supplier_id for row in ctx.draft.supplier_rows)

    async def execute(self, ctx: SaveContext) -> SaveContext:
        linked: set[str] = set()
        for row in ctx.draft.supplier_rows:
            sid = row.supplier_id
            if not sid or sid in linked:
                continue
            linked.add(sid)
            await ctx.client.link_supplier_products(
                sid,
                [ctx.product_id],
                last_purchase_price=_price(row.price),
                currency=ctx.draft.currency,
            )
        logger.info("Suppliers linked", product_id=ctx.product_id, suppliers=len(linked))
        return ctx


class UploadCreatedVariantImagesPhase(SavePhase):
    """Upload staged variant images, resolving rows to created ids by SKU."""

    failure_message = "Failed to upload some variant images"

    @property
    def name(self) -> str:
        return "upload_created_variant_images"

    def applies(self, ctx: SaveContext) -> bool:
        return ctx.draft.using_variants and any(ctx.draft.variant_images.values())

    async def execute(self, ctx: SaveContext) -> SaveContext:
        draft = ctx.draft
        ids_by_sku = ctx.created.variant_ids_by_sku() if ctx.created else {}
        unresolved = 0
        for row in draft.variants:
            files = draft.variant_images.get(row.row_id)
            sku = row.sku.strip()
            if not files or not sku:
                continue
            variant_id = ids_by_sku.get(sku)
            if variant_id is None:
                unresolved += 1
                logger.warning("Created variant not found by SKU", sku=sku)
                continue
            await ctx.client.upload_product_images(ctx.product_id, files, variant_id=variant_id)
        draft.variant_images = {}
        if unresolved:
            raise PartialPhaseFailure(self.failure_message)
        return ctx


# =============================================================================
# Edit flow
# =============================================================================


class UpdateParentPhase(SavePhase):
    """Patch parent-level fields of the product being edited."""

    hard_stop = True

    @property
    def name(self) -> str:
        return "update_parent"

    async def execute(self, ctx: SaveContext) -> SaveContext:
        product_id = ctx.draft.product_id
        if not product_id:
            raise ValueError("Missing product id for update")
        patch = build_parent_patch_payload(ctx.draft, ctx.is_draft, sku=ctx.sku)
        await ctx.client.update_product_parent(product_id, patch)
        logger.info("Product parent updated", product_id=product_id, is_draft=ctx.is_draft)
        return ctx.with_product(product_id)


class SyncSimpleVariantSkuPhase(SavePhase):
    """Keep the backing variant of a simple product on the parent SKU."""

    failure_message = "Failed to sync variant SKU"

    @property
    def name(self) -> str:
        return "sync_simple_variant_sku"

    def applies(self, ctx: SaveContext) -> bool:
        draft = ctx.draft
        return (
            draft.is_edit_simple
            and bool(ctx.sku)
            and bool(draft.backing_variant_id)
            and ctx.sku != draft.original_sku
        )

    async def execute(self, ctx: SaveContext) -> SaveContext:
        draft = ctx.draft
        await ctx.client.update_product_variant(
            ctx.product_id,
            draft.backing_variant_id,
            VariantSkuPatch(sku=ctx.sku),
        )
        draft.original_sku = ctx.sku or ""
        return ctx


class WriteVariantsPhase(SavePhase):
    """Create new rows and patch existing ones, one row at a time.

    A failed row does not stop the remaining rows.
    """

    failure_message = "Failed to save some variants"

    @property
    def name(self) -> str:
        return "write_variants"

    def applies(self, ctx: SaveContext) -> bool:
        return ctx.draft.using_variants and bool(ctx.draft.variants)

    async def execute(self, ctx: SaveContext) -> SaveContext:
        draft = ctx.draft
        failed: list[int] = []
        for position, row in enumerate(list(draft.variants), 1):
            payload = build_variant_row_payload(draft, row, is_draft=ctx.is_draft)
            row_id = row.row_id
            try:
                if isinstance(row_id, NewRowId):
                    created = await ctx.client.add_product_variant(ctx.product_id, payload)
                    draft.rekey_variant(row_id, ExistingRowId(created.id))
                elif isinstance(row_id, ExistingRowId):
                    await ctx.client.update_product_variant(ctx.product_id, row_id.id, payload)
                else:
                    raise TypeError(f"Unknown row id type: {type(row_id)}")
            except Exception as e:
                failed.append(position)
                logger.error(
                    "Variant write failed",
                    product_id=ctx.product_id,
                    row=position,
                    sku=row.sku,
                    error_type=type(e).__name__,
                    error_message=str(e),
                    exc_info=True,
                )

        logger.info(
            "Variant rows written",
            product_id=ctx.product_id,
            total=len(draft.variants),
            failed=len(failed),
        )
        if failed:
            rows = ", ".join(f"#{n}" for n in failed)
            raise PartialPhaseFailure(f"Failed to save {len(failed)} variant(s): {rows}")
        return ctx


def desired_supplier_links(draft: ProductDraft) -> dict[str, float | None]:
    """Final supplier set for an edit: edited originals plus pending rows.

    Returns:
        Mapping of supplier id to last purchase price
    """
    desired: dict[str, float | None] = {}
    for link in draft.original_links:
        edit = draft.link_edits.get(link.supplier_id)
        if edit is not None and edit.removed:
            continue
        supplier_id = (edit.supplier_id if edit and edit.supplier_id else None) or link.supplier_id
        if edit is not None and is_non_empty(edit.price):
            price = to_number(edit.price)
        else:
            price = link.last_purchase_price
        desired[supplier_id] = price
    for row in draft.pending_links:
        if row.supplier_id:
            desired[row.supplier_id] = _price(row.price)
    return desired


class ReconcileSupplierLinksPhase(SavePhase):
    """Link every desired supplier, then unlink originals no longer wanted."""

    failure_message = "Failed to save supplier links"

    @property
    def name(self) -> str:
        return "reconcile_supplier_links"

    def applies(self, ctx: SaveContext) -> bool:
        draft = ctx.draft
        return bool(draft.original_links or draft.pending_links)

    async def execute(self, ctx: SaveContext) -> SaveContext:
        draft = ctx.draft
        desired = desired_supplier_links(draft)
        for supplier_id, price in desired.items():
            await ctx.client.link_supplier_products(
                supplier_id,
                [ctx.product_id],
                last_purchase_price=price,
                currency=draft.currency,
            )
        removed = [
            link.supplier_id for link in draft.original_links
            if link.supplier_id not in desired
        ]
        for supplier_id in removed:
            await ctx.client.unlink_supplier_product(supplier_id, ctx.product_id)

        logger.info(
            "Supplier links reconciled",
            product_id=ctx.product_id,
            linked=len(desired),
            unlinked=len(removed),
        )
        draft.original_links = [SupplierLink(sid, price) for sid, price in desired.items()]
        draft.link_edits = {}
        draft.pending_links = []
        return ctx


class UploadVariantImagesPhase(SavePhase):
    """Upload staged images of rows that have a durable id."""

    failure_message = "Failed to upload variant images"

    @property
    def name(self) -> str:
        return "upload_variant_images"

    def applies(self, ctx: SaveContext) -> bool:
        return ctx.draft.using_variants and any(ctx.draft.variant_images.values())

    async def execute(self, ctx: SaveContext) -> SaveContext:
        draft = ctx.draft
        for row_id, files in list(draft.variant_images.items()):
            if not files or not isinstance(row_id, ExistingRowId):
                continue
            await ctx.client.upload_product_images(ctx.product_id, files, variant_id=row_id.id)
            del draft.variant_images[row_id]
        return ctx


# =============================================================================
# Shared
# =============================================================================


class UploadProductImagesPhase(SavePhase):
    """Upload staged product-level images."""

    failure_message = "Failed to upload images"

    @property
    def name(self) -> str:
        return "upload_product_images"

    def applies(self, ctx: SaveContext) -> bool:
        return bool(ctx.draft.images)

    async def execute(self, ctx: SaveContext) -> SaveContext:
        await ctx.client.upload_product_images(ctx.product_id, ctx.draft.images)
        ctx.notifier.success("Images uploaded")
        ctx.draft.images = []
        return ctx


CREATE_PHASES: tuple[type[SavePhase], ...] = (
    CreateProductPhase,
    LinkSuppliersPhase,
    UploadProductImagesPhase,
    UploadCreatedVariantImagesPhase,
)

EDIT_PHASES: tuple[type[SavePhase], ...] = (
    UpdateParentPhase,
    SyncSimpleVariantSkuPhase,
    WriteVariantsPhase,
    ReconcileSupplierLinksPhase,
    UploadProductImagesPhase,
    UploadVariantImagesPhase,
)
