"""Draft and option models for the product editor.

Drafts are plain dataclasses; nothing here talks to the backend.
"""

from product_editor.models.draft import (
    DraftDefaults,
    ExistingRowId,
    NewRowId,
    ProductDraft,
    RowId,
    StagedImage,
    VariantPrice,
    VariantRow,
    new_row_id,
)
from product_editor.models.options import (
    CategoryCatalog,
    ColorCatalog,
    MetaEnums,
    Option,
    SizeCatalog,
)

__all__ = [
    "DraftDefaults",
    "ExistingRowId",
    "NewRowId",
    "ProductDraft",
    "RowId",
    "StagedImage",
    "VariantPrice",
    "VariantRow",
    "new_row_id",
    "CategoryCatalog",
    "ColorCatalog",
    "MetaEnums",
    "Option",
    "SizeCatalog",
]
