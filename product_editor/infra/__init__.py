"""Infrastructure - logging and image previews."""

from product_editor.infra.logging import get_logger, setup_logging
from product_editor.infra.previews import PRODUCT_OWNER, PreviewHandle, PreviewRegistry

__all__ = [
    "get_logger",
    "setup_logging",
    "PRODUCT_OWNER",
    "PreviewHandle",
    "PreviewRegistry",
]
