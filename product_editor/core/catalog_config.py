"""Catalog configuration - option sets the editor offers.

Configuration is loaded from the first existing file of:
1. ``settings.catalog_config_path``
2. ``config/catalog.yaml`` relative to the working directory
3. ``config/catalog.yaml`` at the project root

Built-in defaults are used when none exists.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from product_editor.config import settings
from product_editor.infra.logging import get_logger
from product_editor.models.options import (
    FALLBACK_ENUMS,
    SIZE_PLACEHOLDER,
    Option,
    normalize_options,
)

logger = get_logger(__name__)

DEFAULT_SIZES = (
    Option("", SIZE_PLACEHOLDER),
    Option("S", "Small"),
    Option("M", "Medium"),
    Option("L", "Large"),
    Option("XL", "X-Large"),
)
DEFAULT_COLORS = (SIZE_PLACEHOLDER, "Red", "Blue", "Green")
DEFAULT_PACKAGING_TYPES = (
    Option("", "Single Item"),
    Option("PAIR", "Pair"),
)
DEFAULT_BARCODE_TYPES = ("UPC", "EAN", "ISBN", "QR")
DEFAULT_WEIGHT_UNITS = ("kg", "lb")


@dataclass(frozen=True)
class CatalogConfig:
    """Option sets and enum fallbacks for the editor."""

    version: str
    sizes: tuple[Option, ...] = DEFAULT_SIZES
    colors: tuple[str, ...] = DEFAULT_COLORS
    packaging_types: tuple[Option, ...] = DEFAULT_PACKAGING_TYPES
    barcode_types: tuple[str, ...] = DEFAULT_BARCODE_TYPES
    weight_units: tuple[str, ...] = DEFAULT_WEIGHT_UNITS
    fallback_enums: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(FALLBACK_ENUMS)
    )

    @classmethod
    def from_yaml(cls, yaml_content: str) -> "CatalogConfig":
        """Parse YAML content into CatalogConfig.

        Sections missing from the file keep their defaults.

        Raises:
            ValueError: If the document is not a mapping
        """
        data = yaml.safe_load(yaml_content) or {}
        if not isinstance(data, dict):
            raise ValueError("Catalog config must be a mapping")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CatalogConfig":
        enums = dict(FALLBACK_ENUMS)
        for key, values in (data.get("fallback_enums") or {}).items():
            if values:
                enums[key] = tuple(str(v) for v in values)

        def options(key: str, default: tuple[Option, ...]) -> tuple[Option, ...]:
            raw = data.get(key)
            return normalize_options(raw) if raw else default

        def strings(key: str, default: tuple[str, ...]) -> tuple[str, ...]:
            raw = data.get(key)
            return tuple(str(v) for v in raw) if raw else default

        return cls(
            version=str(data.get("version", "0.0.0")),
            sizes=options("sizes", DEFAULT_SIZES),
            colors=strings("colors", DEFAULT_COLORS),
            packaging_types=options("packaging_types", DEFAULT_PACKAGING_TYPES),
            barcode_types=strings("barcode_types", DEFAULT_BARCODE_TYPES),
            weight_units=strings("weight_units", DEFAULT_WEIGHT_UNITS),
            fallback_enums=enums,
        )


class CatalogConfigLoader:
    """Loads catalog configuration from the local file system."""

    def __init__(self) -> None:
        self._cache: CatalogConfig | None = None

    def load(self) -> CatalogConfig:
        """Load catalog configuration (cached after the first call)."""
        if self._cache is not None:
            logger.debug("Using cached catalog config")
            return self._cache

        config = self._load_from_local()
        self._cache = config
        logger.info(
            "Catalog config loaded",
            version=config.version,
            sizes=len(config.sizes),
            packaging_types=[o.value for o in config.packaging_types],
        )
        return config

    def _search_paths(self) -> list[Path]:
        paths = []
        if settings.catalog_config_path:
            paths.append(Path(settings.catalog_config_path))
        paths.extend([
            Path("config") / "catalog.yaml",
            Path(__file__).parent.parent.parent / "config" / "catalog.yaml",
        ])
        return paths

    def _load_from_local(self) -> CatalogConfig:
        search_paths = self._search_paths()
        for path in search_paths:
            if path.exists():
                logger.info("Loading catalog config from local file", path=str(path))
                return CatalogConfig.from_yaml(path.read_text())

        logger.warning(
            "Catalog config not found, using defaults",
            searched=str(search_paths),
        )
        return CatalogConfig(version="0.0.0-default")

    def clear_cache(self) -> None:
        """Clear the config cache."""
        self._cache = None
        logger.info("Catalog config cache cleared")


# Singleton loader
_loader: CatalogConfigLoader | None = None


def get_config_loader() -> CatalogConfigLoader:
    """Get the singleton config loader."""
    global _loader
    if _loader is None:
        _loader = CatalogConfigLoader()
    return _loader


def load_catalog_config() -> CatalogConfig:
    """Convenience function to load catalog config."""
    return get_config_loader().load()
