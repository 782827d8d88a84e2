"""Tests for catalog configuration loading."""

from pathlib import Path
from unittest.mock import patch

import pytest

from product_editor.config import settings
from product_editor.core import catalog_config
from product_editor.core.catalog_config import (
    DEFAULT_SIZES,
    CatalogConfig,
    CatalogConfigLoader,
    get_config_loader,
)
from product_editor.models.options import Option


class TestCatalogConfig:
    """Tests for CatalogConfig parsing."""

    def test_from_yaml(self):
        config = CatalogConfig.from_yaml(
            """
version: "2.1.0"
sizes:
  - {value: S, label: Small}
  - [M, Medium]
colors: [Red, Blue]
packaging_types:
  - {value: "", label: Single Item}
  - {value: UNITS, label: Units}
fallback_enums:
  LengthUnit: [cm]
"""
        )

        assert config.version == "2.1.0"
        assert config.sizes == (Option("S", "Small"), Option("M", "Medium"))
        assert config.colors == ("Red", "Blue")
        assert [o.value for o in config.packaging_types] == ["", "UNITS"]
        assert config.fallback_enums["LengthUnit"] == ("cm",)
        assert config.fallback_enums["ProductStatus"] == ("active", "inactive", "archived")

    def test_missing_sections_keep_defaults(self):
        config = CatalogConfig.from_yaml("version: '1'")
        assert config.sizes == DEFAULT_SIZES
        assert config.barcode_types == ("UPC", "EAN", "ISBN", "QR")

    def test_empty_document(self):
        assert CatalogConfig.from_yaml("").version == "0.0.0"

    def test_non_mapping_rejected(self):
        with pytest.raises(ValueError):
            CatalogConfig.from_yaml("- a\n- b\n")


class TestCatalogConfigLoader:
    """Tests for CatalogConfigLoader."""

    def test_loads_configured_path_and_caches(self, tmp_path: Path):
        path = tmp_path / "catalog.yaml"
        path.write_text("version: '9.9'\ncolors: [Black]\n")
        loader = CatalogConfigLoader()

        with patch.object(settings, "catalog_config_path", str(path)):
            first = loader.load()
            path.write_text("version: '10.0'\n")
            second = loader.load()

        assert first.version == "9.9"
        assert first.colors == ("Black",)
        assert second is first

    def test_clear_cache_reloads(self, tmp_path: Path):
        path = tmp_path / "catalog.yaml"
        path.write_text("version: '1.0'\n")
        loader = CatalogConfigLoader()

        with patch.object(settings, "catalog_config_path", str(path)):
            loader.load()
            path.write_text("version: '2.0'\n")
            loader.clear_cache()
            assert loader.load().version == "2.0"

    def test_defaults_when_nothing_found(self, tmp_path: Path):
        loader = CatalogConfigLoader()

        with patch.object(loader, "_search_paths", return_value=[tmp_path / "missing.yaml"]):
            config = loader.load()

        assert config.version == "0.0.0-default"
        assert config.sizes == DEFAULT_SIZES

    def test_project_catalog_file(self):
        loader = CatalogConfigLoader()
        with patch.object(settings, "catalog_config_path", ""):
            config = loader.load()
        assert Option("PAIR", "Pair") in config.packaging_types


class TestGetConfigLoader:
    """Tests for the singleton getter."""

    def test_returns_singleton(self):
        catalog_config._loader = None
        assert get_config_loader() is get_config_loader()
        catalog_config._loader = None
