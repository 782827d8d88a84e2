"""Tests for staged image previews."""

import io
from pathlib import Path
from unittest.mock import patch

import pytest
from PIL import Image

from product_editor.infra.previews import PRODUCT_OWNER, PreviewRegistry
from product_editor.models.draft import StagedImage, new_row_id


def _png(size: tuple[int, int] = (640, 320), mode: str = "RGBA") -> StagedImage:
    buffer = io.BytesIO()
    Image.new(mode, size, color=(200, 10, 10, 255) if mode == "RGBA" else 120).save(buffer, format="PNG")
    return StagedImage("photo.png", buffer.getvalue(), "image/png")


class TestPreviewRegistry:
    """Tests for PreviewRegistry."""

    @pytest.fixture
    def registry(self, tmp_path: Path) -> PreviewRegistry:
        return PreviewRegistry(directory=tmp_path, thumbnail_size=64, quality=70)

    def test_acquire_writes_thumbnail(self, registry: PreviewRegistry):
        handle = registry.acquire(_png())

        assert handle.path is not None
        assert handle.path.exists()
        assert handle.size == (64, 32)
        with Image.open(handle.path) as thumb:
            assert thumb.format == "JPEG"
            assert thumb.mode == "RGB"

    def test_undecodable_image_has_no_preview(self, registry: PreviewRegistry):
        handle = registry.acquire(StagedImage("notes.txt", b"not an image"))
        assert handle.path is None
        assert handle.size is None

    def test_failed_write_leaves_no_file(self, registry: PreviewRegistry, tmp_path: Path):
        image = _png()

        with patch.object(Image.Image, "save", side_effect=OSError("disk full")):
            handle = registry.acquire(image)

        assert handle.path is None
        assert list(tmp_path.iterdir()) == []

    def test_unexpected_write_error_removes_file(self, registry: PreviewRegistry, tmp_path: Path):
        image = _png()

        with patch.object(Image.Image, "save", side_effect=ValueError("bad quality")):
            with pytest.raises(ValueError):
                registry.acquire(image)

        assert list(tmp_path.iterdir()) == []

    def test_replace_failure_releases_new_previews(self, registry: PreviewRegistry, tmp_path: Path):
        acquire = registry.acquire

        def acquire_or_fail(image: StagedImage):
            if image.filename == "huge.png":
                raise Image.DecompressionBombError("too many pixels")
            return acquire(image)

        with patch.object(registry, "acquire", side_effect=acquire_or_fail):
            with pytest.raises(Image.DecompressionBombError):
                registry.replace(PRODUCT_OWNER, [_png(), StagedImage("huge.png", b"")])

        assert list(tmp_path.iterdir()) == []
        assert registry.handles(PRODUCT_OWNER) == []

    def test_replace_releases_previous(self, registry: PreviewRegistry):
        old = registry.replace(PRODUCT_OWNER, [_png(), _png(mode="L")])
        new = registry.replace(PRODUCT_OWNER, [_png()])

        assert all(not h.path.exists() for h in old)
        assert new[0].path.exists()
        assert registry.active_count == 1

    def test_replace_with_nothing_clears_owner(self, registry: PreviewRegistry):
        registry.replace(PRODUCT_OWNER, [_png()])
        registry.replace(PRODUCT_OWNER, [])
        assert registry.handles(PRODUCT_OWNER) == []

    def test_owners_are_independent(self, registry: PreviewRegistry):
        row_id = new_row_id()
        registry.replace(PRODUCT_OWNER, [_png()])
        registry.replace(row_id, [_png()])

        registry.release_owner(row_id)

        assert registry.active_count == 1
        assert registry.handles(row_id) == []

    def test_context_manager_releases_all(self, tmp_path: Path):
        with PreviewRegistry(directory=tmp_path, thumbnail_size=32) as registry:
            handles = registry.replace(PRODUCT_OWNER, [_png(), _png()])

        assert registry.active_count == 0
        assert all(not h.path.exists() for h in handles)
