"""Preview thumbnails for staged images.

Staged files get a JPEG thumbnail written to a temporary file. Previews
are grouped by owner (the product or a variant row); replacing an owner's
staged list releases its previous thumbnails, and ``release_all`` clears
everything when the editor closes.
"""

import io
import tempfile
from collections.abc import Hashable, Iterable
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from product_editor.config import settings
from product_editor.infra.logging import get_logger
from product_editor.models.draft import StagedImage

logger = get_logger(__name__)

PRODUCT_OWNER = "product"


@dataclass(frozen=True)
class PreviewHandle:
    """A staged image and its thumbnail file (None when not decodable)."""

    image: StagedImage
    path: Path | None = None
    size: tuple[int, int] | None = None


class PreviewRegistry:
    """Creates and releases preview thumbnails."""

    def __init__(
        self,
        directory: str | Path | None = None,
        thumbnail_size: int | None = None,
        quality: int | None = None,
    ) -> None:
        self.directory = Path(directory or settings.preview_dir or tempfile.gettempdir())
        self.thumbnail_size = thumbnail_size or settings.preview_thumbnail_size
        self.quality = quality or settings.preview_quality
        self._handles: dict[Hashable, list[PreviewHandle]] = {}

    def __enter__(self) -> "PreviewRegistry":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release_all()

    @property
    def active_count(self) -> int:
        return sum(len(handles) for handles in self._handles.values())

    def handles(self, owner: Hashable = PRODUCT_OWNER) -> list[PreviewHandle]:
        return list(self._handles.get(owner, []))

    def acquire(self, image: StagedImage) -> PreviewHandle:
        """Write a thumbnail for one staged image."""
        path: Path | None = None
        try:
            with Image.open(io.BytesIO(image.content)) as img:
                if img.mode in ("RGBA", "P", "LA"):
                    img = img.convert("RGB")
                img.thumbnail((self.thumbnail_size, self.thumbnail_size), Image.Resampling.LANCZOS)

                self.directory.mkdir(parents=True, exist_ok=True)
                with tempfile.NamedTemporaryFile(
                    suffix=".jpg",
                    prefix="preview-",
                    dir=self.directory,
                    delete=False,
                ) as tmp:
                    path = Path(tmp.name)
                    img.save(tmp, format="JPEG", quality=self.quality, optimize=True)
                size = img.size
        except (UnidentifiedImageError, OSError) as e:
            if path is not None:
                path.unlink(missing_ok=True)
            logger.warning(
                "Preview not generated",
                filename=image.filename,
                error=str(e),
            )
            return PreviewHandle(image=image)
        except Exception:
            if path is not None:
                path.unlink(missing_ok=True)
            raise

        logger.debug("Preview generated", filename=image.filename, path=str(path), size=size)
        return PreviewHandle(image=image, path=path, size=size)

    def release(self, handle: PreviewHandle) -> None:
        """Delete a thumbnail file."""
        if handle.path is not None:
            handle.path.unlink(missing_ok=True)

    def replace(self, owner: Hashable, images: Iterable[StagedImage]) -> list[PreviewHandle]:
        """Swap an owner's previews for new ones, releasing the old files first."""
        self.release_owner(owner)
        handles: list[PreviewHandle] = []
        try:
            for image in images:
                handles.append(self.acquire(image))
        except Exception:
            for handle in handles:
                self.release(handle)
            raise
        if handles:
            self._handles[owner] = handles
        return handles

    def release_owner(self, owner: Hashable) -> None:
        for handle in self._handles.pop(owner, []):
            self.release(handle)

    def release_all(self) -> None:
        """Release every preview (editor closed)."""
        count = self.active_count
        for owner in list(self._handles):
            self.release_owner(owner)
        if count:
            logger.debug("Previews released", count=count)
