"""Context that flows through the save phases."""

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Literal

from product_editor.models.draft import ProductDraft
from product_editor.schemas.payloads import SimpleProductPayload, VariantProductPayload
from product_editor.schemas.responses import CreatedProduct

if TYPE_CHECKING:
    from product_editor.services.backend_client import CatalogClient
    from product_editor.services.notifier import Notifier

SaveMode = Literal["single", "again"]


@dataclass(frozen=True)
class PhaseFailure:
    """A non-fatal phase failure reported to the user."""

    phase: str
    message: str


@dataclass(frozen=True)
class SaveContext:
    """Immutable context passed from phase to phase.

    The draft itself is shared and may be updated by phases (uploaded
    images cleared, created rows re-keyed). Everything else is replaced
    through the ``with_*`` helpers.
    """

    draft: ProductDraft
    client: "CatalogClient"
    notifier: "Notifier"
    payload: SimpleProductPayload | VariantProductPayload
    is_draft: bool = False
    mode: SaveMode = "single"

    product_id: str | None = None
    created: CreatedProduct | None = None
    failures: tuple[PhaseFailure, ...] = field(default_factory=tuple)

    @property
    def is_create(self) -> bool:
        return not self.draft.is_edit

    @property
    def sku(self) -> str | None:
        return self.payload.sku

    def with_product(self, product_id: str, created: CreatedProduct | None = None) -> "SaveContext":
        """Return new context bound to a persisted product."""
        return replace(self, product_id=product_id, created=created)

    def with_failure(self, phase: str, message: str) -> "SaveContext":
        """Return new context with one more recorded failure."""
        return replace(self, failures=(*self.failures, PhaseFailure(phase, message)))
