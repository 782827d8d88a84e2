"""Save orchestrator.

Runs the save phases for a draft sequentially. The pipeline is not
transactional: a hard-stop phase failure ends the save with the draft left
intact, any other phase failure is reported and the next phase runs.
Nothing is retried automatically; re-running a save repeats the same phase
sequence.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from product_editor.core.payload_builders import build_product_payload
from product_editor.core.save_context import PhaseFailure, SaveContext, SaveMode
from product_editor.core.save_phase import PartialPhaseFailure, SavePhase
from product_editor.core.phases import CREATE_PHASES, EDIT_PHASES
from product_editor.infra.logging import get_logger
from product_editor.models.draft import ProductDraft
from product_editor.services.backend_client import CatalogAPIError, CatalogClient
from product_editor.services.notifier import Notifier

logger = get_logger(__name__)

SaveStatus = Literal["saved", "blocked", "failed", "ignored", "done"]

# Gates the whole orchestrator: one save at a time
_saving = False


def is_saving() -> bool:
    """Whether a save is currently in flight."""
    return _saving


@dataclass
class SaveOutcome:
    """What happened to a save request."""

    status: SaveStatus
    product_id: str | None = None
    payload: dict[str, Any] | None = None
    missing: dict[str, str] = field(default_factory=dict)
    failures: list[PhaseFailure] = field(default_factory=list)
    error: str | None = None
    pricing_incomplete: bool = False
    close_requested: bool = False

    @property
    def ok(self) -> bool:
        return self.status in ("saved", "done")


def _hard_stop_message(error: Exception) -> str:
    if isinstance(error, CatalogAPIError) and error.message:
        return error.message
    return str(error) or "Failed to save"


class SaveOrchestrator:
    """Sequences the remote writes needed to persist a draft."""

    def __init__(
        self,
        client: CatalogClient,
        notifier: Notifier,
        create_phases: tuple[type[SavePhase], ...] = CREATE_PHASES,
        edit_phases: tuple[type[SavePhase], ...] = EDIT_PHASES,
    ) -> None:
        self.client = client
        self.notifier = notifier
        self.create_phases = [phase() for phase in create_phases]
        self.edit_phases = [phase() for phase in edit_phases]

    @property
    def saving(self) -> bool:
        return _saving

    async def save(
        self,
        draft: ProductDraft,
        mode: SaveMode = "single",
        is_draft: bool = False,
        now: datetime | None = None,
    ) -> SaveOutcome:
        """Persist a draft.

        Args:
            draft: Draft to save (already validated by the caller)
            mode: "again" keeps the editor open for the next item after a create
            is_draft: Save as draft (unpublished)
            now: Publish timestamp (defaults to current UTC time)

        Returns:
            SaveOutcome; "ignored" when another save is in flight
        """
        global _saving
        if _saving:
            logger.info("Save ignored, another save is in progress")
            return SaveOutcome(status="ignored")

        _saving = True
        try:
            return await self._run(draft, mode, is_draft, now)
        finally:
            _saving = False

    async def _run(
        self,
        draft: ProductDraft,
        mode: SaveMode,
        is_draft: bool,
        now: datetime | None,
    ) -> SaveOutcome:
        payload = build_product_payload(draft, is_draft, now)
        ctx = SaveContext(
            draft=draft,
            client=self.client,
            notifier=self.notifier,
            payload=payload,
            is_draft=is_draft,
            mode=mode,
            product_id=draft.product_id,
        )
        phases = self.create_phases if ctx.is_create else self.edit_phases
        flow = "create" if ctx.is_create else "edit"
        save_start = time.perf_counter()

        logger.info(
            "Save started",
            flow=flow,
            product_id=draft.product_id,
            is_draft=is_draft,
            mode=mode,
            variants=len(draft.variants) if draft.using_variants else 0,
        )

        for idx, phase in enumerate(phases, 1):
            if not phase.applies(ctx):
                logger.debug("Phase skipped", phase=phase.name, phase_number=idx)
                continue

            phase_start = time.perf_counter()
            try:
                ctx = await phase.execute(ctx)
            except Exception as e:
                duration_ms = int((time.perf_counter() - phase_start) * 1000)
                logger.error(
                    "Save phase FAILED",
                    phase=phase.name,
                    product_id=ctx.product_id,
                    hard_stop=phase.hard_stop,
                    error_type=type(e).__name__,
                    error_message=str(e),
                    duration_ms=duration_ms,
                    exc_info=True,
                )
                if phase.hard_stop:
                    message = _hard_stop_message(e)
                    self.notifier.error(message)
                    return SaveOutcome(
                        status="failed",
                        product_id=ctx.product_id,
                        failures=[*ctx.failures, PhaseFailure(phase.name, message)],
                        error=message,
                    )
                message = str(e) if isinstance(e, PartialPhaseFailure) else phase.failure_message
                self.notifier.notify(phase.failure_level, message)
                ctx = ctx.with_failure(phase.name, message)
                continue

            logger.info(
                "Save phase completed",
                phase=phase.name,
                product_id=ctx.product_id,
                duration_ms=int((time.perf_counter() - phase_start) * 1000),
            )

        if not ctx.is_create:
            self.notifier.success("Draft updated" if is_draft else "Product updated")

        wire = payload.to_wire()
        logger.info(
            "Save completed",
            flow=flow,
            product_id=ctx.product_id,
            failures=len(ctx.failures),
            duration_ms=int((time.perf_counter() - save_start) * 1000),
        )

        outcome = SaveOutcome(
            status="saved",
            product_id=ctx.product_id,
            payload=wire,
            failures=list(ctx.failures),
        )
        if ctx.is_create and mode == "again" and not is_draft:
            draft.clear_for_next_item(wire)
        else:
            draft.reset()
            outcome.close_requested = True
        return outcome
