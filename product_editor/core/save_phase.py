"""Base class for all save phases."""

from abc import ABC, abstractmethod

from product_editor.core.save_context import SaveContext


class PartialPhaseFailure(Exception):
    """Raised by a phase that finished its work but some items failed."""


class SavePhase(ABC):
    """One ordered step of the save pipeline.

    A hard-stop phase is a prerequisite for every later phase: when it
    fails the save ends. Any other phase failure is reported with
    ``failure_message`` and the pipeline moves on.
    """

    hard_stop: bool = False
    failure_message: str = "Failed to save"
    failure_level: str = "error"

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this phase."""
        pass

    def applies(self, ctx: SaveContext) -> bool:
        """Whether the phase has anything to do for this save."""
        return True

    @abstractmethod
    async def execute(self, ctx: SaveContext) -> SaveContext:
        """Run the phase and return the updated context.

        Args:
            ctx: Current save context

        Returns:
            New context with phase results
        """
        pass
