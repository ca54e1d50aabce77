"""Base class for pipeline steps."""

import time
from abc import ABC, abstractmethod

from structlog import get_logger

from avirato_dashboard.clients.avirato_api_client import AviratoAuthExpiredError

from .context import PipelineContext

logger = get_logger(__name__)


class PipelineStep(ABC):
    """A unit of work over the shared ``PipelineContext``.

    Subclasses implement ``execute()`` and override ``is_required()`` when a
    failure should only degrade the result.
    """

    def __init__(self, name: str | None = None):
        """Initialize the step.

        Args:
            name: Step name for logs and stats, defaults to the class name
        """
        self.name = name or self.__class__.__name__
        self.logger = logger.bind(step=self.name)

    @abstractmethod
    async def execute(self, context: PipelineContext) -> bool:
        """Do the step's work.

        Args:
            context: Pipeline context containing shared data

        Returns:
            True if the step succeeded
        """

    async def run(self, context: PipelineContext) -> bool:
        """Run ``execute()``, turning exceptions into a failed outcome.

        The exception is kept on ``context.exception`` when it must reach the
        caller: any exception from a required step, and an expired session from
        any step.

        Args:
            context: Pipeline context

        Returns:
            True if the step succeeded
        """
        started = time.monotonic()
        try:
            success = await self.execute(context)
        except Exception as e:
            self.logger.error(
                "Step raised",
                site_code=context.site_code,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            context.add_error(self.name, str(e))
            if (self.is_required() or isinstance(e, AviratoAuthExpiredError)) and context.exception is None:
                context.exception = e
            return False

        self.logger.info(
            "Step finished",
            site_code=context.site_code,
            success=success,
            duration_ms=round((time.monotonic() - started) * 1000),
        )
        return success

    def is_required(self) -> bool:
        """Whether a failure of this step stops the pipeline (default True)."""
        return True

    def get_name(self) -> str:
        return self.name
