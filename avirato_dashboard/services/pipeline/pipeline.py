"""Pipeline executor for the reservation fetch and enrichment steps."""

from structlog import get_logger

from .base_step import PipelineStep
from .context import PipelineContext

logger = get_logger(__name__)


class Pipeline:
    """Runs steps in order over a shared context.

    A failed required step, or any step that hit an expired session, stops the
    run. A failed optional step is logged and the next step still runs, since
    enrichment only ever degrades the output.
    """

    def __init__(self, name: str, steps: list[PipelineStep]):
        """Initialize the pipeline.

        Args:
            name: Pipeline name for logging
            steps: Steps to execute in order
        """
        self.name = name
        self.steps = steps
        self.logger = logger.bind(pipeline=name)

    def _stops_run(self, step: PipelineStep, context: PipelineContext) -> bool:
        return step.is_required() or context.exception is not None

    async def execute(self, context: PipelineContext) -> PipelineContext:
        """Execute the steps.

        Args:
            context: Pipeline context

        Returns:
            The same context. ``context.success`` is False only when the run
            was stopped; per-step outcomes are in ``context.stats["pipeline"]``.
        """
        self.logger.info(
            "Pipeline starting",
            site_code=context.site_code,
            steps=[step.get_name() for step in self.steps],
        )

        outcomes: dict[str, str] = {}
        stopped_at = None

        for step in self.steps:
            if await step.run(context):
                outcomes[step.get_name()] = "ok"
                continue

            outcomes[step.get_name()] = "failed"
            if self._stops_run(step, context):
                stopped_at = step.get_name()
                self.logger.error(
                    "Pipeline stopped",
                    site_code=context.site_code,
                    step=stopped_at,
                    error_type=type(context.exception).__name__ if context.exception else None,
                )
                break

            self.logger.warning(
                "Optional step failed, output will use fallbacks",
                site_code=context.site_code,
                step=step.get_name(),
            )

        context.success = stopped_at is None
        context.stats["pipeline"] = {
            "name": self.name,
            "total_steps": len(self.steps),
            "successful_steps": sum(1 for outcome in outcomes.values() if outcome == "ok"),
            "failed_steps": sum(1 for outcome in outcomes.values() if outcome == "failed"),
            "skipped_steps": len(self.steps) - len(outcomes),
            "stopped_at": stopped_at,
        }

        self.logger.info(
            "Pipeline completed",
            site_code=context.site_code,
            success=context.success,
            outcomes=outcomes,
        )
        return context
