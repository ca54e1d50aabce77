"""Step to fetch the reservations active during the selected window."""

from avirato_dashboard.services.pipeline import PipelineContext, PipelineStep
from avirato_dashboard.services.window_reconciliation import WindowReconciler


class FetchReservationsStep(PipelineStep):
    """Run window reconciliation and place the retained reservations on the context."""

    def __init__(self, reconciler: WindowReconciler):
        """Initialize the step.

        Args:
            reconciler: Window reconciler over the paginated listing
        """
        super().__init__("FetchReservations")
        self.reconciler = reconciler

    async def execute(self, context: PipelineContext) -> bool:
        """Fetch and reconcile reservations.

        Failures propagate: a partial listing is never returned.

        Args:
            context: Pipeline context

        Returns:
            True if successful
        """
        result = await self.reconciler.reconcile(context.site_code, context.start, context.end)
        context.reconciliation = result
        context.reservations = result.reservations

        context.stats["reservations"] = {
            "selected_start": result.selected_window.start.isoformat(),
            "selected_end": result.selected_window.end.isoformat(),
            "search_start": result.search_window.start.isoformat(),
            "search_end": result.search_window.end.isoformat(),
            "pages_fetched": result.pages_fetched,
            "fetched": result.fetched_count,
            "retained": len(result.reservations),
            "rejected": result.rejected_count,
            "truncated": result.truncated,
        }

        if result.truncated:
            context.add_warning(
                "La lista de reservas se ha truncado al alcanzar el límite de páginas. "
                "Reduce el rango de fechas para ver todas las reservas."
            )
        if result.rejected_count:
            context.add_warning(
                f"{result.rejected_count} reservas descartadas por fechas o identificadores inválidos."
            )

        return True

    def is_required(self) -> bool:
        """This step is required - nothing to enrich without reservations.

        Returns:
            True
        """
        return True
