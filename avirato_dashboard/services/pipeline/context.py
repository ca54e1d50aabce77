"""State shared by the reservation pipeline steps."""

from datetime import date, datetime, timezone
from typing import Any, Optional

from avirato_dashboard.models.avirato import ReferenceData, Reservation, SiteCode


class PipelineContext:
    """One fetch for one property and one selected window.

    Steps read what earlier steps left here and write their own output back:
    reconciliation fills ``reservations``, the lookups fill ``reference`` and
    enrichment mutates the reservations in place.
    """

    def __init__(
        self,
        site_code: SiteCode,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ):
        """Initialize the context.

        Args:
            site_code: Property web code being queried
            start: Selected window start, None to derive it from the end
            end: Selected window end, None to run through today
        """
        self.site_code = site_code
        self.start = start
        self.end = end
        self.created_at = datetime.now(timezone.utc)

        self.reconciliation: Any = None  # ReconciliationResult once fetched
        self.reservations: list[Reservation] = []
        self.reference = ReferenceData()

        self.stats: dict[str, Any] = {}
        self.warnings: list[str] = []  # Shown to the user, e.g. a truncated listing
        self.errors: list[dict[str, str]] = []

        # Re-raised by the service after the run
        self.exception: Optional[BaseException] = None
        self.success: bool = False

    def add_error(self, step_name: str, error_message: str) -> None:
        """Record a step failure; degraded enrichment shows up here too."""
        self.errors.append(
            {
                "step": step_name,
                "message": error_message,
                "at": datetime.now(timezone.utc).isoformat(),
            }
        )

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def has_errors(self) -> bool:
        return bool(self.errors)

    def get_results(self) -> dict[str, Any]:
        """Summary of the run for logging.

        Returns:
            Site code, outcome, timing, counts, warnings, errors and step stats
        """
        finished_at = datetime.now(timezone.utc)
        return {
            "site_code": self.site_code,
            "success": self.success,
            "duration_seconds": (finished_at - self.created_at).total_seconds(),
            "reservation_count": len(self.reservations),
            "warnings": self.warnings,
            "errors": self.errors,
            "stats": self.stats,
        }
