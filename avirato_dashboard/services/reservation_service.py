"""Service facade: login, logout and the reservation fetch/enrichment pipeline."""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field
from structlog import get_logger
from structlog.contextvars import bound_contextvars

from avirato_dashboard.clients.avirato_api_client import (
    AviratoAPIClient,
    AviratoNotAuthenticatedError,
    AviratoTimeoutError,
)
from avirato_dashboard.clients.session_store import SessionStore
from avirato_dashboard.config import Settings
from avirato_dashboard.config import settings as default_settings
from avirato_dashboard.models.avirato import Credentials, Reservation, Session, SiteCode
from avirato_dashboard.models.dashboard import DashboardSummary, ReservationRow
from avirato_dashboard.services.pagination import ReservationPaginator
from avirato_dashboard.services.pipeline import Pipeline, PipelineContext
from avirato_dashboard.services.pipeline.steps import (
    ApplyEnrichmentStep,
    EnrichBillingStep,
    FetchReservationsStep,
    LoadReferenceDataStep,
)
from avirato_dashboard.services.window_reconciliation import DateWindow, WindowReconciler
from avirato_dashboard.transformers.dashboard_transformer import DashboardTransformer

logger = get_logger(__name__)


class ReservationServiceError(Exception):
    """Raised when the pipeline fails without a more specific client error."""


class ReservationFetchResult(BaseModel):
    """Everything the dashboard needs to render one fetch."""

    site_code: SiteCode
    selected_window: DateWindow
    search_window: DateWindow
    reservations: list[Reservation] = Field(default_factory=list)
    rows: list[ReservationRow] = Field(default_factory=list)
    summary: DashboardSummary = Field(default_factory=DashboardSummary)
    warnings: list[str] = Field(default_factory=list)
    errors: list[dict[str, str]] = Field(default_factory=list)
    stats: dict[str, Any] = Field(default_factory=dict)


class ReservationDashboardService:
    """Entry point for the dashboard: owns the session and runs the pipeline.

    Collaborators are injected so that pagination and reconciliation can be
    exercised without a live session or Redis.
    """

    def __init__(
        self,
        session_store: Optional[SessionStore] = None,
        api_client: Optional[AviratoAPIClient] = None,
        app_settings: Optional[Settings] = None,
        include_billing: bool = True,
    ):
        """Initialize the service.

        Args:
            session_store: Session store, built from settings when omitted
            api_client: API client, built around the session store when omitted
            app_settings: Settings, defaults to the global instance
            include_billing: Whether to run the per-reservation billing lookups
        """
        self.settings = app_settings or default_settings
        self.session_store = session_store or SessionStore(
            api_settings=self.settings.avirato,
            store_settings=self.settings.session,
        )
        self.api_client = api_client or AviratoAPIClient(self.session_store, self.settings.avirato)
        self.include_billing = include_billing

        paginator = ReservationPaginator(self.api_client, self.settings.avirato)
        self.reconciler = WindowReconciler(paginator, self.settings.avirato)

    async def login(self, credentials: Credentials) -> Session:
        """Authenticate and persist the session."""
        return await self.session_store.authenticate(credentials)

    async def logout(self) -> None:
        """Clear the session."""
        await self.session_store.clear()

    async def is_authenticated(self) -> bool:
        return await self.session_store.is_valid()

    def build_pipeline(self) -> Pipeline:
        """Build the fetch → reference data → enrichment → billing pipeline."""
        steps = [
            FetchReservationsStep(self.reconciler),
            LoadReferenceDataStep(self.api_client, self.settings.enrichment),
            ApplyEnrichmentStep(self.settings.enrichment),
        ]
        if self.include_billing:
            steps.append(EnrichBillingStep(self.api_client, self.settings.avirato))
        return Pipeline("reservations", steps)

    async def _site_code(self) -> SiteCode:
        """First site code of the session; only one property is handled."""
        if not await self.session_store.is_valid():
            raise AviratoNotAuthenticatedError("Not authenticated. Please authenticate first.")
        site_codes = await self.session_store.site_codes()
        if not site_codes:
            raise AviratoNotAuthenticatedError("No web codes available. Please authenticate again.")
        return site_codes[0]

    async def fetch_reservations(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> ReservationFetchResult:
        """Fetch, reconcile and enrich the reservations active during [start, end].

        Without a window the last 30 days through today are used.

        Args:
            start: Selected window start
            end: Selected window end

        Returns:
            ReservationFetchResult with enriched reservations and dashboard rows

        Raises:
            AviratoNotAuthenticatedError: If there is no valid session
            AviratoAuthExpiredError: If Avirato rejected the token (session cleared)
            AviratoTimeoutError: If the listing timed out; ask for a narrower range
            AviratoAPIClientError: For any other listing failure
            ValueError: If start is after end
        """
        site_code = await self._site_code()
        context = PipelineContext(site_code, start, end)
        with bound_contextvars(site_code=site_code):
            await self.build_pipeline().execute(context)

        if context.exception is not None:
            if isinstance(context.exception, AviratoTimeoutError):
                logger.error(
                    "Reservation listing timed out",
                    site_code=site_code,
                    start=start.isoformat() if start else None,
                    end=end.isoformat() if end else None,
                )
            raise context.exception
        if not context.success or context.reconciliation is None:
            raise ReservationServiceError(f"Reservation pipeline failed: {context.errors}")

        reconciliation = context.reconciliation
        summary = DashboardTransformer.summarize(context.reservations)
        summary.window_start = reconciliation.selected_window.start
        summary.window_end = reconciliation.selected_window.end

        results = context.get_results()
        logger.info(
            "Reservations ready",
            site_code=site_code,
            reservation_count=results["reservation_count"],
            duration_seconds=results["duration_seconds"],
            warnings=len(context.warnings),
            degraded=context.has_errors(),
        )

        return ReservationFetchResult(
            site_code=site_code,
            selected_window=reconciliation.selected_window,
            search_window=reconciliation.search_window,
            reservations=context.reservations,
            rows=DashboardTransformer.to_rows(context.reservations),
            summary=summary,
            warnings=context.warnings,
            errors=context.errors,
            stats=context.stats,
        )

    @staticmethod
    def search(rows: list[ReservationRow], term: Optional[str]) -> list[ReservationRow]:
        """Free-text search over client name and reservation id."""
        return DashboardTransformer.search(rows, term)
