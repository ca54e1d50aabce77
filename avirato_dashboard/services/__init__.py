"""Business services package."""

from avirato_dashboard.services.pagination import PaginationResult, ReservationPaginator
from avirato_dashboard.services.reservation_service import (
    ReservationDashboardService,
    ReservationFetchResult,
    ReservationServiceError,
)
from avirato_dashboard.services.window_reconciliation import (
    DateWindow,
    ReconciliationResult,
    WindowReconciler,
)

__all__ = [
    "DateWindow",
    "PaginationResult",
    "ReconciliationResult",
    "ReservationDashboardService",
    "ReservationFetchResult",
    "ReservationPaginator",
    "ReservationServiceError",
    "WindowReconciler",
]
