"""Dashboard display models."""

from avirato_dashboard.models.dashboard.reservation_row import DashboardSummary, ReservationRow

__all__ = ["DashboardSummary", "ReservationRow"]
