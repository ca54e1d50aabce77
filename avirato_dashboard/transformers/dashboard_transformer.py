"""Transformer for the reservation rows and summary shown on the dashboard."""

from typing import Iterable, Optional

from avirato_dashboard.models.avirato import Reservation
from avirato_dashboard.models.dashboard import DashboardSummary, ReservationRow
from avirato_dashboard.models.reservation_status import (
    PaymentStatus,
    is_confirmed_status,
    status_label,
)

NOT_AVAILABLE = "No disponible"
NO_OBSERVATIONS = "Sin observaciones"


class DashboardTransformer:
    """Builds display rows, applies free-text search and computes headline figures."""

    @staticmethod
    def client_display_name(reservation: Reservation) -> str:
        """``name surname`` from the inline client, else the flat name or id."""
        if reservation.client and reservation.client.full_name:
            return reservation.client.full_name
        return reservation.client_name or reservation.client_id or NOT_AVAILABLE

    @staticmethod
    def guests_text(reservation: Reservation) -> str:
        text = f"{reservation.adults} adultos"
        if reservation.children > 0:
            text += f", {reservation.children} niños"
        return text

    @staticmethod
    def is_paid(reservation: Reservation) -> bool:
        """Billing outcome when known, else the API's paid flag."""
        if reservation.is_fully_paid is not None:
            return reservation.is_fully_paid
        return bool(reservation.is_paid)

    @staticmethod
    def payment_status(reservation: Reservation) -> PaymentStatus:
        if reservation.is_fully_paid is not None:
            return PaymentStatus.PAID if reservation.is_fully_paid else PaymentStatus.PAYMENT_PENDING
        return PaymentStatus.PAID if reservation.is_paid else PaymentStatus.PENDING

    @staticmethod
    def to_row(reservation: Reservation) -> ReservationRow:
        """Convert an enriched reservation to a dashboard row."""
        observations = (
            (reservation.client.observations if reservation.client else None)
            or reservation.observations
            or NO_OBSERVATIONS
        )
        pending_amount = reservation.billing_total or 0.0

        return ReservationRow(
            reservation_id=reservation.reservation_id,
            client_name=DashboardTransformer.client_display_name(reservation),
            phone=(reservation.client.phone if reservation.client else None) or NOT_AVAILABLE,
            operator_name=reservation.operator_name or NOT_AVAILABLE,
            space_type_name=reservation.space_type_name or NOT_AVAILABLE,
            check_in_date=reservation.check_in_date,
            check_out_date=reservation.check_out_date,
            regime=reservation.regime_name or reservation.regime or NOT_AVAILABLE,
            guests_text=DashboardTransformer.guests_text(reservation),
            price=reservation.price,
            status=status_label(reservation.status),
            is_confirmed=is_confirmed_status(reservation.status),
            payment_status=DashboardTransformer.payment_status(reservation).value,
            has_payment_pending=not DashboardTransformer.is_paid(reservation),
            pending_amount=pending_amount if pending_amount > 0 else 0.0,
            extras=reservation.extras_text or NOT_AVAILABLE,
            observations=observations,
        )

    @staticmethod
    def to_rows(reservations: Iterable[Reservation]) -> list[ReservationRow]:
        return [DashboardTransformer.to_row(reservation) for reservation in reservations]

    @staticmethod
    def search(rows: Iterable[ReservationRow], term: Optional[str]) -> list[ReservationRow]:
        """Filter rows by client name or reservation id (case-insensitive substring).

        A blank term returns every row.
        """
        rows = list(rows)
        needle = (term or "").strip().lower()
        if not needle:
            return rows
        return [
            row
            for row in rows
            if needle in row.client_name.lower() or needle in str(row.reservation_id).lower()
        ]

    @staticmethod
    def summarize(reservations: Iterable[Reservation]) -> DashboardSummary:
        """Totals shown above the reservation list."""
        summary = DashboardSummary()
        for reservation in reservations:
            summary.total_reservations += 1
            if is_confirmed_status(reservation.status):
                summary.confirmed_reservations += 1
            summary.total_guests += reservation.guest_count
            summary.total_revenue += reservation.price or 0.0
            if not DashboardTransformer.is_paid(reservation):
                summary.pending_payments += 1
        return summary
