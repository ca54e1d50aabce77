"""Reservation status labels as displayed on the dashboard.

Avirato sends status as free text (e.g. "Reserva confirmada"); there is no
closed status enum, so matching is case-insensitive and partial.
"""

from enum import Enum

CONFIRMED_MARKERS = ("confirmada", "confirmed")


class PaymentStatus(str, Enum):
    """Payment label shown for a reservation."""

    PAID = "Pagado"
    PAYMENT_PENDING = "Pago Pendiente"  # Billing lookup reported an outstanding total
    PENDING = "Pendiente"  # No billing data, derived from the is_paid flag


def is_confirmed_status(status: str | None) -> bool:
    """True if the status text reads as a confirmed reservation."""
    if not status:
        return False
    lowered = status.lower()
    return any(marker in lowered for marker in CONFIRMED_MARKERS)


def status_label(status: str | None) -> str:
    """Shorten the API status text for display."""
    if not status:
        return ""
    return status.replace("Reserva confirmada", "Confirmada")
