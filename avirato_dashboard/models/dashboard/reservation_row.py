"""Pydantic models for the reservation rows and summary shown on the dashboard."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReservationRow(BaseModel):
    """One table row of the reservations dashboard.

    All values are ready for display; fallbacks ("No disponible", "Sin observaciones")
    are already applied.
    """

    reservation_id: int = Field(alias="reservationId")
    client_name: str = Field(alias="clientName")
    phone: str
    operator_name: str = Field(alias="operatorName")
    space_type_name: str = Field(alias="spaceTypeName")
    check_in_date: date = Field(alias="checkInDate")
    check_out_date: date = Field(alias="checkOutDate")
    regime: str
    guests_text: str = Field(alias="guestsText")
    price: float
    status: str
    is_confirmed: bool = Field(alias="isConfirmed")
    payment_status: str = Field(alias="paymentStatus")
    has_payment_pending: bool = Field(alias="hasPaymentPending")
    pending_amount: float = Field(alias="pendingAmount")
    extras: str
    observations: str

    model_config = ConfigDict(populate_by_name=True)


class DashboardSummary(BaseModel):
    """Headline figures shown above the reservation list."""

    total_reservations: int = Field(default=0, alias="totalReservations")
    confirmed_reservations: int = Field(default=0, alias="confirmedReservations")
    total_guests: int = Field(default=0, alias="totalGuests")
    total_revenue: float = Field(default=0.0, alias="totalRevenue")
    pending_payments: int = Field(default=0, alias="pendingPayments")
    window_start: Optional[date] = Field(default=None, alias="windowStart")
    window_end: Optional[date] = Field(default=None, alias="windowEnd")

    model_config = ConfigDict(populate_by_name=True)
