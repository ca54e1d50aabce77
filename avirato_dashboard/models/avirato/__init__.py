"""Avirato PMS API response models."""

from avirato_dashboard.models.avirato.reference import (
    Extra,
    Invoice,
    Operator,
    ReferenceData,
    Regime,
    SpaceSubtype,
)
from avirato_dashboard.models.avirato.reservation import (
    ChargeLine,
    PageMeta,
    Reservation,
    ReservationClient,
    ReservationPage,
    parse_calendar_date,
)
from avirato_dashboard.models.avirato.session import Credentials, LoginResponse, Session, SiteCode

__all__ = [
    "ChargeLine",
    "Credentials",
    "Extra",
    "Invoice",
    "LoginResponse",
    "Operator",
    "PageMeta",
    "ReferenceData",
    "Regime",
    "Reservation",
    "ReservationClient",
    "ReservationPage",
    "Session",
    "SiteCode",
    "SpaceSubtype",
    "parse_calendar_date",
]
