"""Data transformation package."""

from avirato_dashboard.transformers.dashboard_transformer import DashboardTransformer
from avirato_dashboard.transformers.enrichment_transformer import EnrichmentTransformer
from avirato_dashboard.transformers.reference_transformer import ReferenceTransformer
from avirato_dashboard.transformers.reservation_transformer import (
    ReservationDataError,
    ReservationTransformer,
)

__all__ = [
    "DashboardTransformer",
    "EnrichmentTransformer",
    "ReferenceTransformer",
    "ReservationDataError",
    "ReservationTransformer",
]
