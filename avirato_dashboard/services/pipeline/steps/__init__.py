"""Pipeline step implementations."""

from .apply_enrichment_step import ApplyEnrichmentStep
from .enrich_billing_step import EnrichBillingStep
from .fetch_reservations_step import FetchReservationsStep
from .load_reference_data_step import LoadReferenceDataStep

__all__ = [
    "ApplyEnrichmentStep",
    "EnrichBillingStep",
    "FetchReservationsStep",
    "LoadReferenceDataStep",
]
