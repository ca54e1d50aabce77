"""Transformer that joins reference data and billing onto reservations."""

from typing import Iterable, Optional

from structlog import get_logger

from avirato_dashboard.config import settings as default_settings
from avirato_dashboard.config.settings import EnrichmentSettings
from avirato_dashboard.models.avirato import Invoice, ReferenceData, Reservation

logger = get_logger(__name__)


class EnrichmentTransformer:
    """Attaches derived display fields to reservations.

    Resolution never raises for missing lookup data; every field degrades to a
    deterministic fallback label instead.
    """

    @staticmethod
    def resolve_operator_name(
        operator_id: Optional[int],
        operators: dict[int, str],
        labels: EnrichmentSettings,
    ) -> str:
        """Operator name, or ``Operador <id>`` when the map does not know it."""
        if operator_id is None:
            return labels.operator_unknown
        name = operators.get(operator_id)
        if name:
            return name
        return labels.operator_fallback.format(id=operator_id)

    @staticmethod
    def resolve_regime_name(regime: Optional[str], regimes: dict[str, str]) -> Optional[str]:
        """Régime name, or the raw code when the map does not know it."""
        if regime is None:
            return None
        return regimes.get(regime) or regime

    @staticmethod
    def resolve_space_type_name(
        space_subtype_id: Optional[int],
        space_subtypes: dict[int, str],
        labels: EnrichmentSettings,
    ) -> Optional[str]:
        """Space subtype name, or ``Type <id>`` when the map does not know it."""
        if space_subtype_id is None:
            return None
        name = space_subtypes.get(space_subtype_id)
        if name:
            return name
        return labels.space_type_fallback.format(id=space_subtype_id)

    @staticmethod
    def format_extras(
        reservation: Reservation,
        extras_catalog: dict[int, str],
        labels: EnrichmentSettings,
    ) -> str:
        """Describe the extras charged on a reservation.

        Charge lines and predefined charges that point at the same extra are
        merged into one entry with their quantities summed, in first-seen order.
        Lines whose extra is not in the catalog are skipped.

        Args:
            reservation: Reservation with charge lines
            extras_catalog: {extra_id: name}
            labels: Fallback labels

        Returns:
            e.g. ``"Late checkout (x3), Cuna"`` or the no-extras label
        """
        quantities: dict[int, int] = {}
        for line in [*reservation.charges, *reservation.predefined_charges]:
            if line.extra_id is None or line.extra_id not in extras_catalog:
                continue
            quantities[line.extra_id] = quantities.get(line.extra_id, 0) + max(line.quantity, 1)

        if not quantities:
            return labels.no_extras_label

        entries = []
        for extra_id, quantity in quantities.items():
            name = extras_catalog[extra_id]
            entries.append(f"{name} (x{quantity})" if quantity > 1 else name)
        return ", ".join(entries)

    @staticmethod
    def enrich(
        reservations: list[Reservation],
        reference: ReferenceData,
        labels: Optional[EnrichmentSettings] = None,
        site_code: object = None,
    ) -> list[Reservation]:
        """Attach operator, régime, space type and extras names in place.

        Args:
            reservations: Reservations to mutate
            reference: Lookup maps (any of them may be empty)
            labels: Fallback labels, defaults to global settings
            site_code: Site code for logging context

        Returns:
            The same list, for chaining
        """
        labels = labels or default_settings.enrichment

        unresolved_operators = 0
        for reservation in reservations:
            reservation.operator_name = EnrichmentTransformer.resolve_operator_name(
                reservation.operator_id, reference.operators, labels
            )
            if reservation.operator_id is not None and reservation.operator_id not in reference.operators:
                unresolved_operators += 1
            reservation.regime_name = EnrichmentTransformer.resolve_regime_name(
                reservation.regime, reference.regimes
            )
            reservation.space_type_name = EnrichmentTransformer.resolve_space_type_name(
                reservation.space_subtype_id, reference.space_subtypes, labels
            )
            reservation.extras_text = EnrichmentTransformer.format_extras(
                reservation, reference.extras, labels
            )

        logger.info(
            "Enrichment applied",
            site_code=site_code,
            reservation_count=len(reservations),
            unresolved_operators=unresolved_operators,
        )
        return reservations

    @staticmethod
    def billing_total(reservation_id: int, invoices: Iterable[Invoice]) -> float:
        """Sum invoice totals belonging to a reservation.

        Invoices that do not name a reservation are counted, since the billing
        endpoint is already queried per reservation.
        """
        return float(
            sum(
                invoice.total
                for invoice in invoices
                if invoice.reservation_id is None or invoice.reservation_id == reservation_id
            )
        )

    @staticmethod
    def apply_billing(reservation: Reservation, invoices: Iterable[Invoice]) -> Reservation:
        """Set ``billing_total`` and ``is_fully_paid``.

        A zero total is treated as nothing outstanding. This mirrors how the
        dashboard has always read the billing endpoint; a zero total may equally
        mean that no invoice exists.
        """
        total = EnrichmentTransformer.billing_total(reservation.reservation_id, invoices)
        reservation.billing_total = total
        reservation.is_fully_paid = total == 0
        return reservation

    @staticmethod
    def apply_billing_unavailable(reservation: Reservation) -> Reservation:
        """Defaults used when billing could not be fetched for a reservation."""
        reservation.billing_total = 0.0
        reservation.is_fully_paid = True
        return reservation
