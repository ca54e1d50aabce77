"""Transformer for normalizing raw Avirato reservation records."""

from typing import Any, Iterable, Optional

from pydantic import ValidationError
from structlog import get_logger

from avirato_dashboard.models.avirato import Reservation

logger = get_logger(__name__)


class ReservationDataError(ValueError):
    """Raised when a reservation record fails data-integrity checks."""

    def __init__(self, message: str, reservation_id: Any = None):
        super().__init__(message)
        self.reservation_id = reservation_id


class ReservationTransformer:
    """Turns raw listing payloads into canonical ``Reservation`` models."""

    @staticmethod
    def flatten_pages(data: Any) -> list[Any]:
        """Flatten the listing ``data`` payload.

        The listing nests records one level deep (a list of lists); older schema
        versions return a flat list. Both are accepted.

        Args:
            data: ``data`` field of a listing page

        Returns:
            Flat list of raw reservation records, in received order
        """
        if not data:
            return []
        if isinstance(data, dict):
            return [data]

        records: list[Any] = []
        for item in data:
            if isinstance(item, list):
                records.extend(item)
            elif item is not None:
                records.append(item)
        return records

    @staticmethod
    def _raw_reservation_id(raw: Any) -> Optional[Any]:
        if not isinstance(raw, dict):
            return None
        return raw.get("reservation_id", raw.get("reservationId"))

    @staticmethod
    def normalize(raw: Any) -> Reservation:
        """Validate one raw record into a ``Reservation``.

        Args:
            raw: Raw reservation dict from the API

        Returns:
            Canonical reservation

        Raises:
            ReservationDataError: If the id or a stay date is missing or unparseable
        """
        reservation_id = ReservationTransformer._raw_reservation_id(raw)
        if not isinstance(raw, dict):
            raise ReservationDataError(
                f"Reservation record must be an object, got {type(raw).__name__}"
            )
        try:
            return Reservation.model_validate(raw)
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            raise ReservationDataError(
                f"Invalid reservation record ({', '.join(fields)}): {e.error_count()} error(s)",
                reservation_id=reservation_id,
            ) from e

    @staticmethod
    def normalize_many(
        raws: Iterable[Any],
        site_code: Any = None,
    ) -> tuple[list[Reservation], int]:
        """Normalize a batch, skipping records that fail integrity checks.

        Each rejected record is logged as a data-integrity warning.

        Args:
            raws: Raw reservation dicts
            site_code: Site code for logging context

        Returns:
            Tuple of (valid reservations in input order, rejected count)
        """
        reservations: list[Reservation] = []
        rejected = 0
        for raw in raws:
            try:
                reservations.append(ReservationTransformer.normalize(raw))
            except ReservationDataError as e:
                rejected += 1
                logger.warning(
                    "Reservation failed data-integrity check",
                    site_code=site_code,
                    reservation_id=e.reservation_id,
                    error=str(e),
                )
        return reservations, rejected
