"""Cursor pagination over the Avirato reservation listing."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, ValidationError
from structlog import get_logger

from avirato_dashboard.clients.avirato_api_client import AviratoAPIClient, AviratoClientError
from avirato_dashboard.config import settings as default_settings
from avirato_dashboard.config.settings import AviratoAPISettings
from avirato_dashboard.models.avirato import Reservation, ReservationPage, SiteCode
from avirato_dashboard.transformers.reservation_transformer import ReservationTransformer

logger = get_logger(__name__)


class PaginationResult(BaseModel):
    """All reservations of a listing, concatenated in the order received."""

    reservations: list[Reservation] = Field(default_factory=list)
    pages_fetched: int = 0
    records_received: int = 0
    rejected_count: int = 0
    truncated: bool = False  # True when the page ceiling stopped the listing


class ReservationPaginator:
    """Follows continuation cursors until the listing is exhausted.

    Pages are fetched strictly one after the other, since each cursor comes from
    the previous response. Any page failure aborts the whole listing.
    """

    def __init__(
        self,
        api_client: AviratoAPIClient,
        api_settings: Optional[AviratoAPISettings] = None,
    ):
        api_settings = api_settings or default_settings.avirato
        self.api_client = api_client
        self.page_size = api_settings.page_size
        self.max_pages = api_settings.max_pages
        self.include_charges = api_settings.include_charges

    async def list_all(
        self,
        site_code: SiteCode,
        start_date: date,
        end_date: date,
    ) -> PaginationResult:
        """Fetch every reservation whose check-in falls in [start_date, end_date].

        Args:
            site_code: Property web code
            start_date: First check-in date (inclusive)
            end_date: Last check-in date (inclusive)

        Returns:
            PaginationResult; ``truncated`` is set when the page ceiling was hit

        Raises:
            AviratoAPIClientError: If any page request fails
        """
        logger.info(
            "Fetching reservations with pagination",
            site_code=site_code,
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
            page_size=self.page_size,
            max_pages=self.max_pages,
        )

        result = PaginationResult()
        cursor: Optional[str] = None

        while True:
            if result.pages_fetched >= self.max_pages:
                result.truncated = True
                logger.warning(
                    "Page ceiling reached, reservation listing is incomplete",
                    site_code=site_code,
                    pages_fetched=result.pages_fetched,
                    max_pages=self.max_pages,
                    reservations=len(result.reservations),
                )
                break

            body = await self.api_client.list_reservations_page(
                site_code,
                start_date.isoformat(),
                end_date.isoformat(),
                take=self.page_size,
                cursor=cursor,
                include_charges=self.include_charges,
            )
            page = self._parse_page(body, site_code)
            result.pages_fetched += 1

            raw_records = ReservationTransformer.flatten_pages(page.data)
            reservations, rejected = ReservationTransformer.normalize_many(raw_records, site_code)
            result.reservations.extend(reservations)
            result.records_received += len(raw_records)
            result.rejected_count += rejected

            logger.debug(
                "Reservation page fetched",
                site_code=site_code,
                page_number=result.pages_fetched,
                page_count=len(raw_records),
                rejected=rejected,
                has_next_page=page.meta.has_next_page,
            )

            if not page.meta.has_next_page or not page.meta.cursor:
                break
            if page.meta.cursor == cursor:
                raise AviratoClientError(
                    f"Reservation listing returned the same cursor twice: {cursor!r}"
                )
            cursor = page.meta.cursor

        logger.info(
            "Reservation pagination finished",
            site_code=site_code,
            pages_fetched=result.pages_fetched,
            total_reservations=len(result.reservations),
            rejected=result.rejected_count,
            truncated=result.truncated,
        )
        return result

    @staticmethod
    def _parse_page(body: object, site_code: SiteCode) -> ReservationPage:
        """Validate a listing body; a non-success status fails the listing."""
        if not isinstance(body, dict):
            raise AviratoClientError(
                f"Unexpected reservation listing body: {type(body).__name__}"
            )
        try:
            page = ReservationPage.model_validate(body)
        except ValidationError as e:
            raise AviratoClientError(f"Invalid reservation listing page: {str(e)}") from e
        if page.status and page.status != "success":
            logger.error(
                "Reservation listing returned non-success status",
                site_code=site_code,
                status=page.status,
            )
            raise AviratoClientError(f"Failed to fetch reservations: status {page.status!r}")
        return page
