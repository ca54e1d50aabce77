"""Date-window reconciliation for the reservation listing.

The listing filters by check-in date only, so a stay that started before the
selected window but is still running inside it would be missed by a plain
query. The reconciler fetches a padded window and keeps every stay that
overlaps the selection.

The padding (90 days by default) is a heuristic bound on stay length plus
booking lead time. A stay that checked in earlier than the padded start is
still missed.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Union

from pydantic import BaseModel, Field, model_validator
from structlog import get_logger

from avirato_dashboard.config import settings as default_settings
from avirato_dashboard.config.settings import AviratoAPISettings
from avirato_dashboard.models.avirato import Reservation, SiteCode
from avirato_dashboard.services.pagination import ReservationPaginator

logger = get_logger(__name__)

DateLike = Union[date, datetime]


def _as_date(value: DateLike) -> date:
    """Strip time-of-day."""
    if isinstance(value, datetime):
        return value.date()
    return value


class DateWindow(BaseModel):
    """Closed calendar-date interval [start, end]."""

    start: date
    end: date

    @model_validator(mode="after")
    def check_order(self) -> "DateWindow":
        if self.start > self.end:
            raise ValueError(f"Window start {self.start} is after end {self.end}")
        return self

    @classmethod
    def from_selection(
        cls,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
        today: Optional[date] = None,
        default_lookback_days: int = 30,
    ) -> "DateWindow":
        """Normalize a user selection to whole dates.

        Without any selection the window is the last ``default_lookback_days``
        days through today. A selection with only a start runs through today;
        one with only an end reaches back ``default_lookback_days`` from it.

        Raises:
            ValueError: If the resulting start is after its end
        """
        if start is not None and end is not None:
            return cls(start=_as_date(start), end=_as_date(end))

        today = today or date.today()
        if start is None and end is None:
            return cls(start=today - timedelta(days=default_lookback_days), end=today)

        if end is None:
            window = cls(start=_as_date(start), end=today)
            logger.info(
                "Selection has no end date, using today",
                start=window.start.isoformat(),
                end=window.end.isoformat(),
            )
        else:
            end_date = _as_date(end)
            window = cls(start=end_date - timedelta(days=default_lookback_days), end=end_date)
            logger.info(
                "Selection has no start date, using the default lookback",
                start=window.start.isoformat(),
                end=window.end.isoformat(),
                lookback_days=default_lookback_days,
            )
        return window

    def widen(self, days: int) -> "DateWindow":
        """Window padded by ``days`` on both sides."""
        return DateWindow(start=self.start - timedelta(days=days), end=self.end + timedelta(days=days))

    def overlaps(self, check_in: date, check_out: date) -> bool:
        """Closed-interval overlap: stays touching either boundary are included."""
        return check_in <= self.end and check_out >= self.start


class ReconciliationResult(BaseModel):
    """Reservations whose stay overlaps the selected window."""

    selected_window: DateWindow
    search_window: DateWindow
    reservations: list[Reservation] = Field(default_factory=list)
    fetched_count: int = 0
    rejected_count: int = 0
    pages_fetched: int = 0
    truncated: bool = False


class WindowReconciler:
    """Fetches a widened check-in window and keeps stays overlapping the selection."""

    def __init__(
        self,
        paginator: ReservationPaginator,
        api_settings: Optional[AviratoAPISettings] = None,
    ):
        api_settings = api_settings or default_settings.avirato
        self.paginator = paginator
        self.padding_days = api_settings.window_padding_days
        self.default_lookback_days = api_settings.default_lookback_days

    async def reconcile(
        self,
        site_code: SiteCode,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
        today: Optional[date] = None,
    ) -> ReconciliationResult:
        """Return the reservations active during [start, end].

        Args:
            site_code: Property web code
            start: Selected window start (time-of-day ignored)
            end: Selected window end (time-of-day ignored)
            today: Reference date when a bound is missing

        Returns:
            ReconciliationResult, in the order the listing produced

        Raises:
            ValueError: If start is after end
            AviratoAPIClientError: If the widened fetch fails
        """
        selected = DateWindow.from_selection(
            start, end, today=today, default_lookback_days=self.default_lookback_days
        )
        search = selected.widen(self.padding_days)

        listing = await self.paginator.list_all(site_code, search.start, search.end)
        retained = [
            reservation
            for reservation in listing.reservations
            if selected.overlaps(reservation.check_in_date, reservation.check_out_date)
        ]

        logger.info(
            "Reservation window reconciled",
            site_code=site_code,
            selected_start=selected.start.isoformat(),
            selected_end=selected.end.isoformat(),
            search_start=search.start.isoformat(),
            search_end=search.end.isoformat(),
            fetched=len(listing.reservations),
            retained=len(retained),
            truncated=listing.truncated,
        )

        return ReconciliationResult(
            selected_window=selected,
            search_window=search,
            reservations=retained,
            fetched_count=len(listing.reservations),
            rejected_count=listing.rejected_count,
            pages_fetched=listing.pages_fetched,
            truncated=listing.truncated,
        )
