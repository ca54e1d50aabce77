"""Tests for date-window reconciliation."""

from datetime import date, datetime

import httpx
import pytest
from pydantic import ValidationError

from avirato_dashboard.clients import AviratoAPIClient, AviratoTimeoutError
from avirato_dashboard.services.pagination import ReservationPaginator
from avirato_dashboard.services.window_reconciliation import DateWindow, WindowReconciler

from conftest import SITE_CODE, listing_handler, make_reservation


@pytest.fixture
def reconciler(session_store, api_settings, fake_api) -> WindowReconciler:
    client = AviratoAPIClient(session_store, api_settings, transport=fake_api.transport)
    return WindowReconciler(ReservationPaginator(client, api_settings), api_settings)


class TestDateWindow:
    """Tests for DateWindow."""

    def test_widen_by_ninety_days(self):
        window = DateWindow(start=date(2024, 10, 1), end=date(2024, 10, 31))

        widened = window.widen(90)

        assert widened.start == date(2024, 7, 3)
        assert widened.end == date(2025, 1, 29)

    def test_start_after_end_rejected(self):
        with pytest.raises(ValidationError):
            DateWindow(start=date(2024, 10, 31), end=date(2024, 10, 1))

    def test_selection_drops_time_of_day(self):
        window = DateWindow.from_selection(datetime(2024, 10, 1, 18, 30), datetime(2024, 10, 31, 9, 0))

        assert window == DateWindow(start=date(2024, 10, 1), end=date(2024, 10, 31))

    def test_default_window_is_last_thirty_days(self):
        window = DateWindow.from_selection(today=date(2024, 10, 31))

        assert window.start == date(2024, 10, 1)
        assert window.end == date(2024, 10, 31)

    def test_selection_without_end_runs_through_today(self):
        window = DateWindow.from_selection(start=date(2024, 1, 1), today=date(2024, 10, 31))

        assert window == DateWindow(start=date(2024, 1, 1), end=date(2024, 10, 31))

    def test_selection_without_start_reaches_back_from_end(self):
        window = DateWindow.from_selection(end=datetime(2024, 6, 30, 12, 0), today=date(2024, 10, 31))

        assert window == DateWindow(start=date(2024, 5, 31), end=date(2024, 6, 30))

    def test_future_start_without_end_rejected(self):
        with pytest.raises(ValueError):
            DateWindow.from_selection(start=date(2024, 12, 1), today=date(2024, 10, 31))

    @pytest.mark.parametrize(
        "check_in,check_out,expected",
        [
            (date(2024, 9, 20), date(2024, 10, 5), True),  # started before, running into window
            (date(2024, 10, 31), date(2024, 11, 3), True),  # checks in on the last day
            (date(2024, 9, 28), date(2024, 10, 1), True),  # checks out on the first day
            (date(2024, 9, 1), date(2024, 11, 30), True),  # spans the whole window
            (date(2024, 9, 1), date(2024, 9, 30), False),
            (date(2024, 11, 1), date(2024, 11, 5), False),
        ],
    )
    def test_overlaps_is_closed_interval(self, check_in, check_out, expected):
        window = DateWindow(start=date(2024, 10, 1), end=date(2024, 10, 31))

        assert window.overlaps(check_in, check_out) is expected


class TestWindowReconciler:
    """Tests for WindowReconciler.reconcile."""

    @pytest.mark.asyncio
    async def test_queries_widened_check_in_window(self, reconciler, fake_api):
        fake_api.add("/reservation/dates", listing_handler([]))

        result = await reconciler.reconcile(SITE_CODE, date(2024, 10, 1), date(2024, 10, 31))

        params = fake_api.requests_to("/reservation/dates")[0].url.params
        assert params["start_date"] == "2024-07-03"
        assert params["end_date"] == "2025-01-29"
        assert result.selected_window == DateWindow(start=date(2024, 10, 1), end=date(2024, 10, 31))
        assert result.search_window == DateWindow(start=date(2024, 7, 3), end=date(2025, 1, 29))

    @pytest.mark.asyncio
    async def test_keeps_only_overlapping_stays(self, reconciler, fake_api):
        records = [
            make_reservation(1, "2024-09-20 14:00:00", "2024-10-05 12:00:00"),
            make_reservation(2, "2024-10-31", "2024-11-02"),
            make_reservation(3, "2024-09-25", "2024-10-01"),
            make_reservation(4, "2024-08-01", "2024-08-05"),
            make_reservation(5, "2024-11-05", "2024-11-10"),
            make_reservation(6, "2024-07-10", "2024-09-30"),
        ]
        fake_api.add("/reservation/dates", listing_handler(records))

        result = await reconciler.reconcile(SITE_CODE, date(2024, 10, 1), date(2024, 10, 31))

        assert [r.reservation_id for r in result.reservations] == [1, 2, 3]
        assert result.fetched_count == 6
        assert result.pages_fetched == 3

    @pytest.mark.asyncio
    async def test_camel_case_only_record(self, reconciler, fake_api):
        record = {
            "reservationId": 77,
            "checkInDate": "2024-10-10",
            "checkOutDate": "2024-10-14",
            "adults": 2,
        }
        fake_api.add("/reservation/dates", listing_handler([record]))

        result = await reconciler.reconcile(SITE_CODE, date(2024, 10, 1), date(2024, 10, 31))

        assert [r.reservation_id for r in result.reservations] == [77]
        assert result.reservations[0].check_in_date == date(2024, 10, 10)

    @pytest.mark.asyncio
    async def test_start_after_end_raises_before_fetching(self, reconciler, fake_api):
        with pytest.raises(ValueError):
            await reconciler.reconcile(SITE_CODE, date(2024, 10, 31), date(2024, 10, 1))

        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_default_window(self, reconciler, fake_api):
        fake_api.add("/reservation/dates", listing_handler([]))

        result = await reconciler.reconcile(SITE_CODE, today=date(2024, 10, 31))

        assert result.selected_window == DateWindow(start=date(2024, 10, 1), end=date(2024, 10, 31))
        params = fake_api.requests_to("/reservation/dates")[0].url.params
        assert params["start_date"] == "2024-07-03"

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates(self, reconciler, fake_api):
        fake_api.add("/reservation/dates", httpx.ReadTimeout("timed out"))

        with pytest.raises(AviratoTimeoutError):
            await reconciler.reconcile(SITE_CODE, date(2024, 10, 1), date(2024, 10, 31))
