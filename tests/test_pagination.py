"""Tests for cursor pagination over the reservation listing."""

from datetime import date

import httpx
import pytest

from avirato_dashboard.clients import AviratoAPIClient, AviratoClientError, AviratoServerError
from avirato_dashboard.config.settings import AviratoAPISettings
from avirato_dashboard.services.pagination import ReservationPaginator

from conftest import BASE_URL, SITE_CODE, listing_handler, make_reservation

START = date(2024, 7, 3)
END = date(2025, 1, 29)


def paginator_for(session_store, fake_api, **overrides) -> ReservationPaginator:
    settings = AviratoAPISettings(base_url=BASE_URL, max_retries=1, **overrides)
    client = AviratoAPIClient(session_store, settings, transport=fake_api.transport)
    return ReservationPaginator(client, settings)


def sample_records(count: int) -> list[dict]:
    return [
        make_reservation(6000 + i, f"2024-10-{i + 1:02d}", f"2024-10-{i + 3:02d}")
        for i in range(count)
    ]


class TestReservationPaginator:
    """Tests for ReservationPaginator.list_all."""

    @pytest.mark.asyncio
    async def test_follows_cursor_until_last_page(self, session_store, fake_api, reservation_pages):
        pages = iter(reservation_pages)
        fake_api.add("/reservation/dates", lambda request: httpx.Response(200, json=next(pages)))
        paginator = paginator_for(session_store, fake_api, page_size=2)

        result = await paginator.list_all(SITE_CODE, START, END)

        requests = fake_api.requests_to("/reservation/dates")
        assert len(requests) == 2
        assert "cursor" not in requests[0].url.params
        assert requests[1].url.params["cursor"] == "cursor-page-2"
        assert [r.reservation_id for r in result.reservations] == [5001, 5002, 5003]
        assert result.pages_fetched == 2
        assert result.records_received == 4
        assert result.rejected_count == 1
        assert result.truncated is False

    @pytest.mark.asyncio
    async def test_result_independent_of_page_size(self, session_store, fake_api):
        """Page size N and 2N yield the same set of reservation ids, once each."""
        fake_api.add("/reservation/dates", listing_handler(sample_records(7)))

        small = await paginator_for(session_store, fake_api, page_size=2).list_all(SITE_CODE, START, END)
        large = await paginator_for(session_store, fake_api, page_size=4).list_all(SITE_CODE, START, END)

        small_ids = [r.reservation_id for r in small.reservations]
        large_ids = [r.reservation_id for r in large.reservations]
        assert len(small_ids) == len(set(small_ids)) == 7
        assert set(small_ids) == set(large_ids)
        assert small.pages_fetched == 4
        assert large.pages_fetched == 2

    @pytest.mark.asyncio
    async def test_page_ceiling_truncates(self, session_store, fake_api):
        fake_api.add("/reservation/dates", listing_handler(sample_records(7)))
        paginator = paginator_for(session_store, fake_api, page_size=2, max_pages=2)

        result = await paginator.list_all(SITE_CODE, START, END)

        assert result.truncated is True
        assert result.pages_fetched == 2
        assert len(result.reservations) == 4
        assert len(fake_api.requests_to("/reservation/dates")) == 2

    @pytest.mark.asyncio
    async def test_empty_listing(self, session_store, fake_api):
        fake_api.add("/reservation/dates", listing_handler([]))

        result = await paginator_for(session_store, fake_api).list_all(SITE_CODE, START, END)

        assert result.reservations == []
        assert result.pages_fetched == 1
        assert result.truncated is False

    @pytest.mark.asyncio
    async def test_failed_page_aborts_listing(self, session_store, fake_api, reservation_pages):
        """No partial result is returned when a later page fails."""
        responses = iter([httpx.Response(200, json=reservation_pages[0]), httpx.Response(500, text="boom")])
        fake_api.add("/reservation/dates", lambda request: next(responses))

        with pytest.raises(AviratoServerError):
            await paginator_for(session_store, fake_api, page_size=2).list_all(SITE_CODE, START, END)

    @pytest.mark.asyncio
    async def test_non_success_status_fails(self, session_store, fake_api):
        fake_api.add_json("/reservation/dates", {"status": "error", "data": [], "meta": {}})

        with pytest.raises(AviratoClientError):
            await paginator_for(session_store, fake_api).list_all(SITE_CODE, START, END)

    @pytest.mark.asyncio
    async def test_repeated_cursor_fails(self, session_store, fake_api):
        page = {
            "status": "success",
            "data": [[make_reservation(1, "2024-10-01", "2024-10-02")]],
            "meta": {"hasNextPage": True, "cursor": "same"},
        }
        fake_api.add_json("/reservation/dates", page)

        with pytest.raises(AviratoClientError):
            await paginator_for(session_store, fake_api).list_all(SITE_CODE, START, END)

        assert len(fake_api.requests_to("/reservation/dates")) == 2

    @pytest.mark.asyncio
    async def test_flat_data_list_is_accepted(self, session_store, fake_api):
        page = {
            "status": "success",
            "data": [make_reservation(1, "2024-10-01", "2024-10-02")],
            "meta": {"hasNextPage": False},
        }
        fake_api.add_json("/reservation/dates", page)

        result = await paginator_for(session_store, fake_api).list_all(SITE_CODE, START, END)

        assert [r.reservation_id for r in result.reservations] == [1]
