import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from avirato_dashboard.clients import AviratoAPIClient, SessionStore
from avirato_dashboard.config.settings import (
    AviratoAPISettings,
    EnrichmentSettings,
    SessionStoreSettings,
    Settings,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"
BASE_URL = "https://api.avirato.test/v3"
TOKEN = "test-token"
SITE_CODE = 193549


def load_fixture(filename: str) -> Any:
    """Helper to load a fixture file."""
    with open(FIXTURES_DIR / filename) as f:
        return json.load(f)


class FakeRedis:
    """In-memory stand-in for the redis.asyncio client calls the session store makes."""

    def __init__(self, data: dict[str, str] | None = None, fail: bool = False, fail_delete: bool = False):
        self.data = dict(data or {})
        self.fail = fail
        self.fail_delete = fail_delete

    async def mget(self, keys):
        if self.fail:
            raise ConnectionError("redis unavailable")
        return [self.data.get(key) for key in keys]

    async def mset(self, mapping):
        if self.fail:
            raise ConnectionError("redis unavailable")
        self.data.update(mapping)
        return True

    async def delete(self, *keys):
        if self.fail or self.fail_delete:
            raise ConnectionError("redis unavailable")
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed


class FakeAviratoAPI:
    """Routes httpx requests by path to canned responses and records them."""

    def __init__(self):
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response] | httpx.Response | Exception] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, response) -> "FakeAviratoAPI":
        """Register a response, an exception or a handler for ``/v3<path>``."""
        self.routes[f"/v3{path}"] = response
        return self

    def add_json(self, path: str, body: Any, status_code: int = 200) -> "FakeAviratoAPI":
        return self.add(path, httpx.Response(status_code, json=body))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        # Fresh copy per request; the same route may be hit several times
        return httpx.Response(route.status_code, headers=route.headers, content=route.content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == f"/v3{path}"]


def listing_handler(records: list[dict[str, Any]]) -> Callable[[httpx.Request], httpx.Response]:
    """Serve ``records`` like the reservation listing does.

    Filters by check-in date, pages by ``take`` and uses the next offset as
    the opaque cursor.
    """

    def check_in(record: dict[str, Any]) -> str:
        value = record.get("check_in_date") or record.get("checkInDate")
        return value.split(" ")[0]

    def handle(request: httpx.Request) -> httpx.Response:
        params = request.url.params
        start, end = params["start_date"], params["end_date"]
        take = int(params["take"])
        offset = int(params.get("cursor", "0"))
        matching = [record for record in records if start <= check_in(record) <= end]
        page = matching[offset:offset + take]
        next_offset = offset + take
        has_next = next_offset < len(matching)
        return httpx.Response(
            200,
            json={
                "status": "success",
                "data": [page],
                "meta": {
                    "take": take,
                    "itemCount": len(matching),
                    "itemRemaining": max(0, len(matching) - next_offset),
                    "hasNextPage": has_next,
                    "cursor": str(next_offset) if has_next else "",
                },
            },
        )

    return handle


def make_reservation(
    reservation_id: int,
    check_in: str,
    check_out: str,
    **extra: Any,
) -> dict[str, Any]:
    """Minimal raw reservation record."""
    record = {
        "reservation_id": reservation_id,
        "check_in_date": check_in,
        "check_out_date": check_out,
        "adults": 2,
        "children": 0,
        "price": 100,
        "status": "Reserva confirmada",
        "operator_id": 1,
        "space_subtype_id": 31,
        "regime": "AD",
    }
    record.update(extra)
    return record


def future_expiry() -> str:
    return (datetime.now(timezone.utc) + timedelta(hours=8)).isoformat()


@pytest.fixture
def api_settings() -> AviratoAPISettings:
    return AviratoAPISettings(
        base_url=BASE_URL,
        max_retries=1,
        page_size=2,
        max_pages=10,
        billing_concurrency=2,
    )


@pytest.fixture
def store_settings() -> SessionStoreSettings:
    return SessionStoreSettings()


@pytest.fixture
def enrichment_settings() -> EnrichmentSettings:
    return EnrichmentSettings(operator_overrides={47: "Channel Manager Partner"})


@pytest.fixture
def app_settings(api_settings, store_settings, enrichment_settings) -> Settings:
    return Settings(avirato=api_settings, session=store_settings, enrichment=enrichment_settings)


@pytest.fixture
def fake_api() -> FakeAviratoAPI:
    return FakeAviratoAPI()


@pytest.fixture
def persisted_redis(store_settings) -> FakeRedis:
    """Redis holding a valid persisted session."""
    return FakeRedis(
        {
            store_settings.token_key: TOKEN,
            store_settings.site_codes_key: json.dumps([SITE_CODE]),
            store_settings.expiry_key: future_expiry(),
        }
    )


@pytest.fixture
def session_store(persisted_redis, api_settings, store_settings, fake_api) -> SessionStore:
    """Session store already holding a valid session."""
    return SessionStore(
        redis_client=persisted_redis,
        api_settings=api_settings,
        store_settings=store_settings,
        transport=fake_api.transport,
    )


@pytest.fixture
def api_client(session_store, api_settings, fake_api) -> AviratoAPIClient:
    return AviratoAPIClient(session_store, api_settings, transport=fake_api.transport)


@pytest.fixture
def login_response():
    """Load Avirato login response from fixture."""
    return load_fixture("avirato_api/login_response.json")


@pytest.fixture
def reservation_pages():
    """Load the two reservation listing pages from fixtures."""
    return [
        load_fixture("avirato_api/reservations_page_1.json"),
        load_fixture("avirato_api/reservations_page_2.json"),
    ]


@pytest.fixture
def reference_responses():
    """Load the reference lookup responses from fixtures."""
    return {
        "/channel-manager/operators": load_fixture("avirato_api/operators_response.json"),
        "/regime": load_fixture("avirato_api/regimes_response.json"),
        "/space": load_fixture("avirato_api/spaces_response.json"),
        "/extra": load_fixture("avirato_api/extras_response.json"),
    }


@pytest.fixture
def bill_response():
    """Load an Avirato billing response from fixture."""
    return load_fixture("avirato_api/bill_response.json")
