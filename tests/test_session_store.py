"""Tests for the Redis-backed session store."""

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from avirato_dashboard.clients import (
    AviratoAuthenticationError,
    AviratoTimeoutError,
    SessionStore,
)
from avirato_dashboard.models.avirato import Credentials, Session

from conftest import SITE_CODE, TOKEN, FakeRedis


@pytest.fixture
def credentials():
    return Credentials(email="recepcion@villas.test", password="s3cret")


@pytest.fixture
def empty_store(api_settings, store_settings, fake_api):
    return SessionStore(
        redis_client=FakeRedis(),
        api_settings=api_settings,
        store_settings=store_settings,
        transport=fake_api.transport,
    )


class TestAuthenticate:
    """Tests for SessionStore.authenticate."""

    @pytest.mark.asyncio
    async def test_successful_login_stores_session(self, empty_store, fake_api, login_response, credentials):
        """A success body is kept in memory and mirrored to Redis."""
        fake_api.add_json("/token/login", login_response)

        session = await empty_store.authenticate(credentials)

        assert session.token == "eyJhbGciOiJIUzI1NiJ9.test-token"
        assert session.site_codes == [193549, 201877]
        assert await empty_store.is_valid() is True
        assert await empty_store.token() == session.token
        assert await empty_store.site_codes() == [193549, 201877]

        stored = empty_store.redis_client.data
        assert stored["avirato_token"] == session.token
        assert json.loads(stored["avirato_web_codes"]) == [193549, 201877]
        assert stored["avirato_token_expiry"].startswith("2099-12-31T23:59:59")

    @pytest.mark.asyncio
    async def test_login_sends_email_and_password(self, empty_store, fake_api, login_response, credentials):
        fake_api.add_json("/token/login", login_response)

        await empty_store.authenticate(credentials)

        request = fake_api.requests_to("/token/login")[0]
        assert request.method == "POST"
        assert json.loads(request.content) == {"email": "recepcion@villas.test", "password": "s3cret"}

    @pytest.mark.asyncio
    async def test_rejected_login_raises_with_status(self, empty_store, fake_api, credentials):
        """Non-2xx responses raise and leave the store unauthenticated."""
        fake_api.add("/token/login", httpx.Response(403, text="Invalid credentials"))

        with pytest.raises(AviratoAuthenticationError) as exc_info:
            await empty_store.authenticate(credentials)

        assert exc_info.value.status_code == 403
        assert exc_info.value.server_message == "Invalid credentials"
        assert await empty_store.is_valid() is False

    @pytest.mark.asyncio
    async def test_non_success_status_raises(self, empty_store, fake_api, credentials):
        fake_api.add_json("/token/login", {"status": "error", "data": None})

        with pytest.raises(AviratoAuthenticationError):
            await empty_store.authenticate(credentials)

    @pytest.mark.asyncio
    async def test_login_timeout(self, empty_store, fake_api, credentials):
        fake_api.add("/token/login", httpx.ReadTimeout("timed out"))

        with pytest.raises(AviratoTimeoutError):
            await empty_store.authenticate(credentials)

    @pytest.mark.asyncio
    async def test_redis_failure_keeps_session_in_memory(
        self, api_settings, store_settings, fake_api, login_response, credentials
    ):
        store = SessionStore(
            redis_client=FakeRedis(fail=True),
            api_settings=api_settings,
            store_settings=store_settings,
            transport=fake_api.transport,
        )
        fake_api.add_json("/token/login", login_response)

        await store.authenticate(credentials)

        assert await store.is_valid() is True


class TestSessionValidity:
    """Tests for validity, reload and clearing."""

    @pytest.mark.asyncio
    async def test_never_authenticated(self, empty_store):
        assert await empty_store.is_valid() is False
        assert await empty_store.token() is None
        assert await empty_store.site_codes() == []

    @pytest.mark.asyncio
    async def test_clear_invalidates_session(self, session_store, persisted_redis):
        assert await session_store.is_valid() is True

        await session_store.clear()

        assert await session_store.is_valid() is False
        assert await session_store.token() is None
        assert persisted_redis.data == {}

    @pytest.mark.asyncio
    async def test_clear_holds_when_redis_delete_fails(self, api_settings, store_settings):
        """A persisted copy that could not be deleted is not read back."""
        redis_client = FakeRedis(
            {
                store_settings.token_key: TOKEN,
                store_settings.site_codes_key: json.dumps([SITE_CODE]),
                store_settings.expiry_key: (datetime.now(timezone.utc) + timedelta(hours=8)).isoformat(),
            },
            fail_delete=True,
        )
        store = SessionStore(redis_client=redis_client, api_settings=api_settings, store_settings=store_settings)
        assert await store.is_valid() is True

        await store.clear()

        assert store_settings.token_key in redis_client.data
        assert await store.is_valid() is False
        assert await store.token() is None
        assert await store.site_codes() == []

    @pytest.mark.asyncio
    async def test_login_after_clear_restores_session(
        self, api_settings, store_settings, fake_api, login_response, credentials
    ):
        store = SessionStore(
            redis_client=FakeRedis(fail_delete=True),
            api_settings=api_settings,
            store_settings=store_settings,
            transport=fake_api.transport,
        )
        fake_api.add_json("/token/login", login_response)
        await store.authenticate(credentials)
        await store.clear()

        await store.authenticate(credentials)

        assert await store.is_valid() is True
        assert await store.token() == "eyJhbGciOiJIUzI1NiJ9.test-token"

    @pytest.mark.asyncio
    async def test_expired_session_is_invalid(self, api_settings, store_settings):
        past = (datetime.now(timezone.utc) - timedelta(minutes=1)).isoformat()
        redis_client = FakeRedis(
            {
                store_settings.token_key: TOKEN,
                store_settings.site_codes_key: json.dumps([SITE_CODE]),
                store_settings.expiry_key: past,
            }
        )
        store = SessionStore(redis_client=redis_client, api_settings=api_settings, store_settings=store_settings)

        assert await store.is_valid() is False
        assert await store.token() is None

    @pytest.mark.asyncio
    async def test_new_store_picks_up_persisted_session(
        self, empty_store, fake_api, login_response, credentials, api_settings, store_settings
    ):
        """A fresh process reads the session another one stored."""
        fake_api.add_json("/token/login", login_response)
        await empty_store.authenticate(credentials)

        reloaded = SessionStore(
            redis_client=empty_store.redis_client,
            api_settings=api_settings,
            store_settings=store_settings,
        )

        assert await reloaded.is_valid() is True
        assert await reloaded.token() == "eyJhbGciOiJIUzI1NiJ9.test-token"
        assert await reloaded.site_codes() == [193549, 201877]

    @pytest.mark.asyncio
    async def test_unreadable_persisted_session_is_ignored(self, api_settings, store_settings):
        redis_client = FakeRedis(
            {
                store_settings.token_key: TOKEN,
                store_settings.site_codes_key: "not-json",
                store_settings.expiry_key: "tomorrow",
            }
        )
        store = SessionStore(redis_client=redis_client, api_settings=api_settings, store_settings=store_settings)

        assert await store.is_valid() is False

    @pytest.mark.asyncio
    async def test_redis_unavailable_means_no_session(self, api_settings, store_settings):
        store = SessionStore(
            redis_client=FakeRedis(fail=True), api_settings=api_settings, store_settings=store_settings
        )

        assert await store.is_valid() is False
        await store.clear()


class TestSessionModel:
    """Tests for the Session model."""

    def test_naive_expiry_is_utc(self):
        session = Session(token="t", site_codes=[1], expiry=datetime(2099, 1, 1))

        assert session.expiry.tzinfo == timezone.utc
        assert session.is_valid() is True

    def test_empty_token_is_invalid(self):
        session = Session(token="", site_codes=[1], expiry=datetime(2099, 1, 1, tzinfo=timezone.utc))

        assert session.is_valid() is False

    def test_expiry_equal_to_now_is_invalid(self):
        now = datetime(2024, 10, 1, 12, 0, tzinfo=timezone.utc)
        session = Session(token="t", expiry=now)

        assert session.is_valid(now=now) is False
