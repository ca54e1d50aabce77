"""Redis-backed session store for the Avirato bearer token."""

import json
from datetime import datetime
from typing import Any, Optional

import httpx
import redis.asyncio as redis
from pydantic import ValidationError
from structlog import get_logger

from avirato_dashboard.clients.avirato_api_client import (
    AviratoAPIClient,
    AviratoAuthenticationError,
    AviratoTimeoutError,
    AviratoTransportError,
)
from avirato_dashboard.config import settings as default_settings
from avirato_dashboard.config.settings import AviratoAPISettings, SessionStoreSettings
from avirato_dashboard.models.avirato import Credentials, LoginResponse, Session, SiteCode

logger = get_logger(__name__)


class SessionStore:
    """Holds the authenticated session in memory and mirrors it to Redis.

    Memory is the source of truth once populated; Redis is only read when memory
    is empty (e.g. a fresh process picking up an existing login).
    """

    def __init__(
        self,
        redis_client: Optional[Any] = None,
        api_settings: Optional[AviratoAPISettings] = None,
        store_settings: Optional[SessionStoreSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the store.

        Args:
            redis_client: Async Redis client, built from settings when omitted
            api_settings: API settings for the login endpoint
            store_settings: Redis connection and key names
            transport: Optional httpx transport (used by tests)
        """
        self.api_settings = api_settings or default_settings.avirato
        self.store_settings = store_settings or default_settings.session
        self.transport = transport
        self.redis_client = redis_client or redis.Redis(
            host=self.store_settings.host,
            port=self.store_settings.port,
            db=self.store_settings.db,
            password=self.store_settings.password,
            ssl=self.store_settings.ssl,
            decode_responses=True,
            socket_timeout=self.store_settings.socket_timeout,
            socket_connect_timeout=self.store_settings.socket_connect_timeout,
        )
        self._session: Optional[Session] = None
        # Set by clear(); keeps a stale Redis copy from coming back until the next login
        self._cleared = False

    @property
    def _keys(self) -> tuple[str, str, str]:
        return (
            self.store_settings.token_key,
            self.store_settings.site_codes_key,
            self.store_settings.expiry_key,
        )

    async def authenticate(self, credentials: Credentials) -> Session:
        """Log in against Avirato and store the resulting session.

        Args:
            credentials: Email and password

        Returns:
            The new session

        Raises:
            AviratoAuthenticationError: On non-2xx or a non-success body
            AviratoTimeoutError: If the login request times out
            AviratoTransportError: If the login request cannot be sent
        """
        url = f"{self.api_settings.base_url.rstrip('/')}{AviratoAPIClient.LOGIN_ENDPOINT}"
        logger.info("Authenticating against Avirato", email=credentials.email)

        try:
            async with httpx.AsyncClient(
                timeout=self.api_settings.lookup_timeout, transport=self.transport
            ) as client:
                response = await client.post(
                    url,
                    json=credentials.to_payload(),
                    headers={"Content-Type": "application/json", "Accept": "application/json"},
                )
        except httpx.TimeoutException as e:
            logger.error("Avirato login timed out", email=credentials.email)
            raise AviratoTimeoutError("Login request timed out") from e
        except httpx.RequestError as e:
            logger.error("Avirato login request failed", email=credentials.email, error=str(e))
            raise AviratoTransportError(f"Login request failed: {str(e)}") from e

        if not response.is_success:
            logger.error(
                "Avirato authentication failed",
                email=credentials.email,
                status_code=response.status_code,
            )
            raise AviratoAuthenticationError(
                f"Authentication failed: {response.status_code} {response.reason_phrase} - {response.text}",
                status_code=response.status_code,
                server_message=response.text,
            )

        try:
            login = LoginResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise AviratoAuthenticationError(
                f"Unexpected login response: {str(e)}",
                status_code=response.status_code,
            ) from e

        if login.status != "success" or login.data is None:
            raise AviratoAuthenticationError(
                f"Authentication failed: status {login.status!r}",
                status_code=response.status_code,
                server_message=response.text,
            )

        self._session = login.data
        self._cleared = False
        await self._persist(login.data)

        logger.info(
            "Avirato authentication successful",
            email=credentials.email,
            site_code_count=len(login.data.site_codes),
            expiry=login.data.expiry.isoformat(),
        )
        return login.data

    async def is_valid(self) -> bool:
        """True iff a session exists with a token and an expiry in the future."""
        session = await self._load()
        return session is not None and session.is_valid()

    async def token(self) -> Optional[str]:
        """Bearer token of the current session, None if missing or expired."""
        session = await self._load()
        if session is None or not session.is_valid():
            return None
        return session.token

    async def site_codes(self) -> list[SiteCode]:
        """Site codes of the authenticated account, empty if never authenticated."""
        session = await self._load()
        return list(session.site_codes) if session else []

    async def clear(self) -> None:
        """Erase the session from memory and Redis.

        The store stays logged out even when the Redis delete fails; the
        persisted copy is ignored until the next successful ``authenticate``.
        """
        self._session = None
        self._cleared = True
        try:
            await self.redis_client.delete(*self._keys)
        except Exception as e:
            logger.warning("Failed to clear persisted session from Redis", error=str(e))
        logger.info("Avirato session cleared")

    async def _load(self) -> Optional[Session]:
        """Return the in-memory session, falling back to Redis when memory is empty.

        There is no fallback after ``clear()``.
        """
        if self._session is None and not self._cleared:
            self._session = await self._read_persisted()
        return self._session

    async def _read_persisted(self) -> Optional[Session]:
        """Read the persisted session; any failure is treated as "no session"."""
        try:
            token, site_codes_raw, expiry_raw = await self.redis_client.mget(list(self._keys))
        except Exception as e:
            logger.warning("Redis get operation failed", error=str(e))
            return None

        if not token or not expiry_raw:
            return None

        try:
            return Session(
                token=token,
                site_codes=json.loads(site_codes_raw) if site_codes_raw else [],
                expiry=datetime.fromisoformat(expiry_raw.replace("Z", "+00:00")),
            )
        except (ValueError, ValidationError) as e:
            logger.warning("Persisted session is unreadable, ignoring it", error=str(e))
            return None

    async def _persist(self, session: Session) -> None:
        """Write the session to Redis. The in-memory session stays usable on failure."""
        token_key, site_codes_key, expiry_key = self._keys
        try:
            await self.redis_client.mset(
                {
                    token_key: session.token,
                    site_codes_key: json.dumps(session.site_codes),
                    expiry_key: session.expiry.isoformat(),
                }
            )
        except Exception as e:
            logger.warning(
                "Failed to persist session in Redis (will still use it in memory)",
                error=str(e),
            )
