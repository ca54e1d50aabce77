"""Avirato PMS API client for reservation retrieval and reference lookups."""

import asyncio
from typing import TYPE_CHECKING, Any, Optional

import httpx
from structlog import get_logger

from avirato_dashboard.config import settings as default_settings
from avirato_dashboard.config.settings import AviratoAPISettings

if TYPE_CHECKING:
    from avirato_dashboard.clients.session_store import SessionStore
    from avirato_dashboard.models.avirato import SiteCode

logger = get_logger(__name__)


class AviratoAPIClientError(Exception):
    """Base exception for Avirato API client errors."""

    user_message = "No se pudo completar la petición a Avirato."

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AviratoAuthenticationError(AviratoAPIClientError):
    """Raised when the login request is rejected."""

    user_message = "Credenciales incorrectas o servicio de autenticación no disponible."

    def __init__(self, message: str, *, status_code: Optional[int] = None, server_message: str = ""):
        super().__init__(message, status_code=status_code)
        self.server_message = server_message


class AviratoNotAuthenticatedError(AviratoAPIClientError):
    """Raised when an authenticated call is attempted without a valid session."""

    user_message = "No autenticado. Por favor, autentícate primero."


class AviratoAuthExpiredError(AviratoAPIClientError):
    """Raised on HTTP 401; the session has already been cleared."""

    user_message = "La sesión ha expirado. Por favor, vuelve a autenticarte."


class AviratoNotFoundError(AviratoAPIClientError):
    """Raised when a primary resource returns 404."""


class AviratoTimeoutError(AviratoAPIClientError):
    """Raised when a request exceeds its deadline."""

    user_message = "La petición ha tardado demasiado. Prueba con un rango de fechas más corto."


class AviratoServerError(AviratoAPIClientError):
    """Raised when Avirato keeps returning 5xx after retries."""


class AviratoTransportError(AviratoAPIClientError):
    """Raised when the network request itself fails after retries."""


class AviratoClientError(AviratoAPIClientError):
    """Raised on other non-2xx responses."""


class AviratoAPIClient:
    """Client for Avirato v3 API endpoints.

    Every call carries the bearer token of the injected ``SessionStore``.
    """

    LOGIN_ENDPOINT = "/token/login"
    RESERVATIONS_ENDPOINT = "/reservation/dates"
    BILLS_ENDPOINT = "/bill"
    REGIMES_ENDPOINT = "/regime"
    OPERATORS_ENDPOINT = "/channel-manager/operators"
    SPACES_ENDPOINT = "/space"
    EXTRAS_ENDPOINT = "/extra"

    def __init__(
        self,
        session_store: "SessionStore",
        api_settings: Optional[AviratoAPISettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            session_store: Source of the bearer token, cleared on 401
            api_settings: API settings, defaults to the global settings
            transport: Optional httpx transport (used by tests)
        """
        api_settings = api_settings or default_settings.avirato
        self.session_store = session_store
        self.base_url = api_settings.base_url.rstrip("/")
        self.timeout = api_settings.request_timeout
        self.lookup_timeout = api_settings.lookup_timeout
        self.max_retries = max(1, api_settings.max_retries)
        self.retry_backoff_base = 2  # Exponential backoff base
        self.transport = transport

    async def _get_headers(self) -> dict[str, str]:
        """Get default headers with the bearer token of the current session.

        Raises:
            AviratoNotAuthenticatedError: If there is no valid session
        """
        token = await self.session_store.token()
        if not token:
            raise AviratoNotAuthenticatedError("Not authenticated. Please authenticate first.")
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {token}",
        }

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict[str, Any]] = None,
        data: Optional[dict[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
        lookup: bool = False,
    ) -> Any:
        """Make an authenticated HTTP request to the Avirato API with retry logic.

        Only 5xx responses and network errors are retried; a timeout is surfaced
        straight away so the caller can ask for a narrower date range.

        Args:
            method: HTTP method
            endpoint: API endpoint path (without base URL)
            params: Query parameters
            data: Request body (JSON)
            timeout: Per-request timeout in seconds, defaults to request_timeout
            lookup: When True a 404 means "no rows" and returns an empty dict

        Returns:
            Parsed JSON body, or an empty dict for empty bodies and lookup 404s

        Raises:
            AviratoNotAuthenticatedError: If there is no valid session
            AviratoAuthExpiredError: On 401 (the session is cleared first)
            AviratoNotFoundError: On 404 for non-lookup requests
            AviratoTimeoutError: If the request exceeds its deadline
            AviratoServerError: If 5xx persists after retries
            AviratoTransportError: If the network fails after retries
            AviratoClientError: For other non-2xx responses
        """
        url = f"{self.base_url}{endpoint}"
        headers = await self._get_headers()
        timeout = timeout if timeout is not None else self.timeout

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                    response = await client.request(
                        method=method,
                        url=url,
                        headers=headers,
                        json=data,
                        params=params,
                    )

                if response.status_code == 401:
                    logger.warning(
                        "Avirato token rejected, clearing session",
                        endpoint=endpoint,
                        status_code=response.status_code,
                    )
                    await self.session_store.clear()
                    raise AviratoAuthExpiredError(
                        "Token expired. Please authenticate again.",
                        status_code=401,
                    )

                if response.status_code == 404:
                    if lookup:
                        logger.debug("Avirato lookup returned no rows", endpoint=endpoint)
                        return {}
                    logger.warning(
                        "Avirato resource not found",
                        endpoint=endpoint,
                        status_code=response.status_code,
                    )
                    raise AviratoNotFoundError(f"Resource not found: {endpoint}", status_code=404)

                if response.status_code >= 500:
                    if attempt < self.max_retries - 1:
                        wait_time = self.retry_backoff_base ** attempt
                        logger.warning(
                            "Avirato server error, retrying",
                            endpoint=endpoint,
                            status_code=response.status_code,
                            attempt=attempt + 1,
                            max_retries=self.max_retries,
                            wait_seconds=wait_time,
                        )
                        await asyncio.sleep(wait_time)
                        continue
                    logger.error(
                        "Avirato server error, max retries exceeded",
                        endpoint=endpoint,
                        status_code=response.status_code,
                    )
                    raise AviratoServerError(
                        f"Server error at {endpoint}: {response.text}",
                        status_code=response.status_code,
                    )

                if response.status_code >= 400:
                    logger.error(
                        "Avirato client error",
                        endpoint=endpoint,
                        status_code=response.status_code,
                        response_text=response.text[:200],
                    )
                    raise AviratoClientError(
                        f"Client error at {endpoint}: {response.status_code} {response.text}",
                        status_code=response.status_code,
                    )

                logger.debug(
                    "Avirato request successful",
                    endpoint=endpoint,
                    method=method,
                    status_code=response.status_code,
                )
                if response.text:
                    return response.json()
                return {}

            except httpx.TimeoutException as e:
                logger.error(
                    "Avirato request timed out",
                    endpoint=endpoint,
                    timeout_seconds=timeout,
                )
                raise AviratoTimeoutError(f"Request timeout for {endpoint}") from e

            except httpx.RequestError as e:
                if attempt < self.max_retries - 1:
                    wait_time = self.retry_backoff_base ** attempt
                    logger.warning(
                        "Avirato request error, retrying",
                        endpoint=endpoint,
                        error=str(e),
                        attempt=attempt + 1,
                        max_retries=self.max_retries,
                        wait_seconds=wait_time,
                    )
                    await asyncio.sleep(wait_time)
                    continue
                logger.error(
                    "Avirato request error, max retries exceeded",
                    endpoint=endpoint,
                    error=str(e),
                )
                raise AviratoTransportError(f"Request failed for {endpoint}: {str(e)}") from e

        raise AviratoTransportError(f"Failed to complete request to {endpoint}")

    async def list_reservations_page(
        self,
        site_code: "SiteCode",
        start_date: str,
        end_date: str,
        take: int,
        cursor: Optional[str] = None,
        include_charges: bool = True,
    ) -> dict[str, Any]:
        """Fetch one page of reservations whose check-in falls in [start_date, end_date].

        Args:
            site_code: Property web code
            start_date: ``YYYY-MM-DD``
            end_date: ``YYYY-MM-DD``
            take: Page size
            cursor: Continuation cursor of the previous page, None for the first
            include_charges: Ask the API to embed charge lines

        Returns:
            Raw page body ({status, data, meta})
        """
        params: dict[str, Any] = {
            "web_code": site_code,
            "start_date": start_date,
            "end_date": end_date,
            "charges": "true" if include_charges else "false",
            "take": take,
        }
        if cursor:
            params["cursor"] = cursor
        return await self.request("GET", self.RESERVATIONS_ENDPOINT, params=params)

    async def _lookup(self, endpoint: str, params: dict[str, Any]) -> list[Any]:
        """GET a reference endpoint and return its ``data`` rows."""
        body = await self.request(
            "GET",
            endpoint,
            params=params,
            timeout=self.lookup_timeout,
            lookup=True,
        )
        if isinstance(body, list):
            return body
        if not isinstance(body, dict):
            return []
        if body.get("status") not in (None, "success"):
            raise AviratoClientError(f"Lookup {endpoint} returned status {body.get('status')!r}")
        rows = body.get("data") or []
        return rows if isinstance(rows, list) else [rows]

    async def get_operators(self, site_code: "SiteCode") -> list[Any]:
        """Fetch the sales channel / operator list."""
        return await self._lookup(self.OPERATORS_ENDPOINT, {"web_code": site_code})

    async def get_regimes(self, site_code: "SiteCode") -> list[Any]:
        """Fetch the régime (meal plan) list."""
        return await self._lookup(self.REGIMES_ENDPOINT, {"web_code": site_code})

    async def get_spaces(self, site_code: "SiteCode") -> list[Any]:
        """Fetch the space type → subtype structure."""
        return await self._lookup(self.SPACES_ENDPOINT, {"web_code": site_code})

    async def get_extras(self, site_code: "SiteCode") -> list[Any]:
        """Fetch the extras catalog."""
        return await self._lookup(self.EXTRAS_ENDPOINT, {"web_code": site_code})

    async def get_bills(self, site_code: "SiteCode", reservation_id: int) -> list[Any]:
        """Fetch invoices for one reservation. A 404 means there are none."""
        return await self._lookup(
            self.BILLS_ENDPOINT,
            {"web_code": site_code, "reservation_id": reservation_id},
        )
