"""API clients package."""

from avirato_dashboard.clients.avirato_api_client import (
    AviratoAPIClient,
    AviratoAPIClientError,
    AviratoAuthenticationError,
    AviratoAuthExpiredError,
    AviratoClientError,
    AviratoNotAuthenticatedError,
    AviratoNotFoundError,
    AviratoServerError,
    AviratoTimeoutError,
    AviratoTransportError,
)
from avirato_dashboard.clients.session_store import SessionStore

__all__ = [
    "AviratoAPIClient",
    "AviratoAPIClientError",
    "AviratoAuthenticationError",
    "AviratoAuthExpiredError",
    "AviratoClientError",
    "AviratoNotAuthenticatedError",
    "AviratoNotFoundError",
    "AviratoServerError",
    "AviratoTimeoutError",
    "AviratoTransportError",
    "SessionStore",
]
