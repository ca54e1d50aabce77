"""Session and credential models for the Avirato login endpoint."""

from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, field_validator

SiteCode = Union[int, str]


class Credentials(BaseModel):
    """Login credentials. Never persisted."""

    email: str
    password: SecretStr

    def to_payload(self) -> dict[str, str]:
        """Body for the login request."""
        return {"email": self.email, "password": self.password.get_secret_value()}


class Session(BaseModel):
    """Authenticated session: bearer token, site codes and expiry instant."""

    token: str
    site_codes: list[SiteCode] = Field(
        default_factory=list,
        validation_alias=AliasChoices("web_codes", "webCodes", "site_codes", "siteCodes"),
    )
    expiry: datetime

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("expiry", mode="after")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Naive expiry instants are taken as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("site_codes", mode="before")
    @classmethod
    def null_as_empty(cls, v):
        return v or []

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """True iff the token is non-empty and the expiry is in the future."""
        now = now or datetime.now(timezone.utc)
        return bool(self.token) and self.expiry > now


class LoginResponse(BaseModel):
    """Body returned by ``POST /token/login``."""

    status: str = ""
    data: Optional[Session] = None

    model_config = ConfigDict(extra="allow")
