"""Pydantic models for Avirato API reservation records.

The reservation listing has gone through several schema revisions that send the
same field as snake_case or camelCase. Both spellings are accepted here, once,
so the rest of the package reads canonical attribute names only.

Only the reservation id and the stay dates can make a record unusable. Any
other field the API sends in an unexpected shape is logged and replaced by its
default, so the booking still reaches the dashboard.
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from structlog import get_logger

logger = get_logger(__name__)

_TRUE_STRINGS = {"1", "true", "yes", "y", "si", "sí", "on"}
_FALSE_STRINGS = {"0", "false", "no", "n", "off"}


def _either(snake: str, camel: str, *others: str) -> AliasChoices:
    return AliasChoices(snake, camel, *others)


def parse_calendar_date(value: Any) -> date:
    """Reduce an API date value to its calendar date.

    Accepts ``YYYY-MM-DD``, ``YYYY-MM-DD HH:MM:SS`` and ISO 8601 strings with a
    ``T`` separator; only the date portion is significant.

    Raises:
        ValueError: If the value is empty or not a recognisable date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected a date string, got {value!r}")
    raw = value.strip().replace("T", " ").split(" ")[0]
    try:
        return date.fromisoformat(raw)
    except ValueError as e:
        raise ValueError(f"Unparseable date {value!r}") from e


def _parse_whole_number(value: Any) -> Optional[int]:
    """Integer held by ``value``, or None when it is not a whole number."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if number.is_integer() else None
    return None


def _parse_amount(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _parse_flag(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return None


def _with_fallback(parser, value: Any, fallback: Any, info: ValidationInfo) -> Any:
    """Run ``parser`` on a raw field value, logging and using ``fallback`` when it fails.

    Missing values (None or an empty string) take the fallback silently.
    """
    if value is None or value == "":
        return fallback
    parsed = parser(value)
    if parsed is None:
        logger.warning(
            "Unparseable reservation field, using fallback",
            field=info.field_name,
            value=repr(value),
            fallback=fallback,
            reservation_id=info.data.get("reservation_id"),
        )
        return fallback
    return parsed


class ReservationClient(BaseModel):
    """Inline client sub-record attached to a reservation."""

    name: Optional[str] = None
    surname: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    observations: Optional[str] = None
    client_doc: Optional[str] = Field(None, validation_alias=_either("client_doc", "clientDoc"))

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def stringify(cls, v):
        """Phones and documents are sometimes sent as numbers."""
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @property
    def full_name(self) -> Optional[str]:
        """``name surname`` when both are present."""
        if self.name and self.surname:
            return f"{self.name} {self.surname}"
        return None


class ChargeLine(BaseModel):
    """A charge or predefined charge line, optionally pointing at an extra."""

    extra_id: Optional[int] = Field(None, validation_alias=_either("extra_id", "extraId", "id_extra"))
    quantity: int = Field(default=1, validation_alias=AliasChoices("quantity", "amount_units", "units"))

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("extra_id", mode="before")
    @classmethod
    def lenient_extra_id(cls, v, info: ValidationInfo):
        return _with_fallback(_parse_whole_number, v, None, info)

    @field_validator("quantity", mode="before")
    @classmethod
    def default_quantity(cls, v, info: ValidationInfo):
        """Missing, null or fractional quantities count as one unit."""
        return _with_fallback(_parse_whole_number, v, 1, info)


class Reservation(BaseModel):
    """Canonical reservation record from the reservation listing."""

    reservation_id: int = Field(validation_alias=_either("reservation_id", "reservationId"))
    check_in_date: date = Field(validation_alias=_either("check_in_date", "checkInDate"))
    check_out_date: date = Field(validation_alias=_either("check_out_date", "checkOutDate"))

    adults: int = 0
    children: int = 0
    additional_beds: int = Field(default=0, validation_alias=_either("additional_beds", "additionalBeds"))

    price: float = 0.0
    regime: Optional[str] = None
    rate_id: Optional[int] = Field(None, validation_alias=_either("rate_id", "rateId"))
    promotional_code: Optional[str] = Field(
        None, validation_alias=_either("promotional_code", "promotionalCode")
    )
    status: str = ""

    space_id: Optional[int] = Field(None, validation_alias=_either("space_id", "spaceId"))
    space_type_id: Optional[int] = Field(None, validation_alias=_either("space_type_id", "spaceTypeId"))
    space_subtype_id: Optional[int] = Field(
        None, validation_alias=_either("space_subtype_id", "spaceSubtypeId")
    )
    operator_id: Optional[int] = Field(None, validation_alias=_either("operator_id", "operatorId"))
    operator_reservation_id: Optional[str] = Field(
        None, validation_alias=_either("operator_reservation_id", "operatorReservationId")
    )
    master_reservation_id: Optional[int] = Field(
        None, validation_alias=_either("master_reservation_id", "masterReservationId")
    )

    is_paid: Optional[bool] = Field(None, validation_alias=_either("is_paid", "isPaid"))
    observations: Optional[str] = None
    created_at: Optional[str] = Field(None, validation_alias=_either("created_at", "createdAt"))

    client: Optional[ReservationClient] = None
    client_id: Optional[str] = Field(None, validation_alias=_either("client_id", "clientId"))
    client_name: Optional[str] = Field(None, validation_alias=_either("client_name", "clientName"))

    charges: list[ChargeLine] = Field(default_factory=list)
    predefined_charges: list[ChargeLine] = Field(
        default_factory=list,
        validation_alias=_either("predefined_charges", "predefinedCharges"),
    )

    # Derived during enrichment, never read from the API
    operator_name: Optional[str] = None
    regime_name: Optional[str] = None
    space_type_name: Optional[str] = None
    extras_text: Optional[str] = None
    billing_total: Optional[float] = None
    is_fully_paid: Optional[bool] = None

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("check_in_date", "check_out_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        """Keep only the date portion of date/datetime strings."""
        return parse_calendar_date(v)

    @field_validator(
        "client_id",
        "operator_reservation_id",
        "regime",
        "promotional_code",
        "observations",
        "created_at",
        "client_name",
        mode="before",
    )
    @classmethod
    def stringify_identifier(cls, v):
        """Identifiers and free text arrive as either numbers or strings."""
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator(
        "rate_id",
        "space_id",
        "space_type_id",
        "space_subtype_id",
        "operator_id",
        "master_reservation_id",
        mode="before",
    )
    @classmethod
    def lenient_reference_id(cls, v, info: ValidationInfo):
        """Unreadable reference ids become None and resolve to fallback labels."""
        return _with_fallback(_parse_whole_number, v, None, info)

    @field_validator("adults", "children", "additional_beds", mode="before")
    @classmethod
    def lenient_count(cls, v, info: ValidationInfo):
        """Null or unreadable counts are treated as zero."""
        return _with_fallback(_parse_whole_number, v, 0, info)

    @field_validator("price", mode="before")
    @classmethod
    def lenient_price(cls, v, info: ValidationInfo):
        return _with_fallback(_parse_amount, v, 0.0, info)

    @field_validator("is_paid", mode="before")
    @classmethod
    def lenient_is_paid(cls, v, info: ValidationInfo):
        return _with_fallback(_parse_flag, v, None, info)

    @field_validator("client", mode="before")
    @classmethod
    def empty_client_as_none(cls, v, info: ValidationInfo):
        """Some schema versions send ``{}`` or ``[]`` for a missing client."""
        if not v:
            return None
        if not isinstance(v, dict):
            logger.warning(
                "Unreadable client sub-record, ignoring it",
                value=repr(v),
                reservation_id=info.data.get("reservation_id"),
            )
            return None
        return v

    @field_validator("charges", "predefined_charges", mode="before")
    @classmethod
    def null_as_empty(cls, v, info: ValidationInfo):
        """Null charge collections are treated as empty; non-object lines are dropped."""
        if not v:
            return []
        if not isinstance(v, list):
            logger.warning(
                "Charge collection is not a list, ignoring it",
                field=info.field_name,
                reservation_id=info.data.get("reservation_id"),
            )
            return []
        lines = [line for line in v if isinstance(line, dict)]
        if len(lines) != len(v):
            logger.warning(
                "Dropping unreadable charge lines",
                field=info.field_name,
                dropped=len(v) - len(lines),
                reservation_id=info.data.get("reservation_id"),
            )
        return lines

    @field_validator("status", mode="before")
    @classmethod
    def null_status_as_empty(cls, v):
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @property
    def nights(self) -> int:
        """Number of nights in the stay."""
        return (self.check_out_date - self.check_in_date).days

    @property
    def guest_count(self) -> int:
        return self.adults + self.children


class PageMeta(BaseModel):
    """Cursor metadata returned by paginated endpoints."""

    take: Optional[int] = None
    item_count: Optional[int] = Field(None, validation_alias=_either("item_count", "itemCount"))
    item_remaining: Optional[int] = Field(
        None, validation_alias=_either("item_remaining", "itemRemaining")
    )
    has_next_page: bool = Field(default=False, validation_alias=_either("has_next_page", "hasNextPage"))
    cursor: Optional[str] = None

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("cursor", mode="before")
    @classmethod
    def stringify_cursor(cls, v):
        """Cursors are opaque; empty values mean there is no next page."""
        if v is None or v == "":
            return None
        return str(v)


class ReservationPage(BaseModel):
    """One page of the reservation listing, with raw records still unparsed."""

    status: str = ""
    data: list[Any] = Field(default_factory=list)
    meta: PageMeta = Field(default_factory=PageMeta)

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("data", mode="before")
    @classmethod
    def null_data_as_empty(cls, v):
        return v or []

    @field_validator("meta", mode="before")
    @classmethod
    def null_meta_as_empty(cls, v):
        return v or {}
