"""Pydantic models for Avirato reference lookups (operators, régimes, spaces, extras, bills)."""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Operator(BaseModel):
    """Sales channel / booking source."""

    id: int = Field(validation_alias=AliasChoices("operator_id", "operatorId", "id"))
    name: str = Field(validation_alias=AliasChoices("name", "operator_name", "operatorName", "description"))

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Regime(BaseModel):
    """Meal-plan (board type) definition."""

    code: str = Field(validation_alias=AliasChoices("code", "regime", "regime_code", "regimeCode", "id"))
    name: str = Field(validation_alias=AliasChoices("name", "regime_name", "regimeName", "description"))

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("code", mode="before")
    @classmethod
    def stringify_code(cls, v):
        """Régime codes are matched as strings against reservations."""
        return v if isinstance(v, str) else str(v)


class SpaceSubtype(BaseModel):
    """Bookable unit typology (room / villa type)."""

    id: int = Field(
        validation_alias=AliasChoices("space_subtype_id", "spaceSubtypeId", "subtype_id", "id")
    )
    name: str = Field(validation_alias=AliasChoices("name", "space_subtype_name", "spaceSubtypeName"))

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Extra(BaseModel):
    """Optional add-on service from the extras catalog."""

    id: int = Field(validation_alias=AliasChoices("extra_id", "extraId", "id"))
    name: str = Field(validation_alias=AliasChoices("name", "extra_name", "extraName", "description"))
    price: float = 0.0

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("price", mode="before")
    @classmethod
    def null_price_as_zero(cls, v):
        return 0.0 if v is None else v


class Invoice(BaseModel):
    """Billing record attached to a reservation."""

    bill_id: Optional[int] = Field(None, validation_alias=AliasChoices("bill_id", "billId"))
    bill_number: Optional[str] = Field(None, validation_alias=AliasChoices("bill_number", "billNumber"))
    reservation_id: Optional[int] = Field(
        None, validation_alias=AliasChoices("reservation_id", "reservationId")
    )
    total: float = 0.0
    cash: float = 0.0
    card: float = 0.0
    wire_transfer: float = Field(default=0.0, validation_alias=AliasChoices("wire_transfer", "wireTransfer"))
    type: Optional[str] = None

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("bill_number", mode="before")
    @classmethod
    def stringify_bill_number(cls, v):
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("total", "cash", "card", "wire_transfer", mode="before")
    @classmethod
    def null_amount_as_zero(cls, v):
        return 0.0 if v is None else v


class ReferenceData(BaseModel):
    """Lookup maps used to resolve display names onto reservations.

    Any map may be empty when its lookup failed; resolution then falls back to
    deterministic labels.
    """

    operators: dict[int, str] = Field(default_factory=dict)
    regimes: dict[str, str] = Field(default_factory=dict)
    space_subtypes: dict[int, str] = Field(default_factory=dict)
    extras: dict[int, str] = Field(default_factory=dict)
