"""Command input validation.

Every command that carries user input is checked here before it reaches
the ledger. Failures are reported as a single
:class:`~folio.core.exceptions.InputValidationError` listing each
offending field, so a form can highlight all of them at once.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Mapping
from typing import Annotated, Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from folio.core.exceptions import InputValidationError
from folio.portfolio.models import CURRENCIES, Sector, TransactionType

_Model = TypeVar("_Model", bound=BaseModel)

PositiveAmount = Annotated[float, Field(gt=0, allow_inf_nan=False)]


def _normalize_ticker(value: str) -> str:
    ticker = value.replace("$", "").strip().upper()
    if not ticker:
        raise ValueError("ticker cannot be empty")
    if any(ch.isspace() for ch in ticker):
        raise ValueError("ticker cannot contain whitespace")
    return ticker


def _normalize_currency(value: str) -> str:
    currency = value.strip().upper()
    if currency not in CURRENCIES:
        raise ValueError(f"currency must be one of {', '.join(CURRENCIES)}")
    return currency


class PositionInput(BaseModel):
    """Fields required to open a new position."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    ticker: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=120)
    shares: PositiveAmount
    avg_price: PositiveAmount
    current_price: PositiveAmount
    sector: Sector = Sector.TECHNOLOGY
    currency: str = "USD"

    @field_validator("ticker")
    @classmethod
    def _check_ticker(cls, v: str) -> str:
        return _normalize_ticker(v)

    @field_validator("currency")
    @classmethod
    def _check_currency(cls, v: str) -> str:
        return _normalize_currency(v)


class TransactionInput(BaseModel):
    """A buy or sell to append to a position's log (the id is assigned later)."""

    model_config = ConfigDict(extra="forbid")

    type: TransactionType
    shares: PositiveAmount
    price: PositiveAmount
    date: dt.date = Field(default_factory=dt.date.today)


class PositionUpdate(BaseModel):
    """Partial update of a position's descriptive or price fields.

    Only fields explicitly provided are applied. ``shares`` and
    ``avg_price`` are accepted structurally but the ledger refuses them
    for positions whose values come from a transaction log.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    ticker: str | None = Field(default=None, min_length=1, max_length=20)
    name: str | None = Field(default=None, min_length=1, max_length=120)
    sector: Sector | None = None
    currency: str | None = None
    shares: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    avg_price: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    current_price: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    open_price: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    previous_close: float | None = Field(default=None, ge=0, allow_inf_nan=False)

    @field_validator("ticker")
    @classmethod
    def _check_ticker(cls, v: str | None) -> str | None:
        return None if v is None else _normalize_ticker(v)

    @field_validator("currency")
    @classmethod
    def _check_currency(cls, v: str | None) -> str | None:
        return None if v is None else _normalize_currency(v)

    def changes(self) -> dict[str, Any]:
        """The explicitly provided, non-null fields."""
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


def _field_errors(error: ValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for item in error.errors():
        name = ".".join(str(part) for part in item["loc"]) or "input"
        message = item["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        errors.setdefault(name, message)
    return errors


def validate_input(model: type[_Model], data: _Model | Mapping[str, Any]) -> _Model:
    """Coerce ``data`` into ``model`` or raise a per-field validation error."""
    if isinstance(data, model):
        return data
    if not isinstance(data, Mapping):
        raise InputValidationError({"input": f"expected a mapping, got {type(data).__name__}"})
    try:
        return model.model_validate(dict(data))
    except ValidationError as e:
        raise InputValidationError(_field_errors(e)) from e
