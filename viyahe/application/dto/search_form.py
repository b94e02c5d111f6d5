from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_core import PydanticCustomError

from viyahe.application.dto.errors import field_errors_from
from viyahe.application.exceptions import ValidationFailedError
from viyahe.domain.entities.flight import CabinClass, ExtraLeg, FlightSearchParams, TripType

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
IATA_RE = re.compile(r"^[A-Z]{3}$")


def _airport_code(value: str, label: str) -> str:
    code = (value or "").strip().upper()
    if not IATA_RE.match(code):
        raise PydanticCustomError("airport_code", f"{label} must be a 3-letter airport code")
    return code


def _date(value: str) -> str:
    if not DATE_RE.match(value or ""):
        raise PydanticCustomError("date_format", "Invalid date format")
    return value


class ExtraLegForm(BaseModel):
    origin: str
    destination: str
    date: str

    @field_validator("origin", "destination")
    @classmethod
    def _code(cls, value: str) -> str:
        return _airport_code(value, "Airport")

    @field_validator("date")
    @classmethod
    def _leg_date(cls, value: str) -> str:
        return _date(value)


class SearchForm(BaseModel):
    trip_type: TripType
    origin: str
    destination: str
    departure_date: str
    return_date: str | None = None
    passengers: int = Field(default=1, ge=1, le=9)
    cabin_class: CabinClass = CabinClass.economy
    additional_legs: list[ExtraLegForm] = Field(default_factory=list)

    @field_validator("origin")
    @classmethod
    def _origin(cls, value: str) -> str:
        return _airport_code(value, "Origin")

    @field_validator("destination")
    @classmethod
    def _destination(cls, value: str) -> str:
        return _airport_code(value, "Destination")

    @field_validator("departure_date")
    @classmethod
    def _departure(cls, value: str) -> str:
        return _date(value)

    @field_validator("return_date")
    @classmethod
    def _return(cls, value: str | None) -> str | None:
        if value in (None, ""):
            return None
        return _date(value)

    @model_validator(mode="after")
    def _trip_rules(self) -> "SearchForm":
        if self.trip_type == TripType.round_trip and not self.return_date:
            raise PydanticCustomError("return_required", "Return date is required for round-trip flights")
        if self.return_date and self.return_date <= self.departure_date:
            raise PydanticCustomError("return_order", "Return date must be after departure date")
        if self.origin == self.destination:
            raise PydanticCustomError("same_airports", "Origin and destination must be different")
        return self

    def to_entity(self) -> FlightSearchParams:
        legs = self.additional_legs if self.trip_type == TripType.multi_city else []
        return FlightSearchParams(
            trip_type=self.trip_type,
            origin=self.origin,
            destination=self.destination,
            departure_date=self.departure_date,
            return_date=self.return_date if self.trip_type == TripType.round_trip else None,
            passengers=self.passengers,
            cabin_class=self.cabin_class,
            additional_legs=tuple(ExtraLeg(origin=l.origin, destination=l.destination, date=l.date) for l in legs),
        )


def parse_search_params(payload: dict[str, Any]) -> FlightSearchParams:
    """Validate raw search input. Raises ValidationFailedError with the first message and all field errors."""
    try:
        form = SearchForm.model_validate(payload)
    except ValidationError as e:
        field_errors = field_errors_from(e)
        message = next(iter(field_errors.values()), "Invalid search parameters")
        raise ValidationFailedError(message, field_errors) from e
    return form.to_entity()
