from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class TripType(str, Enum):
    one_way = "one_way"
    round_trip = "round_trip"
    multi_city = "multi_city"


class CabinClass(str, Enum):
    economy = "economy"
    premium_economy = "premium_economy"
    business = "business"
    first = "first"


@dataclass(frozen=True)
class Airport:
    iata_code: str
    name: str = ""
    city: str = ""
    country: str = ""


@dataclass(frozen=True)
class Airline:
    iata_code: str
    name: str = ""
    logo_url: str | None = None


@dataclass(frozen=True)
class FlightSegment:
    """A single flight between two airports."""

    id: str
    origin: Airport
    destination: Airport
    departure_time: datetime
    arrival_time: datetime
    duration: int  # minutes
    flight_number: str
    airline: Airline
    aircraft: str = ""
    cabin_class: CabinClass = CabinClass.economy


@dataclass(frozen=True)
class FlightSlice:
    """One directional portion of a journey, possibly with connections."""

    id: str
    origin: Airport
    destination: Airport
    departure_time: datetime
    arrival_time: datetime
    duration: int  # total minutes including layovers
    segments: tuple[FlightSegment, ...] = ()
    stops: int = 0


@dataclass(frozen=True)
class Price:
    amount: int  # smallest currency unit
    currency: str = "USD"
    display_amount: str = ""


@dataclass(frozen=True)
class FlightOffer:
    id: str
    slices: tuple[FlightSlice, ...]
    total_price: Price
    base_price: Price
    taxes_and_fees: Price
    price_with_markup: Price
    passengers: int = 1
    cabin_class: CabinClass = CabinClass.economy
    refundable: bool = False
    fare_rules: tuple[str, ...] = ()
    expires_at: datetime | None = None

    @property
    def segments(self) -> tuple[FlightSegment, ...]:
        return tuple(segment for flight_slice in self.slices for segment in flight_slice.segments)


@dataclass(frozen=True)
class ExtraLeg:
    origin: str
    destination: str
    date: str  # YYYY-MM-DD


@dataclass(frozen=True)
class FlightSearchParams:
    trip_type: TripType
    origin: str  # IATA code
    destination: str  # IATA code
    departure_date: str  # YYYY-MM-DD
    passengers: int = 1
    cabin_class: CabinClass = CabinClass.economy
    return_date: str | None = None
    additional_legs: tuple[ExtraLeg, ...] = field(default_factory=tuple)
