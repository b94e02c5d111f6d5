from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Iterable

from viyahe.application.dto.flow_result import FlowResult, recover_unexpected
from viyahe.application.exceptions import StorageError, ValidationFailedError
from viyahe.application.state.draft_store import DraftStore
from viyahe.application.utils.pricing import make_price
from viyahe.domain.entities.draft_booking import DraftBookingStatus
from viyahe.domain.entities.flight import Airline, ExtraLeg, FlightOffer, FlightSearchParams, TripType

COMBINED_OFFER_TTL = timedelta(minutes=30)

DEFAULT_MAX_PRICE_RANGE = 100000
DEFAULT_MAX_DURATION_RANGE = 1200


class FlightSortOption(str, Enum):
    best_value = "best_value"
    price_low = "price_low"
    price_high = "price_high"
    duration_short = "duration_short"
    duration_long = "duration_long"
    departure_early = "departure_early"
    departure_late = "departure_late"


@dataclass(frozen=True)
class FlightFilters:
    """Result filters. None means no limit; a negative max_stops also means any."""

    max_price: int | None = None  # price_with_markup, smallest currency unit
    max_stops: int | None = None
    max_duration: int | None = None  # minutes, applied to every slice
    airlines: tuple[str, ...] = ()  # IATA codes


def total_duration(offer: FlightOffer) -> int:
    return sum(s.duration for s in offer.slices)


def filter_offers(offers: Iterable[FlightOffer], filters: FlightFilters) -> list[FlightOffer]:
    result = list(offers)
    if filters.max_stops is not None and filters.max_stops >= 0:
        result = [o for o in result if all(s.stops <= filters.max_stops for s in o.slices)]
    if filters.max_price is not None:
        result = [o for o in result if o.price_with_markup.amount <= filters.max_price]
    if filters.max_duration is not None:
        result = [o for o in result if all(s.duration <= filters.max_duration for s in o.slices)]
    if filters.airlines:
        wanted = set(filters.airlines)
        result = [
            o
            for o in result
            if any(seg.airline.iata_code in wanted for s in o.slices for seg in s.segments)
        ]
    return result


def sort_offers(offers: Iterable[FlightOffer], option: FlightSortOption | str = FlightSortOption.best_value) -> list[FlightOffer]:
    """Stable sort; best_value scores price in major units plus total minutes, lower first."""
    option = FlightSortOption(option)
    if option == FlightSortOption.price_low:
        return sorted(offers, key=lambda o: o.price_with_markup.amount)
    if option == FlightSortOption.price_high:
        return sorted(offers, key=lambda o: o.price_with_markup.amount, reverse=True)
    if option == FlightSortOption.duration_short:
        return sorted(offers, key=total_duration)
    if option == FlightSortOption.duration_long:
        return sorted(offers, key=total_duration, reverse=True)
    if option == FlightSortOption.departure_early:
        return sorted(offers, key=lambda o: o.slices[0].departure_time)
    if option == FlightSortOption.departure_late:
        return sorted(offers, key=lambda o: o.slices[0].departure_time, reverse=True)
    return sorted(offers, key=lambda o: o.price_with_markup.amount / 100 + total_duration(o))


def available_airlines(offers: Iterable[FlightOffer]) -> list[Airline]:
    """Distinct operating airlines across all segments, sorted by name."""
    seen: dict[str, Airline] = {}
    for offer in offers:
        for flight_slice in offer.slices:
            for segment in flight_slice.segments:
                seen.setdefault(segment.airline.iata_code, segment.airline)
    return sorted(seen.values(), key=lambda a: a.name)


def max_price_range(offers: list[FlightOffer]) -> int:
    """Highest marked-up price rounded up to the next 100.00, for the price filter's upper bound."""
    if not offers:
        return DEFAULT_MAX_PRICE_RANGE
    highest = max(o.price_with_markup.amount for o in offers)
    return math.ceil(highest / 10000) * 10000


def max_duration_range(offers: list[FlightOffer]) -> int:
    if not offers:
        return DEFAULT_MAX_DURATION_RANGE
    longest = max(s.duration for o in offers for s in o.slices)
    return math.ceil(longest / 60) * 60


def build_legs(params: FlightSearchParams) -> list[ExtraLeg]:
    """Legs of a multi-city search; the main origin/destination is always the first leg."""
    if params.trip_type != TripType.multi_city:
        return []
    first = ExtraLeg(origin=params.origin, destination=params.destination, date=params.departure_date)
    return [first, *params.additional_legs]


def leg_search_params(params: FlightSearchParams, leg: ExtraLeg) -> FlightSearchParams:
    """Each multi-city leg is searched as its own one-way trip."""
    return FlightSearchParams(
        trip_type=TripType.one_way,
        origin=leg.origin,
        destination=leg.destination,
        departure_date=leg.date,
        passengers=params.passengers,
        cabin_class=params.cabin_class,
    )


def combine_leg_offers(
    offers: list[FlightOffer],
    params: FlightSearchParams,
    now: datetime | None = None,
    offer_id: str | None = None,
) -> FlightOffer:
    """Merge per-leg offers into one synthetic offer: slices in leg order, prices summed."""
    if not offers:
        raise ValidationFailedError("Select a flight for every leg before continuing")
    currencies = {offer.total_price.currency for offer in offers}
    if len(currencies) != 1:
        raise ValidationFailedError("All legs must be priced in the same currency")
    currency = currencies.pop()
    now = now or datetime.now(timezone.utc)

    return FlightOffer(
        id=offer_id or f"combined_{uuid.uuid4().hex[:12]}",
        slices=tuple(flight_slice for offer in offers for flight_slice in offer.slices),
        total_price=make_price(sum(o.total_price.amount for o in offers), currency),
        base_price=make_price(sum(o.base_price.amount for o in offers), currency),
        taxes_and_fees=make_price(sum(o.taxes_and_fees.amount for o in offers), currency),
        price_with_markup=make_price(sum(o.price_with_markup.amount for o in offers), currency),
        passengers=params.passengers,
        cabin_class=params.cabin_class,
        refundable=all(o.refundable for o in offers),
        fare_rules=offers[0].fare_rules,
        expires_at=now + COMBINED_OFFER_TTL,
    )


@dataclass
class MultiCitySelection:
    """Per-leg choices while the user picks one flight for each leg in turn."""

    legs: list[ExtraLeg]
    selections: list[FlightOffer | None] = field(default_factory=list)
    current_leg_index: int = 0

    def __post_init__(self) -> None:
        if not self.selections:
            self.selections = [None] * len(self.legs)

    @property
    def current_leg(self) -> ExtraLeg | None:
        if 0 <= self.current_leg_index < len(self.legs):
            return self.legs[self.current_leg_index]
        return None

    @property
    def all_selected(self) -> bool:
        return bool(self.legs) and all(s is not None for s in self.selections)

    @property
    def total_price(self) -> int:
        return sum(s.price_with_markup.amount for s in self.selections if s is not None)

    def go_to_leg(self, index: int) -> None:
        if not 0 <= index < len(self.legs):
            raise IndexError(f"Leg {index} does not exist")
        self.current_leg_index = index

    def select(self, offer: FlightOffer) -> None:
        """Record the offer for the current leg, then move to the next leg still missing a flight."""
        self.selections[self.current_leg_index] = offer
        for index in range(self.current_leg_index + 1, len(self.legs)):
            if self.selections[index] is None:
                self.current_leg_index = index
                return
        for index, selection in enumerate(self.selections):
            if selection is None:
                self.current_leg_index = index
                return


class FlightSelectionUseCase:
    def __init__(
        self,
        drafts: DraftStore,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._drafts = drafts
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logger = logging.getLogger(__name__)

    @recover_unexpected("Could not load your booking. Please try again.")
    def open(self, draft_id: str) -> FlowResult:
        draft = self._drafts.get_draft(draft_id)
        if draft is None or draft.search_params is None:
            return FlowResult(action="error", draft_id=draft_id, message="No search found. Please search for flights first.")
        if draft.status == DraftBookingStatus.searching:
            try:
                self._drafts.set_status(draft_id, DraftBookingStatus.selecting)
            except StorageError as e:
                self._logger.error("Could not open selection", extra={"draft_id": draft_id, "error": str(e)})
                return FlowResult(action="error", draft_id=draft_id, message="Could not load your booking. Please try again.")
        return FlowResult(action="stay", draft_id=draft_id)

    @recover_unexpected("Could not save your flight. Please try again.")
    def choose_flight(self, draft_id: str, offer: FlightOffer) -> FlowResult:
        """Single-itinerary selection: the chosen offer goes straight onto the draft."""
        draft = self._drafts.get_draft(draft_id)
        if draft is None or draft.search_params is None:
            return FlowResult(action="error", draft_id=draft_id, message="No search found. Please search for flights first.")
        if draft.status == DraftBookingStatus.submitted:
            return FlowResult(action="error", draft_id=draft_id, message="This booking has already been submitted.")
        return self._store_flight(draft_id, offer)

    def start_multi_city(self, draft_id: str) -> MultiCitySelection:
        draft = self._drafts.get_draft(draft_id)
        if draft is None or draft.search_params is None:
            raise ValidationFailedError("No search found. Please search for flights first.")
        legs = build_legs(draft.search_params)
        if len(legs) < 2:
            raise ValidationFailedError("A multi-city search needs at least two legs")
        return MultiCitySelection(legs=legs)

    @recover_unexpected("Could not save your flight. Please try again.")
    def continue_multi_city(self, draft_id: str, selection: MultiCitySelection) -> FlowResult:
        draft = self._drafts.get_draft(draft_id)
        if draft is None or draft.search_params is None:
            return FlowResult(action="error", draft_id=draft_id, message="No search found. Please search for flights first.")
        if not selection.all_selected:
            return FlowResult(action="error", draft_id=draft_id, message="Select a flight for every leg before continuing.")
        try:
            combined = combine_leg_offers(
                [s for s in selection.selections if s is not None],
                draft.search_params,
                now=self._clock(),
            )
        except ValidationFailedError as e:
            return FlowResult(action="error", draft_id=draft_id, message=str(e))
        return self._store_flight(draft_id, combined)

    @recover_unexpected("Could not update your booking. Please try again.")
    def change_flight(self, draft_id: str) -> FlowResult:
        """Drop the selected flight (and the passengers entered for it) and go back to results."""
        try:
            if not self._drafts.clear_selected_flight(draft_id):
                return FlowResult(action="error", draft_id=draft_id, message="Booking not found.")
        except StorageError as e:
            self._logger.error("Could not clear flight", extra={"draft_id": draft_id, "error": str(e)})
            return FlowResult(action="error", draft_id=draft_id, message="Could not update your booking. Please try again.")
        return FlowResult(action="go_to_selection", draft_id=draft_id)

    def _store_flight(self, draft_id: str, offer: FlightOffer) -> FlowResult:
        try:
            self._drafts.set_selected_flight(draft_id, offer)
        except StorageError as e:
            self._logger.error("Could not store flight", extra={"draft_id": draft_id, "error": str(e)})
            return FlowResult(action="error", draft_id=draft_id, message="Could not save your flight. Please try again.")
        self._logger.info("Flight selected", extra={"draft_id": draft_id, "action": "go_to_booking"})
        return FlowResult(action="go_to_booking", draft_id=draft_id)
