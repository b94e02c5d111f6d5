"""
Tests for search submission and flight selection, including multi-city legs.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from viyahe.application.exceptions import ValidationFailedError
from viyahe.application.state.draft_store import DraftStore
from viyahe.application.use_cases.flight_selection import (
    FlightFilters,
    FlightSelectionUseCase,
    FlightSortOption,
    MultiCitySelection,
    available_airlines,
    combine_leg_offers,
    filter_offers,
    max_duration_range,
    max_price_range,
    sort_offers,
)
from viyahe.application.use_cases.search_flights import SearchFlightsUseCase
from viyahe.domain.entities.draft_booking import DraftBookingStatus
from viyahe.domain.entities.flight import Airline, ExtraLeg, FlightSearchParams, TripType
from viyahe.infrastructure.store.memory_draft_storage import MemoryDraftStorage

from tests.factories import BASE_TIME, FakeClock, SequentialIds, make_offer

MULTI_CITY_FORM = {
    "trip_type": "multi_city",
    "origin": "JFK",
    "destination": "LAX",
    "departure_date": "2026-03-15",
    "passengers": 2,
    "cabin_class": "business",
    "additional_legs": [
        {"origin": "LAX", "destination": "SFO", "date": "2026-03-18"},
        {"origin": "SFO", "destination": "JFK", "date": "2026-03-21"},
    ],
}


def _drafts() -> DraftStore:
    return DraftStore(MemoryDraftStorage(), clock=FakeClock(), id_factory=SequentialIds("draft"))


def _multi_city_params() -> FlightSearchParams:
    return FlightSearchParams(
        trip_type=TripType.multi_city,
        origin="JFK",
        destination="LAX",
        departure_date="2026-03-15",
        passengers=2,
        additional_legs=(
            ExtraLeg("LAX", "SFO", "2026-03-18"),
            ExtraLeg("SFO", "JFK", "2026-03-21"),
        ),
    )


def test_search_creates_active_draft():
    drafts = _drafts()
    result = SearchFlightsUseCase(drafts).submit(
        {"trip_type": "one_way", "origin": "jfk", "destination": "LAX", "departure_date": "2026-03-15"}
    )

    assert result.action == "go_to_selection"
    draft = drafts.get_draft(result.draft_id)
    assert drafts.active_booking_id == result.draft_id
    assert draft.search_params.origin == "JFK"
    assert draft.status == DraftBookingStatus.searching


def test_search_reuses_active_draft():
    drafts = _drafts()
    use_case = SearchFlightsUseCase(drafts)
    first = use_case.submit({"trip_type": "one_way", "origin": "JFK", "destination": "LAX", "departure_date": "2026-03-15"})
    second = use_case.submit({"trip_type": "one_way", "origin": "JFK", "destination": "SFO", "departure_date": "2026-03-15"})

    assert first.draft_id == second.draft_id
    assert len(drafts.bookings) == 1
    assert drafts.get_draft(first.draft_id).search_params.destination == "SFO"


def test_invalid_search_changes_nothing():
    """Validation errors are reported per field and no draft is created."""
    drafts = _drafts()
    result = SearchFlightsUseCase(drafts).submit(
        {"trip_type": "round_trip", "origin": "JFK", "destination": "LAX", "departure_date": "2026-03-15"}
    )

    assert result.action == "error"
    assert result.message == "Return date is required for round-trip flights"
    assert result.field_errors["search"]
    assert drafts.bookings == ()


def test_search_rejects_same_airports_and_bad_codes():
    drafts = _drafts()
    use_case = SearchFlightsUseCase(drafts)

    same = use_case.submit({"trip_type": "one_way", "origin": "JFK", "destination": "JFK", "departure_date": "2026-03-15"})
    assert same.message == "Origin and destination must be different"

    bad = use_case.submit({"trip_type": "one_way", "origin": "JF", "destination": "LAX", "departure_date": "2026-03-15"})
    assert bad.field_errors["search"]["origin"] == "Origin must be a 3-letter airport code"


def test_open_moves_searching_to_selecting():
    drafts = _drafts()
    result = SearchFlightsUseCase(drafts).submit(MULTI_CITY_FORM)
    FlightSelectionUseCase(drafts).open(result.draft_id)
    assert drafts.get_draft(result.draft_id).status == DraftBookingStatus.selecting


def test_choose_flight_moves_to_filling():
    drafts = _drafts()
    draft_id = SearchFlightsUseCase(drafts).submit(
        {"trip_type": "one_way", "origin": "JFK", "destination": "LAX", "departure_date": "2026-03-15"}
    ).draft_id
    selection = FlightSelectionUseCase(drafts)
    selection.open(draft_id)

    result = selection.choose_flight(draft_id, make_offer())
    assert result.action == "go_to_booking"
    draft = drafts.get_draft(draft_id)
    assert draft.selected_flight.id == "offer-1"
    assert draft.status == DraftBookingStatus.filling


def test_choose_flight_without_search_errors():
    drafts = _drafts()
    draft_id = drafts.create_draft()
    assert FlightSelectionUseCase(drafts).choose_flight(draft_id, make_offer()).action == "error"


def test_combined_offer_sums_prices_and_concatenates_segments():
    """Three legs priced 100, 200 and 300 combine into one offer priced 600."""
    offers = [
        make_offer("leg-a", amount=100, origin="JFK", destination="LAX"),
        make_offer("leg-b", amount=200, origin="LAX", destination="SFO"),
        make_offer("leg-c", amount=300, origin="SFO", destination="JFK"),
    ]
    combined = combine_leg_offers(offers, _multi_city_params(), now=BASE_TIME)

    assert combined.total_price.amount == 600
    assert combined.segments == offers[0].segments + offers[1].segments + offers[2].segments
    assert combined.base_price.amount == sum(o.base_price.amount for o in offers)
    assert combined.taxes_and_fees.amount == sum(o.taxes_and_fees.amount for o in offers)
    assert combined.price_with_markup.amount == sum(o.price_with_markup.amount for o in offers)
    assert combined.passengers == 2
    assert combined.expires_at == BASE_TIME + timedelta(minutes=30)
    assert combined.id.startswith("combined_")


def test_combined_offer_refundable_only_if_all_legs_are():
    params = _multi_city_params()
    refundable = [make_offer("a", refundable=True, fare_rules=("No changes",)), make_offer("b", refundable=True)]
    mixed = [make_offer("a", refundable=True), make_offer("b", refundable=False)]

    combined = combine_leg_offers(refundable, params)
    assert combined.refundable is True
    assert combined.fare_rules == ("No changes",)
    assert combine_leg_offers(mixed, params).refundable is False


def test_combined_offer_rejects_mixed_currencies():
    with pytest.raises(ValidationFailedError):
        combine_leg_offers([make_offer("a"), make_offer("b", currency="EUR")], _multi_city_params())


def test_multi_city_selection_advances_to_next_unselected_leg():
    drafts = _drafts()
    draft_id = SearchFlightsUseCase(drafts).submit(MULTI_CITY_FORM).draft_id
    selection = FlightSelectionUseCase(drafts).start_multi_city(draft_id)

    assert [(leg.origin, leg.destination) for leg in selection.legs] == [("JFK", "LAX"), ("LAX", "SFO"), ("SFO", "JFK")]
    selection.go_to_leg(1)
    selection.select(make_offer("leg-b", amount=200))
    assert selection.current_leg_index == 2
    selection.select(make_offer("leg-c", amount=300))
    assert selection.current_leg_index == 0
    assert not selection.all_selected
    selection.select(make_offer("leg-a", amount=100))
    assert selection.all_selected


def test_multi_city_not_stored_until_every_leg_selected():
    drafts = _drafts()
    draft_id = SearchFlightsUseCase(drafts).submit(MULTI_CITY_FORM).draft_id
    use_case = FlightSelectionUseCase(drafts, clock=lambda: BASE_TIME)
    selection = use_case.start_multi_city(draft_id)

    selection.select(make_offer("leg-a", amount=100))
    assert use_case.continue_multi_city(draft_id, selection).action == "error"
    assert drafts.get_draft(draft_id).selected_flight is None

    selection.select(make_offer("leg-b", amount=200))
    selection.select(make_offer("leg-c", amount=300))
    assert selection.total_price == sum(s.price_with_markup.amount for s in selection.selections)

    result = use_case.continue_multi_city(draft_id, selection)
    assert result.action == "go_to_booking"
    assert drafts.get_draft(draft_id).selected_flight.total_price.amount == 600


def test_multi_city_selection_defaults():
    selection = MultiCitySelection(legs=[ExtraLeg("JFK", "LAX", "2026-03-15")])
    assert selection.selections == [None]
    assert selection.current_leg.origin == "JFK"


def test_change_flight_returns_to_selection():
    drafts = _drafts()
    draft_id = SearchFlightsUseCase(drafts).submit(
        {"trip_type": "one_way", "origin": "JFK", "destination": "LAX", "departure_date": "2026-03-15"}
    ).draft_id
    use_case = FlightSelectionUseCase(drafts)
    use_case.choose_flight(draft_id, make_offer())

    result = use_case.change_flight(draft_id)
    assert result.action == "go_to_selection"
    assert drafts.get_draft(draft_id).selected_flight is None


def _result(offer_id: str, amount: int, duration: int, stops: int, airline: Airline, hour: int):
    offer = make_offer(offer_id, amount=amount, departure=datetime(2026, 3, 15, hour, 0, tzinfo=timezone.utc))
    flight_slice = offer.slices[0]
    segments = tuple(replace(s, airline=airline) for s in flight_slice.segments)
    return replace(offer, slices=(replace(flight_slice, duration=duration, stops=stops, segments=segments),))


VIYAHE = Airline(iata_code="VY", name="Viyahe Air")
ISLAND = Airline(iata_code="PR", name="Philippine Airlines")

# price_with_markup 330.00 / 220.00 / 550.00
EARLY_CHEAP_SLOW = _result("b", 20000, 600, 1, ISLAND, 6)
MORNING_DIRECT = _result("a", 30000, 300, 0, VIYAHE, 8)
NOON_FAST = _result("c", 50000, 200, 0, VIYAHE, 12)
RESULTS = [MORNING_DIRECT, EARLY_CHEAP_SLOW, NOON_FAST]


def _ids(offers) -> list[str]:
    return [o.id for o in offers]


def test_sort_options():
    assert _ids(sort_offers(RESULTS)) == ["a", "c", "b"]
    assert _ids(sort_offers(RESULTS, FlightSortOption.price_low)) == ["b", "a", "c"]
    assert _ids(sort_offers(RESULTS, FlightSortOption.price_high)) == ["c", "a", "b"]
    assert _ids(sort_offers(RESULTS, "duration_short")) == ["c", "a", "b"]
    assert _ids(sort_offers(RESULTS, "duration_long")) == ["b", "a", "c"]
    assert _ids(sort_offers(RESULTS, "departure_early")) == ["b", "a", "c"]
    assert _ids(sort_offers(RESULTS, "departure_late")) == ["c", "a", "b"]
    with pytest.raises(ValueError):
        sort_offers(RESULTS, "cheapest")


def test_filters():
    assert _ids(filter_offers(RESULTS, FlightFilters())) == ["a", "b", "c"]
    assert _ids(filter_offers(RESULTS, FlightFilters(max_stops=0))) == ["a", "c"]
    assert _ids(filter_offers(RESULTS, FlightFilters(max_stops=-1))) == ["a", "b", "c"]
    assert _ids(filter_offers(RESULTS, FlightFilters(max_price=40000))) == ["a", "b"]
    assert _ids(filter_offers(RESULTS, FlightFilters(max_duration=400))) == ["a", "c"]
    assert _ids(filter_offers(RESULTS, FlightFilters(airlines=("PR",)))) == ["b"]
    assert filter_offers(RESULTS, FlightFilters(max_stops=0, max_price=40000)) == [MORNING_DIRECT]


def test_result_ranges_and_airlines():
    assert [a.iata_code for a in available_airlines(RESULTS)] == ["PR", "VY"]
    assert max_price_range(RESULTS) == 60000
    assert max_duration_range(RESULTS) == 600
    assert max_price_range([]) == 100000
    assert max_duration_range([]) == 1200
