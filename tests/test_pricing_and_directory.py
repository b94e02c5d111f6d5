"""
Tests for pricing helpers and the saved-passenger directory.
"""

from __future__ import annotations

import pytest

from viyahe.application.exceptions import PassengerNotFoundError, ValidationFailedError
from viyahe.application.utils.passengers import form_data_to_saved_passenger, saved_passenger_to_form_data
from viyahe.application.utils.pricing import (
    apply_markup,
    calculate_markup,
    calculate_per_passenger_price,
    calculate_total_for_passengers,
    create_price_with_markup,
    format_currency,
)
from viyahe.infrastructure.store.memory_passenger_directory import MemoryPassengerDirectory

from tests.factories import valid_form


def test_markup_and_formatting():
    assert calculate_markup(10000, 10) == 1000
    assert apply_markup(10000, 10) == 11000
    assert format_currency(123450, "USD") == "$1,234.50"
    assert format_currency(5000, "CAD") == "CAD 50.00"

    original, marked_up = create_price_with_markup(20000, "USD", 15)
    assert original.amount == 20000
    assert marked_up.amount == 23000
    assert marked_up.display_amount == "$230.00"


def test_per_passenger_totals():
    assert calculate_total_for_passengers(12500, 3) == 37500
    assert calculate_per_passenger_price(37500, 3) == 12500
    assert calculate_per_passenger_price(100, 0) == 0


def test_directory_search_and_sorting():
    directory = MemoryPassengerDirectory("org-001", "user-001")
    directory.create(form_data_to_saved_passenger(valid_form("Ana", "Reyes", "ana@example.com")))
    directory.create(form_data_to_saved_passenger(valid_form("Ben", "Cruz", "ben@corp.example")))
    directory.create(form_data_to_saved_passenger(valid_form("Alma", "Cruz", "alma@example.com")))

    assert [p.first_name for p in directory.list()] == ["Alma", "Ben", "Ana"]
    assert [p.first_name for p in directory.list("corp")] == ["Ben"]
    assert [p.first_name for p in directory.list("reyes")] == ["Ana"]


def test_directory_round_trips_form_data():
    directory = MemoryPassengerDirectory("org-001", "user-001")
    saved = directory.create(form_data_to_saved_passenger(valid_form()))

    assert saved.organization_id == "org-001"
    assert saved.created_by == "user-001"
    assert saved_passenger_to_form_data(saved) == valid_form()


def test_directory_update_keeps_identity():
    directory = MemoryPassengerDirectory("org-001", "user-001")
    saved = directory.create(form_data_to_saved_passenger(valid_form()))

    updated = directory.update(saved.id, {"phone": "+15555550199", "id": "hijack"})
    assert updated.id == saved.id
    assert updated.phone == "+15555550199"
    assert directory.get(saved.id).phone == "+15555550199"


def test_directory_errors():
    directory = MemoryPassengerDirectory("org-001", "user-001")
    with pytest.raises(PassengerNotFoundError):
        directory.delete("missing")
    with pytest.raises(PassengerNotFoundError):
        directory.update("missing", {})
    with pytest.raises(ValidationFailedError):
        directory.create({"first_name": "Only"})
