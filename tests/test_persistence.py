"""
Tests for durable draft and booking persistence.
"""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

import pytest

from viyahe.application.exceptions import StorageError
from viyahe.application.state.draft_store import DraftStore
from viyahe.domain.entities.draft_booking import DraftStoreState
from viyahe.domain.entities.passenger import BookingPassenger
from viyahe.domain.entities.submitted_booking import BookingStatus
from viyahe.infrastructure.store.codec import STORAGE_VERSION
from viyahe.infrastructure.store.json_booking_store import JsonBookingStore
from viyahe.infrastructure.store.json_draft_storage import JsonDraftStorage
from viyahe.infrastructure.store.memory_draft_storage import MemoryDraftStorage

from tests.factories import FakeClock, SequentialIds, make_booking, make_offer, make_params, valid_form


class CountingStorage(MemoryDraftStorage):
    def __init__(self, payload=None) -> None:
        super().__init__(payload)
        self.loads = 0

    def load(self) -> DraftStoreState | None:
        self.loads += 1
        return super().load()


def _filled_store(storage) -> tuple[DraftStore, str]:
    store = DraftStore(storage, clock=FakeClock(), id_factory=SequentialIds("draft"))
    draft_id = store.create_draft()
    store.set_search_params(draft_id, make_params())
    store.set_selected_flight(draft_id, make_offer())
    store.set_passengers(draft_id, [BookingPassenger(id="p1", data=valid_form(), saved_passenger_id="pax-1")])
    store.update_draft(draft_id, server_booking_id="bkg-1", server_status=BookingStatus.BOOKING_REQUESTED)
    return store, draft_id


def test_json_draft_round_trip():
    """Drafts written to disk reload into an equal state."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "drafts.json"
        store, draft_id = _filled_store(JsonDraftStorage(path))

        reloaded = DraftStore(JsonDraftStorage(path))
        assert reloaded.state == store.state
        assert reloaded.active_booking_id == draft_id

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["version"] == STORAGE_VERSION
        assert data["active_booking_id"] == draft_id
        assert len(data["bookings"]) == 1


def test_memory_draft_round_trip():
    storage = MemoryDraftStorage()
    store, _ = _filled_store(storage)
    assert storage.load() == store.state


def test_version_mismatch_discards_file():
    """A payload from another schema version is deleted and the store starts empty."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "drafts.json"
        path.write_text(json.dumps({"bookings": [{"id": "x"}], "active_booking_id": "x", "version": 0}))

        store = DraftStore(JsonDraftStorage(path))
        assert store.bookings == ()
        assert store.active_booking_id is None
        assert not path.exists()


def test_memory_version_mismatch_resets():
    storage = MemoryDraftStorage({"bookings": [], "active_booking_id": None, "version": 99})
    assert storage.load() is None
    assert storage.payload is None


def test_malformed_memory_payload_starts_empty():
    """A payload of the right version but the wrong shape is ignored instead of crashing the store."""
    storage = MemoryDraftStorage({"bookings": [{"id": "x"}], "active_booking_id": "x", "version": STORAGE_VERSION})
    assert storage.load() is None

    store = DraftStore(storage)
    assert store.bookings == ()
    assert store.active_booking_id is None


def test_unreadable_drafts_file_is_kept():
    """Corrupt JSON starts an empty store but leaves the file for inspection."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "drafts.json"
        path.write_text("{not json")

        store = DraftStore(JsonDraftStorage(path))
        assert store.bookings == ()
        assert path.exists()


def test_store_loads_exactly_once():
    """Persisted state is read once at construction and never overwritten by an empty default."""
    seed = MemoryDraftStorage()
    _filled_store(seed)
    storage = CountingStorage(seed.payload)

    store = DraftStore(storage)
    assert storage.loads == 1
    assert len(store.bookings) == 1
    assert storage.payload["bookings"]

    store.create_draft()
    _ = store.state, store.active_booking
    assert storage.loads == 1
    assert len(storage.payload["bookings"]) == 2


def test_json_booking_store_round_trip():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "bookings.json"
        store = JsonBookingStore(path)
        booking = make_booking("bkg-1")
        store.save_booking(booking)

        reopened = JsonBookingStore(path)
        assert reopened.get_booking_by_id("bkg-1") == booking
        assert isinstance(json.loads(path.read_text(encoding="utf-8")), list)


def test_corrupt_bookings_file_raises_and_is_not_overwritten():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "bookings.json"
        path.write_text("[{broken")
        store = JsonBookingStore(path)

        with pytest.raises(StorageError):
            store.save_booking(make_booking("bkg-1"))
        assert path.read_text() == "[{broken"


def test_json_booking_store_clear():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "bookings.json"
        store = JsonBookingStore(path)
        store.save_booking(make_booking("bkg-1"))

        store.clear()
        assert not path.exists()
        assert store.get_bookings() == []
