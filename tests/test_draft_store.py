"""
Tests for the draft reducer and the persisted draft store.
"""

from __future__ import annotations

import pytest

from viyahe.application.exceptions import StorageError
from viyahe.application.state.draft_reducer import (
    CreateDraft,
    LoadFromStorage,
    RemoveDraft,
    SetActive,
    SyncServerStatus,
    UpdateDraft,
    reduce,
)
from viyahe.application.state.draft_store import DraftStore
from viyahe.domain.entities.draft_booking import DraftBookingStatus, DraftStoreState, new_draft
from viyahe.domain.entities.passenger import BookingPassenger
from viyahe.domain.entities.submitted_booking import BookingStatus
from viyahe.infrastructure.store.memory_draft_storage import MemoryDraftStorage

from tests.factories import BASE_TIME, FakeClock, SequentialIds, make_offer, make_params, valid_form


class FailingStorage(MemoryDraftStorage):
    def __init__(self) -> None:
        super().__init__()
        self.fail = False

    def save(self, state: DraftStoreState) -> None:
        if self.fail:
            raise StorageError("disk full")
        super().save(state)


def _store(storage=None) -> DraftStore:
    return DraftStore(storage or MemoryDraftStorage(), clock=FakeClock(), id_factory=SequentialIds("draft"))


def _active_pointer_valid(state: DraftStoreState) -> bool:
    return state.active_booking_id is None or state.find(state.active_booking_id) is not None


def test_create_draft_becomes_active():
    """A new draft starts in searching with no passengers and becomes active."""
    state = reduce(DraftStoreState(), CreateDraft(draft_id="d1", now=BASE_TIME))

    assert state.active_booking_id == "d1"
    draft = state.find("d1")
    assert draft.status == DraftBookingStatus.searching
    assert draft.passengers == ()
    assert draft.created_at == draft.updated_at == BASE_TIME


def test_active_pointer_survives_every_action():
    """The active id always names an existing draft or is None."""
    state = DraftStoreState()
    actions = [
        CreateDraft(draft_id="a", now=BASE_TIME),
        CreateDraft(draft_id="b", now=BASE_TIME),
        CreateDraft(draft_id="c", now=BASE_TIME),
        SetActive(draft_id="b"),
        RemoveDraft(draft_id="b"),
        SetActive(draft_id="missing"),
        RemoveDraft(draft_id="a"),
        RemoveDraft(draft_id="c"),
        SetActive(draft_id=None),
    ]
    for action in actions:
        state = reduce(state, action)
        assert _active_pointer_valid(state), action
    assert state.bookings == ()
    assert state.active_booking_id is None


def test_remove_active_falls_back_to_first_remaining():
    """Removing the active draft reassigns the pointer to the first remaining draft."""
    state = DraftStoreState()
    for draft_id in ("a", "b", "c"):
        state = reduce(state, CreateDraft(draft_id=draft_id, now=BASE_TIME))
    assert state.active_booking_id == "c"

    state = reduce(state, RemoveDraft(draft_id="c"))
    assert state.active_booking_id == "a"


def test_remove_inactive_keeps_pointer():
    state = DraftStoreState()
    for draft_id in ("a", "b"):
        state = reduce(state, CreateDraft(draft_id=draft_id, now=BASE_TIME))

    state = reduce(state, RemoveDraft(draft_id="a"))
    assert state.active_booking_id == "b"


def test_update_unknown_draft_is_noop():
    """Updating a missing draft returns the same state object."""
    state = reduce(DraftStoreState(), CreateDraft(draft_id="a", now=BASE_TIME))
    assert reduce(state, UpdateDraft(draft_id="nope", updates={"discount_code": "X"}, now=BASE_TIME)) is state


def test_update_refreshes_updated_at():
    state = reduce(DraftStoreState(), CreateDraft(draft_id="a", now=BASE_TIME))
    later = BASE_TIME.replace(hour=10)

    state = reduce(state, UpdateDraft(draft_id="a", updates={"discount_code": "SAVE10"}, now=later))
    draft = state.find("a")
    assert draft.discount_code == "SAVE10"
    assert draft.updated_at == later
    assert draft.created_at == BASE_TIME


def test_update_rejects_unknown_fields():
    state = reduce(DraftStoreState(), CreateDraft(draft_id="a", now=BASE_TIME))
    with pytest.raises(ValueError):
        reduce(state, UpdateDraft(draft_id="a", updates={"id": "b"}, now=BASE_TIME))


def test_update_rejects_values_outside_the_status_enums():
    state = reduce(DraftStoreState(), CreateDraft(draft_id="a", now=BASE_TIME))
    with pytest.raises(ValueError):
        reduce(state, UpdateDraft(draft_id="a", updates={"status": "bogus"}, now=BASE_TIME))
    with pytest.raises(ValueError):
        reduce(state, UpdateDraft(draft_id="a", updates={"server_status": "ARCHIVED"}, now=BASE_TIME))
    with pytest.raises(ValueError):
        reduce(state, UpdateDraft(draft_id="a", updates={"search_params": {"origin": "JFK"}}, now=BASE_TIME))


def test_update_coerces_enum_strings():
    """Raw enum values are stored as enum members, so later readers can rely on them."""
    state = reduce(DraftStoreState(), CreateDraft(draft_id="a", now=BASE_TIME))
    state = reduce(
        state,
        UpdateDraft(draft_id="a", updates={"status": "submitted", "server_status": "CONFIRMED"}, now=BASE_TIME),
    )
    draft = state.find("a")
    assert draft.status is DraftBookingStatus.submitted
    assert draft.server_status is BookingStatus.CONFIRMED
    assert draft.server_status.is_terminal is False


def test_sync_server_status_changes_only_server_status():
    """Status sync leaves every other field untouched, including updated_at."""
    state = reduce(DraftStoreState(), CreateDraft(draft_id="a", now=BASE_TIME))
    before = state.find("a")

    state = reduce(state, SyncServerStatus(draft_id="a", server_status=BookingStatus.CONFIRMED))
    after = state.find("a")

    assert after.server_status == BookingStatus.CONFIRMED
    assert after.updated_at == before.updated_at
    assert after.status == before.status


def test_sync_with_same_status_is_noop():
    state = reduce(DraftStoreState(), CreateDraft(draft_id="a", now=BASE_TIME))
    state = reduce(state, SyncServerStatus(draft_id="a", server_status=BookingStatus.CONFIRMED))
    assert reduce(state, SyncServerStatus(draft_id="a", server_status=BookingStatus.CONFIRMED)) is state


def test_load_repairs_dangling_active_pointer():
    loaded = DraftStoreState(bookings=(new_draft("a", BASE_TIME),), active_booking_id="gone")
    state = reduce(DraftStoreState(), LoadFromStorage(loaded))
    assert state.active_booking_id == "a"


def test_unknown_action_raises():
    with pytest.raises(TypeError):
        reduce(DraftStoreState(), object())


def test_selecting_flight_clears_passengers():
    """Choosing a flight drops passengers entered for the previous one."""
    store = _store()
    draft_id = store.create_draft()
    store.set_search_params(draft_id, make_params())
    store.set_selected_flight(draft_id, make_offer("offer-1"))
    store.set_passengers(draft_id, [BookingPassenger(id="p1", data=valid_form())])
    assert len(store.get_draft(draft_id).passengers) == 1

    store.set_selected_flight(draft_id, make_offer("offer-2"))
    draft = store.get_draft(draft_id)
    assert draft.passengers == ()
    assert draft.selected_flight.id == "offer-2"
    assert draft.status == DraftBookingStatus.filling


def test_clear_selected_flight_returns_to_searching():
    store = _store()
    draft_id = store.create_draft()
    store.set_search_params(draft_id, make_params())
    store.set_selected_flight(draft_id, make_offer())
    store.set_passengers(draft_id, [BookingPassenger(id="p1")])

    store.clear_selected_flight(draft_id)
    draft = store.get_draft(draft_id)
    assert draft.selected_flight is None
    assert draft.passengers == ()
    assert draft.status == DraftBookingStatus.searching


def test_set_search_params_forces_searching():
    store = _store()
    draft_id = store.create_draft()
    store.set_status(draft_id, DraftBookingStatus.filling)

    store.set_search_params(draft_id, make_params(passengers=2))
    draft = store.get_draft(draft_id)
    assert draft.status == DraftBookingStatus.searching
    assert draft.search_params.passengers == 2


def test_update_draft_unknown_id_returns_false():
    store = _store()
    assert store.update_draft("missing", discount_code="X") is False


def test_every_change_is_persisted_before_returning():
    """A second store over the same storage sees each committed change."""
    storage = MemoryDraftStorage()
    store = _store(storage)
    draft_id = store.create_draft()
    store.set_search_params(draft_id, make_params())

    reloaded = _store(storage)
    assert reloaded.active_booking_id == draft_id
    assert reloaded.get_draft(draft_id).search_params == make_params()


def test_failed_persist_leaves_state_unchanged():
    """A write failure raises and keeps the last persisted state in memory."""
    storage = FailingStorage()
    store = _store(storage)
    draft_id = store.create_draft()
    before = store.state

    storage.fail = True
    with pytest.raises(StorageError):
        store.set_search_params(draft_id, make_params())

    assert store.state is before
    assert store.get_draft(draft_id).search_params is None


def test_listeners_notified_and_unsubscribed():
    store = _store()
    seen = []
    unsubscribe = store.subscribe(lambda state: seen.append(state.active_booking_id))

    draft_id = store.create_draft()
    unsubscribe()
    store.create_draft()

    assert seen == [draft_id]


def test_failing_listener_does_not_block_commit():
    store = _store()

    def broken(state):
        raise RuntimeError("boom")

    store.subscribe(broken)
    draft_id = store.create_draft()
    assert store.get_draft(draft_id) is not None


def test_sync_server_status_reports_change():
    store = _store()
    draft_id = store.create_draft()
    assert store.sync_server_status(draft_id, BookingStatus.CONFIRMED) is True
    assert store.sync_server_status(draft_id, BookingStatus.CONFIRMED) is False


def test_store_rejects_bad_status_before_persisting():
    storage = MemoryDraftStorage()
    store = _store(storage)
    first = store.create_draft()
    store.create_draft()
    saved = storage.payload

    with pytest.raises(ValueError):
        store.update_draft(first, status="bogus")

    assert storage.payload == saved
    assert store.get_draft(first).status == DraftBookingStatus.searching
    assert len(DraftStore(MemoryDraftStorage(storage.payload)).bookings) == 2
