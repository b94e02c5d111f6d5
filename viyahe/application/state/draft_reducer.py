from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from typing import Any, Union

from viyahe.domain.entities.draft_booking import DraftBooking, DraftBookingStatus, DraftStoreState, new_draft
from viyahe.domain.entities.flight import FlightOffer, FlightSearchParams
from viyahe.domain.entities.passenger import BookingPassenger
from viyahe.domain.entities.submitted_booking import BookingStatus

# Fields a caller may change through UpdateDraft; identity and timestamps are managed here.
UPDATABLE_FIELDS = frozenset(f.name for f in fields(DraftBooking)) - {"id", "created_at", "updated_at"}

_RECORD_FIELDS = {"search_params": FlightSearchParams, "selected_flight": FlightOffer}
_TEXT_FIELDS = ("discount_code", "special_requests", "server_booking_id")


@dataclass(frozen=True)
class CreateDraft:
    draft_id: str
    now: datetime


@dataclass(frozen=True)
class UpdateDraft:
    draft_id: str
    updates: dict[str, Any]
    now: datetime


@dataclass(frozen=True)
class SetActive:
    draft_id: str | None


@dataclass(frozen=True)
class RemoveDraft:
    draft_id: str


@dataclass(frozen=True)
class SyncServerStatus:
    draft_id: str
    server_status: BookingStatus


@dataclass(frozen=True)
class LoadFromStorage:
    state: DraftStoreState = field(default_factory=DraftStoreState)


DraftAction = Union[CreateDraft, UpdateDraft, SetActive, RemoveDraft, SyncServerStatus, LoadFromStorage]


def check_updates(updates: dict[str, Any]) -> dict[str, Any]:
    """
    Validate an UpdateDraft payload and return it with enum values coerced.
    Raises ValueError for unknown fields or values of the wrong kind.
    """
    unknown = sorted(set(updates) - UPDATABLE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown draft fields: {', '.join(unknown)}")

    checked = dict(updates)
    if "status" in checked:
        checked["status"] = DraftBookingStatus(checked["status"])
    if checked.get("server_status") is not None:
        checked["server_status"] = BookingStatus(checked["server_status"])
    if "passengers" in checked:
        checked["passengers"] = tuple(checked["passengers"] or ())
        if not all(isinstance(p, BookingPassenger) for p in checked["passengers"]):
            raise ValueError("passengers must be BookingPassenger records")
    for name, kind in _RECORD_FIELDS.items():
        value = checked.get(name)
        if value is not None and not isinstance(value, kind):
            raise ValueError(f"{name} must be a {kind.__name__}")
    for name in _TEXT_FIELDS:
        value = checked.get(name)
        if value is not None and not isinstance(value, str):
            raise ValueError(f"{name} must be a string")
    return checked


def reduce(state: DraftStoreState, action: DraftAction) -> DraftStoreState:
    """
    Pure transition function for the draft collection.
    Returns the same object when the action changes nothing.
    """
    if isinstance(action, CreateDraft):
        draft = new_draft(action.draft_id, action.now)
        return DraftStoreState(bookings=state.bookings + (draft,), active_booking_id=draft.id)

    if isinstance(action, UpdateDraft):
        updates = check_updates(action.updates)
        if state.find(action.draft_id) is None:
            return state
        return replace(
            state,
            bookings=tuple(
                replace(booking, **updates, updated_at=action.now) if booking.id == action.draft_id else booking
                for booking in state.bookings
            ),
        )

    if isinstance(action, SetActive):
        if action.draft_id is not None and state.find(action.draft_id) is None:
            return state
        if action.draft_id == state.active_booking_id:
            return state
        return replace(state, active_booking_id=action.draft_id)

    if isinstance(action, RemoveDraft):
        if state.find(action.draft_id) is None:
            return state
        remaining = tuple(b for b in state.bookings if b.id != action.draft_id)
        active_id = state.active_booking_id
        if active_id == action.draft_id:
            active_id = remaining[0].id if remaining else None
        return DraftStoreState(bookings=remaining, active_booking_id=active_id)

    if isinstance(action, SyncServerStatus):
        draft = state.find(action.draft_id)
        if draft is None or draft.server_status == action.server_status:
            return state
        return replace(
            state,
            bookings=tuple(
                replace(b, server_status=action.server_status) if b.id == action.draft_id else b
                for b in state.bookings
            ),
        )

    if isinstance(action, LoadFromStorage):
        loaded = action.state
        if loaded.active_booking_id is not None and loaded.find(loaded.active_booking_id) is None:
            loaded = replace(loaded, active_booking_id=loaded.bookings[0].id if loaded.bookings else None)
        return loaded

    raise TypeError(f"Unhandled draft action: {type(action).__name__}")
