from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter

from viyahe.domain.entities.draft_booking import DraftBooking, DraftStoreState
from viyahe.domain.entities.submitted_booking import BookingDocument, SubmittedBooking

STORAGE_VERSION = 1

_drafts_adapter = TypeAdapter(list[DraftBooking])
_bookings_adapter = TypeAdapter(list[SubmittedBooking])
_booking_adapter = TypeAdapter(SubmittedBooking)
_document_adapter = TypeAdapter(BookingDocument)


def serialize_draft_state(state: DraftStoreState) -> dict[str, Any]:
    return {
        "bookings": _drafts_adapter.dump_python(list(state.bookings), mode="json"),
        "active_booking_id": state.active_booking_id,
        "version": STORAGE_VERSION,
    }


def deserialize_draft_state(data: dict[str, Any]) -> DraftStoreState:
    """Raises pydantic.ValidationError for malformed payloads."""
    bookings = _drafts_adapter.validate_python(data.get("bookings") or [])
    return DraftStoreState(bookings=tuple(bookings), active_booking_id=data.get("active_booking_id"))


def serialize_bookings(bookings: list[SubmittedBooking]) -> list[dict[str, Any]]:
    return _bookings_adapter.dump_python(bookings, mode="json")


def deserialize_bookings(data: list[dict[str, Any]]) -> list[SubmittedBooking]:
    return _bookings_adapter.validate_python(data)


def serialize_booking(booking: SubmittedBooking) -> dict[str, Any]:
    return _booking_adapter.dump_python(booking, mode="json")


def deserialize_booking(data: dict[str, Any]) -> SubmittedBooking:
    return _booking_adapter.validate_python(data)


def deserialize_document(data: dict[str, Any]) -> BookingDocument:
    return _document_adapter.validate_python(data)


def serialize_document(document: BookingDocument) -> dict[str, Any]:
    return _document_adapter.dump_python(document, mode="json")
