from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from viyahe.domain.entities.flight import FlightOffer, FlightSearchParams
from viyahe.domain.entities.passenger import Passenger


class BookingStatus(str, Enum):
    BOOKING_REQUESTED = "BOOKING_REQUESTED"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    FULFILLED = "FULFILLED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({BookingStatus.REJECTED, BookingStatus.FULFILLED})

VALID_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.BOOKING_REQUESTED: frozenset({BookingStatus.CONFIRMED, BookingStatus.REJECTED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.FULFILLED}),
    BookingStatus.REJECTED: frozenset(),
    BookingStatus.FULFILLED: frozenset(),
}


class BookingDocumentType(str, Enum):
    itinerary = "itinerary"
    e_ticket = "e_ticket"
    invoice = "invoice"
    other = "other"


@dataclass(frozen=True)
class BookingRequest:
    """Snapshot of the draft taken at submission time; never edited afterwards."""

    id: str
    search_params: FlightSearchParams
    flight_offer: FlightOffer
    passengers: tuple[Passenger, ...]
    contact_email: str
    contact_phone: str
    created_at: datetime
    discount_code: str | None = None
    special_requests: str | None = None


@dataclass(frozen=True)
class DocumentUpload:
    type: BookingDocumentType
    file_name: str
    file_size: int
    mime_type: str
    data_url: str


@dataclass(frozen=True)
class BookingDocument:
    id: str
    booking_id: str
    type: BookingDocumentType
    file_name: str
    file_size: int
    mime_type: str
    data_url: str
    uploaded_at: datetime
    uploaded_by: str


@dataclass(frozen=True)
class SubmittedBooking:
    id: str
    request: BookingRequest
    original_price: int
    final_price: int
    currency: str
    created_at: datetime
    updated_at: datetime
    status: BookingStatus = BookingStatus.BOOKING_REQUESTED
    documents: tuple[BookingDocument, ...] = ()
    agent_id: str | None = None
    agent_notes: str | None = None
    rejection_reason: str | None = None
    confirmed_at: datetime | None = None
    rejected_at: datetime | None = None
    fulfilled_at: datetime | None = None


def generate_booking_id() -> str:
    return f"bkg-{uuid.uuid4().hex[:12]}"


def generate_document_id() -> str:
    return f"doc-{uuid.uuid4().hex[:12]}"
