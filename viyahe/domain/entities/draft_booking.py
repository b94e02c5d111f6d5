from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from viyahe.domain.entities.flight import FlightOffer, FlightSearchParams
from viyahe.domain.entities.passenger import BookingPassenger
from viyahe.domain.entities.submitted_booking import BookingStatus


class DraftBookingStatus(str, Enum):
    searching = "searching"
    selecting = "selecting"
    filling = "filling"
    submitted = "submitted"


@dataclass(frozen=True)
class DraftBooking:
    id: str
    created_at: datetime
    updated_at: datetime
    status: DraftBookingStatus = DraftBookingStatus.searching
    search_params: FlightSearchParams | None = None
    selected_flight: FlightOffer | None = None
    passengers: tuple[BookingPassenger, ...] = ()
    discount_code: str | None = None
    special_requests: str | None = None
    server_booking_id: str | None = None
    server_status: BookingStatus | None = None

    def display_label(self) -> str:
        if self.search_params:
            return f"{self.search_params.origin} → {self.search_params.destination}"
        return "New Booking"

    def display_date(self) -> str | None:
        if not self.search_params or not self.search_params.departure_date:
            return None
        departure = datetime.strptime(self.search_params.departure_date, "%Y-%m-%d")
        return f"{departure:%b} {departure.day}"


@dataclass(frozen=True)
class DraftStoreState:
    bookings: tuple[DraftBooking, ...] = ()
    active_booking_id: str | None = None

    def find(self, draft_id: str | None) -> DraftBooking | None:
        if draft_id is None:
            return None
        for booking in self.bookings:
            if booking.id == draft_id:
                return booking
        return None

    @property
    def active_booking(self) -> DraftBooking | None:
        return self.find(self.active_booking_id)


def generate_draft_id() -> str:
    return f"booking_{uuid.uuid4().hex[:12]}"


def new_draft(draft_id: str, now: datetime) -> DraftBooking:
    return DraftBooking(id=draft_id, created_at=now, updated_at=now)
