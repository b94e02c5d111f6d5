from __future__ import annotations

from viyahe.domain.entities.submitted_booking import SubmittedBooking
from viyahe.infrastructure.store.booking_records import RecordBookingStore


class MemoryBookingStore(RecordBookingStore):
    def __init__(self, bookings: list[SubmittedBooking] | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self._bookings: list[SubmittedBooking] = list(bookings or [])

    def _read_all(self) -> list[SubmittedBooking]:
        return list(self._bookings)

    def _write_all(self, bookings: list[SubmittedBooking]) -> None:
        self._bookings = list(bookings)

    def clear(self) -> None:
        with self._lock:
            self._bookings = []
