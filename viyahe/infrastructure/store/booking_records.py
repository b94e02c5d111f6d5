from __future__ import annotations

import logging
import threading
from abc import abstractmethod
from datetime import datetime, timezone
from typing import Callable

from viyahe.application.exceptions import BookingNotFoundError, DuplicateBookingError
from viyahe.application.ports.booking_store import BookingStorePort
from viyahe.application.utils.booking_lifecycle import apply_status_change, attach_document, detach_document
from viyahe.domain.entities.submitted_booking import (
    BookingDocument,
    BookingStatus,
    DocumentUpload,
    SubmittedBooking,
    generate_document_id,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecordBookingStore(BookingStorePort):
    """
    Booking store over a whole-collection read/write pair.

    Each mutation reads the latest records, applies the lifecycle rules and
    writes the full collection back while holding one lock, so either the
    whole change lands or nothing does.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = _utc_now,
        document_id_factory: Callable[[], str] = generate_document_id,
        default_uploader: str = "agent",
    ) -> None:
        self._clock = clock
        self._document_id_factory = document_id_factory
        self._default_uploader = default_uploader
        self._lock = threading.RLock()
        self._logger = logging.getLogger(__name__)

    @abstractmethod
    def _read_all(self) -> list[SubmittedBooking]:
        raise NotImplementedError

    @abstractmethod
    def _write_all(self, bookings: list[SubmittedBooking]) -> None:
        raise NotImplementedError

    def _replace(self, bookings: list[SubmittedBooking], updated: SubmittedBooking) -> None:
        self._write_all([updated if b.id == updated.id else b for b in bookings])

    def _require(self, bookings: list[SubmittedBooking], booking_id: str) -> SubmittedBooking:
        for booking in bookings:
            if booking.id == booking_id:
                return booking
        raise BookingNotFoundError(booking_id)

    def save_booking(self, booking: SubmittedBooking) -> SubmittedBooking:
        with self._lock:
            bookings = self._read_all()
            if any(b.id == booking.id for b in bookings):
                raise DuplicateBookingError(booking.id)
            self._write_all(bookings + [booking])
        self._logger.info("Booking saved", extra={"booking_id": booking.id, "status": booking.status.value})
        return booking

    def get_bookings(self, status: BookingStatus | None = None) -> list[SubmittedBooking]:
        with self._lock:
            bookings = self._read_all()
        if status is not None:
            bookings = [b for b in bookings if b.status == status]
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)

    def get_booking_by_id(self, booking_id: str) -> SubmittedBooking | None:
        with self._lock:
            for booking in self._read_all():
                if booking.id == booking_id:
                    return booking
        return None

    def update_status(
        self,
        booking_id: str,
        status: BookingStatus,
        agent_notes: str | None = None,
        rejection_reason: str | None = None,
        agent_id: str | None = None,
    ) -> SubmittedBooking:
        with self._lock:
            bookings = self._read_all()
            booking = self._require(bookings, booking_id)
            updated = apply_status_change(
                booking,
                status,
                now=self._clock(),
                agent_notes=agent_notes,
                rejection_reason=rejection_reason,
                agent_id=agent_id,
            )
            self._replace(bookings, updated)
        self._logger.info("Booking status updated", extra={"booking_id": booking_id, "status": updated.status.value})
        return updated

    def add_document(self, booking_id: str, upload: DocumentUpload, uploaded_by: str | None = None) -> BookingDocument:
        with self._lock:
            bookings = self._read_all()
            booking = self._require(bookings, booking_id)
            updated, document = attach_document(
                booking,
                upload,
                document_id=self._document_id_factory(),
                now=self._clock(),
                uploaded_by=uploaded_by or self._default_uploader,
            )
            self._replace(bookings, updated)
        self._logger.info("Document added", extra={"booking_id": booking_id, "document_id": document.id})
        return document

    def list_documents(self, booking_id: str) -> list[BookingDocument]:
        booking = self.get_booking_by_id(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return list(booking.documents)

    def remove_document(self, booking_id: str, document_id: str) -> bool:
        with self._lock:
            bookings = self._read_all()
            booking = self._require(bookings, booking_id)
            updated, removed = detach_document(booking, document_id, now=self._clock())
            if removed:
                self._replace(bookings, updated)
        if removed:
            self._logger.info("Document removed", extra={"booking_id": booking_id, "document_id": document_id})
        return removed
