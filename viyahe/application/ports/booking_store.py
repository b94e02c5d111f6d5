from abc import ABC, abstractmethod

from viyahe.domain.entities.submitted_booking import (
    BookingDocument,
    BookingStatus,
    DocumentUpload,
    SubmittedBooking,
)


class BookingStorePort(ABC):
    @abstractmethod
    def save_booking(self, booking: SubmittedBooking) -> SubmittedBooking:
        """Insert a new booking. Raises DuplicateBookingError if the id is taken."""
        raise NotImplementedError

    @abstractmethod
    def get_bookings(self, status: BookingStatus | None = None) -> list[SubmittedBooking]:
        """List bookings, newest first, optionally filtered by status."""
        raise NotImplementedError

    @abstractmethod
    def get_booking_by_id(self, booking_id: str) -> SubmittedBooking | None:
        raise NotImplementedError

    @abstractmethod
    def update_status(
        self,
        booking_id: str,
        status: BookingStatus,
        agent_notes: str | None = None,
        rejection_reason: str | None = None,
        agent_id: str | None = None,
    ) -> SubmittedBooking:
        """
        Apply a status transition and return the updated booking.
        Raises BookingNotFoundError or InvalidTransitionError without changing anything.
        """
        raise NotImplementedError

    @abstractmethod
    def add_document(self, booking_id: str, upload: DocumentUpload, uploaded_by: str | None = None) -> BookingDocument:
        """Attach a document to a CONFIRMED booking."""
        raise NotImplementedError

    @abstractmethod
    def list_documents(self, booking_id: str) -> list[BookingDocument]:
        raise NotImplementedError

    @abstractmethod
    def remove_document(self, booking_id: str, document_id: str) -> bool:
        """Returns True if a document was actually removed."""
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError
