class BookingError(RuntimeError):
    """Base class for failures surfaced by the booking core."""
    pass


class NotFoundError(BookingError):
    pass


class DraftNotFoundError(NotFoundError):
    def __init__(self, draft_id: str) -> None:
        super().__init__(f"Draft booking {draft_id} not found")
        self.draft_id = draft_id


class BookingNotFoundError(NotFoundError):
    def __init__(self, booking_id: str) -> None:
        super().__init__(f"Booking with ID {booking_id} not found")
        self.booking_id = booking_id


class DocumentNotFoundError(NotFoundError):
    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document with ID {document_id} not found")
        self.document_id = document_id


class PassengerNotFoundError(NotFoundError):
    def __init__(self, passenger_id: str) -> None:
        super().__init__(f"Passenger with ID {passenger_id} not found")
        self.passenger_id = passenger_id


class InvalidTransitionError(BookingError):
    """Raised before any mutation when a status change or document change is not allowed."""
    pass


class FulfillmentRequiresDocumentsError(InvalidTransitionError):
    def __init__(self, booking_id: str) -> None:
        super().__init__("Cannot fulfill booking without documents")
        self.booking_id = booking_id


class DocumentUploadNotAllowedError(InvalidTransitionError):
    pass


class DuplicateBookingError(BookingError):
    def __init__(self, booking_id: str) -> None:
        super().__init__(f"Booking with ID {booking_id} already exists")
        self.booking_id = booking_id


class ValidationFailedError(BookingError):
    def __init__(self, message: str, field_errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.field_errors = dict(field_errors or {})


class StorageError(BookingError):
    """Raised when persisted state cannot be read or written; nothing was changed."""
    pass
