from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from viyahe.application.exceptions import (
    DocumentUploadNotAllowedError,
    FulfillmentRequiresDocumentsError,
    InvalidTransitionError,
)
from viyahe.domain.entities.submitted_booking import (
    VALID_TRANSITIONS,
    BookingDocument,
    BookingStatus,
    DocumentUpload,
    SubmittedBooking,
)


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in VALID_TRANSITIONS[current]


def apply_status_change(
    booking: SubmittedBooking,
    status: BookingStatus,
    now: datetime,
    agent_notes: str | None = None,
    rejection_reason: str | None = None,
    agent_id: str | None = None,
) -> SubmittedBooking:
    """Validate a transition and return the booking with the matching timestamp stamped."""
    status = BookingStatus(status)
    if not can_transition(booking.status, status):
        raise InvalidTransitionError(
            f"Invalid status transition from {booking.status.value} to {status.value}"
        )

    if status == BookingStatus.CONFIRMED:
        return replace(
            booking,
            status=status,
            updated_at=now,
            confirmed_at=now,
            agent_id=agent_id or booking.agent_id,
            agent_notes=agent_notes or booking.agent_notes,
        )
    if status == BookingStatus.REJECTED:
        return replace(
            booking,
            status=status,
            updated_at=now,
            rejected_at=now,
            agent_id=agent_id or booking.agent_id,
            rejection_reason=rejection_reason or booking.rejection_reason,
        )
    if status == BookingStatus.FULFILLED:
        if not booking.documents:
            raise FulfillmentRequiresDocumentsError(booking.id)
        return replace(
            booking,
            status=status,
            updated_at=now,
            fulfilled_at=now,
            agent_id=agent_id or booking.agent_id,
        )
    # BOOKING_REQUESTED is never a transition target
    raise InvalidTransitionError(f"Invalid status transition from {booking.status.value} to {status.value}")


def attach_document(
    booking: SubmittedBooking,
    upload: DocumentUpload,
    document_id: str,
    now: datetime,
    uploaded_by: str,
) -> tuple[SubmittedBooking, BookingDocument]:
    if booking.status != BookingStatus.CONFIRMED:
        raise DocumentUploadNotAllowedError("Documents can only be uploaded to confirmed bookings")

    document = BookingDocument(
        id=document_id,
        booking_id=booking.id,
        type=upload.type,
        file_name=upload.file_name,
        file_size=upload.file_size,
        mime_type=upload.mime_type,
        data_url=upload.data_url,
        uploaded_at=now,
        uploaded_by=uploaded_by,
    )
    return replace(booking, documents=booking.documents + (document,), updated_at=now), document


def detach_document(booking: SubmittedBooking, document_id: str, now: datetime) -> tuple[SubmittedBooking, bool]:
    if not any(d.id == document_id for d in booking.documents):
        return booking, False
    if booking.status != BookingStatus.CONFIRMED:
        raise DocumentUploadNotAllowedError("Documents can only be removed from confirmed bookings")
    remaining = tuple(d for d in booking.documents if d.id != document_id)
    return replace(booking, documents=remaining, updated_at=now), True
