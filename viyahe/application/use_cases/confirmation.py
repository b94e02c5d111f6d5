from __future__ import annotations

import logging
from dataclasses import dataclass

from viyahe.application.exceptions import StorageError
from viyahe.application.ports.booking_store import BookingStorePort
from viyahe.application.state.draft_store import DraftStore
from viyahe.application.utils.pricing import format_currency
from viyahe.domain.entities.draft_booking import DraftBooking
from viyahe.domain.entities.submitted_booking import BookingDocument, BookingStatus, SubmittedBooking


@dataclass(frozen=True)
class ConfirmationView:
    state: str  # "missing_draft", "not_submitted", "booking_missing", "unavailable", or a BookingStatus value
    headline: str
    message: str
    draft: DraftBooking | None = None
    booking: SubmittedBooking | None = None
    documents: tuple[BookingDocument, ...] = ()
    total_display: str | None = None


def status_copy(booking: SubmittedBooking) -> tuple[str, str]:
    """Headline and message for each booking status."""
    status = booking.status
    if status == BookingStatus.BOOKING_REQUESTED:
        return (
            "Booking Request Submitted",
            "Our travel agents will review your booking request. Once confirmed, your e-ticket will be issued.",
        )
    if status == BookingStatus.CONFIRMED:
        message = "Your booking has been confirmed. Your travel documents are being prepared."
        if booking.agent_notes:
            message = f"{message} Agent notes: {booking.agent_notes}"
        return "Booking Confirmed", message
    if status == BookingStatus.REJECTED:
        reason = booking.rejection_reason or "No reason was given."
        return "Booking Rejected", f"Unfortunately your booking could not be completed. Reason: {reason}"
    if status == BookingStatus.FULFILLED:
        return "Booking Complete", "Your tickets have been issued. Your travel documents are available below."
    raise ValueError(f"Unhandled booking status: {status!r}")


class ConfirmationUseCase:
    def __init__(self, drafts: DraftStore, bookings: BookingStorePort) -> None:
        self._drafts = drafts
        self._bookings = bookings
        self._logger = logging.getLogger(__name__)

    def view(self, draft_id: str) -> ConfirmationView:
        draft = self._drafts.get_draft(draft_id)
        if draft is None:
            return ConfirmationView(
                state="missing_draft",
                headline="No Booking Found",
                message="Please start a new search to make a booking.",
            )
        if draft.server_booking_id is None:
            return ConfirmationView(
                state="not_submitted",
                headline="Booking Not Submitted",
                message="This booking has not been submitted yet.",
                draft=draft,
            )

        try:
            booking = self._bookings.get_booking_by_id(draft.server_booking_id)
        except StorageError as e:
            self._logger.error(
                "Could not load submitted booking",
                extra={"draft_id": draft_id, "booking_id": draft.server_booking_id, "error": str(e)},
            )
            return ConfirmationView(
                state="unavailable",
                headline="Booking Status Unavailable",
                message="We could not load your booking status. Please try again.",
                draft=draft,
            )
        except Exception:
            self._logger.exception("Unexpected failure loading submitted booking", extra={"draft_id": draft_id})
            return ConfirmationView(
                state="unavailable",
                headline="Booking Status Unavailable",
                message="We could not load your booking status. Please try again.",
                draft=draft,
            )

        if booking is None:
            return ConfirmationView(
                state="booking_missing",
                headline="Booking Record Not Found",
                message="We could not find the submitted booking record. Please contact support.",
                draft=draft,
            )

        headline, message = status_copy(booking)
        return ConfirmationView(
            state=booking.status.value,
            headline=headline,
            message=message,
            draft=draft,
            booking=booking,
            documents=booking.documents,
            total_display=format_currency(booking.final_price, booking.currency),
        )
