from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from viyahe.application.dto.flow_result import FlowResult, recover_unexpected
from viyahe.application.exceptions import BookingError, StorageError, ValidationFailedError
from viyahe.application.ports.booking_store import BookingStorePort
from viyahe.application.ports.passenger_directory import PassengerDirectoryPort
from viyahe.application.state.draft_store import DraftStore, utc_now
from viyahe.application.use_cases.passenger_filling import PassengerFillingUseCase
from viyahe.application.utils.passengers import (
    form_data_to_passenger,
    form_data_to_saved_passenger,
    passengers_to_save,
)
from viyahe.domain.entities.draft_booking import DraftBooking, DraftBookingStatus
from viyahe.domain.entities.passenger import PassengerFormData, SavedPassenger
from viyahe.domain.entities.submitted_booking import (
    BookingRequest,
    BookingStatus,
    SubmittedBooking,
    generate_booking_id,
)


class SubmitBookingUseCase:
    def __init__(
        self,
        drafts: DraftStore,
        bookings: BookingStorePort,
        filling: PassengerFillingUseCase,
        directory: PassengerDirectoryPort | None = None,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = generate_booking_id,
    ) -> None:
        self._drafts = drafts
        self._bookings = bookings
        self._filling = filling
        self._directory = directory
        self._clock = clock
        self._id_factory = id_factory
        self._logger = logging.getLogger(__name__)

    @recover_unexpected("Failed to submit booking. Please try again.")
    def submit(
        self,
        draft_id: str,
        discount_code: str | None = None,
        special_requests: str | None = None,
    ) -> FlowResult:
        """
        Validate the draft, write the submitted booking, then link the draft to it.
        Only a draft in the filling stage can be submitted, so the flight and
        passengers always belong to the current search.

        The two writes are not atomic. If the draft update fails after the
        booking was saved, the booking stands and the failure is only logged.
        """
        draft = self._drafts.get_draft(draft_id)
        if draft is None or draft.selected_flight is None or draft.search_params is None:
            return FlowResult(action="error", draft_id=draft_id, message="No flight selected. Please search for flights first.")
        if draft.status == DraftBookingStatus.submitted:
            return FlowResult(action="error", draft_id=draft_id, message="This booking has already been submitted.")
        if draft.status != DraftBookingStatus.filling:
            return FlowResult(
                action="error",
                draft_id=draft_id,
                message="Your search has changed. Please select a flight again.",
            )

        required = draft.search_params.passengers
        if len(draft.passengers) < required:
            return FlowResult(
                action="error",
                draft_id=draft_id,
                message=f"Please add {required} passenger{'s' if required > 1 else ''} to continue.",
            )
        if not self._filling.validate_all(draft_id):
            return FlowResult(
                action="error",
                draft_id=draft_id,
                message="Please fix the errors in the passenger forms.",
                field_errors=self._filling.errors,
            )

        booking = self._build_booking(draft, discount_code, special_requests)
        try:
            saved = self._bookings.save_booking(booking)
        except BookingError as e:
            self._logger.error("Booking submission failed", extra={"draft_id": draft_id, "error": str(e)})
            return FlowResult(action="error", draft_id=draft_id, message="Failed to submit booking. Please try again.")
        self._logger.info("Booking submitted", extra={"draft_id": draft_id, "booking_id": saved.id})

        try:
            self._drafts.update_draft(
                draft_id,
                server_booking_id=saved.id,
                server_status=saved.status,
                status=DraftBookingStatus.submitted,
                discount_code=discount_code,
                special_requests=special_requests,
            )
        except StorageError as e:
            self._logger.error(
                "Submitted booking not linked to draft",
                extra={"draft_id": draft_id, "booking_id": saved.id, "error": str(e)},
            )

        to_save = tuple(passengers_to_save(draft.passengers))
        if to_save:
            return FlowResult(
                action="offer_save_passengers",
                draft_id=draft_id,
                booking=saved,
                passengers_to_save=to_save,
            )
        return FlowResult(action="go_to_confirmation", draft_id=draft_id, booking=saved)

    def save_new_passengers(self, forms: list[PassengerFormData] | tuple[PassengerFormData, ...]) -> list[SavedPassenger]:
        """Store passengers the user chose to keep. Failure never blocks confirmation."""
        if self._directory is None or not forms:
            return []
        try:
            return self._directory.bulk_create([form_data_to_saved_passenger(f) for f in forms])
        except (ValidationFailedError, StorageError) as e:
            self._logger.warning("Saving passengers failed", extra={"error": str(e)})
            return []
        except Exception:
            self._logger.exception("Saving passengers failed")
            return []

    def _build_booking(
        self,
        draft: DraftBooking,
        discount_code: str | None,
        special_requests: str | None,
    ) -> SubmittedBooking:
        flight = draft.selected_flight
        now = self._clock()
        booking_id = self._id_factory()
        passengers = tuple(form_data_to_passenger(p.data, p.id) for p in draft.passengers)
        lead = draft.passengers[0].data

        request = BookingRequest(
            id=booking_id,
            search_params=draft.search_params,
            flight_offer=flight,
            passengers=passengers,
            contact_email=lead.email,
            contact_phone=lead.phone,
            created_at=now,
            discount_code=discount_code or None,
            special_requests=special_requests or None,
        )
        return SubmittedBooking(
            id=booking_id,
            request=request,
            original_price=flight.total_price.amount,
            final_price=flight.price_with_markup.amount,
            currency=flight.total_price.currency,
            created_at=now,
            updated_at=now,
            status=BookingStatus.BOOKING_REQUESTED,
        )
