from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable

from viyahe.application.dto.flow_result import FlowResult, recover_unexpected
from viyahe.application.dto.passenger_form import validate_passenger_form
from viyahe.application.exceptions import BookingError, DraftNotFoundError, StorageError, ValidationFailedError
from viyahe.application.state.draft_store import DraftStore
from viyahe.application.utils.passengers import (
    generate_temp_passenger_id,
    passengers_to_save,
    saved_passenger_to_form_data,
    unchanged_saved_passenger_ids,
)
from viyahe.domain.entities.draft_booking import DraftBooking, DraftBookingStatus
from viyahe.domain.entities.passenger import BookingPassenger, PassengerFormData, SavedPassenger


class PassengerFillingUseCase:
    """
    Passenger entry for the active draft.

    Passengers are written straight onto the draft so they survive a restart.
    Validation errors are kept here, per passenger id, until that passenger is
    edited or removed, or until the next validate_all.
    """

    def __init__(
        self,
        drafts: DraftStore,
        id_factory: Callable[[], str] = generate_temp_passenger_id,
    ) -> None:
        self._drafts = drafts
        self._id_factory = id_factory
        self._errors: dict[str, dict[str, str]] = {}
        self._logger = logging.getLogger(__name__)

    @property
    def errors(self) -> dict[str, dict[str, str]]:
        return {pid: dict(errs) for pid, errs in self._errors.items()}

    @recover_unexpected("Could not load your booking. Please try again.")
    def enter(self, draft_id: str) -> FlowResult:
        draft = self._drafts.get_draft(draft_id)
        if draft is None or draft.selected_flight is None or draft.search_params is None:
            return FlowResult(action="error", draft_id=draft_id, message="No flight selected. Please search for flights first.")
        if draft.status not in (DraftBookingStatus.filling, DraftBookingStatus.submitted):
            try:
                self._drafts.set_status(draft_id, DraftBookingStatus.filling)
            except StorageError as e:
                self._logger.error("Could not open passenger entry", extra={"draft_id": draft_id, "error": str(e)})
                return FlowResult(action="error", draft_id=draft_id, message="Could not load your booking. Please try again.")
        return FlowResult(action="stay", draft_id=draft_id)

    def required_count(self, draft_id: str) -> int:
        draft = self._require(draft_id)
        if draft.search_params is None:
            return 1
        return draft.search_params.passengers

    def passengers(self, draft_id: str) -> tuple[BookingPassenger, ...]:
        return self._require(draft_id).passengers

    def is_at_limit(self, draft_id: str) -> bool:
        return len(self.passengers(draft_id)) >= self.required_count(draft_id)

    @recover_unexpected("Could not add passenger. Please try again.")
    def add_from_saved(self, draft_id: str, saved: SavedPassenger) -> FlowResult:
        passenger = BookingPassenger(
            id=self._id_factory(),
            data=saved_passenger_to_form_data(saved),
            saved_passenger_id=saved.id,
        )
        return self._append(draft_id, passenger)

    @recover_unexpected("Could not add passenger. Please try again.")
    def add_new(self, draft_id: str) -> FlowResult:
        return self._append(draft_id, BookingPassenger(id=self._id_factory()))

    @recover_unexpected("Could not update passenger. Please try again.")
    def update_passenger(self, draft_id: str, passenger_id: str, data: PassengerFormData) -> FlowResult:
        try:
            draft = self._editable(draft_id)
            if not any(p.id == passenger_id for p in draft.passengers):
                raise ValidationFailedError(f"Passenger {passenger_id} is not part of this booking")
            updated = tuple(
                replace(p, data=data, is_modified=True) if p.id == passenger_id else p
                for p in draft.passengers
            )
            self._drafts.set_passengers(draft_id, updated)
        except BookingError as e:
            return self._failure(draft_id, e, "Could not update passenger")
        self._errors.pop(passenger_id, None)
        return FlowResult(action="stay", draft_id=draft_id)

    @recover_unexpected("Could not remove passenger. Please try again.")
    def remove_passenger(self, draft_id: str, passenger_id: str) -> FlowResult:
        try:
            draft = self._editable(draft_id)
            self._drafts.set_passengers(draft_id, (p for p in draft.passengers if p.id != passenger_id))
        except BookingError as e:
            return self._failure(draft_id, e, "Could not remove passenger")
        self._errors.pop(passenger_id, None)
        return FlowResult(action="stay", draft_id=draft_id)

    def validate_all(self, draft_id: str) -> bool:
        errors: dict[str, dict[str, str]] = {}
        for passenger in self.passengers(draft_id):
            result = validate_passenger_form(passenger.data)
            if result:
                errors[passenger.id] = result
        self._errors = errors
        return not errors

    def passengers_to_save(self, draft_id: str) -> list[PassengerFormData]:
        return passengers_to_save(self.passengers(draft_id))

    def saved_passenger_ids(self, draft_id: str) -> list[str]:
        return unchanged_saved_passenger_ids(self.passengers(draft_id))

    def _require(self, draft_id: str) -> DraftBooking:
        draft = self._drafts.get_draft(draft_id)
        if draft is None:
            raise DraftNotFoundError(draft_id)
        return draft

    def _editable(self, draft_id: str) -> DraftBooking:
        draft = self._require(draft_id)
        if draft.status == DraftBookingStatus.submitted:
            raise ValidationFailedError("This booking has been submitted and cannot be edited.")
        return draft

    def _append(self, draft_id: str, passenger: BookingPassenger) -> FlowResult:
        try:
            draft = self._editable(draft_id)
            required = draft.search_params.passengers if draft.search_params else 1
            if len(draft.passengers) >= required:
                raise ValidationFailedError(f"This booking only needs {required} passenger{'s' if required > 1 else ''}.")
            self._drafts.set_passengers(draft_id, (*draft.passengers, passenger))
        except BookingError as e:
            return self._failure(draft_id, e, "Could not add passenger")
        return FlowResult(action="stay", draft_id=draft_id, passenger=passenger)

    def _failure(self, draft_id: str, error: BookingError, summary: str) -> FlowResult:
        """Storage failures get a retry message; rule violations are shown as they are."""
        if isinstance(error, StorageError):
            self._logger.error(summary, extra={"draft_id": draft_id, "error": str(error)})
            return FlowResult(action="error", draft_id=draft_id, message=f"{summary}. Please try again.")
        self._logger.warning(summary, extra={"draft_id": draft_id, "error": str(error)})
        return FlowResult(action="error", draft_id=draft_id, message=str(error))
