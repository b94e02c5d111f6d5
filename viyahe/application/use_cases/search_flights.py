from __future__ import annotations

import logging
from typing import Any

from viyahe.application.dto.flow_result import FlowResult, recover_unexpected
from viyahe.application.dto.search_form import parse_search_params
from viyahe.application.exceptions import StorageError, ValidationFailedError
from viyahe.application.state.draft_store import DraftStore
from viyahe.domain.entities.draft_booking import DraftBookingStatus


class SearchFlightsUseCase:
    def __init__(self, drafts: DraftStore) -> None:
        self._drafts = drafts
        self._logger = logging.getLogger(__name__)

    @recover_unexpected("Could not save your search. Please try again.")
    def submit(self, form: dict[str, Any]) -> FlowResult:
        """
        Validate search criteria and store them on the active draft, creating one if needed.
        A new search on a draft that already has a flight drops that flight and its passengers.
        """
        try:
            params = parse_search_params(form)
        except ValidationFailedError as e:
            return FlowResult(action="error", message=str(e), field_errors={"search": e.field_errors})

        try:
            draft = self._drafts.active_booking
            # A submitted draft is read-only; searching again starts a new booking.
            if draft is None or draft.status == DraftBookingStatus.submitted:
                draft_id = self._drafts.create_draft()
            else:
                draft_id = draft.id
                if draft.selected_flight is not None or draft.passengers:
                    self._drafts.clear_selected_flight(draft_id)
            self._drafts.set_search_params(draft_id, params)
        except StorageError as e:
            self._logger.error("Could not save search", extra={"error": str(e)})
            return FlowResult(action="error", message="Could not save your search. Please try again.")

        self._logger.info("Search submitted", extra={"draft_id": draft_id, "action": "go_to_selection"})
        return FlowResult(action="go_to_selection", draft_id=draft_id)
