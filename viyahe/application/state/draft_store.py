from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from viyahe.application.exceptions import StorageError
from viyahe.application.ports.draft_storage import DraftStoragePort
from viyahe.application.state.draft_reducer import (
    CreateDraft,
    DraftAction,
    LoadFromStorage,
    RemoveDraft,
    SetActive,
    SyncServerStatus,
    UpdateDraft,
    check_updates,
    reduce,
)
from viyahe.domain.entities.draft_booking import (
    DraftBooking,
    DraftBookingStatus,
    DraftStoreState,
    generate_draft_id,
)
from viyahe.domain.entities.flight import FlightOffer, FlightSearchParams
from viyahe.domain.entities.passenger import BookingPassenger
from viyahe.domain.entities.submitted_booking import BookingStatus

Listener = Callable[[DraftStoreState], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DraftStore:
    """
    Shared collection of draft bookings for one client.

    Every transition goes through the pure reducer, is persisted through the
    storage port, and only then becomes visible to readers. A failed write
    raises StorageError and leaves the previous state in place.
    """

    def __init__(
        self,
        storage: DraftStoragePort,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = generate_draft_id,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._id_factory = id_factory
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self._logger = logging.getLogger(__name__)
        self._state = reduce(DraftStoreState(), LoadFromStorage(self._load_initial()))

    def _load_initial(self) -> DraftStoreState:
        try:
            stored = self._storage.load()
        except StorageError as e:
            self._logger.error("Failed to load draft bookings", extra={"error": str(e)})
            return DraftStoreState()
        return stored or DraftStoreState()

    @property
    def state(self) -> DraftStoreState:
        return self._state

    @property
    def bookings(self) -> tuple[DraftBooking, ...]:
        return self._state.bookings

    @property
    def active_booking_id(self) -> str | None:
        return self._state.active_booking_id

    @property
    def active_booking(self) -> DraftBooking | None:
        return self._state.active_booking

    def get_draft(self, draft_id: str | None) -> DraftBooking | None:
        return self._state.find(draft_id)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: DraftAction) -> DraftStoreState:
        with self._lock:
            new_state = reduce(self._state, action)
            if new_state is self._state:
                return new_state
            try:
                self._storage.save(new_state)
            except StorageError:
                self._logger.error("Draft change not persisted", extra={"action": type(action).__name__})
                raise
            self._state = new_state
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(new_state)
            except Exception:
                self._logger.exception("Draft store listener failed")
        return new_state

    def create_draft(self) -> str:
        draft_id = self._id_factory()
        self.dispatch(CreateDraft(draft_id=draft_id, now=self._clock()))
        self._logger.info("Draft booking created", extra={"draft_id": draft_id})
        return draft_id

    def update_draft(self, draft_id: str, **updates: Any) -> bool:
        """
        Merge fields into a draft. Returns False when the draft does not exist.
        Raises ValueError, before anything changes, for unknown fields or bad values.
        """
        updates = check_updates(updates)
        with self._lock:
            if self._state.find(draft_id) is None:
                self._logger.warning("Update for unknown draft ignored", extra={"draft_id": draft_id})
                return False
            self.dispatch(UpdateDraft(draft_id=draft_id, updates=updates, now=self._clock()))
        return True

    def set_active(self, draft_id: str | None) -> None:
        self.dispatch(SetActive(draft_id=draft_id))

    def remove_draft(self, draft_id: str) -> None:
        self.dispatch(RemoveDraft(draft_id=draft_id))
        self._logger.info("Draft booking removed", extra={"draft_id": draft_id})

    def set_search_params(self, draft_id: str, params: FlightSearchParams) -> bool:
        return self.update_draft(draft_id, search_params=params, status=DraftBookingStatus.searching)

    def set_selected_flight(self, draft_id: str, flight: FlightOffer) -> bool:
        # Passengers entered for a previous flight are stale once the flight changes.
        return self.update_draft(
            draft_id,
            selected_flight=flight,
            passengers=(),
            status=DraftBookingStatus.filling,
        )

    def clear_selected_flight(self, draft_id: str) -> bool:
        return self.update_draft(
            draft_id,
            selected_flight=None,
            passengers=(),
            status=DraftBookingStatus.searching,
        )

    def set_passengers(self, draft_id: str, passengers: Iterable[BookingPassenger]) -> bool:
        return self.update_draft(draft_id, passengers=tuple(passengers))

    def set_status(self, draft_id: str, status: DraftBookingStatus) -> bool:
        return self.update_draft(draft_id, status=DraftBookingStatus(status))

    def sync_server_status(self, draft_id: str, server_status: BookingStatus) -> bool:
        """Refresh only the cached server status. Returns True if it changed."""
        with self._lock:
            before = self._state
            after = self.dispatch(SyncServerStatus(draft_id=draft_id, server_status=BookingStatus(server_status)))
        return after is not before
