from __future__ import annotations

import logging
import threading

from viyahe.application.exceptions import BookingError
from viyahe.application.ports.booking_store import BookingStorePort
from viyahe.application.state.draft_store import DraftStore
from viyahe.core.config import settings
from viyahe.domain.entities.draft_booking import DraftBooking, DraftBookingStatus


def needs_refresh(draft: DraftBooking) -> bool:
    if draft.status != DraftBookingStatus.submitted or not draft.server_booking_id:
        return False
    return draft.server_status is None or not draft.server_status.is_terminal


class ReconciliationPoller:
    """
    Copies submitted-booking status changes back onto their drafts.

    Only the draft's cached server_status is written. Drafts whose cached
    status is terminal are no longer polled.
    """

    def __init__(
        self,
        drafts: DraftStore,
        bookings: BookingStorePort,
        interval_seconds: float | None = None,
    ) -> None:
        self._drafts = drafts
        self._bookings = bookings
        self._interval = settings.POLL_INTERVAL_SECONDS if interval_seconds is None else interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._logger = logging.getLogger(__name__)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll_once(self) -> int:
        """Run one reconciliation cycle. Returns the number of drafts updated."""
        updated = 0
        for draft in self._drafts.bookings:
            if not needs_refresh(draft):
                continue
            try:
                booking = self._bookings.get_booking_by_id(draft.server_booking_id)
            except BookingError as e:
                self._logger.warning(
                    "Status check failed",
                    extra={"draft_id": draft.id, "booking_id": draft.server_booking_id, "error": str(e)},
                )
                continue
            if booking is None:
                self._logger.warning(
                    "Submitted booking missing",
                    extra={"draft_id": draft.id, "booking_id": draft.server_booking_id},
                )
                continue
            if booking.status == draft.server_status:
                continue
            try:
                if self._drafts.sync_server_status(draft.id, booking.status):
                    updated += 1
                    self._logger.info(
                        "Draft status synced",
                        extra={"draft_id": draft.id, "booking_id": booking.id, "status": booking.status.value},
                    )
            except BookingError as e:
                self._logger.error("Could not store synced status", extra={"draft_id": draft.id, "error": str(e)})
        return updated

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll_once()
            except Exception:
                self._logger.exception("Reconciliation cycle failed")
            self._stop_event.wait(self._interval)

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="reconciliation-poller", daemon=True)
        self._thread.start()
        self._logger.info("Reconciliation poller started", extra={"action": "start"})

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            self._logger.info("Reconciliation poller stopped", extra={"action": "stop"})

    def __enter__(self) -> ReconciliationPoller:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
