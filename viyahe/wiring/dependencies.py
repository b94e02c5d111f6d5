from functools import lru_cache
import logging
from pathlib import Path

from viyahe.core.config import settings
from viyahe.application.ports.booking_store import BookingStorePort
from viyahe.application.ports.draft_storage import DraftStoragePort
from viyahe.application.ports.passenger_directory import PassengerDirectoryPort
from viyahe.application.state.draft_store import DraftStore
from viyahe.application.use_cases.agent_review import AgentReviewUseCase
from viyahe.application.use_cases.confirmation import ConfirmationUseCase
from viyahe.application.use_cases.flight_selection import FlightSelectionUseCase
from viyahe.application.use_cases.passenger_filling import PassengerFillingUseCase
from viyahe.application.use_cases.reconciliation_poller import ReconciliationPoller
from viyahe.application.use_cases.search_flights import SearchFlightsUseCase
from viyahe.application.use_cases.submit_booking import SubmitBookingUseCase
from viyahe.infrastructure.bookings.http_booking_store import HttpBookingStore
from viyahe.infrastructure.store.json_booking_store import JsonBookingStore
from viyahe.infrastructure.store.json_draft_storage import JsonDraftStorage
from viyahe.infrastructure.store.memory_booking_store import MemoryBookingStore
from viyahe.infrastructure.store.memory_draft_storage import MemoryDraftStorage
from viyahe.infrastructure.store.memory_passenger_directory import MemoryPassengerDirectory


_draft_store: DraftStore | None = None
_booking_store: BookingStorePort | None = None


def _is_local() -> bool:
    return settings.ENV.lower() in {"dev", "local"}


def _booking_backend() -> str:
    backend = (settings.BOOKING_BACKEND or "").strip().lower()
    if backend:
        return backend
    return "json" if _is_local() else "memory"


def get_draft_storage() -> DraftStoragePort:
    if _is_local():
        return JsonDraftStorage(Path(settings.DATA_DIR) / settings.DRAFTS_FILE_NAME)
    return MemoryDraftStorage()


def get_draft_store() -> DraftStore:
    global _draft_store
    if _draft_store is None:
        _draft_store = DraftStore(get_draft_storage())
    return _draft_store


def get_booking_store() -> BookingStorePort:
    global _booking_store
    if _booking_store is None:
        logger = logging.getLogger(__name__)
        backend = _booking_backend()
        if backend == "json":
            _booking_store = JsonBookingStore(
                Path(settings.DATA_DIR) / settings.BOOKINGS_FILE_NAME,
                default_uploader=settings.AGENT_ID,
            )
        elif backend == "memory":
            _booking_store = MemoryBookingStore(default_uploader=settings.AGENT_ID)
        elif backend == "http":
            _booking_store = HttpBookingStore()
        else:
            raise ValueError(f"Unknown BOOKING_BACKEND: {backend!r}")
        logger.info("Booking store ready", extra={"action": backend})
    return _booking_store


@lru_cache
def get_passenger_directory() -> PassengerDirectoryPort:
    return MemoryPassengerDirectory(settings.ORGANIZATION_ID, settings.USER_ID)


def get_passenger_filling_use_case() -> PassengerFillingUseCase:
    return PassengerFillingUseCase(drafts=get_draft_store())


def get_reconciliation_poller() -> ReconciliationPoller:
    return ReconciliationPoller(
        drafts=get_draft_store(),
        bookings=get_booking_store(),
        interval_seconds=settings.POLL_INTERVAL_SECONDS,
    )


def get_container() -> dict[str, object]:
    drafts = get_draft_store()
    bookings = get_booking_store()
    filling = get_passenger_filling_use_case()
    return {
        "drafts": drafts,
        "bookings": bookings,
        "directory": get_passenger_directory(),
        "search": SearchFlightsUseCase(drafts=drafts),
        "selection": FlightSelectionUseCase(drafts=drafts),
        "filling": filling,
        "submit": SubmitBookingUseCase(
            drafts=drafts,
            bookings=bookings,
            filling=filling,
            directory=get_passenger_directory(),
        ),
        "confirmation": ConfirmationUseCase(drafts=drafts, bookings=bookings),
        "agent": AgentReviewUseCase(bookings=bookings),
        "poller": get_reconciliation_poller(),
    }


def reset_container() -> None:
    """Drop cached singletons so the next getter rebuilds from current settings."""
    global _draft_store, _booking_store
    _draft_store = None
    _booking_store = None
    get_passenger_directory.cache_clear()
