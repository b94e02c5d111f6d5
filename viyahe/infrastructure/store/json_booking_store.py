from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from viyahe.application.exceptions import StorageError
from viyahe.domain.entities.submitted_booking import SubmittedBooking
from viyahe.infrastructure.store.booking_records import RecordBookingStore
from viyahe.infrastructure.store.codec import deserialize_bookings, serialize_bookings
from viyahe.infrastructure.store.json_draft_storage import write_json_atomic


class JsonBookingStore(RecordBookingStore):
    """Submitted bookings kept as one JSON array, shared by client and agent views."""

    def __init__(self, file_path: str | Path = "./data/submitted_bookings.json", **kwargs) -> None:
        super().__init__(**kwargs)
        self._file_path = Path(file_path)
        self._file_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def file_path(self) -> Path:
        return self._file_path

    def _read_all(self) -> list[SubmittedBooking]:
        if not self._file_path.exists():
            return []
        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return deserialize_bookings(data if isinstance(data, list) else [])
        except (json.JSONDecodeError, OSError, ValidationError) as e:
            self._logger.error("Failed to load bookings", extra={"error": str(e)})
            raise StorageError(f"Failed to load bookings: {e}") from e

    def _write_all(self, bookings: list[SubmittedBooking]) -> None:
        write_json_atomic(self._file_path, serialize_bookings(bookings))

    def clear(self) -> None:
        with self._lock:
            self._file_path.unlink(missing_ok=True)
