from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from viyahe.application.exceptions import StorageError
from viyahe.application.ports.draft_storage import DraftStoragePort
from viyahe.domain.entities.draft_booking import DraftStoreState
from viyahe.infrastructure.store.codec import (
    STORAGE_VERSION,
    deserialize_draft_state,
    serialize_draft_state,
)


def write_json_atomic(file_path: Path, data: Any) -> None:
    """Write JSON to a temp file, then rename it over the target."""
    temp_path = file_path.with_suffix(file_path.suffix + ".tmp")
    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        temp_path.replace(file_path)
    except (OSError, TypeError, ValueError) as e:
        if temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass
        raise StorageError(f"Failed to write {file_path.name}: {e}") from e


class JsonDraftStorage(DraftStoragePort):
    def __init__(self, file_path: str | Path = "./data/draft_bookings.json") -> None:
        self._file_path = Path(file_path)
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    @property
    def file_path(self) -> Path:
        return self._file_path

    def load(self) -> DraftStoreState | None:
        with self._lock:
            if not self._file_path.exists():
                return None

            try:
                with open(self._file_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                self._logger.error("Failed to read draft bookings", extra={"error": str(e)})
                return None

            if not isinstance(data, dict) or data.get("version") != STORAGE_VERSION:
                self._logger.warning("Draft storage version mismatch, resetting state")
                self._file_path.unlink(missing_ok=True)
                return None

            try:
                return deserialize_draft_state(data)
            except ValidationError as e:
                self._logger.error("Stored draft bookings are malformed", extra={"error": str(e)})
                return None

    def save(self, state: DraftStoreState) -> None:
        with self._lock:
            write_json_atomic(self._file_path, serialize_draft_state(state))

    def clear(self) -> None:
        with self._lock:
            self._file_path.unlink(missing_ok=True)
