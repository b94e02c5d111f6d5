from __future__ import annotations

import copy
import logging
from typing import Any

from pydantic import ValidationError

from viyahe.application.ports.draft_storage import DraftStoragePort
from viyahe.domain.entities.draft_booking import DraftStoreState
from viyahe.infrastructure.store.codec import (
    STORAGE_VERSION,
    deserialize_draft_state,
    serialize_draft_state,
)


class MemoryDraftStorage(DraftStoragePort):
    """Keeps the serialized payload in memory, the way a browser keeps a localStorage entry."""

    def __init__(self, payload: dict[str, Any] | None = None) -> None:
        self._payload = copy.deepcopy(payload) if payload is not None else None
        self._logger = logging.getLogger(__name__)

    @property
    def payload(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._payload)

    def load(self) -> DraftStoreState | None:
        if self._payload is None:
            return None
        if self._payload.get("version") != STORAGE_VERSION:
            self._payload = None
            return None
        try:
            return deserialize_draft_state(self._payload)
        except ValidationError as e:
            self._logger.error("Stored draft bookings are malformed", extra={"error": str(e)})
            return None

    def save(self, state: DraftStoreState) -> None:
        self._payload = serialize_draft_state(state)

    def clear(self) -> None:
        self._payload = None
