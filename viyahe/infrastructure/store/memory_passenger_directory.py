from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable

from pydantic import TypeAdapter, ValidationError

from viyahe.application.dto.errors import field_errors_from
from viyahe.application.exceptions import PassengerNotFoundError, ValidationFailedError
from viyahe.application.ports.passenger_directory import PassengerDirectoryPort
from viyahe.domain.entities.passenger import SavedPassenger

_saved_passenger_adapter = TypeAdapter(SavedPassenger)

PROTECTED_FIELDS = ("id", "organization_id", "created_by", "created_at", "updated_at")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def filter_passengers(passengers: list[SavedPassenger], query: str) -> list[SavedPassenger]:
    needle = query.strip().lower()
    if not needle:
        return list(passengers)
    return [
        p
        for p in passengers
        if needle in f"{p.first_name} {p.last_name}".lower() or needle in p.email.lower()
    ]


class MemoryPassengerDirectory(PassengerDirectoryPort):
    def __init__(
        self,
        organization_id: str,
        user_id: str,
        passengers: list[SavedPassenger] | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._organization_id = organization_id
        self._user_id = user_id
        self._passengers: list[SavedPassenger] = list(passengers or [])
        self._clock = clock
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def _build(self, data: dict[str, Any]) -> SavedPassenger:
        now = self._clock()
        payload = {k: v for k, v in data.items() if k not in PROTECTED_FIELDS}
        payload.update(
            id=f"pax-{uuid.uuid4().hex[:10]}",
            organization_id=self._organization_id,
            created_by=self._user_id,
            created_at=now,
            updated_at=now,
        )
        try:
            return _saved_passenger_adapter.validate_python(payload)
        except ValidationError as e:
            raise ValidationFailedError("Invalid passenger data", field_errors_from(e)) from e

    def list(self, search: str | None = None) -> list[SavedPassenger]:
        with self._lock:
            result = list(self._passengers)
        if search:
            result = filter_passengers(result, search)
        return sorted(result, key=lambda p: (p.last_name.lower(), p.first_name.lower()))

    def get(self, passenger_id: str) -> SavedPassenger | None:
        with self._lock:
            return next((p for p in self._passengers if p.id == passenger_id), None)

    def create(self, data: dict[str, Any]) -> SavedPassenger:
        passenger = self._build(data)
        with self._lock:
            self._passengers.append(passenger)
        return passenger

    def update(self, passenger_id: str, data: dict[str, Any]) -> SavedPassenger:
        with self._lock:
            for index, existing in enumerate(self._passengers):
                if existing.id != passenger_id:
                    continue
                merged = {**_saved_passenger_adapter.dump_python(existing), **data}
                for key in PROTECTED_FIELDS:
                    merged[key] = getattr(existing, key)
                try:
                    validated = _saved_passenger_adapter.validate_python(merged)
                except ValidationError as e:
                    raise ValidationFailedError("Invalid passenger data", field_errors_from(e)) from e
                updated = replace(validated, updated_at=self._clock())
                self._passengers[index] = updated
                return updated
        raise PassengerNotFoundError(passenger_id)

    def delete(self, passenger_id: str) -> None:
        with self._lock:
            for index, existing in enumerate(self._passengers):
                if existing.id == passenger_id:
                    del self._passengers[index]
                    return
        raise PassengerNotFoundError(passenger_id)

    def bulk_create(self, items: list[dict[str, Any]]) -> list[SavedPassenger]:
        created = [self._build(item) for item in items]
        with self._lock:
            self._passengers.extend(created)
        self._logger.info("Saved passengers created", extra={"action": "bulk_create"})
        return created
