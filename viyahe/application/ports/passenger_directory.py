from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from viyahe.domain.entities.passenger import SavedPassenger


class PassengerDirectoryPort(ABC):
    @abstractmethod
    def list(self, search: str | None = None) -> list[SavedPassenger]:
        """List saved passengers sorted by last name, then first name."""
        raise NotImplementedError

    @abstractmethod
    def get(self, passenger_id: str) -> SavedPassenger | None:
        raise NotImplementedError

    @abstractmethod
    def create(self, data: dict[str, Any]) -> SavedPassenger:
        raise NotImplementedError

    @abstractmethod
    def update(self, passenger_id: str, data: dict[str, Any]) -> SavedPassenger:
        raise NotImplementedError

    @abstractmethod
    def delete(self, passenger_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def bulk_create(self, items: list[dict[str, Any]]) -> list[SavedPassenger]:
        raise NotImplementedError
