from abc import ABC, abstractmethod

from viyahe.domain.entities.draft_booking import DraftStoreState


class DraftStoragePort(ABC):
    @abstractmethod
    def load(self) -> DraftStoreState | None:
        """
        Read the persisted draft collection.
        Returns None when nothing usable is stored (missing, unreadable or an
        older schema version).
        """
        raise NotImplementedError

    @abstractmethod
    def save(self, state: DraftStoreState) -> None:
        """Persist the whole collection. Raises StorageError on failure."""
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError
