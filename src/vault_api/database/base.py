# Base class for metadata store adapters
from abc import ABC, abstractmethod
from typing import List, Optional

from vault_api.schemas import FileRecord, FileRecordDraft


class MetadataStore(ABC):
    """Capability boundary over the store holding file records.

    Every failure surfaces as `DbError`.
    """

    @abstractmethod
    def insert(self, draft: FileRecordDraft) -> FileRecord:
        """Persist a record; the store assigns `id` and `created_at`."""

    @abstractmethod
    def find_by_id(self, record_id: str) -> Optional[FileRecord]:
        pass

    @abstractmethod
    def list_by_owner(self, owner_id: str) -> List[FileRecord]:
        """Records of one owner, newest first."""

    @abstractmethod
    def delete_by_id(self, record_id: str) -> None:
        """Idempotent: deleting a missing record is not an error."""

    @abstractmethod
    def list_all(self) -> List[FileRecord]:
        pass

    @abstractmethod
    def ping(self) -> None:
        pass
