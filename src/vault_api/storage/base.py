# Base class for blob store adapters
from abc import ABC, abstractmethod
from typing import List

from vault_api.schemas import BlobInfo, StoredBlob


class BlobStore(ABC):
    """Capability boundary over the object store holding file bytes.

    Every failure surfaces as `StorageError`.
    """

    @abstractmethod
    def put(self, key: str, content: bytes, media_type: str) -> None:
        pass

    @abstractmethod
    def get(self, key: str) -> StoredBlob:
        """Raises `NotFoundError` when nothing is stored under `key`."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Idempotent: removing a key that does not exist is not an error."""

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Pure derivation of a dereferenceable URL; performs no I/O."""

    @abstractmethod
    def list_blobs(self, prefix: str = "") -> List[BlobInfo]:
        pass

    @abstractmethod
    def ping(self) -> None:
        """Raise `StorageError` if the store is unreachable."""
