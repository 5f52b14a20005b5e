from typing import Optional, Tuple

from vault_api.auth.identity import IdentityVerifier
from vault_api.database.base import MetadataStore
from vault_api.errors import AuthorizationError, NotFoundError
from vault_api.schemas import FileRecord, StoredBlob
from vault_api.storage.base import BlobStore


class DownloadService:
    """Owner-checked read of a stored file."""

    def __init__(self, verifier: IdentityVerifier, blob_store: BlobStore, metadata_store: MetadataStore):
        self.verifier = verifier
        self.blob_store = blob_store
        self.metadata_store = metadata_store

    def fetch(self, authorization: Optional[str], record_id: str) -> Tuple[FileRecord, StoredBlob]:
        identity = self.verifier.verify(authorization)

        record = self.metadata_store.find_by_id(record_id)
        if record is None:
            raise NotFoundError(f"File {record_id} not found")
        if record.owner_id != identity.id:
            raise AuthorizationError("You do not own this file")

        # A missing blob here is a dangling record; report it as not found
        return record, self.blob_store.get(record.storage_key)
