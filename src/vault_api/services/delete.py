"""
Delete orchestration.

The blob is removed before the record. A crash in between leaves a record
whose blob is gone (a dangling record), which stays visible through the
metadata store and is deleted by simply retrying. Both steps are idempotent.
"""

import logging
from typing import Optional

from vault_api.auth.identity import IdentityVerifier
from vault_api.database.base import MetadataStore
from vault_api.errors import AuthorizationError
from vault_api.storage.base import BlobStore
from vault_api.utils.decorators import log_execution_time

logger = logging.getLogger(__name__)


class DeleteOrchestrator:
    def __init__(self, verifier: IdentityVerifier, blob_store: BlobStore, metadata_store: MetadataStore):
        self.verifier = verifier
        self.blob_store = blob_store
        self.metadata_store = metadata_store

    @log_execution_time
    def delete(self, authorization: Optional[str], record_id: str) -> None:
        """Delete one of the caller's files. Deleting a missing record is a no-op."""
        identity = self.verifier.verify(authorization)

        record = self.metadata_store.find_by_id(record_id)
        if record is None:
            logger.info(f"Record {record_id} not found; nothing to delete")
            return

        if record.owner_id != identity.id:
            logger.warning(f"User {identity.id} tried to delete record {record_id} owned by {record.owner_id}")
            raise AuthorizationError("You do not own this file")

        self.blob_store.remove(record.storage_key)
        self.metadata_store.delete_by_id(record.id)
        logger.info(f"Deleted record {record_id} and blob '{record.storage_key}'")
