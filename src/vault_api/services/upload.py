"""
Upload orchestration.

Each file is committed in two steps across two stores that share no
transaction: the blob goes to the blob store first, then its record goes to
the metadata store. Files are processed one at a time in input order and the
batch stops at the first failure. Files committed before that point stay
committed; the report tells the caller how far the batch got.

If the record insert fails after the blob was stored, the blob is left
without a record (an orphaned blob). It is logged, and removed only when
`compensate_orphaned_blobs` is enabled; otherwise the reconciliation sweep
picks it up later.
"""

import logging
from typing import Optional, Sequence

from vault_api.auth.identity import IdentityVerifier
from vault_api.database.base import MetadataStore
from vault_api.errors import DbError, StorageError, ValidationError
from vault_api.schemas import (
    ContentClass,
    FileRecordDraft,
    UploadItem,
    UploadReport,
)
from vault_api.storage.base import BlobStore
from vault_api.storage.keys import KeyGenerator
from vault_api.utils.decorators import log_execution_time

logger = logging.getLogger(__name__)


def classify_content(media_type: Optional[str]) -> ContentClass:
    """Map a declared media type to its content class."""
    media_type = (media_type or "").lower()
    if media_type.startswith("image/"):
        return ContentClass.IMAGE
    if media_type.startswith("video/"):
        return ContentClass.VIDEO
    return ContentClass.DOCUMENT


class UploadOrchestrator:
    def __init__(
        self,
        verifier: IdentityVerifier,
        key_generator: KeyGenerator,
        blob_store: BlobStore,
        metadata_store: MetadataStore,
        compensate_orphaned_blobs: bool = False,
    ):
        self.verifier = verifier
        self.key_generator = key_generator
        self.blob_store = blob_store
        self.metadata_store = metadata_store
        self.compensate_orphaned_blobs = compensate_orphaned_blobs

    @log_execution_time
    def upload(self, authorization: Optional[str], files: Sequence[UploadItem]) -> UploadReport:
        """Store a batch of files for the caller.

        Raises `AuthError` before touching any store if the credential is bad,
        and `ValidationError` for an empty batch. Store failures never raise;
        they end the batch and are recorded in the returned report.
        """
        identity = self.verifier.verify(authorization)
        if not files:
            raise ValidationError("No files")

        report = UploadReport(total=len(files))
        for index, item in enumerate(files):
            storage_key = self.key_generator.generate(identity.id, item.filename)

            try:
                self.blob_store.put(storage_key, item.content, item.media_type)
            except StorageError as e:
                logger.error(
                    f"Upload batch for {identity.id} stopped at file {index} ({item.filename!r}): "
                    f"blob put failed: {e.message}"
                )
                report.failed_at = index
                report.error = e
                return report

            draft = FileRecordDraft(
                owner_id=identity.id,
                display_name=item.filename,
                byte_size=item.byte_size,
                content_class=classify_content(item.media_type),
                storage_key=storage_key,
                access_url=self.blob_store.public_url(storage_key),
            )
            try:
                record = self.metadata_store.insert(draft)
            except DbError as e:
                logger.error(
                    f"Upload batch for {identity.id} stopped at file {index} ({item.filename!r}): "
                    f"record insert failed, blob '{storage_key}' is orphaned: {e.message}"
                )
                if self.compensate_orphaned_blobs:
                    self._remove_orphan(storage_key)
                report.failed_at = index
                report.error = e
                return report

            report.succeeded.append(record)

        logger.info(f"Stored {report.processed} file(s) for {identity.id}")
        return report

    def _remove_orphan(self, storage_key: str) -> None:
        try:
            self.blob_store.remove(storage_key)
            logger.info(f"Removed orphaned blob '{storage_key}'")
        except StorageError as e:
            logger.error(f"Could not remove orphaned blob '{storage_key}': {e.message}")
