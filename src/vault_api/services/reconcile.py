"""
Detect and repair drift between the blob store and the metadata store.

Uploads may leave orphaned blobs (blob stored, record insert failed) and
interrupted deletes may leave dangling records (blob removed, record still
there). This sweep finds both by joining the two stores on the storage key.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from vault_api.database.base import MetadataStore
from vault_api.errors import DbError, StorageError
from vault_api.schemas import BlobInfo, FileRecord
from vault_api.storage.base import BlobStore

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationReport:
    orphaned_blobs: List[BlobInfo] = field(default_factory=list)
    dangling_records: List[FileRecord] = field(default_factory=list)
    skipped_recent_blobs: int = 0

    @property
    def clean(self) -> bool:
        return not self.orphaned_blobs and not self.dangling_records

    def to_dict(self) -> Dict[str, object]:
        return {
            "orphaned_blobs": [blob.key for blob in self.orphaned_blobs],
            "dangling_records": [record.id for record in self.dangling_records],
            "skipped_recent_blobs": self.skipped_recent_blobs,
        }


@dataclass
class RepairResult:
    removed_blobs: List[str] = field(default_factory=list)
    deleted_records: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


class ReconciliationSweep:
    """
    Compare both stores and optionally repair what does not line up.

    Blobs younger than `min_age_seconds` are skipped: they may belong to an
    upload whose record insert has not happened yet.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        metadata_store: MetadataStore,
        min_age_seconds: int = 3600,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.blob_store = blob_store
        self.metadata_store = metadata_store
        self.min_age = timedelta(seconds=min_age_seconds)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def scan(self) -> ReconciliationReport:
        blobs = self.blob_store.list_blobs()
        records = self.metadata_store.list_all()
        logger.info(f"Reconciling {len(blobs)} blob(s) against {len(records)} record(s)")

        referenced_keys = {record.storage_key for record in records}
        stored_keys = {blob.key for blob in blobs}
        cutoff = self._clock() - self.min_age

        report = ReconciliationReport()
        for blob in blobs:
            if blob.key in referenced_keys:
                continue
            if blob.last_modified > cutoff:
                report.skipped_recent_blobs += 1
                continue
            report.orphaned_blobs.append(blob)

        report.dangling_records = [record for record in records if record.storage_key not in stored_keys]

        logger.info(
            f"Found {len(report.orphaned_blobs)} orphaned blob(s), "
            f"{len(report.dangling_records)} dangling record(s)"
        )
        return report

    def apply(self, report: ReconciliationReport) -> RepairResult:
        """Remove orphaned blobs and delete dangling records. Safe to re-run."""
        result = RepairResult()
        for blob in report.orphaned_blobs:
            try:
                self.blob_store.remove(blob.key)
                result.removed_blobs.append(blob.key)
            except StorageError as e:
                logger.error(f"Failed to remove orphaned blob '{blob.key}': {e.message}")
                result.errors.append(f"{blob.key}: {e.message}")
        for record in report.dangling_records:
            try:
                self.metadata_store.delete_by_id(record.id)
                result.deleted_records.append(record.id)
            except DbError as e:
                logger.error(f"Failed to delete dangling record {record.id}: {e.message}")
                result.errors.append(f"{record.id}: {e.message}")
        return result
