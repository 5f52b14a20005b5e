import logging
from typing import List, Optional

from vault_api.auth.identity import IdentityVerifier
from vault_api.database.base import MetadataStore
from vault_api.errors import DbError
from vault_api.schemas import FileRecord

logger = logging.getLogger(__name__)


class ListingService:
    """Read-only view of a user's files, newest first."""

    def __init__(self, verifier: IdentityVerifier, metadata_store: MetadataStore):
        self.verifier = verifier
        self.metadata_store = metadata_store

    def list(self, authorization: Optional[str]) -> List[FileRecord]:
        """List the caller's records.

        Auth failures raise. A failing query degrades to an empty list so the
        client keeps rendering; the error is only logged.
        """
        identity = self.verifier.verify(authorization)
        try:
            return self.metadata_store.list_by_owner(identity.id)
        except DbError as e:
            logger.error(f"Listing files for {identity.id} failed, returning empty list: {e.message}")
            return []
