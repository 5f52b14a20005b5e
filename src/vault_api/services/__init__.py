"""
Vault services.

`VaultServices` bundles the orchestrators with the store and auth handles
they share, so the app receives them as one injected dependency and tests
can build it from fakes.
"""

from dataclasses import dataclass

from vault_api.auth.identity import IdentityVerifier
from vault_api.auth.provider import AuthProvider
from vault_api.config.settings import Settings
from vault_api.database import build_metadata_store
from vault_api.database.base import MetadataStore
from vault_api.storage import build_blob_store
from vault_api.storage.base import BlobStore
from vault_api.storage.keys import KeyGenerator

from .delete import DeleteOrchestrator
from .download import DownloadService
from .listing import ListingService
from .reconcile import ReconciliationReport, ReconciliationSweep
from .upload import UploadOrchestrator, classify_content


@dataclass
class VaultServices:
    auth_provider: AuthProvider
    verifier: IdentityVerifier
    blob_store: BlobStore
    metadata_store: MetadataStore
    uploads: UploadOrchestrator
    deletes: DeleteOrchestrator
    listing: ListingService
    downloads: DownloadService

    @classmethod
    def create(
        cls,
        settings: Settings,
        auth_provider: AuthProvider,
        blob_store: BlobStore,
        metadata_store: MetadataStore,
    ) -> "VaultServices":
        verifier = IdentityVerifier(auth_provider)
        return cls(
            auth_provider=auth_provider,
            verifier=verifier,
            blob_store=blob_store,
            metadata_store=metadata_store,
            uploads=UploadOrchestrator(
                verifier=verifier,
                key_generator=KeyGenerator(suffix_length=settings.key_suffix_length),
                blob_store=blob_store,
                metadata_store=metadata_store,
                compensate_orphaned_blobs=settings.compensate_orphaned_blobs,
            ),
            deletes=DeleteOrchestrator(verifier, blob_store, metadata_store),
            listing=ListingService(verifier, metadata_store),
            downloads=DownloadService(verifier, blob_store, metadata_store),
        )


def build_services(settings: Settings) -> VaultServices:
    """Wire real adapters for the configured deployment mode."""
    return VaultServices.create(
        settings,
        auth_provider=AuthProvider.from_settings(settings),
        blob_store=build_blob_store(settings),
        metadata_store=build_metadata_store(settings),
    )


__all__ = [
    'VaultServices', 'build_services',
    'UploadOrchestrator', 'DeleteOrchestrator', 'ListingService', 'DownloadService',
    'ReconciliationSweep', 'ReconciliationReport', 'classify_content',
]
