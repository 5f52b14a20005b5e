"""
Vault API Database Layer

Metadata store for file records. The SQLite implementation is the only one
shipped; anything implementing `MetadataStore` can be injected instead.
"""

from vault_api.config.settings import Settings

from .base import MetadataStore
from .sqlite_store import SQLiteMetadataStore


def build_metadata_store(settings: Settings) -> SQLiteMetadataStore:
    store = SQLiteMetadataStore(db_path=settings.db_path, timeout=settings.db_timeout_seconds)
    store.init_schema()
    return store


__all__ = ['MetadataStore', 'SQLiteMetadataStore', 'build_metadata_store']
