"""Per-user file vault: blobs in an object store, records in a metadata store."""
