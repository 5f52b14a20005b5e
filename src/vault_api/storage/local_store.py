import logging
import mimetypes
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

from vault_api.errors import NotFoundError, StorageError
from vault_api.schemas import BlobInfo, StoredBlob
from vault_api.storage.base import BlobStore

logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    """Filesystem blob store used in local-dev mode.

    Blobs live under `<storage_dir>/<bucket_name>/<key>`.
    """

    def __init__(self, storage_dir: str, bucket_name: str, public_url_base: Optional[str] = None):
        self.root = (Path(storage_dir) / bucket_name).resolve()
        self.bucket_name = bucket_name
        self.public_url_base = public_url_base

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if path == self.root or self.root not in path.parents:
            raise StorageError(f"Invalid storage key: {key}")
        return path

    def put(self, key: str, content: bytes, media_type: str) -> None:
        dest_path = self._path_for(key)
        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            with open(dest_path, "wb") as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Error writing '{key}' to {self.root}: {str(e)}")
            raise StorageError(f"Failed to store file: {e}") from e

    def get(self, key: str) -> StoredBlob:
        source_path = self._path_for(key)
        if not source_path.is_file():
            raise NotFoundError(f"Blob '{key}' not found")
        try:
            content = source_path.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read file: {e}") from e
        media_type, _ = mimetypes.guess_type(source_path.name)
        return StoredBlob(content=content, media_type=media_type or "application/octet-stream")

    def remove(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to remove file: {e}") from e

    def public_url(self, key: str) -> str:
        if self.public_url_base:
            return f"{self.public_url_base.rstrip('/')}/{quote(key, safe='/')}"
        return (self.root / key).as_uri()

    def list_blobs(self, prefix: str = "") -> List[BlobInfo]:
        blobs = []
        if not self.root.exists():
            return blobs
        try:
            for dirpath, _, filenames in os.walk(self.root):
                for filename in filenames:
                    path = Path(dirpath) / filename
                    key = path.relative_to(self.root).as_posix()
                    if not key.startswith(prefix):
                        continue
                    stat = path.stat()
                    blobs.append(BlobInfo(
                        key=key,
                        size=stat.st_size,
                        last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    ))
        except OSError as e:
            raise StorageError(f"Failed to list files: {e}") from e
        return sorted(blobs, key=lambda blob: blob.key)

    def ping(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Storage directory {self.root} is not usable: {e}") from e
