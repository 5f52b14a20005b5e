####################################
# --- Request/response schemas --- #
####################################

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)

from vault_api.errors import VaultError


class ContentClass(str, Enum):
    """Coarse class of an uploaded file, fixed at upload time."""
    IMAGE = 'image'
    VIDEO = 'video'
    DOCUMENT = 'document'


class UserIdentity(BaseModel):
    """A verified user as reported by the auth provider.

    Only `id` matters to the rest of the system; it is the ownership key.
    """
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="allow")


class FileRecordDraft(BaseModel):
    """A file record before the metadata store assigns `id` and `created_at`."""
    owner_id: str
    display_name: str
    byte_size: int = Field(ge=0)
    content_class: ContentClass
    storage_key: str
    access_url: str


class FileRecord(BaseModel):
    """Persisted metadata of one uploaded file.

    Field names follow the domain; aliases follow the wire shape
    `{id, owner_id, name, size, type, url, storage_path, created_at}`.
    """
    id: str
    owner_id: str
    display_name: str = Field(alias="name")
    byte_size: int = Field(alias="size")
    content_class: ContentClass = Field(alias="type")
    access_url: str = Field(alias="url")
    storage_key: str = Field(alias="storage_path")
    created_at: datetime

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "3f0c2a9e5d6b4c1f8a7e9b0d1c2e3f4a",
                "owner_id": "8d4f1c52-7a0e-4b8e-9a55-0f2d7c9e1b34",
                "name": "holiday.png",
                "size": 52311,
                "type": "image",
                "url": "https://vault.s3.us-east-1.amazonaws.com/8d4f1c52-7a0e-4b8e-9a55-0f2d7c9e1b34/1735689600000_k2j9x0q7ma.png",
                "storage_path": "8d4f1c52-7a0e-4b8e-9a55-0f2d7c9e1b34/1735689600000_k2j9x0q7ma.png",
                "created_at": "2025-01-01T00:00:00.000000+00:00",
            }
        },
    )


@dataclass(frozen=True)
class UploadItem:
    """One file of an upload batch as received from the client."""
    filename: str
    content: bytes
    media_type: str
    declared_size: Optional[int] = None

    @property
    def byte_size(self) -> int:
        return self.declared_size if self.declared_size is not None else len(self.content)


@dataclass
class UploadReport:
    """Outcome of an upload batch.

    `failed_at` is the index of the file that stopped the batch; files after it
    were never attempted. `succeeded` holds the committed records in input order.
    """
    total: int
    succeeded: List[FileRecord] = field(default_factory=list)
    failed_at: Optional[int] = None
    error: Optional[VaultError] = None

    @property
    def complete(self) -> bool:
        return self.failed_at is None and len(self.succeeded) == self.total

    @property
    def processed(self) -> int:
        return len(self.succeeded)

    @property
    def remaining(self) -> int:
        """Files not committed, the failed one included."""
        return self.total - len(self.succeeded)


@dataclass(frozen=True)
class BlobInfo:
    key: str
    size: int
    last_modified: datetime


@dataclass(frozen=True)
class StoredBlob:
    content: bytes
    media_type: str


class RegisterRequest(BaseModel):
    """Body of `POST /api/auth/register`."""
    email: Optional[str] = None
    password: Optional[str] = None
    username: Optional[str] = None


class LoginRequest(BaseModel):
    """Body of `POST /api/auth/login`. `username` carries the e-mail address."""
    username: Optional[str] = None
    password: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class RegisterResponse(BaseModel):
    message: str
    user: Dict[str, Any]


class LoginResponse(BaseModel):
    message: str
    token: str
    user: Dict[str, Any]


class UploadResponse(BaseModel):
    """Response model for `POST /api/files/upload`."""
    message: str
    files: List[FileRecord]
    failed_at: Optional[int] = Field(
        None,
        description="Index of the file that stopped the batch; absent when every file was stored.",
    )
    error: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message": "Partial upload",
                "files": [FileRecord.model_config["json_schema_extra"]["example"]],
                "failed_at": 1,
                "error": "Failed to store file: SlowDown",
            }
        }
    )


class DeleteResponse(BaseModel):
    success: bool = True


class StorageNode(BaseModel):
    id: str
    name: str
    bucket_name: str
