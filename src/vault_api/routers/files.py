from typing import List, Optional
from urllib.parse import quote

from fastapi import (
    APIRouter,
    Depends,
    File,
    Header,
    Path,
    Response,
    UploadFile,
    status,
)
from starlette.concurrency import run_in_threadpool

from vault_api.dependencies import get_services
from vault_api.schemas import (
    DeleteResponse,
    FileRecord,
    UploadItem,
    UploadResponse,
)
from vault_api.services import VaultServices

router = APIRouter()

DEFAULT_MEDIA_TYPE = "application/octet-stream"


@router.post(
    "/files/upload",
    response_model=UploadResponse,
    response_model_exclude_none=True,
    responses={
        status.HTTP_400_BAD_REQUEST: {"description": "No files were sent."},
        status.HTTP_401_UNAUTHORIZED: {"description": "Missing or invalid bearer token."},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"description": "The first file could not be stored."},
    },
)
async def upload_files(
    files: Optional[List[UploadFile]] = File(None, description="Files to store, in order"),
    authorization: Optional[str] = Header(None),
    services: VaultServices = Depends(get_services),
) -> UploadResponse:
    """
    Upload a batch of files.

    Files are stored one by one in the order sent. If a file fails, the
    files after it are not attempted; the files stored before it are kept
    and returned with `failed_at` and `error`.
    """
    items = []
    for upload in files or []:
        content = await upload.read()
        items.append(UploadItem(
            filename=upload.filename or "",
            content=content,
            media_type=upload.content_type or DEFAULT_MEDIA_TYPE,
            declared_size=upload.size if upload.size is not None else len(content),
        ))

    report = await run_in_threadpool(services.uploads.upload, authorization, items)

    if report.complete:
        return UploadResponse(message="Upload success", files=report.succeeded)
    if not report.succeeded:
        raise report.error
    return UploadResponse(
        message="Partial upload",
        files=report.succeeded,
        failed_at=report.failed_at,
        error=report.error.message,
    )


@router.get("/files", response_model=List[FileRecord])
async def list_files(
    authorization: Optional[str] = Header(None),
    services: VaultServices = Depends(get_services),
) -> List[FileRecord]:
    """List the caller's files, most recent first."""
    return await run_in_threadpool(services.listing.list, authorization)


@router.get(
    "/files/{file_id}/download",
    responses={
        status.HTTP_404_NOT_FOUND: {"description": "No such file."},
        status.HTTP_200_OK: {
            "description": "The file content.",
            "content": {
                "application/octet-stream": {
                    "schema": {"type": "string", "format": "binary"},
                },
            },
        },
    },
)
async def download_file(
    file_id: str = Path(..., description="The id of the file record"),
    authorization: Optional[str] = Header(None),
    services: VaultServices = Depends(get_services),
) -> Response:
    """Download one of the caller's files."""
    record, blob = await run_in_threadpool(services.downloads.fetch, authorization, file_id)
    return Response(
        content=blob.content,
        media_type=blob.media_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(record.display_name)}"},
    )


@router.delete("/files/{file_id}", response_model=DeleteResponse)
async def delete_file(
    file_id: str = Path(..., description="The id of the file record to delete"),
    authorization: Optional[str] = Header(None),
    services: VaultServices = Depends(get_services),
) -> DeleteResponse:
    """
    Delete a file and its record.

    Deleting a file that does not exist succeeds, so retries are always safe.
    """
    await run_in_threadpool(services.deletes.delete, authorization, file_id)
    return DeleteResponse(success=True)
