from typing import List

from fastapi import APIRouter, Depends

from vault_api.config.settings import Settings
from vault_api.dependencies import get_app_settings
from vault_api.schemas import StorageNode

router = APIRouter()


@router.get("/storage/nodes", response_model=List[StorageNode])
async def list_storage_nodes(settings: Settings = Depends(get_app_settings)) -> List[StorageNode]:
    """Static descriptor of the storage backing this vault."""
    return [StorageNode(id="default", name="Primary Vault", bucket_name=settings.s3_bucket_name)]
