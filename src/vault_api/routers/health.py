from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from vault_api.config.settings import Settings
from vault_api.dependencies import get_app_settings, get_services
from vault_api.errors import VaultError
from vault_api.services import VaultServices

router = APIRouter()


@router.get("/health")
async def health_check(
    settings: Settings = Depends(get_app_settings),
    services: VaultServices = Depends(get_services),
):
    """
    Health check endpoint for monitoring API status and component readiness.

    Returns status of the API, blob store and metadata store along with deployment mode.
    """
    health_status = {
        "status": "ok",
        "deployment_mode": settings.deployment_mode,
        "components": {
            "api": "ready",
            "blob_store": "ready",
            "metadata_store": "ready",
        },
        "ready": False
    }

    for component, store in (("blob_store", services.blob_store), ("metadata_store", services.metadata_store)):
        try:
            await run_in_threadpool(store.ping)
        except VaultError as e:
            health_status["components"][component] = f"error: {e.message}"
            health_status["status"] = "degraded"

    health_status["ready"] = all(state == "ready" for state in health_status["components"].values())

    return health_status
