from textwrap import dedent
import logging
from typing import Optional

import pydantic
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException

from vault_api.config.settings import Settings
from vault_api.errors import (
    VaultError,
    handle_broad_exceptions,
    handle_http_exceptions,
    handle_pydantic_validation_errors,
    handle_request_validation_errors,
    handle_vault_errors,
)
from vault_api.routers.auth import router as auth_router
from vault_api.routers.files import router as files_router
from vault_api.routers.health import router as health_router
from vault_api.routers.storage import router as storage_router
from vault_api.services import VaultServices, build_services
from vault_api.utils.logging_setup import configure_logging

# Set up logging
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, services: Optional[VaultServices] = None) -> FastAPI:
    """
    Create a FastAPI application.

    `services` lets callers inject their own adapters (tests pass fakes);
    otherwise they are built from `settings`.
    """
    settings = settings or Settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        summary="Per-user file vault",
        version="v1",
        description=dedent(
            """\
        Upload, list, download and delete your own files.

        | Endpoint group | Notes |
        | --- | --- |
        | `/api/auth/*` | Accounts are managed by the auth provider; login returns a bearer token. |
        | `/api/files*` | Send `Authorization: Bearer <token>`. Uploads are processed in order and stop at the first failure. |
        """
        ),
        docs_url="/docs",
        generate_unique_id_function=custom_generate_unique_id,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    logger.info(f"Starting {settings.app_name} in {settings.deployment_mode} mode")
    app.state.services = services or build_services(settings)

    app.include_router(auth_router, prefix="/api", tags=["auth"])
    app.include_router(files_router, prefix="/api", tags=["files"])
    app.include_router(storage_router, prefix="/api", tags=["storage"])
    app.include_router(health_router, tags=["health"])

    app.add_exception_handler(VaultError, handle_vault_errors)
    app.add_exception_handler(StarletteHTTPException, handle_http_exceptions)
    app.add_exception_handler(RequestValidationError, handle_request_validation_errors)
    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)
