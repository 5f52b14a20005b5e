from fastapi import Request

from vault_api.config.settings import Settings
from vault_api.services import VaultServices


def get_services(request: Request) -> VaultServices:
    """Services dependency; the app builds them once at start-up."""
    return request.app.state.services


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
