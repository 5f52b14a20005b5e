"""
Configuration management for the Vault API.

Contains Pydantic settings and mode-aware configuration that works across
local-dev, aws-mock, and aws-prod deployment modes.
"""

from .settings import Settings, get_settings

__all__ = ['Settings', 'get_settings']
