"""
FastAPI dependency utilities for injecting configuration.
"""

from fastapi import Depends

from social_scheduler.core.config import AppSettings, get_settings


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning the process-wide settings.

    ``get_settings`` is already cached, so every request shares one instance.
    """
    return get_settings()


SettingsDependency = Depends(get_app_settings)

__all__ = ["SettingsDependency", "get_app_settings"]
