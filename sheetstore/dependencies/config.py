"""
Settings dependency for routes that read configuration directly.
"""

from fastapi import Depends

from sheetstore.core.config import AppSettings, get_settings


def get_app_settings() -> AppSettings:
    """Return the process-wide settings (cached by ``get_settings``)."""
    return get_settings()


SettingsDependency = Depends(get_app_settings)

__all__ = ["SettingsDependency", "get_app_settings"]
