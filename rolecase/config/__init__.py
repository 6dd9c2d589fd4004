"""Application configuration."""

from rolecase.config.settings import ParseMode, Settings, get_settings, reset_settings

__all__ = ["ParseMode", "Settings", "get_settings", "reset_settings"]
