"""Configuration package for the Time Tool Server"""

from .settings import get_settings, clear_settings_cache, Settings

__all__ = ["get_settings", "clear_settings_cache", "Settings"]
