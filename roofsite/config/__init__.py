"""
Configuration layer - application settings
"""

from roofsite.config.settings import settings, Settings, PROJECT_ROOT

__all__ = [
    "settings",
    "Settings",
    "PROJECT_ROOT",
]
