"""
vizboard Core Module

Configuration shared by the API, services and command line tools.
"""

from vizboard.core.config import settings, get_settings, Settings

__all__ = [
    # Configuration
    "settings",
    "get_settings",
    "Settings",
]
