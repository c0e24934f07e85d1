# vizboard/__init__.py
"""
vizboard

REST backend for a chart dashboard application. Upload CSV datasets, save
chart configurations against them, and keep per-user and per-group settings.
"""

__version__ = "2.1.0"
__license__ = "MIT"

# Core components
from vizboard.core import settings

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Core
    "settings",
]
