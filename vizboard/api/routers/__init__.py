# vizboard/api/routers/__init__.py
"""
API routers for different endpoints.
"""

from . import auth
from . import csv
from . import dashboards
from . import datasets
from . import settings

__all__ = ["auth", "csv", "dashboards", "datasets", "settings"]
