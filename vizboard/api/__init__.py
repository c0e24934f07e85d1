"""
vizboard API Module

FastAPI-based REST API for the vizboard dashboard service.
Handles authentication, dataset and dashboard storage, raw CSV inspection
and user/group settings. The ASGI app lives in ``vizboard.api.main``.
"""

__version__ = "2.1.0"
