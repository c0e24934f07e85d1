"""
vizboard Services Module

Business logic behind the HTTP routers: CSV ingestion, the dataset and
dashboard stores, typed user/group settings, and authentication.

Routers import the individual modules, e.g.
``from vizboard.services import dataset_service``.
"""
