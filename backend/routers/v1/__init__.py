"""API v1 Route modules."""

from backend.routers.v1 import auth, calculations, reports, templates, workers

__all__ = ["auth", "calculations", "reports", "templates", "workers"]
