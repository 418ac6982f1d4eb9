"""
asgi.py -- ASGI entry point for the sign-in service.

Run with:  uvicorn asgi:app --reload

The application and its routers are assembled in api/main.py; this module
only exposes it under the conventional name for ASGI servers.
"""

from api.main import app

__all__ = ["app"]
