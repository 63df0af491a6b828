"""HTTP API for MapMyWay."""

from .routes import router

__all__ = ["router"]
