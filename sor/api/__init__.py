"""HTTP API for the router."""

from sor.api.main import app

__all__ = ["app"]
