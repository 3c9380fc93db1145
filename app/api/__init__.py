"""HTTP boundary of the reward engine."""

from app.api.server import create_app

__all__ = ["create_app"]
