"""Routes package for FastAPI endpoints.

This package contains all API route modules for the feedback service.
"""

from app.routes import follow_up, health, redemption, surveys

__all__ = ["follow_up", "health", "redemption", "surveys"]
