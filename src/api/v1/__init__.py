"""
API v1 package.

Contains versioned API routes for registration, verification and sign-in.
"""

from src.api.v1.routes import router

__all__ = ["router"]
