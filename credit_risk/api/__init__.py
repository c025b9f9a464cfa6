"""HTTP routers for the credit scoring service."""

from .router import build_router
from .routes import build_base_router

__all__ = ["build_router", "build_base_router"]
