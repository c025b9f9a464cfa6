"""Basic HTTP route declarations for the FastAPI application."""

from typing import Union

from fastapi import APIRouter

from credit_risk import __version__
from credit_risk.core.config import AppSettings


def build_base_router(settings: AppSettings) -> APIRouter:
    """Build root, health, and settings routes with injected settings."""
    router = APIRouter()

    @router.get("/", summary="Root endpoint")
    def read_root() -> dict[str, str]:
        """Return a basic message confirming service availability."""
        return {"message": "{0} is running".format(settings.app_name), "version": __version__}

    @router.get("/health", summary="Health check")
    def health_check() -> dict[str, str]:
        """Return service health status for probes and monitors."""
        return {"status": "ok"}

    @router.get("/settings", summary="Settings snapshot")
    def get_settings_snapshot() -> dict[str, Union[str, bool, int, float]]:
        """Expose non-sensitive settings useful for local verification."""
        return {
            "app_name": settings.app_name,
            "debug": settings.debug,
            "host": settings.host,
            "port": settings.port,
            "window_months": settings.window_months,
            "join_policy": settings.join_policy,
            "decision_threshold": settings.decision_threshold,
        }

    return router
