"""Application entrypoint for the credit risk scoring FastAPI service."""

from typing import Optional

from fastapi import FastAPI
import uvicorn

from credit_risk.api.router import build_router
from credit_risk.api.routes import build_base_router
from credit_risk.core import AppSettings, get_logger, load_settings, setup_logging
from credit_risk.ml.inference import CreditScoringInferenceService
from credit_risk.ml.registry import ScoringServiceRegistry


logger = get_logger(__name__)


def create_app(
    settings: Optional[AppSettings] = None,
    registry: Optional[ScoringServiceRegistry] = None,
    inference: Optional[CreditScoringInferenceService] = None,
) -> FastAPI:
    """Create and configure a FastAPI application instance."""
    settings = settings or load_settings()
    setup_logging(settings.log_level)
    app = FastAPI(title=settings.app_name, debug=settings.debug)

    if registry is None:
        registry = ScoringServiceRegistry(
            window_months=settings.window_months,
            join_policy=settings.join_policy,
        )
    if inference is None:
        inference = CreditScoringInferenceService(
            model_path=settings.model_path,
            decision_threshold=settings.decision_threshold,
            window_months=settings.window_months,
            join_policy=settings.join_policy,
        )

    if inference.is_loaded:
        try:
            registry.publish(
                name=settings.service_name,
                version=settings.service_version,
                artifact=inference.artifact,
                description="Runtime model loaded from {0}".format(inference.model_path),
            )
        except Exception:
            logger.exception(
                "Failed to publish runtime model as service name=%s version=%s",
                settings.service_name,
                settings.service_version,
            )
    else:
        logger.warning("Runtime credit model unavailable path=%s; /score will return 503.", settings.model_path)

    app.state.settings = settings
    app.state.registry = registry
    app.state.inference = inference
    app.include_router(build_base_router(settings))
    app.include_router(build_router(settings, registry, inference))

    logger.info("Application initialized: %s", settings.app_name)
    return app


def run() -> None:
    """Start the ASGI server for local development."""
    settings = load_settings()
    try:
        uvicorn.run(
            "credit_risk.main:create_app",
            factory=True,
            host=settings.host,
            port=settings.port,
            reload=settings.debug,
        )
    except Exception:
        logger.exception("Failed to start uvicorn server.")
        raise


if __name__ == "__main__":
    run()
