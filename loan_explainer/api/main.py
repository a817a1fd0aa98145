"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from loan_explainer.api.middleware import MetricsMiddleware, RequestIDMiddleware
from loan_explainer.api.v1 import assessment, counterfactuals
from loan_explainer.config import settings
from loan_explainer.domain.engine_config import EngineConfig, load_engine_config
from loan_explainer.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level)


def create_app(engine_config: EngineConfig | None = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    The engine configuration is loaded and validated here, so an invalid
    table fails startup instead of a request.
    """
    app = FastAPI(
        title="Loan Risk Explainer",
        description="Explainable loan risk assessment, decisions and counterfactuals",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.engine_config = engine_config or load_engine_config(settings.engine_config_path)

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(assessment.router, prefix="/v1", tags=["assessments"])
    app.include_router(counterfactuals.router, prefix="/v1", tags=["counterfactuals"])

    return app


app = create_app()
