"""Main FastAPI application module."""

from collections.abc import Callable

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from post_oracle.api.router import router as intake_router
from post_oracle.core.config import Settings, settings
from post_oracle.core.events import create_ledger, create_lifespan
from post_oracle.ledger.base import BaseLedger
from post_oracle.middleware.correlation import CorrelationMiddleware
from post_oracle.middleware.errors import ErrorHandlingMiddleware, register_error_handlers
from post_oracle.middleware.metrics import MetricsMiddleware


def create_app(
    config: Settings | None = None,
    ledger_factory: Callable[[Settings], BaseLedger] = create_ledger,
) -> FastAPI:
    """Build the oracle application.

    Args:
        config: Settings, defaults to the environment-loaded settings
        ledger_factory: Builds the ledger client at startup

    Returns:
        Configured FastAPI app
    """
    config = config or settings

    app = FastAPI(
        title=config.app_name,
        description="Off-chain similarity oracle for the post manager contract",
        version=config.version,
        default_response_class=JSONResponse,
        lifespan=create_lifespan(config, ledger_factory),
    )

    # Add middleware in order (inside -> out):
    # 1. CORS (outermost)
    # 2. Correlation (adds request ID)
    # 3. Metrics (tracks all requests)
    # 4. Error handling (innermost - handles all errors)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        max_age=600,
    )
    register_error_handlers(app)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose Prometheus metrics."""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(intake_router)
    return app


app = create_app()
