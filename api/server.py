"""
ERP Gateway API Server - REST API between the web UI and Frappe/ERPNext.
"""
# ruff: noqa: S104
# S104: Development server binding (guarded by __name__ check)

import logging
from contextlib import asynccontextmanager
from datetime import datetime

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.accounting_router import accounting_router
from api.dependencies import get_frappe_client
from api.errors import UnhandledErrorMiddleware, install_error_handlers
from api.purchasing_router import purchasing_router
from api.response_models import HealthResponse
from api.selling_router import selling_router
from api.stock_router import stock_router
from engine.frappe_client import FrappeClient, FrappeError
from erplib.config import Settings
from erplib.observability import (
    CorrelationIdMiddleware,
    RequestLoggingMiddleware,
    configure_logging,
)

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, client: FrappeClient | None = None) -> FastAPI:
    """
    Build the application.

    settings defaults to Settings.from_env(); client defaults to a
    FrappeClient built from those settings and closed on shutdown.
    """
    settings = settings or Settings.from_env()
    owns_client = client is None
    client = client or FrappeClient.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=== ERP Gateway Startup ===")
        logger.info(f"ERP: {settings.erp_api_url}")
        logger.info(f"Default company: {settings.default_company}")
        if not settings.api_token:
            logger.warning("ERP_GATEWAY_API_TOKEN not set - API is unauthenticated")
        yield
        if owns_client:
            client.close()

    app = FastAPI(
        title="ERP Gateway API",
        description="Accounting, purchasing, selling and stock API over Frappe/ERPNext",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.frappe = client

    # The last middleware added is the outermost: CORS, request ID, request log, 500 envelope
    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)

    app.include_router(accounting_router, prefix="/api/accounting")
    app.include_router(purchasing_router, prefix="/api/purchasing")
    app.include_router(selling_router, prefix="/api/selling")
    app.include_router(stock_router, prefix="/api/stock")

    @app.get("/api/health", response_model=HealthResponse)
    def health_check(frappe: FrappeClient = Depends(get_frappe_client)):
        """Health check: is the ERP reachable with our credentials?"""
        timestamp = datetime.now().isoformat()
        try:
            user = frappe.ping()
        except FrappeError as e:
            logger.warning(f"Health check failed: {e.message}")
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "erp_reachable": False,
                    "error": e.message,
                    "timestamp": timestamp,
                },
            )
        return {
            "status": "healthy",
            "erp_reachable": True,
            "erp_user": user,
            "timestamp": timestamp,
        }

    return app


# ==== Main ====


def main():
    """Run the server."""
    settings = Settings.from_env()
    configure_logging(settings.log_level, settings.log_json)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
