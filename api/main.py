
"""
FastAPI application initialization
"""

from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from api.routes import health, webhook, tables, catalog
from api.dependencies import PipelineServices, build_services
from api.errors import register_exception_handlers
from api.middleware import RequestContextMiddleware
from core.config import settings
from core.logging import setup_logging
import logging

setup_logging()

logger = logging.getLogger(__name__)


def create_app(services: Optional[PipelineServices] = None) -> FastAPI:
    """
    Build the application.

    Args:
        services: Pre-built pipeline; built from settings when omitted
    """
    app = FastAPI(
        title="Arweave Parquet Sidecar API",
        description="Webhook ingestion into Parquet tables with Arweave checkpoints",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)

    app.state.services = services or build_services(settings)

    # Include routers
    app.include_router(health.router)
    app.include_router(webhook.router)
    app.include_router(tables.router)
    app.include_router(catalog.router)

    @app.on_event("startup")
    async def startup_event():
        """Application startup event"""
        logger.info("Starting Arweave Parquet Sidecar")
        logger.info(f"Environment: {settings.ENVIRONMENT}")
        logger.info(f"Data directory: {app.state.services.settings.DATA_DIR}")
        await app.state.services.startup()

    @app.on_event("shutdown")
    async def shutdown_event():
        """Application shutdown event"""
        logger.info("Shutting down Arweave Parquet Sidecar")
        await app.state.services.shutdown()

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "ok": True,
            "response": {
                "message": "Arweave Parquet Sidecar",
                "version": "1.0.0",
                "docs": "/docs",
                "health": "/health",
                "endpoints": {
                    "webhook": "/webhook/transaction",
                    "block": "/webhook/block",
                    "status": "/webhook/status",
                    "flush": "/flush",
                    "checkpoint": "/checkpoint",
                    "tables": "/harlequin/tables",
                    "parquet": "/harlequin/parquet/{table}",
                    "catalog": "/harlequin/catalog",
                }
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
