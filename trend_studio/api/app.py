"""FastAPI application factory for the TrendStudio API.

This module provides the application factory with OpenAPI documentation,
CORS configuration, the Prometheus endpoint and static hosting of the
single-page client.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ..config import STATIC_DIR
from ..metrics import MetricsMiddleware
from .routes import router

logger = logging.getLogger(__name__)


def _mount_spa(app: FastAPI, static_dir: Path) -> None:
    """Serve built client assets, falling back to index.html for client routes."""
    root = static_dir.resolve()
    index = root / "index.html"

    @app.get("/{full_path:path}", include_in_schema=False)
    async def spa(full_path: str) -> FileResponse:
        if full_path.startswith("api/"):
            raise HTTPException(status_code=404, detail="Not found")

        candidate = (root / full_path).resolve()
        if full_path and candidate.is_file() and root in candidate.parents:
            return FileResponse(candidate)
        return FileResponse(index)


def create_app(
    title: str = "TrendStudio API",
    description: str = "Trend discovery, AI drafting and Blogger publishing",
    version: str = "0.1.0",
    enable_cors: bool = True,
    cors_origins: Optional[list] = None,
    static_dir: Optional[str] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        title: API title for OpenAPI docs.
        description: API description for OpenAPI docs.
        version: API version.
        enable_cors: Whether to enable CORS middleware.
        cors_origins: List of allowed CORS origins.
        static_dir: Directory of the built client. Defaults to STUDIO_STATIC_DIR;
            static hosting is skipped when it holds no index.html.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title=title,
        description=description,
        version=version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=[
            {
                "name": "studio",
                "description": "Trend discovery, drafting, previews and publishing",
            },
        ],
    )

    if enable_cors:
        origins = cors_origins or ["*"]
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_middleware(MetricsMiddleware)

    app.include_router(router)

    @app.get("/metrics", tags=["observability"], include_in_schema=False)
    async def metrics() -> Response:
        """Prometheus exposition endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc):
        """Handle uncaught exceptions."""
        logger.error(f"Unhandled exception on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # Registered last so API routes always win over the catch-all
    static_path = Path(static_dir or os.environ.get("STUDIO_STATIC_DIR", STATIC_DIR))
    if (static_path / "index.html").is_file():
        _mount_spa(app, static_path)
        logger.info(f"Serving client from {static_path}")
    else:
        logger.debug(f"No client build at {static_path}, static hosting disabled")

    logger.info(f"Created FastAPI app: {title} v{version}")
    return app
