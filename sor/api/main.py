"""FastAPI application for the router.

Note: Rate limiting is intentionally not implemented at the application level.
It should be handled at the infrastructure layer (reverse proxy / load balancer).
"""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from sor.api.endpoints import get_router, router
from sor.sor import SOR

logger = structlog.get_logger()

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("SOR_HOST", "0.0.0.0")
PORT = int(os.environ.get("SOR_PORT", "8000"))
DEBUG = os.environ.get("SOR_DEBUG", "false").lower() in ("true", "1", "yes")

# Maximum request body size (1 MB)
MAX_REQUEST_SIZE = 1024 * 1024


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load live pools at startup when a pool endpoint is configured."""
    sor_instance = app.dependency_overrides.get(get_router, get_router)()
    if sor_instance.config.pool_source_url:
        loaded = await sor_instance.fetch_pools(use_live_data=True)
        logger.info("startup_pool_load", loaded=loaded)
    yield


app = FastAPI(
    title="Smart Order Router",
    description="Multi-route swap routing across DEX liquidity pools",
    version="0.1.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


app.include_router(router)


@app.get("/health")
async def health(sor_instance: SOR = Depends(get_router)) -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "pools_ready": sor_instance.is_ready()}


def run() -> None:
    """Run the router API server.

    Configuration via environment variables:
    - SOR_HOST: Host to bind to (default: 0.0.0.0)
    - SOR_PORT: Port to bind to (default: 8000)
    - SOR_DEBUG: Enable debug/reload mode (default: false)
    """
    uvicorn.run(
        "sor.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
