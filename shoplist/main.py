"""
Shopping List API - Application Entry Point

Architecture Overview:
=====================
- Models (shoplist/models/): SQLAlchemy entities, repositories, Pydantic schemas
- Controllers (shoplist/controllers/): FastAPI routers, one per resource area
- Services (shoplist/services/): business rules, independent of HTTP

Request Flow:
============
1. Request arrives at a Controller endpoint
2. Controller validates input using Pydantic Schemas
3. Controller calls a Service, which runs its changes in one transaction
4. Response is serialized using Pydantic Schemas
5. Realtime events returned by the Service are emitted after the response

Run with: uvicorn shoplist.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shoplist import __version__
from shoplist.config import get_settings
from shoplist.controllers import (
    ingredients_router,
    realtime_router,
    recipes_router,
    shared_lists_router,
    shopping_lists_router,
)
from shoplist.database import init_db
from shoplist.services.exceptions import ServiceError, TransientStoreError
from shoplist.services.realtime import RealtimeBroadcaster

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    if settings.create_tables:
        init_db()

    app.state.broadcaster = RealtimeBroadcaster()
    logger.info("Shopping List API started")
    yield
    await app.state.broadcaster.close()
    logger.info("Shopping List API stopped")


app = FastAPI(
    title="Shopping List API",
    description="""
    Shared shopping lists generated from recipes.

    ## Features
    - Recipe and ingredient management
    - Shopping lists aggregated from recipes, scaled by servings
    - Share links that open one list without an account
    - Live item updates over WebSocket (/ws)
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Map service errors to their HTTP status codes."""
    headers = {}
    if isinstance(exc, TransientStoreError):
        headers["Retry-After"] = str(exc.retry_after)
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers
    )


app.include_router(ingredients_router)     # /ingredients
app.include_router(recipes_router)         # /recipes
app.include_router(shopping_lists_router)  # /shopping-lists
app.include_router(shared_lists_router)    # /shared/shopping-lists
app.include_router(realtime_router)        # /ws


# ============================================
# Health Check Endpoints
# ============================================

@app.get("/", tags=["health"])
def root():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "service": "Shopping List API",
        "version": __version__
    }


@app.get("/health", tags=["health"])
def health_check(request: Request):
    """Health check with the number of open realtime sessions."""
    return {
        "status": "healthy",
        "realtime_sessions": request.app.state.broadcaster.connection_count
    }
