import asyncio
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from app.config import settings
from app.core.logging import setup_logging
from app.core.exceptions import api_exception_handler, general_exception_handler, APIError
from app.core.middleware import auth_context_middleware, request_logging_middleware
from app.database import DatabasePool
import logging

# Initialize logging
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown"""
    from app.core.dependencies import get_catalog
    from app.tasks.cleanup import run_cleanup_loop

    # Startup: load the public catalog and start background cleanup
    try:
        await get_catalog().refresh_all()
    except APIError as e:
        logger.warning(f"Catalog not loaded at startup, will load on first request: {e.message}")

    cleanup_task = asyncio.create_task(run_cleanup_loop())

    yield

    # Shutdown: cancel background task and release the pool
    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass
    await DatabasePool.close_pool()


app = FastAPI(
    title="Party Bookings API",
    description="API para la plataforma de fiestas: catalogo publico, back office, OTP, tickets y reservas de venues",
    version="1.0.0",
    debug=settings.debug,
    docs_url="/docs",
    redirect_slashes=True,
    lifespan=lifespan
)


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Party Bookings API",
        version="1.0.0",
        description="API para la plataforma de fiestas",
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "bearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT"
        }
    }

    # Protected prefixes
    protected_prefixes = ["/admin", "/uploads", "/bookings/me", "/bookings/checkout"]

    for path in openapi_schema["paths"]:
        if not any(path.startswith(prefix) for prefix in protected_prefixes):
            continue

        for method in openapi_schema["paths"][path]:
            if method in ["get", "post", "put", "delete", "patch"]:
                openapi_schema["paths"][path][method]["security"] = [{"bearerAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi

# Exception handlers
app.add_exception_handler(APIError, api_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Custom middleware (order matters - first added runs last)
# Execution order: auth_context → logging
app.middleware("http")(request_logging_middleware)  # runs last
app.middleware("http")(auth_context_middleware)     # runs first

# Import and include routers
from app.routers import auth, admin, public, bookings, reservations, payments, uploads

# Authentication (public endpoints)
app.include_router(auth.router, prefix="/auth", tags=["auth"])

# Public catalog (no auth required)
app.include_router(public.router, prefix="/public", tags=["public"])

# Back office content (super-admin or organizer)
app.include_router(admin.router, prefix="/admin", tags=["admin"])

# Ticket bookings
app.include_router(bookings.router, prefix="/bookings", tags=["bookings"])

# Venue slot reservations
app.include_router(reservations.router, prefix="/reservations", tags=["reservations"])

# Payment results
app.include_router(payments.router, prefix="/payments", tags=["payments"])

# Uploads (requires admin)
app.include_router(uploads.router, prefix="/uploads", tags=["uploads"])


@app.get("/")
async def root():
    return {
        "service": "Party Bookings API",
        "version": "1.0.0",
        "database": settings.db_name,
        "environment": settings.app_env
    }


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "database": settings.db_name,
        "host": settings.db_host
    }


# Auto-start server if run directly
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
