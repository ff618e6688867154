from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
import time
import logging

from .api.router import api_router
from .core.config import Settings, get_settings
from .core.database import Database, create_redis_client
from .core.exceptions import register_exception_handlers
from .core.logging import request_id_ctx, setup_logging
from .core.security import TokenManager

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around one set of settings.

    The database engine, token manager and Redis client are created here
    and shared by every request through ``app.state``.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db_url = settings.get_database_url
        logger.info(f"Starting {settings.APP_NAME} on {db_url.split(':', 1)[0]}")
        try:
            app.state.db.init_db()
        except Exception:
            logger.exception("Could not create database tables")
            raise

        yield

        logger.info(f"Stopping {settings.APP_NAME}")
        app.state.db.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        description="Appointment booking for patients, doctors and nurses",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.db = Database(settings.get_database_url)
    app.state.tokens = TokenManager(
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    app.state.redis = create_redis_client(settings.REDIS_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # TestClient sends Host: testserver
    if not settings.TESTING:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("x-request-id", "-")
        request_id_ctx.set(request_id)
        start_time = time.time()

        response = await call_next(request)

        elapsed = time.time() - start_time
        response.headers["X-Process-Time"] = str(elapsed)
        if request_id != "-":
            response.headers["X-Request-ID"] = request_id
        logger.info(
            f"{request.method} {request.url.path} - {response.status_code} - {elapsed * 1000:.2f}ms"
        )
        return response

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/health", tags=["Info"])
    async def health_check():
        return {"status": "healthy", "timestamp": time.time(), "version": settings.VERSION}

    @app.get("/", tags=["Info"])
    async def root():
        return {
            "message": f"Welcome to {settings.APP_NAME} API",
            "version": settings.VERSION,
            "docs": "/docs",
            "health": "/health"
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("clinicbook.main:app", host="0.0.0.0", port=8000, reload=app.state.settings.DEBUG)
