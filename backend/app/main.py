"""
DocVault backend: FastAPI application

Run locally:
    uvicorn app.main:app --reload
"""
import sys
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Settings read os.environ at import time, so .env must be loaded first
load_dotenv()

from .core.config import settings  # noqa: E402
from .exception_handlers import register_exception_handlers  # noqa: E402
from .lifespan import lifespan  # noqa: E402
from .middleware.logging import LoggingMiddleware  # noqa: E402
from .middleware.request_id import RequestIDMiddleware  # noqa: E402
from .middleware.request_size import RequestSizeLimitMiddleware  # noqa: E402
from .routers import admin, auth, documents  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

# Use a consistent logger name for all app logs
logger = logging.getLogger("docvault")

VERSION = "1.0.0"


def create_app() -> FastAPI:
    app = FastAPI(title=f"{settings.PROJECT_NAME} Backend", version=VERSION, lifespan=lifespan)

    @app.get("/health")
    async def health():
        """Liveness check. No database access."""
        return {"ok": True, "service": "docvault-backend", "version": VERSION}

    register_exception_handlers(app)

    # Last added runs first: CORS -> request id -> size limit -> access log
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestSizeLimitMiddleware, max_upload_mb=settings.MAX_UPLOAD_SIZE_MB)
    app.add_middleware(RequestIDMiddleware)

    origins = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )

    app.include_router(auth.router, prefix=settings.API_PREFIX)
    app.include_router(documents.router, prefix=settings.API_PREFIX)
    app.include_router(admin.router, prefix=settings.API_PREFIX)

    logger.info(f"{settings.PROJECT_NAME} app created (ENV={settings.ENV}, prefix={settings.API_PREFIX})")
    return app


app = create_app()
