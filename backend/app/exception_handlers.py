"""
Exception handlers.

Register these on a FastAPI app instance via `register_exception_handlers(app)`.
Every error body has the shape {"success": false, "message": ..., ...}.
"""
import logging
import traceback

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.env import is_local_env
from app.services.auth import AuthError
from app.services.document_service import DocumentError

logger = logging.getLogger("docvault")


async def auth_error_handler(request: Request, exc: AuthError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def document_error_handler(request: Request, exc: DocumentError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def _format_validation_errors(errors) -> list:
    formatted = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        formatted.append({
            "field": ".".join(loc),
            "message": error.get("msg", "Invalid value"),
        })
    return formatted


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are answered with 400 rather than 422."""
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "message": "Validation failed",
            "errors": _format_validation_errors(exc.errors()),
        },
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": detail},
        headers=getattr(exc, "headers", None),
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors"""
    if isinstance(exc, (HTTPException, StarletteHTTPException)):
        return await http_error_handler(request, exc)

    error_traceback = traceback.format_exc()
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}\n{error_traceback}", exc_info=True)

    # Details stay in the logs outside local/dev
    if is_local_env():
        message = f"Internal server error: {exc}"
    else:
        message = "Internal server error"

    return JSONResponse(
        status_code=500,
        content={"success": False, "message": message},
    )


def register_exception_handlers(app):
    """Register all exception handlers on the given FastAPI app."""
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(DocumentError, document_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
