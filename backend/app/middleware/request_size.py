"""
Request size limit middleware.

Rejects requests whose declared Content-Length exceeds the upload limit
before the body is read. Uploads are size-checked again while streaming to
disk, since Content-Length can be absent.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from fastapi import Request
from fastapi.responses import JSONResponse

# Room for the multipart envelope and the `data` JSON field around the file
MULTIPART_OVERHEAD = 256 * 1024


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests with Content-Length > max_upload_mb (+ multipart overhead)."""

    def __init__(self, app: ASGIApp, max_upload_mb: int = 10):
        super().__init__(app)
        self.max_upload_mb = max_upload_mb
        self.max_size = max_upload_mb * 1024 * 1024 + MULTIPART_OVERHEAD

    async def dispatch(self, request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                declared = int(content_length)
            except ValueError:
                return JSONResponse(
                    status_code=400,
                    content={"success": False, "message": "Invalid Content-Length header"},
                )
            if declared > self.max_size:
                return JSONResponse(
                    status_code=413,
                    content={
                        "success": False,
                        "message": f"Request body too large. Maximum upload size is {self.max_upload_mb}MB.",
                    },
                )
        return await call_next(request)
