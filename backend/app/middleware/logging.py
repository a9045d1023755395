import time
import json
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Not access-logged
QUIET_PATHS = {"/health", "/healthz"}


class LoggingMiddleware(BaseHTTPMiddleware):
    """One JSON access-log line per request. Bodies are never logged (they carry OTPs and tokens)."""

    async def dispatch(self, request: Request, call_next):
        request_id = getattr(request.state, "request_id", None)
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.exception(
                "Unhandled error on %s %s after %sms: %s",
                request.method,
                request.url.path,
                round(duration_ms, 2),
                str(e)
            )
            raise

        if request.url.path in QUIET_PATHS:
            return response

        duration_ms = (time.time() - start_time) * 1000
        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2),
            "remote_addr": request.client.host if request.client else None,
        }
        if response.status_code >= 500:
            logger.error(json.dumps(log_data))
        elif response.status_code >= 400:
            logger.warning(json.dumps(log_data))
        else:
            logger.info(json.dumps(log_data))
        return response
