"""
Last-resort error rendering for the survey API.

Routers translate the errors they expect into HTTPException; this
middleware only sees what escaped them and renders it as
``{"error", "detail"}`` JSON.
"""
import logging
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable

from app.domain.errors import InvalidArgumentError
from app.infrastructure.external_api_client import ExternalAPIError


logger = logging.getLogger(__name__)


def _error_body(error: str, detail: str) -> dict:
    return {"error": error, "detail": detail}


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Render exceptions that escaped the routers."""

    async def dispatch(self, request: Request, call_next: Callable):
        where = {"path": request.url.path, "method": request.method}

        try:
            return await call_next(request)

        except ExternalAPIError as e:
            logger.error(
                f"Upstream service failure ({e.status_code}): {e.message}",
                extra={**where, "status_code": e.status_code},
            )
            code = e.status_code if e.status_code >= 500 else status.HTTP_502_BAD_GATEWAY
            return JSONResponse(
                status_code=code,
                content=_error_body("Upstream service failure", e.message),
            )

        except InvalidArgumentError as e:
            logger.warning(f"Rejected request: {e}", extra=where)
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content=_error_body("Invalid request", str(e)),
            )

        except Exception as e:
            # Includes pydantic ValidationError raised while building responses
            logger.exception(f"Unhandled exception: {e}", extra=where)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=_error_body("Internal server error", "An unexpected error occurred"),
            )
