"""HTTP middleware: request correlation, domain error mapping, CORS.

Outermost first, a request passes through:
    RequestIDMiddleware     binds request_id, caller and block height to the log context
    ErrorHandlerMiddleware  turns an EscrowError into a JSON error response
    CORSMiddleware          origins from Settings.cors_origins
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from verifiable_escrow.domain.exceptions import ErrorCategory, EscrowError, InvalidParamsError
from verifiable_escrow.logging_config import bind_call_context, get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI, Request, Response

    from verifiable_escrow.config import Settings

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

STATUS_BY_CATEGORY: dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.AUTHORIZATION: 403,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.STATE: 409,
    ErrorCategory.CONDITION: 412,
    ErrorCategory.TRANSFER: 402,
}


def error_response(exc: EscrowError) -> JSONResponse:
    """Render a domain error as ``{"error", "category", "message"[, "details"]}``."""
    body: dict = {"error": exc.code, "category": str(exc.category), "message": exc.message}
    if isinstance(exc, InvalidParamsError) and exc.details:
        body["details"] = exc.details
    return JSONResponse(status_code=STATUS_BY_CATEGORY.get(exc.category, 400), content=body)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag every request with an id and echo it back in the response headers."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        bind_call_context(
            request_id=request_id,
            caller=request.headers.get("X-Caller-Address"),
            block_height=request.headers.get("X-Block-Height"),
        )

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Map EscrowError categories to status codes; anything else is a 500."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except EscrowError as exc:
            response = error_response(exc)
            logger.info(
                "request.rejected",
                path=request.url.path,
                code=exc.code,
                status_code=response.status_code,
                error=exc.message,
            )
            return response
        except Exception:
            logger.exception("request.unhandled_error", path=request.url.path)
            return JSONResponse(
                status_code=500,
                content={"error": "INTERNAL_ERROR", "message": "An unexpected error occurred"},
            )


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register middleware. The last one added is the outermost."""
    origins = settings.cors_origin_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIDMiddleware)
