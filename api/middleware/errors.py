"""Exception handlers that render every failure in one JSON envelope."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from kitchencogs.errors import ConflictError, InvalidInputError, InventoryError, ItemNotFoundError

logger = logging.getLogger("kitchencogs.api")

STATUS_BY_ERROR = {
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
    ItemNotFoundError: status.HTTP_404_NOT_FOUND,
}

CODE_BY_STATUS = {
    status.HTTP_400_BAD_REQUEST: "VALIDATION_ERROR",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_409_CONFLICT: "CONFLICT",
}

# Request sections pydantic puts at the front of an error location
LOCATION_PREFIXES = ("body", "query", "path")


def status_for(exc: InventoryError) -> int:
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def error_body(
    request: Request,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    return {
        "error": {"code": code, "message": message, "details": details or {}},
        "request_id": getattr(request.state, "request_id", "unknown"),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def field_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    """Flatten pydantic errors to field/message/type, dropping the body/query prefix."""
    flattened = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in LOCATION_PREFIXES:
            loc = loc[1:]
        flattened.append({
            "field": ".".join(loc) or "request",
            "message": error.get("msg", ""),
            "type": error.get("type", ""),
        })
    return flattened


def setup_exception_handlers(app: FastAPI):
    """Register exception handlers with the FastAPI app."""

    @app.exception_handler(InventoryError)
    async def inventory_error_handler(request: Request, exc: InventoryError) -> JSONResponse:
        status_code = status_for(exc)
        logger.warning(f"{exc.code} ({status_code}): {exc.message}")
        return JSONResponse(
            status_code=status_code,
            content=error_body(request, exc.code, exc.message, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Bad JSON, missing fields and unknown enum values are all a 400."""
        errors = field_errors(exc)
        first = errors[0] if errors else {"field": "request", "message": "invalid"}
        logger.warning(f"Rejected request: {errors}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(
                request,
                "VALIDATION_ERROR",
                f"{first['field']}: {first['message']}",
                {"errors": errors},
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Unknown routes and methods use the same envelope."""
        code = CODE_BY_STATUS.get(exc.status_code, "HTTP_ERROR")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(request, code, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        # Datastore failures land here
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(
                request,
                "INTERNAL_ERROR",
                "An unexpected error occurred",
                {"type": type(exc).__name__},
            ),
        )
