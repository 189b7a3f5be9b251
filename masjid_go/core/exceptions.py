import logging

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


def _field_path(error: dict) -> str:
    # ("query", "lat") -> "lat"; body fields keep their nesting
    loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    return ".".join(loc) or "request"


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Missing or out-of-range coordinates are the caller's fault and surface as 400.
    request_id = getattr(request.state, "request_id", None)
    errors = exc.errors()
    fields = sorted({_field_path(error) for error in errors})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": jsonable_encoder(errors),
            "message": "Validation Error",
            "fields": fields,
            "request_id": request_id,
        },
    )


async def integrity_exception_handler(request: Request, exc: IntegrityError):
    request_id = getattr(request.state, "request_id", None)
    logger.warning("Integrity conflict on %s %s (request_id=%s): %s", request.method, request.url.path, request_id, exc.orig)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": "Request conflicts with the current state of the record. Reload and try again.",
            "request_id": request_id,
        },
    )
