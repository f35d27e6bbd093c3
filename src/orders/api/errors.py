"""Maps pipeline and framework errors to HTTP responses.

Every error body has the same shape::

    {"error": {"kind": ..., "message": ..., "identifier": ...}}
"""

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from orders.errors import (
    BadRequest,
    Conflict,
    Forbidden,
    InvalidItem,
    InvalidTransition,
    NotFound,
    NumberGenerationExhausted,
    OrderPipelineError,
    StockConflict,
    UpstreamUnavailable,
)

logger = structlog.get_logger(__name__)

STATUS_CODES = {
    BadRequest: 400,
    InvalidItem: 400,
    InvalidTransition: 400,
    Forbidden: 403,
    NotFound: 404,
    Conflict: 409,
    StockConflict: 409,
    NumberGenerationExhausted: 503,
    UpstreamUnavailable: 503,
}


_HTTP_KINDS = {401: "Unauthorized", 403: Forbidden.kind, 404: NotFound.kind}


def status_code_for(exc: OrderPipelineError) -> int:
    return STATUS_CODES.get(type(exc), 500)


def _error_response(status_code: int, kind: str, message: str, identifier=None, details=None) -> JSONResponse:
    error = {"kind": kind, "message": message, "identifier": identifier}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error})


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(OrderPipelineError)
    async def pipeline_error(request: Request, exc: OrderPipelineError):
        status_code = status_code_for(exc)
        logger.info(
            "Request rejected",
            path=request.url.path,
            kind=exc.kind,
            identifier=exc.identifier,
            status_code=status_code,
        )
        return JSONResponse(status_code=status_code, content={"error": exc.to_dict()})

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        kind = _HTTP_KINDS.get(exc.status_code, "HTTPError")
        return _error_response(exc.status_code, kind, str(exc.detail))

    @app.exception_handler(ValidationError)
    async def domain_validation_error(request: Request, exc: ValidationError):
        field = next(iter(exc.messages), None) if isinstance(exc.messages, dict) else None
        return _error_response(400, BadRequest.kind, "Validation failed", identifier=field, details=exc.messages)

    @app.exception_handler(ObjectNotFoundError)
    async def object_not_found(request: Request, exc: ObjectNotFoundError):
        return _error_response(404, NotFound.kind, str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        identifier = ".".join(str(part) for part in first.get("loc", ())[1:]) or None
        return _error_response(400, BadRequest.kind, first.get("msg", "Invalid request"), identifier=identifier)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error", path=request.url.path, error=str(exc))
        return _error_response(500, "Internal", "Internal server error")
