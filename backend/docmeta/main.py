from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from .db.dynamodb.errors import DdbConflict, DdbError, DdbNotFound, DdbThrottled, DdbUnavailable, DdbValidation
from .errors import DocumentValidationError, OptimisticLockConflict
from .middleware.access_log import AccessLogMiddleware
from .middleware.request_context import RequestContextMiddleware
from .observability.logging import configure_logging, get_logger
from .problem_details import problem_response
from .routers.documents import router as documents_router
from .routers.health import router as health_router
from .services.document_service import DocumentAccessService
from .services.fanout import FanOutExecutor
from .settings import settings
from .storage import build_store


def create_app(service: DocumentAccessService | None = None) -> FastAPI:
    # Logging must be configured before the app starts handling requests.
    configure_logging(level=settings.log_level)
    log = get_logger("startup")

    settings.require_in_production()

    if service is None:
        service = DocumentAccessService(
            build_store(settings),
            fanout=FanOutExecutor(max_workers=settings.fanout_max_workers),
        )

    app = FastAPI(
        title="Document Metadata API",
        version="1.0.0",
        default_response_class=ORJSONResponse,
        redirect_slashes=False,
    )
    app.state.document_service = service

    app.add_middleware(AccessLogMiddleware, exclude_paths={"/"})
    # Outermost, so every log line of the request carries its id.
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DocumentValidationError, _document_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(OptimisticLockConflict, _optimistic_lock_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DdbError, _ddb_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_exception_handler)

    app.include_router(health_router)
    app.include_router(documents_router, prefix="/api")

    log.info("startup", **settings.to_log_safe_dict())
    return app


def _document_validation_handler(request: Request, exc: DocumentValidationError) -> Response:
    return problem_response(
        request=request,
        status_code=400,
        title="Bad Request",
        detail=exc.message,
        extensions={"field": exc.field} if exc.field else None,
    )


def _optimistic_lock_handler(request: Request, exc: OptimisticLockConflict) -> Response:
    return problem_response(
        request=request,
        status_code=409,
        title="Conflict",
        detail=exc.message,
        extensions={"documentId": exc.document_id, "attemptedVersion": exc.attempted_version},
    )


def _ddb_error_handler(request: Request, exc: DdbError) -> Response:
    # Map storage-layer errors to stable HTTP semantics.
    status_code = 500
    title = "Storage Error"

    if isinstance(exc, DdbValidation):
        status_code = 400
        title = "Bad Request"
    elif isinstance(exc, DdbNotFound):
        status_code = 404
        title = "Not Found"
    elif isinstance(exc, DdbConflict):
        status_code = 409
        title = "Conflict"
    elif isinstance(exc, (DdbThrottled, DdbUnavailable)):
        status_code = 503
        title = "Service Unavailable"

    # In production, problem_response already suppresses 5xx detail.
    return problem_response(
        request=request,
        status_code=status_code,
        title=title,
        detail=exc.message,
        extensions=exc.as_extensions() or None,
    )


def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    status_code = int(getattr(exc, "status_code", 500) or 500)
    detail = getattr(exc, "detail", None)
    safe_detail = str(detail) if detail is not None else None

    if status_code == 404:
        safe_detail = safe_detail or "Route not found"

    return problem_response(request=request, status_code=status_code, detail=safe_detail)


def _validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    errors: list[dict[str, object]] = []
    for e in exc.errors():
        loc = e.get("loc") or ()
        loc_path = ".".join([str(x) for x in loc if x != "body"])
        errors.append(
            {
                "location": list(loc) if isinstance(loc, (list, tuple)) else [],
                "path": loc_path,
                "message": e.get("msg", "Invalid value"),
                "type": e.get("type"),
            }
        )
    return problem_response(
        request=request,
        status_code=422,
        title="Validation Failed",
        detail="Request validation failed",
        errors=errors,
    )


def _unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    rid = getattr(getattr(request, "state", None), "request_id", None)
    get_logger("unhandled").error(
        "unhandled_exception",
        request_id=str(rid) if rid else None,
        http_method=str(request.method).upper(),
        path=str(request.url.path),
        exc_info=exc,
    )
    return problem_response(
        request=request,
        status_code=500,
        title="Internal Server Error",
        detail=str(exc) if exc else None,
    )
