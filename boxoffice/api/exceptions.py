import logging
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from boxoffice.domain.exceptions import AppError, NotFound, Conflict, InvalidRequest, InsufficientInventory, \
    StorageFailure, Unauthorized, Forbidden
from boxoffice.core.ctx import REQUEST_ID_CTX

logger = logging.getLogger("boxoffice.api")

MEDIA_TYPE = "application/problem+json"

_STATUS_BY_CLASS: dict[type[AppError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    Unauthorized: status.HTTP_401_UNAUTHORIZED,
    Forbidden: status.HTTP_403_FORBIDDEN,
    InvalidRequest: status.HTTP_400_BAD_REQUEST,
    InsufficientInventory: status.HTTP_409_CONFLICT,
    Conflict: status.HTTP_409_CONFLICT,
    StorageFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
    AppError: status.HTTP_400_BAD_REQUEST,
}

_TITLES: dict[type[AppError], str] = {
    NotFound: "Not Found",
    Unauthorized: "Unauthorized",
    Forbidden: "Forbidden",
    InvalidRequest: "Bad Request",
    InsufficientInventory: "Insufficient Inventory",
    Conflict: "Conflict",
    StorageFailure: "Storage Failure",
    AppError: "Application Error",
}


def _lookup(table: dict, exc: AppError, default):
    for cls in type(exc).mro():
        if cls in table:
            return table[cls]
    return default


def status_for(exc: AppError) -> int:
    return _lookup(_STATUS_BY_CLASS, exc, status.HTTP_400_BAD_REQUEST)


def title_for(exc: AppError) -> str:
    return _lookup(_TITLES, exc, "Application Error")


def _problem(
    request: Request,
    *,
    http_status: int,
    title: str,
    detail: str | None = None,
    extra: dict | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = {
        "status": http_status,
        "title": title,
        "detail": detail,
        "instance": str(request.url),
    }
    req_id = REQUEST_ID_CTX.get()
    if req_id:
        body["trace_id"] = req_id
    if extra:
        body.update({k: v for k, v in extra.items() if v is not None})
    return JSONResponse(status_code=http_status, content=body, media_type=MEDIA_TYPE, headers=headers or {})


def register_error_handler(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError):
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error("Request failed %s %s: %s", request.method, request.url.path, exc)

        headers: dict[str, str] | None = None
        if isinstance(exc, Unauthorized):
            headers = {"WWW-Authenticate": 'Bearer realm="api", error="invalid_token"'}

        return _problem(
            request,
            http_status=status_code,
            title=title_for(exc),
            detail=str(exc) or None,
            extra={"context": exc.ctx} if exc.ctx else None,
            headers=headers
        )
