# backend/tutorsched/errors.py
"""Unified error envelope for HTTP responses."""

from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .core.exceptions import DomainException


def _title_from_status(status_code: int) -> str:
    mapping = {
        400: "Bad Request",
        404: "Not Found",
        409: "Conflict",
        422: "Unprocessable Entity",
        500: "Internal Server Error",
        503: "Service Unavailable",
    }
    return mapping.get(status_code, "Error")


def _problem(
    *,
    status: int,
    detail: Optional[str] = None,
    instance: Optional[str] = None,
    code: Optional[str] = None,
    errors: Optional[Any] = None,
) -> Dict[str, Any]:
    problem: Dict[str, Any] = {
        "type": "about:blank",
        "title": _title_from_status(status),
        "status": status,
        "detail": detail or "",
        "instance": instance or "",
    }
    if code:
        problem["code"] = code
    if errors:
        problem["errors"] = errors
    return problem


def _parse_detail(detail: Any) -> tuple[Optional[str], Optional[str], Optional[Any]]:
    if isinstance(detail, dict):
        code = detail.get("code") if isinstance(detail.get("code"), str) else None
        message = detail.get("message") or detail.get("detail")
        detail_text = message if isinstance(message, str) else None
        errors = detail.get("details") or detail.get("errors")
        return detail_text, code, errors
    if isinstance(detail, str):
        return detail, None, None
    if detail is None:
        return None, None, None
    return str(detail), None, None


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        detail_text, code, errors = _parse_detail(exc.detail)
        body = _problem(
            status=exc.status_code,
            detail=detail_text,
            instance=str(request.url.path),
            code=code,
            errors=errors,
        )
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(body))

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        body = _problem(
            status=exc.status_code,
            detail=exc.message,
            instance=str(request.url.path),
            code=exc.code,
            errors=exc.details,
        )
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(body))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        body = _problem(
            status=422,
            detail="Request validation failed",
            instance=str(request.url.path),
            code="VALIDATION_ERROR",
            errors=exc.errors(),
        )
        return JSONResponse(status_code=422, content=jsonable_encoder(body))
