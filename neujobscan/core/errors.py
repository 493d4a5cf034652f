from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class NeuJobScanError(RuntimeError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code

    def extra_payload(self) -> dict[str, Any]:
        return {}


class ValidationError(NeuJobScanError):
    status_code = status.HTTP_400_BAD_REQUEST


class ParsingError(NeuJobScanError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str, *, document_type: str, raw_text: str = ""):
        super().__init__(message)
        self.document_type = document_type
        self.raw_text = raw_text

    def extra_payload(self) -> dict[str, Any]:
        return {"documentType": self.document_type, "text": self.raw_text}


class PipelineStageError(NeuJobScanError):
    def __init__(self, stage: str, message: str | None = None):
        super().__init__(message or f"Scan failed during stage '{stage}'.")
        self.stage = stage

    def extra_payload(self) -> dict[str, Any]:
        return {"stage": self.stage}


class PersistenceError(NeuJobScanError):
    pass


class ScanTimeoutError(NeuJobScanError):
    def __init__(self, stage: str, budget_s: float):
        super().__init__(f"Scan timed out after {budget_s:g}s during stage '{stage}'.")
        self.stage = stage
        self.budget_s = budget_s

    def extra_payload(self) -> dict[str, Any]:
        return {"stage": self.stage, "timeout": True}


class AuthenticationError(NeuJobScanError):
    status_code = status.HTTP_401_UNAUTHORIZED


def error_payload(message: str, status_code: int, **extra: Any) -> dict[str, Any]:
    return {"success": False, "error": message, "status": status_code, **extra}


def _validation_message(exc: RequestValidationError) -> str:
    fields: list[str] = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in {"body", "query", "header"}]
        name = ".".join(loc) or "body"
        if name not in fields:
            fields.append(name)
    if not fields:
        return "Invalid request."
    return "Missing or invalid fields: " + ", ".join(fields)


async def _neujobscan_error_handler(request: Request, exc: NeuJobScanError) -> JSONResponse:
    _ = request
    if exc.status_code >= 500:
        logger.warning("request_failed path=%s error=%s: %s", request.url.path, type(exc).__name__, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(str(exc), exc.status_code, **exc.extra_payload()),
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    _ = request
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_payload(_validation_message(exc), status.HTTP_400_BAD_REQUEST),
    )


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    _ = request
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(str(exc.detail), exc.status_code),
        headers=getattr(exc, "headers", None),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NeuJobScanError, _neujobscan_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
