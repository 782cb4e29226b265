"""Error normalization and handlers.

Access denial is a return value inside the core. These errors exist for the
HTTP glue (denials rendered as 403 bodies) and for programming errors such as
an unknown calculation strategy.
"""

import logging
import builtins
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import HTTPException
from fastapi.responses import JSONResponse
from starlette.requests import Request

from prompt_machine.core.logging import LOGGER_NAME, get_request_id


class AppError(Exception):
    code = "app_error"
    status_code = 500

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None, request_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.request_id = request_id


class ValidationError(AppError, ValueError):
    code = "validation_error"
    status_code = 400


class UnknownStrategyError(ValidationError):
    """Raised when a calculation strategy name is not registered."""

    def __init__(self, strategy: str, **kwargs):
        super().__init__(f"Unknown calculation strategy: {strategy!r}", **kwargs)
        self.strategy = strategy


class NotFoundError(AppError, ValueError):
    code = "not_found"
    status_code = 404


class PermissionError(AppError, builtins.PermissionError):
    code = "forbidden"
    status_code = 403


class UpgradeRequiredError(PermissionError):
    """A tier-gated field was requested by a subject below its required tier.

    Rendered with the legacy field-access body so existing clients keep
    working: ``{success, error, upgradeRequired, upgradePrompt}``.
    """
    code = "upgrade_required"

    def __init__(self, message: str, *, upgrade_prompt: Dict[str, Any], required_tier: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.upgrade_prompt = upgrade_prompt
        self.required_tier = required_tier


class ProjectAccessDeniedError(PermissionError):
    code = "project_access_denied"

    def __init__(self, message: str, *, required_tier: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.required_tier = required_tier


def _extract_request_id(request: Request, fallback: Optional[str] = None) -> str:
    return (
        getattr(request.state, "request_id", None)
        or get_request_id()
        or fallback
        or str(uuid4())
    )


def _error_payload(code: str, message: str, request_id: str) -> dict:
    return {
        "error": {"code": code, "message": message, "request_id": request_id},
        "detail": message,
    }


def _log_app_error(exc: AppError, rid: str) -> None:
    logger = logging.getLogger(LOGGER_NAME)
    log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        log_level,
        "app.error",
        extra={"request_id": rid, "error_code": exc.code, "error_message": exc.message, "status": exc.status_code},
    )


async def app_error_handler(request: Request, exc: AppError):
    rid = exc.request_id or _extract_request_id(request)
    payload = _error_payload(exc.code, exc.message, rid)
    _log_app_error(exc, rid)
    response = JSONResponse(status_code=exc.status_code, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def upgrade_required_handler(request: Request, exc: UpgradeRequiredError):
    rid = exc.request_id or _extract_request_id(request)
    _log_app_error(exc, rid)
    payload = {
        "success": False,
        "error": exc.message,
        "upgradeRequired": True,
        "upgradePrompt": exc.upgrade_prompt,
    }
    response = JSONResponse(status_code=exc.status_code, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def project_access_denied_handler(request: Request, exc: ProjectAccessDeniedError):
    rid = exc.request_id or _extract_request_id(request)
    _log_app_error(exc, rid)
    payload = {
        "success": False,
        "error": exc.message,
        "upgradeRequired": exc.required_tier is not None,
        "requiredTier": exc.required_tier,
    }
    response = JSONResponse(status_code=exc.status_code, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def http_error_handler(request: Request, exc: HTTPException):
    rid = _extract_request_id(request)
    code = "not_found" if exc.status_code == 404 else "http_error"
    message = exc.detail if exc.detail else "HTTP error"
    payload = _error_payload(code, message, rid)
    logger = logging.getLogger(LOGGER_NAME)
    logger.warning("http.error", extra={"request_id": rid, "error_code": code, "status": exc.status_code})
    response = JSONResponse(status_code=exc.status_code, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = _extract_request_id(request)
    logger = logging.getLogger(LOGGER_NAME)
    logger.error("unhandled.exception", exc_info=True, extra={"request_id": rid, "error_code": "internal_error"})
    payload = _error_payload("internal_error", "Unexpected error", rid)
    response = JSONResponse(status_code=500, content=payload)
    response.headers["x-request-id"] = rid
    return response
