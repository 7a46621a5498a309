"""
league_engine/errors.py
Centralized error handling for the HTTP surface.

ERROR RESPONSE STRUCTURE:
{
    "success": false,
    "error": "Human-readable description",
    "code": "UNIQUE_ERROR_CODE",
    "details": {} (optional)
}
"""
import logging
import uuid
from typing import Optional, Dict, Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from league_engine.exceptions import LeagueException

logger = logging.getLogger(__name__)


class ErrorCode:
    """Unique error codes for machine-readable error handling"""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_LINK = "INVALID_LINK"

    SELF_SWAP = "SELF_SWAP"
    CLUB_MISMATCH = "CLUB_MISMATCH"
    GENDER_MISMATCH = "GENDER_MISMATCH"
    DUPLICATE_SPORT = "DUPLICATE_SPORT"
    DAY_LIMIT_EXCEEDED = "DAY_LIMIT_EXCEEDED"
    DAY_CONFLICT = "DAY_CONFLICT"
    TEAMS_NOT_SET = "TEAMS_NOT_SET"
    NEGATIVE_SCORE = "NEGATIVE_SCORE"

    NOT_FOUND = "NOT_FOUND"
    SPORT_NOT_FOUND = "SPORT_NOT_FOUND"
    REGISTRATION_NOT_FOUND = "REGISTRATION_NOT_FOUND"
    MATCH_NOT_FOUND = "MATCH_NOT_FOUND"
    REQUEST_NOT_FOUND = "REQUEST_NOT_FOUND"

    PENDING_EXISTS = "PENDING_EXISTS"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"
    STALE_REQUEST = "STALE_REQUEST"
    FEATURE_DISABLED = "FEATURE_DISABLED"

    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def error_content(message: str, code: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    content = {"success": False, "error": message, "code": code}
    if details:
        content["details"] = details
    return content


async def league_exception_handler(request: Request, exc: LeagueException) -> JSONResponse:
    if exc.status_code >= 500:
        log_id = str(uuid.uuid4())[:8]
        logger.error(f"[{log_id}] {request.method} {request.url.path}: {exc.code}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_content(exc.message, exc.code, {"log_id": log_id}),
        )
    logger.info(f"{request.method} {request.url.path} rejected: {exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_content(exc.message, exc.code, exc.details),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_content(message, ErrorCode.VALIDATION_ERROR, {"field": field} if field else None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log_id = str(uuid.uuid4())[:8]
    logger.error(f"[{log_id}] Internal error in {request.url.path}: {type(exc).__name__}: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_content("Internal server error", ErrorCode.INTERNAL_ERROR, {"log_id": log_id}),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LeagueException, league_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
