from typing import Any, Dict, List, Optional
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
import uuid

from apv.core.logging import logger


class ErrorDetail(BaseModel):
    """Structure for error details"""

    loc: Optional[List[str]] = None
    msg: str
    type: str


class ErrorResponse(BaseModel):
    """Standard error response format"""

    status_code: int
    error_id: str = ""
    message: str
    details: Optional[List[ErrorDetail]] = None


class AppException(Exception):
    """
    Base exception class for application-specific exceptions
    with standardized error responses
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        status_code: Optional[int] = None,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        self.error_id = str(uuid.uuid4())
        super().__init__(self.message)


class ConfigurationError(AppException):
    """Invalid or inconsistent application settings"""

    error_type = "configuration_error"

    def __init__(
        self,
        message: str = "Invalid configuration",
        parameter: Optional[str] = None,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.parameter = parameter
        if parameter and details is None:
            details = [{"loc": [parameter], "msg": message, "type": self.error_type}]
        super().__init__(message=message, details=details)


class DatabaseConnectionError(AppException):
    """
    The database could not be reached or refused the credentials.

    Surfaced to the client as a terminal plain-text message; the request
    is not processed any further.
    """

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_type = "database_connection_error"
    prefix = "I cannot connect to database: "

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(message=f"{self.prefix}{reason}")


class TemplateError(AppException):
    """A page template is missing or failed to render"""

    error_type = "template_error"

    def __init__(
        self,
        message: str = "Template rendering failed",
        template: Optional[str] = None,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.template = template
        super().__init__(message=message, details=details)


# Exception handlers
async def database_connection_exception_handler(
    request: Request, exc: DatabaseConnectionError
) -> PlainTextResponse:
    """Terminate the request with the bare diagnostic text"""
    logger.error(
        "Database connection failed",
        reason=exc.reason,
        path=request.url.path,
        method=request.method,
        error_id=exc.error_id,
        status_code=exc.status_code,
        correlation_id=getattr(request.state, "correlation_id", None),
    )
    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for application-specific exceptions"""
    logger.error(
        f"{exc.error_type}: {exc.message}",
        exception=exc,
        path=request.url.path,
        method=request.method,
        error_id=exc.error_id,
        status_code=exc.status_code,
    )

    details = None
    if exc.details:
        details = [
            ErrorDetail(
                loc=detail.get("loc"),
                msg=detail.get("msg", ""),
                type=detail.get("type", exc.error_type),
            )
            for detail in exc.details
        ]

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            status_code=exc.status_code, error_id=exc.error_id, message=exc.message, details=details
        ).model_dump(),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException"""
    error_id = str(uuid.uuid4())

    logger.warning(
        f"HTTP {exc.status_code}: {exc.detail}",
        path=request.url.path,
        method=request.method,
        error_id=error_id,
        status_code=exc.status_code,
    )

    return JSONResponse(
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
        content=ErrorResponse(
            status_code=exc.status_code, error_id=error_id, message=str(exc.detail)
        ).model_dump(),
    )


async def internal_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unexpected exceptions"""
    error_id = str(uuid.uuid4())

    logger.critical(
        "Unhandled exception",
        exception=exc,
        path=request.url.path,
        method=request.method,
        error_id=error_id,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )

    # Internal error details are not exposed to the client
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_id=error_id,
            message="An unexpected error occurred",
        ).model_dump(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the application's exception handlers on a FastAPI app"""
    app.add_exception_handler(DatabaseConnectionError, database_connection_exception_handler)
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, internal_exception_handler)
