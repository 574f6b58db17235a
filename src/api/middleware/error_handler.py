"""Global exception handlers for the FastAPI application.

Every error is rendered as an ``ErrorResponse``. Exceptions raised by
``FaviconMiddleware`` (for example an unreadable icon file) happen outside
FastAPI's routing layer, so they reach Starlette's outermost error middleware,
which calls ``generic_exception_handler``; that handler hands application
errors on to ``service_error_handler`` so they keep their error code.
"""

import traceback

from fastapi import FastAPI, Request, status
from fastapi.responses import Response
from loguru import logger
from starlette.exceptions import HTTPException

from src.api.constants import HTTP_500_INTERNAL_SERVER_ERROR
from src.api.schemas.errors import ErrorResponse, ServiceInfo
from src.api.utils.responses import ORJSONResponse
from src.core.config import Settings, get_settings
from src.core.context import RequestContext, generate_request_id
from src.core.exceptions import ErrorCode, ServiceError

ERROR_STATUS_CODES: dict[str, int] = {
    ErrorCode.VALIDATION_ERROR.value: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND.value: status.HTTP_404_NOT_FOUND,
    ErrorCode.ICON_UNAVAILABLE.value: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_service_info(settings: Settings) -> ServiceInfo:
    """Create ServiceInfo from application settings.

    Args:
        settings: Application settings

    Returns:
        ServiceInfo: Instance with current service metadata
    """
    return ServiceInfo(
        name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )


def _current_request_id() -> str:
    return RequestContext.get_request_id() or generate_request_id()


async def service_error_handler(request: Request, exc: Exception) -> Response:
    """Handle ServiceError exceptions.

    Args:
        request: The request that caused the exception
        exc: The ServiceError to handle

    Returns:
        Response: ORJSONResponse with error details

    Raises:
        TypeError: If exc is not a ServiceError instance
    """
    if not isinstance(exc, ServiceError):
        raise TypeError(f"Expected ServiceError, got {type(exc).__name__}")

    settings = get_settings()
    correlation_id = RequestContext.get_correlation_id()

    log = logger.error if exc.should_alert else logger.warning
    log(
        "Handling {exception_type}: {message}",
        exception_type=type(exc).__name__,
        message=exc.message,
        error_code=exc.error_code,
        fingerprint=exc.fingerprint,
        request_method=request.method,
        request_path=request.url.path,
    )

    debug_info = None
    if settings.environment == "development":
        debug_info = {
            "stack_trace": exc.stack_trace,
            "exception_type": type(exc).__name__,
        }
        if exc.cause:
            debug_info["cause"] = {
                "type": type(exc.cause).__name__,
                "message": str(exc.cause),
            }

    error_response = ErrorResponse(
        error_code=exc.error_code,
        message=exc.message,
        details=exc.context or None,
        correlation_id=correlation_id,
        request_id=_current_request_id(),
        severity=exc.severity.value,
        service_info=get_service_info(settings),
        debug_info=debug_info,
    )

    return ORJSONResponse(
        status_code=ERROR_STATUS_CODES.get(
            exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR
        ),
        content=error_response.model_dump(mode="json"),
    )


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle Starlette HTTPException (unknown routes, disallowed methods).

    Args:
        request: The request that caused the exception
        exc: The HTTPException to handle

    Returns:
        Response: ORJSONResponse with error details

    Raises:
        TypeError: If exc is not an HTTPException instance
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    settings = get_settings()

    error_code = ErrorCode.INTERNAL_ERROR.value
    severity = "MEDIUM"
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        error_code = ErrorCode.NOT_FOUND.value
        severity = "LOW"
    elif exc.status_code < HTTP_500_INTERNAL_SERVER_ERROR:
        error_code = ErrorCode.VALIDATION_ERROR.value
        severity = "LOW"
    else:
        severity = "HIGH"

    logger.warning(
        "HTTP exception",
        status=exc.status_code,
        detail=exc.detail,
        request_method=request.method,
        request_path=request.url.path,
    )

    error_response = ErrorResponse(
        error_code=error_code,
        message=str(exc.detail),
        correlation_id=RequestContext.get_correlation_id(),
        request_id=_current_request_id(),
        severity=severity,
        service_info=get_service_info(settings),
    )

    return ORJSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(mode="json"),
        headers=exc.headers,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle any exception that escaped the application.

    In production, internal error details are hidden from clients.

    Args:
        request: The request that caused the exception
        exc: The unhandled exception

    Returns:
        Response: ORJSONResponse with error details
    """
    if isinstance(exc, ServiceError):
        return await service_error_handler(request, exc)

    settings = get_settings()

    logger.exception(
        "Unhandled exception: {exception_type}",
        exception_type=type(exc).__name__,
        request_method=request.method,
        request_path=request.url.path,
    )

    if settings.environment == "production":
        message = "An internal server error occurred"
        details = None
        debug_info = None
    else:
        message = f"Internal server error: {type(exc).__name__}"
        details = {"error": str(exc), "type": type(exc).__name__}
        debug_info = {
            "stack_trace": traceback.format_tb(exc.__traceback__),
            "exception_type": type(exc).__name__,
        }

    error_response = ErrorResponse(
        error_code=ErrorCode.INTERNAL_ERROR.value,
        message=message,
        details=details,
        correlation_id=RequestContext.get_correlation_id(),
        request_id=_current_request_id(),
        severity="CRITICAL",
        service_info=get_service_info(settings),
        debug_info=debug_info,
    )

    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(mode="json"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")
