"""
Centralized error handling for the converter web API.

This module provides standardized error responses, error codes, and the
ConversionError raised by converters, so that every endpoint reports failures
the same way.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Union
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_CONVERSION_MESSAGE = "An error occurred during conversion"
GENERIC_BATCH_MESSAGE = "An error occurred during batch conversion"


class ErrorCode(str, Enum):
    """Standardized error codes for consistent error handling."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Conversion-specific errors
    CONVERSION_NOT_SUPPORTED = "CONVERSION_NOT_SUPPORTED"
    CONVERSION_FAILED = "CONVERSION_FAILED"
    INVALID_FORMAT = "INVALID_FORMAT"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_FILE = "INVALID_FILE"

    # Validation errors
    MISSING_PARAMETER = "MISSING_PARAMETER"
    INVALID_PARAMETER = "INVALID_PARAMETER"
    PARAMETER_OUT_OF_RANGE = "PARAMETER_OUT_OF_RANGE"


class ErrorSeverity(str, Enum):
    """Error severity levels for logging and response handling."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Error code to HTTP status code mapping
ERROR_STATUS_MAP: Dict[ErrorCode, int] = {
    # 4xx Client Errors
    ErrorCode.INVALID_FORMAT: 400,
    ErrorCode.INVALID_FILE: 400,
    ErrorCode.MISSING_PARAMETER: 400,
    ErrorCode.INVALID_PARAMETER: 400,
    ErrorCode.PARAMETER_OUT_OF_RANGE: 400,
    ErrorCode.CONVERSION_NOT_SUPPORTED: 400,
    ErrorCode.CONVERSION_FAILED: 400,
    ErrorCode.FILE_TOO_LARGE: 413,

    # 5xx Server Errors
    ErrorCode.INTERNAL_ERROR: 500,
}

# Error code to severity mapping
ERROR_SEVERITY_MAP: Dict[ErrorCode, ErrorSeverity] = {
    ErrorCode.INTERNAL_ERROR: ErrorSeverity.CRITICAL,
    ErrorCode.CONVERSION_FAILED: ErrorSeverity.MEDIUM,
    ErrorCode.CONVERSION_NOT_SUPPORTED: ErrorSeverity.LOW,
    ErrorCode.INVALID_FORMAT: ErrorSeverity.LOW,
    ErrorCode.INVALID_FILE: ErrorSeverity.LOW,
    ErrorCode.MISSING_PARAMETER: ErrorSeverity.LOW,
    ErrorCode.INVALID_PARAMETER: ErrorSeverity.LOW,
    ErrorCode.PARAMETER_OUT_OF_RANGE: ErrorSeverity.LOW,
    ErrorCode.FILE_TOO_LARGE: ErrorSeverity.LOW,
}


class ConversionError(Exception):
    """
    Raised by a converter when a conversion cannot be completed.

    The message is safe to show to API clients; library detail belongs in the
    server log, not here.
    """

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.CONVERSION_FAILED):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


def status_for(error_code: Optional[Union[ErrorCode, str]]) -> int:
    """HTTP status for an error code (500 for anything unknown)."""
    if isinstance(error_code, ErrorCode):
        return ERROR_STATUS_MAP.get(error_code, 500)
    return 500


def create_error_response(
    error_code: Union[ErrorCode, str],
    message: Optional[str] = None,
    details: Optional[str] = None,
    status_code: Optional[int] = None,
    **kwargs
) -> JSONResponse:
    """
    Create a consistent JSON error response across all endpoints.

    Args:
        error_code: Error code from ErrorCode enum or custom string
        message: Human-readable, client-safe failure message
        details: Additional error details (will be truncated to 1000 chars)
        status_code: Override the default HTTP status code
        **kwargs: Additional fields to include in the error response

    Returns:
        JSONResponse with standardized error format
    """
    # Handle both ErrorCode enum and string error codes
    if isinstance(error_code, ErrorCode):
        error_type = error_code.value
        if status_code is None:
            status_code = status_for(error_code)
        severity = ERROR_SEVERITY_MAP.get(error_code, ErrorSeverity.MEDIUM)
    else:
        error_type = str(error_code)
        if status_code is None:
            status_code = 500
        severity = ErrorSeverity.MEDIUM

    error_data = {
        "success": False,
        "message": message or GENERIC_CONVERSION_MESSAGE,
        "error": error_type,
        "timestamp": datetime.now().isoformat() + "Z",
        "status_code": status_code,
        "severity": severity.value
    }

    if details:
        error_data["details"] = str(details)[:1000]  # Limit details length

    # Add any additional fields
    error_data.update(kwargs)

    # Log the error with appropriate level
    log_message = f"Error response: {error_data}"
    if severity == ErrorSeverity.CRITICAL:
        logger.critical(log_message)
    elif severity == ErrorSeverity.HIGH:
        logger.error(log_message)
    elif severity == ErrorSeverity.MEDIUM:
        logger.warning(log_message)
    else:
        logger.info(log_message)

    return JSONResponse(status_code=status_code, content=error_data)
