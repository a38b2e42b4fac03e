"""
Conversion dispatcher.

Validates a single conversion request, classifies the upload, checks the
operation is legal for it, and runs the bound converter. Every failure is
folded into a ConversionResponse; nothing is raised to the caller.
"""

import logging

from ..config import AppConfig, Category
from ..converters.factory import get_converter_factory
from ..models import ConversionRequest, ConversionResponse
from ..validate import validate_upload
from ..validate.base_validator import ValidationError
from .error_handling import GENERIC_CONVERSION_MESSAGE, ConversionError, ErrorCode
from .format_classifier import (
    classify,
    describe_requirement,
    is_supported_operation,
    legal_operations,
    normalize_operation,
    required_category,
)
from .logging_config import log_performance

logger = logging.getLogger(__name__)


def check_request(request: ConversionRequest):
    """
    Reject a request that cannot be converted.

    Returns:
        Tuple of (operation, category) for a convertible request

    Raises:
        ValidationError: With the client-facing message and error code
    """
    upload = request.file
    if upload is None or upload.size == 0:
        raise ValidationError("No file uploaded", error_code=ErrorCode.MISSING_PARAMETER)

    operation = normalize_operation(request.conversion_type)
    if not operation:
        raise ValidationError("Conversion type not specified", error_code=ErrorCode.MISSING_PARAMETER)

    if not is_supported_operation(operation):
        raise ValidationError(
            "Unsupported conversion type",
            details={"conversion_type": operation},
            error_code=ErrorCode.CONVERSION_NOT_SUPPORTED
        )

    category = classify(upload.file_name, upload.content_type)
    if operation not in legal_operations(category):
        needed = required_category(operation)
        raise ValidationError(
            f"Selected conversion requires {describe_requirement(needed)}",
            details={"conversion_type": operation, "category": category.value},
            error_code=ErrorCode.INVALID_FORMAT
        )

    return operation, category


@log_performance(logger, logging.DEBUG)
def dispatch(request: ConversionRequest) -> ConversionResponse:
    """
    Run one conversion request end to end.

    Args:
        request: The conversion request

    Returns:
        The converter's envelope on success, or a failure envelope
    """
    try:
        operation, category = check_request(request)
        upload = request.file
        validate_upload(
            upload.content,
            upload.file_name,
            category,
            max_bytes=AppConfig.get_max_upload_bytes(),
            max_pixels=AppConfig.get_max_image_pixels() if category == Category.IMAGE else None,
        )
    except ValidationError as e:
        logger.info(f"Rejected conversion request: {e.message}")
        return ConversionResponse.failure(e.message, e.error_code)
    except Exception:
        logger.exception("Unexpected error while validating conversion request")
        return ConversionResponse.failure(GENERIC_CONVERSION_MESSAGE, ErrorCode.CONVERSION_FAILED)

    logger.info(f"Converting {upload.file_name!r} with {operation}")
    try:
        return get_converter_factory().convert(operation, upload, request.options)
    except ConversionError as e:
        logger.error(f"{operation} failed for {upload.file_name!r}: {e.message}", exc_info=True)
        return ConversionResponse.failure(e.message, e.error_code)
    except Exception:
        logger.exception(f"{operation} failed for {upload.file_name!r}")
        return ConversionResponse.failure(GENERIC_CONVERSION_MESSAGE, ErrorCode.CONVERSION_FAILED)
