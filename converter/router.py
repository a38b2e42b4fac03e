"""
Conversion router for the file conversion endpoints.

This module exposes single and batch conversion plus the format discovery
endpoints. Uploads are read into memory here, up to the configured size
ceiling, and the CPU-bound conversion work runs in the threadpool.
"""

import logging
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, File, Form, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response

from .config import BATCH_ARCHIVE_NAME, SUPPORTED_FORMATS, AppConfig
from .models import (
    BatchConversionRequest,
    ConversionOptions,
    ConversionRequest,
    ConversionResponse,
    UploadedFile,
)
from .utils.archive_packer import pack, packable
from .utils.batch_runner import run_batch
from .utils.dispatcher import dispatch
from .utils.error_handling import (
    GENERIC_BATCH_MESSAGE,
    GENERIC_CONVERSION_MESSAGE,
    ErrorCode,
    create_error_response,
)
from .utils.format_classifier import (
    classify,
    is_supported_operation,
    legal_operations,
    normalize_operation,
)
from .utils.mime_detector import get_mime_type
from .validate.base_validator import ValidationError, upload_too_large

# Set up logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(tags=["conversions"])

TRUE_VALUES = {"true", "1", "yes", "on"}
FALSE_VALUES = {"false", "0", "no", "off"}


#-- Form parsing helpers
#-------------------------------------------------------------------------------
def _parse_int(value: Optional[str], name: str) -> Optional[int]:
    """Parse an optional integer form field; blank means not provided."""
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        raise ValidationError(
            f"{name} must be an integer",
            details={name: value},
            error_code=ErrorCode.INVALID_PARAMETER
        )


def _parse_bool(value: Optional[str], name: str) -> Optional[bool]:
    """Parse an optional boolean form field; blank means not provided."""
    if value is None or not value.strip():
        return None
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValidationError(
        f"{name} must be true or false",
        details={name: value},
        error_code=ErrorCode.INVALID_PARAMETER
    )


def build_options(
    quality: Optional[str] = None,
    one_click_compression: Optional[str] = None,
    width: Optional[str] = None,
    height: Optional[str] = None,
    dpi: Optional[str] = None,
    maintain_aspect_ratio: Optional[str] = None,
) -> ConversionOptions:
    """
    Build ConversionOptions from raw form values, keeping defaults for
    anything the client left out.

    Raises:
        ValidationError: If a value is malformed or out of range
    """
    values = {
        "quality": _parse_int(quality, "quality"),
        "one_click_compression": _parse_bool(one_click_compression, "oneClickCompression"),
        "width": _parse_int(width, "width"),
        "height": _parse_int(height, "height"),
        "dpi": _parse_int(dpi, "dpi"),
        "maintain_aspect_ratio": _parse_bool(maintain_aspect_ratio, "maintainAspectRatio"),
    }
    return ConversionOptions(**{key: value for key, value in values.items() if value is not None})


async def read_upload(file: Optional[UploadFile], max_bytes: Optional[int] = None) -> Optional[UploadedFile]:
    """
    Read a multipart upload into memory.

    Reads at most ``max_bytes + 1`` bytes, so an oversized upload is rejected
    without being buffered whole.

    Raises:
        ValidationError: FILE_TOO_LARGE if the upload exceeds max_bytes
    """
    if file is None:
        return None

    if max_bytes is None:
        content = await file.read()
    else:
        if file.size is not None and file.size > max_bytes:
            raise upload_too_large(file.size, max_bytes)
        content = await file.read(max_bytes + 1)
        if len(content) > max_bytes:
            raise upload_too_large(len(content), max_bytes)

    return UploadedFile(
        content=content,
        file_name=file.filename or "",
        content_type=file.content_type,
    )


def _content_disposition(file_name: str) -> str:
    """Attachment header with an ASCII fallback and an RFC 5987 UTF-8 name."""
    fallback = file_name.encode("ascii", "replace").decode("ascii").replace('"', "'")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(file_name)}"


def _header_safe(text: str) -> str:
    return text.encode("latin-1", "replace").decode("latin-1").replace("\n", " ")


def _file_response(result: ConversionResponse) -> Response:
    headers = {"Content-Disposition": _content_disposition(result.file_name or "converted")}
    if result.message:
        headers["X-Conversion-Message"] = _header_safe(result.message)
    return Response(
        content=result.data,
        media_type=result.content_type or "application/octet-stream",
        headers=headers,
    )


def _failure_response(result: ConversionResponse) -> JSONResponse:
    return create_error_response(
        result.error_code or ErrorCode.CONVERSION_FAILED,
        message=result.message,
    )


#-- Conversion endpoints
#-------------------------------------------------------------------------------
@router.post("/convert")
async def convert_file(
    file: Optional[UploadFile] = File(None),
    conversion_type: Optional[str] = Form(None, alias="conversionType"),
    quality: Optional[str] = Form(None),
    one_click_compression: Optional[str] = Form(None, alias="oneClickCompression"),
    width: Optional[str] = Form(None),
    height: Optional[str] = Form(None),
    dpi: Optional[str] = Form(None),
    maintain_aspect_ratio: Optional[str] = Form(None, alias="maintainAspectRatio"),
):
    """Convert a single uploaded file and return the result as an attachment"""
    try:
        options = build_options(quality, one_click_compression, width, height, dpi, maintain_aspect_ratio)
    except ValidationError as e:
        return create_error_response(e.error_code, message=e.message)

    try:
        upload = await read_upload(file, AppConfig.get_max_upload_bytes())
    except ValidationError as e:
        logger.info(f"Rejected upload {file.filename!r}: {e.message}")
        return create_error_response(e.error_code, message=e.message)

    try:
        request = ConversionRequest(conversion_type=conversion_type, file=upload, options=options)
        result = await run_in_threadpool(dispatch, request)
    except Exception:
        logger.exception("Unexpected error during conversion")
        return create_error_response(ErrorCode.INTERNAL_ERROR, message=GENERIC_CONVERSION_MESSAGE)

    if not result.success:
        return _failure_response(result)
    return _file_response(result)


@router.post("/batch-convert")
async def batch_convert(
    files: Optional[List[UploadFile]] = File(None),
    conversion_type: Optional[str] = Form(None, alias="conversionType"),
    quality: Optional[str] = Form(None),
    one_click_compression: Optional[str] = Form(None, alias="oneClickCompression"),
    width: Optional[str] = Form(None),
    height: Optional[str] = Form(None),
    dpi: Optional[str] = Form(None),
    maintain_aspect_ratio: Optional[str] = Form(None, alias="maintainAspectRatio"),
):
    """Convert several files with one operation and return a zip of the results"""
    if not files:
        return create_error_response(ErrorCode.MISSING_PARAMETER, message="No files uploaded")

    operation = normalize_operation(conversion_type)
    if not operation:
        return create_error_response(ErrorCode.MISSING_PARAMETER, message="Conversion type not specified")
    if not is_supported_operation(operation):
        return create_error_response(ErrorCode.CONVERSION_NOT_SUPPORTED, message="Unsupported conversion type")

    try:
        options = build_options(quality, one_click_compression, width, height, dpi, maintain_aspect_ratio)
    except ValidationError as e:
        return create_error_response(e.error_code, message=e.message)

    max_bytes = AppConfig.get_max_upload_bytes()
    try:
        # Oversized files become failure entries at their position
        uploads = []
        rejected = {}
        for index, file in enumerate(files):
            try:
                uploads.append(await read_upload(file, max_bytes))
            except ValidationError as e:
                rejected[index] = ConversionResponse.failure(e.message, e.error_code)

        converted_results = []
        if uploads:
            request = BatchConversionRequest(conversion_type=operation, files=uploads, options=options)
            converted_results = await run_in_threadpool(run_batch, request)

        pending = iter(converted_results)
        results = [rejected[index] if index in rejected else next(pending) for index in range(len(files))]
        archive = await run_in_threadpool(pack, results)
    except Exception:
        logger.exception("Unexpected error during batch conversion")
        return create_error_response(ErrorCode.INTERNAL_ERROR, message=GENERIC_BATCH_MESSAGE)

    converted = len(packable(results))
    for file, result in zip(files, results):
        if not result.success:
            logger.info(f"Batch item {file.filename!r} failed: {result.message}")

    return Response(
        content=archive,
        media_type=get_mime_type(extension="zip"),
        headers={
            "Content-Disposition": _content_disposition(BATCH_ARCHIVE_NAME),
            "X-Files-Converted": str(converted),
            "X-Files-Failed": str(len(results) - converted),
        },
    )


#-- Utility endpoints
#-------------------------------------------------------------------------------
@router.get("/supported-formats")
async def get_supported_formats():
    """Get the accepted input formats, produced output formats and operations"""
    return JSONResponse(content=SUPPORTED_FORMATS)


@router.get("/conversion-options")
async def get_conversion_options(file_name: Optional[str] = Query(None, alias="fileName")):
    """Get the operations available for a file name"""
    if file_name is None or not file_name.strip():
        return create_error_response(ErrorCode.MISSING_PARAMETER, message="File name required")

    return JSONResponse(content=legal_operations(classify(file_name.strip())))
