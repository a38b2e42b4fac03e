"""
Size-aware image compression.

The decision helpers are pure functions of the image's characteristics so
they can be tested without encoding anything; ``compress_image`` wires them
to Pillow.
"""

import logging
from io import BytesIO
from typing import Optional

from PIL import Image

from ..models import ConversionOptions, ConversionResponse, UploadedFile
from ..utils.mime_detector import DEFAULT_MIME_TYPE, get_mime_type
from .images import flatten_onto_white, open_image

logger = logging.getLogger(__name__)

ONE_CLICK_QUALITY = 50
LARGE_IMAGE_PIXELS = 1_000_000

# (pixel threshold, quality floor), checked largest first
QUALITY_FLOORS = [
    (20_000_000, 60),
    (8_000_000, 70),
    (2_000_000, 75),
]
SMALL_IMAGE_QUALITY_CAP = 90

# Estimated bytes per pixel at full quality, by original file type
SIZE_MULTIPLIERS = {
    "jpeg": 0.5,
    "png": 0.8,
}
DEFAULT_SIZE_MULTIPLIER = 0.6

OUTPUT_EXTENSIONS = {
    "jpeg": "jpg",
    "png": "png",
}


def format_file_size(size: int) -> str:
    """Human readable size in B, KB or MB."""
    if abs(size) < 1024:
        return f"{size} B"
    if abs(size) < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def reduction_percentage(original_size: int, result_size: int) -> float:
    """Percentage saved, 0 when there was nothing to begin with."""
    if original_size <= 0:
        return 0.0
    return (original_size - result_size) * 100.0 / original_size


def _declared_type(file_name: Optional[str], content_type: Optional[str]) -> str:
    """Original file type as 'jpeg', 'png' or 'other'."""
    declared = (content_type or "").lower()
    name = (file_name or "").lower()
    if declared.startswith("image/jpeg") or name.endswith((".jpg", ".jpeg")):
        return "jpeg"
    if declared.startswith("image/png") or name.endswith(".png"):
        return "png"
    return "other"


def has_transparency(image: Image.Image) -> bool:
    """
    True if at least one pixel is not fully opaque.

    Palette and colour-key transparency are expanded to an alpha channel
    before inspecting it.
    """
    if not image.has_transparency_data:
        return False

    rgba = image if image.mode == "RGBA" else image.convert("RGBA")
    lowest_alpha, _ = rgba.getchannel("A").getextrema()
    return lowest_alpha < 255


def determine_best_format(
    has_alpha: bool,
    pixel_count: int,
    file_name: Optional[str] = None,
    content_type: Optional[str] = None
) -> str:
    """
    Choose the output encoder for a compression.

    Transparent images stay PNG; large images become JPEG; small images keep
    PNG when they were PNG and become JPEG otherwise.
    """
    if has_alpha:
        return "png"
    if pixel_count > LARGE_IMAGE_PIXELS:
        return "jpeg"
    if _declared_type(file_name, content_type) == "png":
        return "png"
    return "jpeg"


def determine_optimal_quality(pixel_count: int, quality: int, one_click: bool = False) -> int:
    """
    Quality to encode with, given the image size.

    Large images get a quality floor; small ones are capped at 90.
    """
    base = ONE_CLICK_QUALITY if one_click else quality

    for threshold, floor in QUALITY_FLOORS:
        if pixel_count > threshold:
            return max(floor, base)
    return min(SMALL_IMAGE_QUALITY_CAP, base)


def estimate_compressed_size(
    pixel_count: int,
    quality: int,
    one_click: bool = False,
    file_name: Optional[str] = None,
    content_type: Optional[str] = None
) -> int:
    """Rough output size estimate, only used for the summary message."""
    base = ONE_CLICK_QUALITY if one_click else quality
    multiplier = SIZE_MULTIPLIERS.get(_declared_type(file_name, content_type), DEFAULT_SIZE_MULTIPLIER)
    return int(pixel_count * multiplier * (base / 100.0))


def _encode(image: Image.Image, output_format: str, quality: int) -> bytes:
    buffer = BytesIO()
    if output_format == "png":
        prepared = image if image.mode in ("1", "L", "LA", "P", "RGB", "RGBA") else image.convert("RGBA")
        prepared.save(buffer, format="PNG", optimize=True, compress_level=9)
    else:
        flatten_onto_white(image).save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def compress_image(upload: UploadedFile, options: ConversionOptions) -> ConversionResponse:
    """
    Compress an image, choosing encoder and quality from its characteristics.

    With one-click compression a result that is not smaller than the upload
    is discarded and the original bytes are returned instead.
    """
    image = open_image(upload)
    pixel_count = image.width * image.height
    original_size = upload.size
    one_click = options.one_click_compression

    estimated_size = estimate_compressed_size(
        pixel_count, options.quality, one_click, upload.file_name, upload.content_type
    )
    estimated_reduction = original_size - estimated_size
    compression_info = (
        f"Estimated reduction: {format_file_size(estimated_reduction)} "
        f"({reduction_percentage(original_size, estimated_size):.1f}% savings)"
    )

    quality = determine_optimal_quality(pixel_count, options.quality, one_click)
    output_format = determine_best_format(
        has_transparency(image), pixel_count, upload.file_name, upload.content_type
    )
    logger.info(
        f"Compressing {upload.file_name!r} ({image.width}x{image.height}) "
        f"as {output_format} at quality {quality}"
    )

    data = _encode(image, output_format, quality)
    compressed_size = len(data)

    if one_click and compressed_size >= original_size:
        content_type = get_mime_type(filename=upload.file_name)
        if content_type == DEFAULT_MIME_TYPE and upload.content_type:
            content_type = upload.content_type
        return ConversionResponse.ok(
            upload.content,
            f"{upload.stem}_compressed{upload.extension}",
            content_type,
            message=(
                "Original file was already optimally compressed. "
                f"Estimation: {compression_info}. Actual: No reduction achieved."
            ),
        )

    actual_reduction = original_size - compressed_size
    return ConversionResponse.ok(
        data,
        f"{upload.stem}_compressed.{OUTPUT_EXTENSIONS[output_format]}",
        get_mime_type(extension=output_format),
        message=(
            f"Compression completed. Estimation: {compression_info}. "
            f"Actual: Reduced by {format_file_size(actual_reduction)} "
            f"({reduction_percentage(original_size, compressed_size):.1f}% savings)."
        ),
    )
