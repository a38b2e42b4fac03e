"""
Image file validation.

Opens the upload with Pillow to read its header and checks the pixel count
against the configured ceiling before any full decode happens.
"""

import io
import logging
import warnings
from typing import Optional

from PIL import Image, UnidentifiedImageError

from ..base_validator import BaseFileValidator, ValidationError
from ...utils.error_handling import ErrorCode

logger = logging.getLogger(__name__)


class ImageValidator(BaseFileValidator):
    """Raster image validator (every format Pillow can identify)."""

    def __init__(self):
        super().__init__("image")

    def _validate_content(self, content: bytes, max_pixels: Optional[int] = None, **options) -> bool:
        """
        Validate image file content.

        Args:
            content: Image file content as bytes
            max_pixels: Largest accepted width x height (None disables the check)
            **options: Additional validation options

        Returns:
            bool: True if validation passes

        Raises:
            ValidationError: If validation fails
        """
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", Image.DecompressionBombWarning)
                with Image.open(io.BytesIO(content)) as image:
                    width, height = image.size
                    image_format = image.format
        except Image.DecompressionBombError as e:
            raise ValidationError(
                "Image dimensions exceed the maximum allowed size",
                format_type=self.format_name,
                details={"decode_error": str(e)},
                error_code=ErrorCode.FILE_TOO_LARGE
            )
        except (UnidentifiedImageError, OSError, EOFError, SyntaxError, ValueError) as e:
            raise ValidationError(
                "File is not a valid image",
                format_type=self.format_name,
                details={"decode_error": str(e)}
            )

        pixel_count = width * height
        if pixel_count == 0:
            raise ValidationError(
                "Image has no pixels",
                format_type=self.format_name,
                details={"width": width, "height": height}
            )

        if max_pixels is not None and pixel_count > max_pixels:
            raise ValidationError(
                f"Image dimensions exceed the maximum of {max_pixels} pixels",
                format_type=self.format_name,
                details={"width": width, "height": height, "max_pixels": max_pixels},
                error_code=ErrorCode.FILE_TOO_LARGE
            )

        self.logger.debug(f"Validated {image_format} image {width}x{height}")
        return True
