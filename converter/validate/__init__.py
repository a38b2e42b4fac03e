"""
File validation module for the conversion pipeline.

This module provides upload validation for every input category, ensuring
payloads are within the configured limits and structurally sound before they
reach a converter.
"""

import logging
from typing import Optional

from ..config import Category
from ..utils.mime_detector import MimeTypeDetector
from .base_validator import ValidationError, create_validator_for_format
from .formats.ole import OLE_SIGNATURE

logger = logging.getLogger(__name__)


class FileValidator:
    """Factory class for upload validation."""

    def __init__(self):
        self._validators = {}

    def _get_format_validator(self, format_name: str):
        """Create each format validator once and reuse it."""
        if format_name not in self._validators:
            self._validators[format_name] = create_validator_for_format(format_name)
        return self._validators[format_name]

    @staticmethod
    def format_for(category: Category, file_name: Optional[str], content: bytes) -> str:
        """
        Pick the validator format for a classified upload.

        Office files without a usable extension are told apart by the OLE2
        signature of the legacy binary formats.
        """
        if category == Category.IMAGE:
            return 'image'
        if category == Category.PDF:
            return 'pdf'

        extension = MimeTypeDetector.extension_of(file_name)
        legacy = content.startswith(OLE_SIGNATURE)
        if category == Category.WORD:
            return extension if extension in ('doc', 'docx') else ('doc' if legacy else 'docx')
        if category == Category.EXCEL:
            return extension if extension in ('xls', 'xlsx') else ('xls' if legacy else 'xlsx')

        raise ValueError(f"Unsupported category: {category.value}")

    def validate_upload(
        self,
        content: bytes,
        file_name: Optional[str],
        category: Category,
        max_bytes: Optional[int] = None,
        max_pixels: Optional[int] = None
    ) -> bool:
        """
        Validate an uploaded payload against its classified category.

        Args:
            content: Raw bytes of the upload
            file_name: Client-supplied file name
            category: Category the upload was classified into
            max_bytes: Upload ceiling in bytes
            max_pixels: Decoded-image pixel ceiling (images only)

        Returns:
            bool: True if validation passes

        Raises:
            ValidationError: If validation fails
        """
        format_name = self.format_for(category, file_name, content)
        validator = self._get_format_validator(format_name)

        options = {}
        if format_name == 'image':
            options['max_pixels'] = max_pixels

        try:
            return validator.validate_content(content, max_bytes=max_bytes, **options)
        except ValidationError as e:
            logger.info(f"Validation rejected {file_name!r} as {format_name}: {e.message} {e.details}")
            raise


# Global validator instance
_validator = None


def get_validator() -> FileValidator:
    """Get the global file validator instance."""
    global _validator
    if _validator is None:
        _validator = FileValidator()
    return _validator


def validate_upload(
    content: bytes,
    file_name: Optional[str],
    category: Category,
    max_bytes: Optional[int] = None,
    max_pixels: Optional[int] = None
) -> bool:
    """Convenience function to validate an upload with the global validator."""
    return get_validator().validate_upload(content, file_name, category, max_bytes, max_pixels)
