"""
Base file validator classes for upload validation.

This module provides base classes and utilities for validating uploaded
payloads before a converter sees them, reducing code duplication across
format-specific validators. Validators work on the in-memory bytes of an
upload; nothing is written to disk.
"""

import io
import logging
import zipfile
from abc import ABC, abstractmethod
from typing import Optional, Any, Dict, List

from ..utils.error_handling import ErrorCode

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when request or file validation fails."""
    def __init__(
        self,
        message: str,
        format_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: ErrorCode = ErrorCode.INVALID_FILE
    ):
        super().__init__(message)
        self.message = message
        self.format_type = format_type
        self.details = details or {}
        self.error_code = error_code


def upload_too_large(size: int, max_bytes: int, format_type: Optional[str] = None) -> ValidationError:
    """Error for an upload over the byte ceiling (size may be a lower bound)."""
    return ValidationError(
        f"File exceeds the maximum upload size of {max_bytes} bytes",
        format_type=format_type,
        details={"file_size": size, "max_bytes": max_bytes},
        error_code=ErrorCode.FILE_TOO_LARGE
    )


class BaseFileValidator(ABC):
    """
    Base class for file format validators.

    Provides common size checks and error handling that can be inherited by
    specific format validators.
    """

    def __init__(self, format_name: str):
        self.format_name = format_name
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def validate_content(self, content: bytes, max_bytes: Optional[int] = None, **options) -> bool:
        """
        Main validation method that handles the common checks.

        Args:
            content: Raw bytes of the upload
            max_bytes: Upload ceiling in bytes (None disables the check)
            **options: Format-specific validation options

        Returns:
            bool: True if validation passes

        Raises:
            ValidationError: If validation fails
        """
        self._check_content_size(content, max_bytes)
        return self._validate_content(content, **options)

    def _check_content_size(self, content: bytes, max_bytes: Optional[int]) -> None:
        """Check the upload is neither empty nor over the ceiling."""
        if not content:
            raise ValidationError(
                "File is empty",
                format_type=self.format_name,
                details={"file_size": 0},
                error_code=ErrorCode.MISSING_PARAMETER
            )

        if max_bytes is not None and len(content) > max_bytes:
            raise upload_too_large(len(content), max_bytes, self.format_name)

    @abstractmethod
    def _validate_content(self, content: bytes, **options) -> bool:
        """
        Perform format-specific content validation.

        This method must be implemented by subclasses.

        Args:
            content: File content to validate
            **options: Format-specific validation options

        Returns:
            bool: True if validation passes

        Raises:
            ValidationError: If validation fails
        """
        pass


class SignatureBasedValidator(BaseFileValidator):
    """
    Base class for binary formats identified by a leading magic number.
    """

    def __init__(self, format_name: str, signatures: List[bytes]):
        super().__init__(format_name)
        self.signatures = signatures

    def _check_signature(self, content: bytes) -> None:
        if not any(content.startswith(signature) for signature in self.signatures):
            raise ValidationError(
                f"File is not a valid {self.format_name.upper()} file",
                format_type=self.format_name,
                details={"header": content[:8].hex()}
            )

    def _validate_content(self, content: bytes, **options) -> bool:
        self._check_signature(content)
        return True


class ArchiveBasedValidator(BaseFileValidator):
    """
    Base class for archive-based file validators (OOXML packages).

    Provides common functionality for validating archive file structures.
    """

    def __init__(self, format_name: str, required_files: list):
        super().__init__(format_name)
        self.required_files = required_files

    def _validate_basic_archive_content(self, content: bytes) -> List[str]:
        """Validate basic archive structure and return its member names."""
        try:
            with zipfile.ZipFile(io.BytesIO(content), 'r') as zf:
                namelist = zf.namelist()
        except (zipfile.BadZipFile, ValueError, OSError) as e:
            # Corrupt central directories also surface as ValueError (bad UTF-8 names)
            raise ValidationError(
                f"File is not a valid {self.format_name.upper()} file",
                format_type=self.format_name,
                details={"archive_error": str(e)}
            )

        missing_files = [name for name in self.required_files if name not in namelist]
        if missing_files:
            raise ValidationError(
                f"File is not a valid {self.format_name.upper()} file",
                format_type=self.format_name,
                details={
                    "missing_files": missing_files,
                    "available_files": namelist[:10]  # Limit for readability
                }
            )

        return namelist

    def _validate_content(self, content: bytes, **options) -> bool:
        self._validate_basic_archive_content(content)
        return True


def create_validator_for_format(format_name: str) -> BaseFileValidator:
    """
    Factory function to create appropriate validator for a format.

    Args:
        format_name: The format name (image, pdf, docx, xlsx, doc, xls)

    Returns:
        Appropriate validator instance

    Raises:
        ValueError: If format is not supported
    """
    # Import here to avoid circular imports
    from .formats import image, pdf, docx, xlsx, ole

    format_validators = {
        'image': lambda: image.ImageValidator(),
        'pdf': lambda: pdf.PDFValidator(),
        'docx': lambda: docx.DOCXValidator(),
        'xlsx': lambda: xlsx.XLSXValidator(),
        'doc': lambda: ole.OLEValidator('doc'),
        'xls': lambda: ole.OLEValidator('xls'),
    }

    validator_factory = format_validators.get(format_name.lower())
    if not validator_factory:
        raise ValueError(f"Unsupported format: {format_name}")

    return validator_factory()
