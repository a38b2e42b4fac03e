"""
Data structures passed between the router, dispatcher and converters.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .config import Category
from .utils.error_handling import ErrorCode
from .utils.mime_detector import MimeTypeDetector
from .validate.base_validator import ValidationError

__all__ = [
    "Category",
    "UploadedFile",
    "ConversionOptions",
    "ConversionRequest",
    "BatchConversionRequest",
    "ConversionResponse",
]


@dataclass(frozen=True)
class UploadedFile:
    """An uploaded file read fully into memory at ingress."""

    content: bytes
    file_name: str
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def stem(self) -> str:
        """File name without directories or extension ('file' if nothing is left)."""
        name = Path(self.file_name.replace("\\", "/")).name
        suffix_length = len(self.extension)
        stem = name[:-suffix_length] if suffix_length else name
        return stem or "file"

    @property
    def extension(self) -> str:
        """Lower-cased extension including the dot ('' if none)."""
        extension = MimeTypeDetector.extension_of(self.file_name)
        return f".{extension}" if extension else ""


@dataclass(frozen=True)
class ConversionOptions:
    """
    Tuning parameters shared by every converter.

    ``dpi`` is accepted for API compatibility but no converter consumes it;
    ``maintain_aspect_ratio`` is advisory only.
    """

    quality: int = 80
    one_click_compression: bool = False
    width: Optional[int] = None
    height: Optional[int] = None
    dpi: int = 300
    maintain_aspect_ratio: bool = True

    def __post_init__(self):
        if not 1 <= self.quality <= 100:
            raise ValidationError(
                "Quality must be between 1 and 100",
                details={"quality": self.quality},
                error_code=ErrorCode.PARAMETER_OUT_OF_RANGE
            )
        for name in ("width", "height"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValidationError(
                    f"{name.capitalize()} must be a positive integer",
                    details={name: value},
                    error_code=ErrorCode.PARAMETER_OUT_OF_RANGE
                )
        if self.dpi <= 0:
            raise ValidationError(
                "DPI must be a positive integer",
                details={"dpi": self.dpi},
                error_code=ErrorCode.PARAMETER_OUT_OF_RANGE
            )


@dataclass
class ConversionRequest:
    """A single-file conversion request."""

    conversion_type: Optional[str]
    file: Optional[UploadedFile]
    options: ConversionOptions = field(default_factory=ConversionOptions)


@dataclass
class BatchConversionRequest:
    """One operation applied to an ordered list of files."""

    conversion_type: Optional[str]
    files: List[UploadedFile] = field(default_factory=list)
    options: ConversionOptions = field(default_factory=ConversionOptions)


@dataclass
class ConversionResponse:
    """Uniform result envelope for every conversion."""

    success: bool
    message: Optional[str] = None
    file_name: Optional[str] = None
    data: Optional[bytes] = None
    content_type: Optional[str] = None
    error_code: Optional[ErrorCode] = None

    @classmethod
    def ok(cls, data: bytes, file_name: str, content_type: str, message: Optional[str] = None):
        return cls(True, message, file_name, data, content_type)

    @classmethod
    def failure(cls, message: str, error_code: ErrorCode = ErrorCode.CONVERSION_FAILED):
        return cls(False, message, error_code=error_code)
