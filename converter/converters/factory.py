"""
Converter factory.

This module binds every operation identifier to the local converter that
implements it.
"""

import logging
from functools import partial
from typing import Callable, Dict, List

from ..config import CONVERSION_CATALOG, IMAGE_RECODE_TARGETS, INTERNAL_CONVERSIONS
from ..models import ConversionOptions, ConversionResponse, UploadedFile
from ..utils.error_handling import ConversionError, ErrorCode
from .compression import compress_image
from .documents import word_to_pdf
from .images import image_to_pdf, recode_image
from .pdf_to_word import pdf_to_word
from .spreadsheets import excel_to_pdf, pdf_to_excel

logger = logging.getLogger(__name__)

Converter = Callable[[UploadedFile, ConversionOptions], ConversionResponse]


class ConverterFactory:
    """
    Factory for local conversions.

    Supports every operation in the conversion catalog plus the internal
    pdf-to-excel converter.
    """

    def __init__(self):
        """Initialize the conversion factory."""
        self._converters: Dict[str, Converter] = {
            'img-to-pdf': image_to_pdf,
            'compress-img': compress_image,
            'pdf-to-word': pdf_to_word,
            'excel-to-pdf': excel_to_pdf,
            'word-to-pdf': word_to_pdf,
            'pdf-to-excel': pdf_to_excel,
        }
        for operation, target in IMAGE_RECODE_TARGETS.items():
            self._converters[operation] = partial(recode_image, target=target)

        missing = (set(CONVERSION_CATALOG) | set(INTERNAL_CONVERSIONS)) - set(self._converters)
        if missing:
            raise RuntimeError(f"No converter bound for: {sorted(missing)}")

    def operations(self) -> List[str]:
        """All operation identifiers with a bound converter."""
        return list(self._converters)

    def get_converter(self, operation: str) -> Converter:
        """
        Look up the converter for an operation.

        Raises:
            ConversionError: If no converter is bound to the operation
        """
        converter = self._converters.get(operation)
        if converter is None:
            raise ConversionError("Unsupported conversion type", ErrorCode.CONVERSION_NOT_SUPPORTED)
        return converter

    def convert(self, operation: str, upload: UploadedFile, options: ConversionOptions) -> ConversionResponse:
        """
        Convert an upload using local processing.

        Args:
            operation: Operation identifier (e.g. 'img-to-pdf')
            upload: The uploaded file
            options: Conversion options

        Returns:
            ConversionResponse produced by the converter

        Raises:
            ConversionError: If the operation is unknown or the converter fails
        """
        converter = self.get_converter(operation)
        logger.debug(f"Running {operation} on {upload.file_name!r} ({upload.size} bytes)")
        return converter(upload, options)


# Global factory instance
_factory = None


def get_converter_factory() -> ConverterFactory:
    """Get the global converter factory instance."""
    global _factory
    if _factory is None:
        _factory = ConverterFactory()
    return _factory
