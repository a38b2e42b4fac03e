"""
PDF file validation.

Validates PDF uploads by header and trailer markers before pypdf parses them.
"""

import logging

from ..base_validator import SignatureBasedValidator, ValidationError

logger = logging.getLogger(__name__)


class PDFValidator(SignatureBasedValidator):
    """PDF file validator using the base validation framework."""

    def __init__(self):
        super().__init__("pdf", [b'%PDF-'])

    def _validate_content(self, content: bytes, **options) -> bool:
        """
        Validate PDF file content.

        Args:
            content: PDF file content as bytes
            **options: Additional validation options

        Returns:
            bool: True if validation passes

        Raises:
            ValidationError: If validation fails
        """
        self._check_signature(content)
        self._validate_pdf_structure(content)
        return True

    def _validate_pdf_structure(self, content: bytes) -> None:
        """
        Validate PDF file structure.

        Args:
            content: PDF file content as bytes

        Raises:
            ValidationError: If structure validation fails
        """
        # Check PDF trailer
        if b'%%EOF' not in content:
            raise ValidationError(
                "Invalid PDF file: missing EOF marker",
                format_type=self.format_name,
                details={"eof_found": False}
            )
