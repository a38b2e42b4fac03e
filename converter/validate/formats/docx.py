"""
DOCX file validation.

Validates Microsoft Word DOCX files using ZIP structure and content checks.
"""

import io
import zipfile
import logging

from ..base_validator import ArchiveBasedValidator, ValidationError

logger = logging.getLogger(__name__)


class DOCXValidator(ArchiveBasedValidator):
    """DOCX file validator using the base validation framework."""

    def __init__(self):
        # Define required files for DOCX format
        required_files = [
            '[Content_Types].xml',
            'word/document.xml'
        ]
        super().__init__("docx", required_files)

    def _validate_content(self, content: bytes, **options) -> bool:
        """
        Validate DOCX file content.

        Args:
            content: DOCX file content as bytes
            **options: Additional validation options

        Returns:
            bool: True if validation passes

        Raises:
            ValidationError: If validation fails
        """
        self._validate_basic_archive_content(content)

        with zipfile.ZipFile(io.BytesIO(content), 'r') as zf:
            doc_info = zf.getinfo('word/document.xml')
            if doc_info.file_size == 0:
                raise ValidationError(
                    "DOCX document content is empty",
                    format_type=self.format_name,
                    details={"document_size": doc_info.file_size}
                )

        return True
