"""
Format-specific validators for upload validation.
"""

# Import all validators to make them available
from . import image, pdf, docx, xlsx, ole

__all__ = ['image', 'pdf', 'docx', 'xlsx', 'ole']
