"""
Format classification utilities for the /convert endpoints.

This module maps an upload's file name (and, as a fallback, its declared
content type) to a file Category, and a Category to the conversion
operations that are legal for it.
"""

from typing import List, Optional

from ..config import (
    CATEGORY_EXTENSIONS,
    CONTENT_TYPE_TOKENS,
    CONVERSION_CATALOG,
    INTERNAL_CONVERSIONS,
    Category,
)
from .mime_detector import MimeTypeDetector


def classify_extension(file_name: Optional[str]) -> Category:
    """Category for a file name's extension alone (Unknown if unrecognized)."""
    extension = MimeTypeDetector.extension_of(file_name)
    if not extension:
        return Category.UNKNOWN

    for category, extensions in CATEGORY_EXTENSIONS:
        if extension in extensions:
            return category
    return Category.UNKNOWN


def classify_content_type(content_type: Optional[str]) -> Category:
    """Category for a declared content type (Unknown if nothing matches)."""
    if not content_type:
        return Category.UNKNOWN

    declared = content_type.lower()
    if declared.startswith("image/"):
        return Category.IMAGE

    for category, tokens in CONTENT_TYPE_TOKENS:
        if any(token in declared for token in tokens):
            return category
    return Category.UNKNOWN


def classify(file_name: Optional[str], content_type: Optional[str] = None) -> Category:
    """
    Classify an upload into a Category.

    The extension wins whenever it is recognized; the declared content type is
    only consulted when the extension is missing or unknown.

    Args:
        file_name: Client-supplied file name
        content_type: Optional declared MIME type

    Returns:
        The file's Category
    """
    category = classify_extension(file_name)
    if category != Category.UNKNOWN:
        return category
    return classify_content_type(content_type)


def normalize_operation(operation: Optional[str]) -> str:
    """Lower-case and strip an operation identifier ('' for None)."""
    return (operation or "").strip().lower()


def is_supported_operation(operation: Optional[str]) -> bool:
    """True if the operation is part of the public catalog."""
    return normalize_operation(operation) in CONVERSION_CATALOG


def legal_operations(category: Category) -> List[str]:
    """
    Get the operations legal for a category, in catalog order.

    Args:
        category: A file Category

    Returns:
        List of operation identifiers (empty for Unknown)
    """
    return [
        operation
        for operation, (required, _) in CONVERSION_CATALOG.items()
        if required == category
    ]


def required_category(operation: Optional[str]) -> Optional[Category]:
    """The category an operation needs, or None for an unknown operation."""
    key = normalize_operation(operation)
    entry = CONVERSION_CATALOG.get(key) or INTERNAL_CONVERSIONS.get(key)
    return entry[0] if entry else None


def describe_requirement(category: Category) -> str:
    """Human wording for a required category, e.g. 'an Excel file'."""
    label = category.value.upper() if category == Category.PDF else category.value
    article = "an" if label[0] in "AEIOU" else "a"
    return f"{article} {label} file"
