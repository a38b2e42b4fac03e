"""
Zip archive packing for batch results.
"""

import zipfile
from io import BytesIO
from pathlib import PurePosixPath
from typing import Iterable, List, Set

from ..models import ConversionResponse


def unique_name(name: str, used: Set[str]) -> str:
    """
    Name not yet in ``used``, suffixing _1, _2, ... before the extension.

    The returned name is added to ``used``.
    """
    candidate = name
    path = PurePosixPath(name)
    index = 1
    while candidate in used:
        candidate = f"{path.stem}_{index}{path.suffix}"
        index += 1
    used.add(candidate)
    return candidate


def packable(responses: Iterable[ConversionResponse]) -> List[ConversionResponse]:
    """Responses that carry output to archive."""
    return [response for response in responses if response.success and response.data]


def pack(responses: Iterable[ConversionResponse]) -> bytes:
    """Zip the successful outputs of a batch, named by their file names."""
    buffer = BytesIO()
    used: Set[str] = set()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for response in packable(responses):
            archive.writestr(unique_name(response.file_name or "file", used), response.data)
    return buffer.getvalue()
