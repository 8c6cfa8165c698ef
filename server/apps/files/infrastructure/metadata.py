"""Metadata extraction utilities for files."""

import mimetypes
from pathlib import PurePosixPath
from typing import BinaryIO, Final

from django.core.files.base import File as DjangoFile

from server.apps.files.exceptions import InvalidInputError
from server.apps.files.models import DEFAULT_CONTENT_TYPE

# Uploaded content: raw bytes, a binary stream or a Django file
Payload = bytes | BinaryIO | DjangoFile

_INLINE_PREFIX: Final = 'image/'


def detect_content_type(file_name: str, declared: str | None = None) -> str:
    """Pick the content type for an upload.

    The type declared by the client wins. Otherwise the type is guessed
    from the filename extension.

    Args:
        file_name: Filename with extension.
        declared: Content type sent by the client, if any.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    if declared:
        return declared
    mime_type, _ = mimetypes.guess_type(file_name)
    if mime_type is None:
        return DEFAULT_CONTENT_TYPE
    return mime_type


def extract_filename(raw_name: str | None) -> str:
    """Extract the base filename from a client supplied name.

    Browsers on some platforms send full paths, only the last
    component is kept.

    Args:
        raw_name: Name as sent by the client (e.g., 'C:/docs/file.pdf').

    Returns:
        Filename (e.g., 'file.pdf').

    Raises:
        InvalidInputError: If no usable name remains.
    """
    normalized = (raw_name or '').replace('\\', '/').strip()
    filename = PurePosixPath(normalized).name
    if not filename:
        raise InvalidInputError('File name is required')
    return filename


def get_payload_size(payload: Payload) -> int:
    """Get payload size in bytes without consuming it.

    Args:
        payload: Raw bytes or file-like object.

    Returns:
        Size in bytes.
    """
    if isinstance(payload, bytes):
        return len(payload)
    if hasattr(payload, 'size'):
        return payload.size
    payload.seek(0)
    size = len(payload.read())
    payload.seek(0)  # Reset after reading for size
    return size


def content_disposition(file_name: str, content_type: str) -> str:
    """Build the Content-Disposition header value for a download.

    Images are shown inline, everything else is downloaded.

    Args:
        file_name: Display name of the file.
        content_type: MIME type of the file.

    Returns:
        Header value, e.g. 'attachment; filename="report.txt"'.
    """
    disposition = 'attachment'
    if content_type.startswith(_INLINE_PREFIX):
        disposition = 'inline'
    safe_name = file_name.replace('"', '')
    return f'{disposition}; filename="{safe_name}"'
