"""Value objects passed in and out of the file store."""

import dataclasses
import datetime as dt
import uuid
from typing import BinaryIO, Self, final

from server.apps.files.models import FileVersion


@final
@dataclasses.dataclass(frozen=True, slots=True)
class Identity:
    """Caller resolved from a bearer token.

    Trusted as given; only copied into records as a snapshot.
    """

    user_id: str
    username: str
    company: str = ''
    role: str = ''


@final
@dataclasses.dataclass(frozen=True, slots=True)
class FileFilter:
    """Optional criteria for listing files.

    ``None`` and empty strings both mean "no constraint".
    Dates are ``YYYY-MM-DD`` strings.
    """

    id: str | None = None
    file_name: str | None = None
    username: str | None = None
    user_id: str | None = None
    company: str | None = None
    content_type: str | None = None
    date_from: str | None = None
    date_to: str | None = None
    min_size: int | None = None
    max_size: int | None = None
    sort_by: str | None = None
    order: str = 'asc'


@final
@dataclasses.dataclass(frozen=True, slots=True)
class FileChanges:
    """Fields an owner may change on an existing record."""

    file_name: str | None = None
    content_type: str | None = None


@final
@dataclasses.dataclass(frozen=True, slots=True)
class FileSummary:
    """Public view of one file version."""

    record_id: uuid.UUID
    logical_file_id: uuid.UUID
    file_name: str
    size_bytes: int
    content_type: str
    uploaded_at: dt.datetime
    uploader_username: str
    version: int
    download_url: str

    @classmethod
    def from_record(cls, record: FileVersion, download_base_url: str) -> Self:
        """Render a record for callers.

        Args:
            record: Stored file version.
            download_base_url: Prefix the record id is appended to.

        Returns:
            Summary with a download link.
        """
        return cls(
            record_id=record.id,
            logical_file_id=record.logical_file_id,
            file_name=record.file_name,
            size_bytes=record.size_bytes,
            content_type=record.content_type,
            uploaded_at=record.uploaded_at,
            uploader_username=record.uploader_username,
            version=record.version,
            download_url=f'{download_base_url}{record.id}',
        )

    def as_json(self) -> dict[str, object]:
        """Serialize using the wire field names.

        Returns:
            JSON-compatible dictionary.
        """
        return {
            'id': str(self.record_id),
            'fileId': str(self.logical_file_id),
            'fileName': self.file_name,
            'fileSize': self.size_bytes,
            'contentType': self.content_type,
            'uploadDate': self.uploaded_at.isoformat(),
            'uploaderUsername': self.uploader_username,
            'version': self.version,
            'downloadUrl': self.download_url,
        }


@final
@dataclasses.dataclass(frozen=True, slots=True)
class FileDownload:
    """Open blob plus the headers needed to serve it."""

    file_name: str
    content_type: str
    disposition: str
    stream: BinaryIO
