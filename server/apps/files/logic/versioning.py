"""Version numbering and blob naming for logical files.

Pure functions: callers look up the previous record and persist the
result, nothing here touches the database.
"""

import dataclasses
import uuid
from typing import Final, final

from django.utils import timezone

from server.apps.files.entities import Identity
from server.apps.files.exceptions import NotFoundError
from server.apps.files.models import FileVersion

INITIAL_VERSION: Final = 0

_VERSION_SUFFIX: Final = '_v'


@final
@dataclasses.dataclass(frozen=True, slots=True)
class VersionPlan:
    """Where and under which number the next version is stored.

    ``blob_name`` is the version qualified name (``report.txt_v2``).
    ``blob_key`` places it under the logical file id and the version
    number, so no two versions ever share a key, whatever their names.
    """

    logical_file_id: uuid.UUID
    version: int
    file_name: str
    blob_name: str

    @property
    def blob_key(self) -> str:
        """Storage key for the blob store."""
        return f'{self.logical_file_id}/{self.version}/{self.blob_name}'


def versioned_name(base_name: str, version: int) -> str:
    """Build the blob name of a version.

    Args:
        base_name: Display name of the logical file.
        version: Version number.

    Returns:
        ``base_name`` for the original upload, ``base_name_vN`` otherwise.
    """
    if version == INITIAL_VERSION:
        return base_name
    return f'{base_name}{_VERSION_SUFFIX}{version}'


def plan_first_version(file_name: str) -> VersionPlan:
    """Plan the original upload of a new logical file.

    Args:
        file_name: Name of the uploaded file.

    Returns:
        Plan with a fresh logical file id and version 0.
    """
    return VersionPlan(
        logical_file_id=uuid.uuid4(),
        version=INITIAL_VERSION,
        file_name=file_name,
        blob_name=versioned_name(file_name, INITIAL_VERSION),
    )


def plan_next_version(
    logical_file_id: uuid.UUID | str,
    latest: FileVersion | None,
) -> VersionPlan:
    """Plan a new version on top of the current one.

    The display name is taken from the current record, not from the
    newly uploaded file, so it stays stable across versions.

    Args:
        logical_file_id: Logical file receiving the new version.
        latest: Current (highest version) record, if any.

    Returns:
        Plan with ``latest.version + 1``.

    Raises:
        NotFoundError: If the logical file has no versions.
    """
    if latest is None:
        raise NotFoundError(f'Unknown logical file: {logical_file_id}')
    next_version = latest.version + 1
    return VersionPlan(
        logical_file_id=latest.logical_file_id,
        version=next_version,
        file_name=latest.file_name,
        blob_name=versioned_name(latest.file_name, next_version),
    )


def build_record(  # noqa: WPS211
    plan: VersionPlan,
    identity: Identity,
    size_bytes: int,
    content_type: str,
    blob_locator: str = '',
) -> FileVersion:
    """Create an unsaved record for a planned version.

    Args:
        plan: Version plan.
        identity: Uploader, copied into the record as a snapshot.
        size_bytes: Size of the uploaded bytes.
        content_type: MIME type of the upload.
        blob_locator: Locator returned by the blob store.

    Returns:
        Fully populated, unsaved ``FileVersion``.
    """
    return FileVersion(
        logical_file_id=plan.logical_file_id,
        file_name=plan.file_name,
        blob_locator=blob_locator,
        size_bytes=size_bytes,
        content_type=content_type,
        uploaded_at=timezone.now(),
        uploader_id=identity.user_id,
        uploader_username=identity.username,
        uploader_company=identity.company,
        uploader_role=identity.role,
        version=plan.version,
    )
