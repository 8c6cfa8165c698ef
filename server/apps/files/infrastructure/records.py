"""Metadata store for file version records.

Thin layer over the ``FileVersion`` table: lookups, predicate queries
and writes. Business rules live in ``server.apps.files.logic``.
"""

import logging
import uuid
from collections.abc import Sequence
from typing import final

from django.db import transaction
from django.db.models import Q

from server.apps.files.exceptions import NotFoundError
from server.apps.files.models import FileVersion

logger = logging.getLogger(__name__)


def _as_uuid(raw_id: uuid.UUID | str) -> uuid.UUID | None:
    """Parse an identifier, ``None`` when it is not a UUID."""
    if isinstance(raw_id, uuid.UUID):
        return raw_id
    try:
        return uuid.UUID(str(raw_id))
    except ValueError:
        return None


@final
class RecordStore:
    """Reads and writes ``FileVersion`` records."""

    def get(self, record_id: uuid.UUID | str) -> FileVersion:
        """Get a record by id.

        Args:
            record_id: Record identifier.

        Returns:
            Stored record.

        Raises:
            NotFoundError: If no record has this id.
        """
        parsed_id = _as_uuid(record_id)
        record = None
        if parsed_id is not None:
            record = FileVersion.objects.filter(id=parsed_id).first()
        if record is None:
            logger.info('File record not found: ID=%s', record_id)
            raise NotFoundError(f'File not found: {record_id}')
        return record

    def latest_version(
        self,
        logical_file_id: uuid.UUID | str,
    ) -> FileVersion | None:
        """Get the current (highest version) record of a logical file.

        Args:
            logical_file_id: Identifier shared by all versions.

        Returns:
            Current record, or None if the logical file is unknown.
        """
        parsed_id = _as_uuid(logical_file_id)
        if parsed_id is None:
            return None
        return (
            FileVersion.objects
            .of_logical_file(parsed_id)
            .newest_first()
            .first()
        )

    def versions(self, logical_file_id: uuid.UUID | str) -> list[FileVersion]:
        """List every version of a logical file, highest first.

        Args:
            logical_file_id: Identifier shared by all versions.

        Returns:
            Records ordered by descending version.
        """
        parsed_id = _as_uuid(logical_file_id)
        if parsed_id is None:
            return []
        return list(
            FileVersion.objects.of_logical_file(parsed_id).newest_first(),
        )

    def find(self, predicate: Q) -> list[FileVersion]:
        """Run a predicate query.

        Args:
            predicate: Filter built by the query engine.

        Returns:
            Matching records in creation order.
        """
        return list(FileVersion.objects.filter(predicate).in_creation_order())

    def add(self, record: FileVersion) -> FileVersion:
        """Persist a new record.

        Args:
            record: Unsaved record built by the versioning engine.

        Returns:
            The saved record.
        """
        with transaction.atomic():
            record.save(force_insert=True)
        logger.info(
            'File record created: %s v%d (ID: %s)',
            record.file_name,
            record.version,
            record.id,
        )
        return record

    def save_changes(
        self,
        record: FileVersion,
        fields: Sequence[str],
    ) -> FileVersion:
        """Persist changed fields of an existing record.

        Only the named columns are written, everything else (the
        uploader snapshot in particular) stays as stored.

        Args:
            record: Record with modified attributes.
            fields: Names of the modified fields.

        Returns:
            The saved record.

        Raises:
            ValidationError: If a changed field is invalid.
        """
        record.full_clean(exclude=_unchanged(fields))
        with transaction.atomic():
            record.save(update_fields=list(fields))
        logger.info('File record updated: ID=%s (%s)', record.id, fields)
        return record

    def remove(self, record: FileVersion) -> None:
        """Delete a record.

        Args:
            record: Record to delete.
        """
        record_id = record.id
        with transaction.atomic():
            record.delete()
        logger.info('File record deleted from database: ID=%s', record_id)


def _unchanged(fields: Sequence[str]) -> list[str]:
    """Names of model fields not in ``fields``."""
    return [
        field.name
        for field in FileVersion._meta.get_fields()  # noqa: WPS437
        if field.name not in fields
    ]

