"""Database models for files app."""

import uuid
from typing import ClassVar, Final, final, override

from django.db import models
from django.utils import timezone

# Constants for field max lengths
_FILE_NAME_MAX_LENGTH: Final = 255
_LOCATOR_MAX_LENGTH: Final = 1024
_CONTENT_TYPE_MAX_LENGTH: Final = 255
_UPLOADER_FIELD_MAX_LENGTH: Final = 150

DEFAULT_CONTENT_TYPE: Final = 'application/octet-stream'


class FileVersionQuerySet(models.QuerySet['FileVersion']):
    """Queries shared by the metadata store and the admin."""

    def of_logical_file(
        self,
        logical_file_id: uuid.UUID | str,
    ) -> 'FileVersionQuerySet':
        """Restrict to the versions of one logical file.

        Args:
            logical_file_id: Identifier shared by all versions.

        Returns:
            Filtered queryset.
        """
        return self.filter(logical_file_id=logical_file_id)

    def newest_first(self) -> 'FileVersionQuerySet':
        """Order by version, highest first.

        Equal versions (possible under concurrent uploads) keep
        creation order.

        Returns:
            Ordered queryset.
        """
        return self.order_by('-version', 'uploaded_at', 'id')

    def in_creation_order(self) -> 'FileVersionQuerySet':
        """Order by upload timestamp, oldest first.

        Returns:
            Ordered queryset.
        """
        return self.order_by('uploaded_at', 'version', 'id')


@final
class FileVersion(models.Model):
    """One stored version of a logical file.

    Every upload creates a new record. All versions of the same file
    share ``logical_file_id``; the record with the highest ``version``
    is the current one. Uploader fields are a snapshot of the identity
    at upload time and never change afterwards.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )

    logical_file_id = models.UUIDField(
        db_index=True,
        help_text='Identifier shared by all versions of one file',
    )

    file_name = models.CharField(
        max_length=_FILE_NAME_MAX_LENGTH,
        help_text='Display name, without version suffix',
    )

    blob_locator = models.CharField(
        max_length=_LOCATOR_MAX_LENGTH,
        help_text='Key the blob store needs to read the bytes',
    )

    size_bytes = models.BigIntegerField(
        help_text='File size in bytes',
    )

    content_type = models.CharField(
        max_length=_CONTENT_TYPE_MAX_LENGTH,
        default=DEFAULT_CONTENT_TYPE,
    )

    uploaded_at = models.DateTimeField(default=timezone.now)

    # Identity snapshot
    uploader_id = models.CharField(
        max_length=_UPLOADER_FIELD_MAX_LENGTH,
        db_index=True,
    )
    uploader_username = models.CharField(
        max_length=_UPLOADER_FIELD_MAX_LENGTH,
        blank=True,
        default='',
    )
    uploader_company = models.CharField(
        max_length=_UPLOADER_FIELD_MAX_LENGTH,
        blank=True,
        default='',
        db_index=True,
    )
    uploader_role = models.CharField(
        max_length=_UPLOADER_FIELD_MAX_LENGTH,
        blank=True,
        default='',
    )

    version = models.PositiveIntegerField(default=0)

    objects = FileVersionQuerySet.as_manager()

    class Meta:
        """Model metadata."""

        verbose_name = 'File version'  # type: ignore[mutable-override]
        verbose_name_plural = 'File versions'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-uploaded_at']

        indexes: ClassVar[list[models.Index]] = [
            # Optimize "latest version of a file" lookups
            models.Index(
                fields=['logical_file_id', '-version'],
                name='files_logical_version_idx',
            ),
        ]

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(
                condition=models.Q(size_bytes__gte=0),
                name='size_bytes_non_negative',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.file_name} v{self.version} ({self.logical_file_id})'
