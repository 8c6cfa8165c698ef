"""Business logic for file operations.

``FileService`` coordinates the blob store, the metadata store, the
versioning engine and the access policy for every public operation.
"""

import logging
import uuid
from typing import final

from django.core.exceptions import ValidationError
from django.db import DatabaseError

from server.apps.files.conf import FileStoreConfig
from server.apps.files.entities import (
    FileChanges,
    FileDownload,
    FileFilter,
    FileSummary,
    Identity,
)
from server.apps.files.exceptions import (
    FileTooLargeError,
    ForbiddenError,
    InvalidInputError,
    StorageFailureError,
    UnauthorizedError,
    UnexpectedError,
)
from server.apps.files.infrastructure.metadata import (
    Payload,
    content_disposition,
    detect_content_type,
    extract_filename,
    get_payload_size,
)
from server.apps.files.infrastructure.records import RecordStore
from server.apps.files.infrastructure.storage import (
    BlobStore,
    build_blob_store,
)
from server.apps.files.logic.access import AccessPolicy, get_access_policy
from server.apps.files.logic.queries import (
    build_predicate,
    latest_per_logical_file,
    sort_records,
)
from server.apps.files.logic.versioning import (
    VersionPlan,
    build_record,
    plan_first_version,
    plan_next_version,
)
from server.apps.files.models import DEFAULT_CONTENT_TYPE, FileVersion

logger = logging.getLogger(__name__)


@final
class FileService:
    """Upload, download, list, update and delete versioned files."""

    def __init__(
        self,
        blob_store: BlobStore,
        access_policy: AccessPolicy,
        config: FileStoreConfig,
        records: RecordStore | None = None,
    ) -> None:
        """Initialize file service.

        Args:
            blob_store: Where file bytes are kept.
            access_policy: Rule for updates and deletes.
            config: File store configuration.
            records: Metadata store, a default one if omitted.
        """
        self._blobs = blob_store
        self._policy = access_policy
        self._config = config
        self._records = records or RecordStore()

    def upload(
        self,
        payload: Payload,
        file_name: str | None,
        content_type: str | None,
        identity: Identity | None,
    ) -> FileSummary:
        """Upload the original version of a new logical file.

        Transaction safety: Upload to storage first, then create DB record.
        If the DB write fails, the uploaded blob is deleted again.

        Args:
            payload: File content.
            file_name: Name of the uploaded file.
            content_type: Declared MIME type, guessed if missing.
            identity: Uploader.

        Returns:
            Summary of the stored version 0.

        Raises:
            UnauthorizedError: If there is no identity.
            InvalidInputError: If the file is empty, unnamed or too large.
            StorageFailureError: If the blob store fails.
        """
        identity = self._require_identity(identity, 'upload')
        name = extract_filename(file_name)
        size_bytes = self._check_size(payload, name)

        plan = plan_first_version(name)
        record = build_record(
            plan,
            identity,
            size_bytes=size_bytes,
            content_type=detect_content_type(name, content_type),
        )
        return self._store(plan, record, payload)

    def upload_version(  # noqa: WPS211
        self,
        logical_file_id: uuid.UUID | str,
        payload: Payload,
        file_name: str | None,
        content_type: str | None,
        identity: Identity | None,
    ) -> FileSummary:
        """Upload a new version of an existing logical file.

        The new record keeps the display name of the current version.
        Reading the current version and writing the new one is not
        atomic: concurrent uploads may compute the same version number.

        Args:
            logical_file_id: Logical file receiving the version.
            payload: File content.
            file_name: Name of the uploaded file, used to guess its type.
            content_type: Declared MIME type, guessed if missing.
            identity: Uploader.

        Returns:
            Summary of the stored version.

        Raises:
            UnauthorizedError: If there is no identity.
            NotFoundError: If the logical file does not exist.
            InvalidInputError: If the file is empty or too large.
            StorageFailureError: If the blob store fails.
        """
        identity = self._require_identity(identity, 'upload_version')
        latest = self._records.latest_version(logical_file_id)
        plan = plan_next_version(logical_file_id, latest)
        size_bytes = self._check_size(payload, plan.blob_name)

        record = build_record(
            plan,
            identity,
            size_bytes=size_bytes,
            content_type=detect_content_type(
                file_name or plan.file_name,
                content_type,
            ),
        )
        return self._store(plan, record, payload)

    def list_files(
        self,
        filters: FileFilter,
        identity: Identity | None,
    ) -> list[FileSummary]:
        """List the current version of every matching logical file.

        Filtering happens first, then only the highest matching version
        of each logical file is kept, then the result is sorted.

        Args:
            filters: Listing criteria.
            identity: Caller.

        Returns:
            One summary per logical file.

        Raises:
            UnauthorizedError: If there is no identity.
        """
        self._require_identity(identity, 'list')
        matches = self._records.find(build_predicate(filters))
        latest = latest_per_logical_file(matches)
        ordered = sort_records(latest, filters.sort_by, filters.order)
        logger.debug(
            'Listing files: %d matches, %d logical files',
            len(matches),
            len(ordered),
        )
        return [self._summarize(record) for record in ordered]

    def list_versions(
        self,
        logical_file_id: uuid.UUID | str,
    ) -> list[FileSummary]:
        """List all versions of a logical file, newest first.

        Args:
            logical_file_id: Logical file identifier.

        Returns:
            Summaries ordered by descending version, empty if unknown.
        """
        return [
            self._summarize(record)
            for record in self._records.versions(logical_file_id)
        ]

    def get_record(self, record_id: uuid.UUID | str) -> FileVersion:
        """Get a stored record.

        Args:
            record_id: Record identifier.

        Returns:
            The record.

        Raises:
            NotFoundError: If the record does not exist.
        """
        return self._records.get(record_id)

    def download(self, record_id: uuid.UUID | str) -> FileDownload:
        """Open the bytes of a file version.

        Images are served inline, everything else as an attachment.

        Args:
            record_id: Record identifier.

        Returns:
            Open stream plus response headers.

        Raises:
            NotFoundError: If the record or its blob is missing.
            StorageFailureError: If the blob store fails.
        """
        record = self._records.get(record_id)
        stream = self._blobs.get(record.blob_locator)
        content_type = record.content_type or DEFAULT_CONTENT_TYPE
        logger.info(
            'Serving file: %s (ID: %s, locator: %s)',
            record.file_name,
            record.id,
            record.blob_locator,
        )
        return FileDownload(
            file_name=record.file_name,
            content_type=content_type,
            disposition=content_disposition(record.file_name, content_type),
            stream=stream,
        )

    def update(
        self,
        record_id: uuid.UUID | str,
        changes: FileChanges,
        identity: Identity | None,
    ) -> FileSummary:
        """Rename a file version or change its content type.

        Args:
            record_id: Record identifier.
            changes: New values, absent ones stay untouched.
            identity: Caller, must pass the access policy.

        Returns:
            Summary of the updated record.

        Raises:
            UnauthorizedError: If there is no identity.
            NotFoundError: If the record does not exist.
            ForbiddenError: If the access policy denies the change.
            InvalidInputError: If nothing or something invalid is given.
        """
        identity = self._require_identity(identity, 'update')
        record = self._authorized_record(record_id, identity, 'update')

        fields = []
        if changes.file_name:
            record.file_name = extract_filename(changes.file_name)
            fields.append('file_name')
        if changes.content_type:
            record.content_type = changes.content_type
            fields.append('content_type')
        if not fields:
            raise InvalidInputError(
                'Nothing to update: give fileName or contentType',
            )

        try:
            self._records.save_changes(record, fields)
        except ValidationError as exc:
            logger.warning('Rejected update of file %s: %s', record.id, exc)
            raise InvalidInputError(str(exc)) from exc
        return self._summarize(record)

    def delete(
        self,
        record_id: uuid.UUID | str,
        identity: Identity | None,
    ) -> None:
        """Delete a file version and its bytes.

        Transaction safety: Delete the blob first. The record is only
        removed when the blob store did not fail, so a failed delete can
        be retried. A blob that is already gone does not block removal.

        Args:
            record_id: Record identifier.
            identity: Caller, must pass the access policy.

        Raises:
            UnauthorizedError: If there is no identity.
            NotFoundError: If the record does not exist.
            ForbiddenError: If the access policy denies the delete.
            StorageFailureError: If the blob could not be deleted.
        """
        identity = self._require_identity(identity, 'delete')
        record = self._authorized_record(record_id, identity, 'delete')

        logger.info(
            'Deleting file: ID=%s, locator=%s',
            record.id,
            record.blob_locator,
        )
        try:
            blob_deleted = self._blobs.delete(record.blob_locator)
        except StorageFailureError:
            logger.exception(
                'Keeping file record, blob delete failed: ID=%s',
                record.id,
            )
            raise
        if not blob_deleted:
            logger.warning(
                'Blob was already missing, removing record: ID=%s',
                record.id,
            )
        self._records.remove(record)

    def _require_identity(
        self,
        identity: Identity | None,
        operation: str,
    ) -> Identity:
        if identity is None:
            logger.warning('Rejected anonymous %s request', operation)
            raise UnauthorizedError('Unauthorized')
        return identity

    def _authorized_record(
        self,
        record_id: uuid.UUID | str,
        identity: Identity,
        operation: str,
    ) -> FileVersion:
        record = self._records.get(record_id)
        if not self._policy.can_mutate(record, identity):
            logger.warning(
                'Denied %s of file %s for user %s',
                operation,
                record.id,
                identity.user_id,
            )
            raise ForbiddenError(record.id, identity.user_id)
        return record

    def _check_size(self, payload: Payload, name: str) -> int:
        size_bytes = get_payload_size(payload)
        if size_bytes == 0:
            logger.warning('Rejected empty upload: %s', name)
            raise InvalidInputError('No file provided')
        if size_bytes > self._config.max_upload_bytes:
            logger.warning(
                'Rejected upload over size limit: %s (%d bytes)',
                name,
                size_bytes,
            )
            raise FileTooLargeError(size_bytes, self._config.max_upload_bytes)
        return size_bytes

    def _store(
        self,
        plan: VersionPlan,
        record: FileVersion,
        payload: Payload,
    ) -> FileSummary:
        """Write blob, then record; undo the blob if the record fails."""
        try:
            record.full_clean(exclude=['blob_locator'])
        except ValidationError as exc:
            logger.warning('Rejected upload %s: %s', plan.blob_key, exc)
            raise InvalidInputError(str(exc)) from exc

        record.blob_locator = self._blobs.put(payload, plan.blob_key)

        try:
            self._records.add(record)
        except DatabaseError as exc:
            logger.exception(
                'Database write failed, rolling back blob upload: %s',
                record.blob_locator,
            )
            self._discard_blob(record.blob_locator)
            raise UnexpectedError('Failed to save file metadata') from exc
        return self._summarize(record)

    def _discard_blob(self, locator: str) -> None:
        try:
            self._blobs.delete(locator)
        except StorageFailureError:
            # Best effort, the DB write already failed
            logger.exception('Failed to roll back blob, orphaned: %s', locator)

    def _summarize(self, record: FileVersion) -> FileSummary:
        return FileSummary.from_record(record, self._config.download_base_url)


def build_file_service(config: FileStoreConfig | None = None) -> FileService:
    """Wire a file service from configuration.

    Args:
        config: File store configuration, read from settings if omitted.

    Returns:
        Ready to use file service.
    """
    config = config or FileStoreConfig.from_settings()
    return FileService(
        blob_store=build_blob_store(config),
        access_policy=get_access_policy(config.access_policy),
        config=config,
    )
