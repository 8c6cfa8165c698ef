"""Blob stores holding the raw bytes of every file version.

Two interchangeable backends implement the same ``BlobStore`` contract:
- ``FileSystemBlobStore`` keeps blobs in a local directory tree
- ``S3BlobStore`` keeps blobs in an S3-compatible bucket (MinIO, R2, AWS)

Callers only ever see the contract, the backend is chosen once by
``build_blob_store``.
"""

import abc
import logging
from typing import (
    TYPE_CHECKING,
    Any,
    BinaryIO,
    ClassVar,
    Final,
    final,
    override,
)

from boto3.exceptions import Boto3Error
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from django.core.exceptions import ImproperlyConfigured
from django.core.files.base import ContentFile
from django.core.files.storage import FileSystemStorage, Storage
from storages.backends.s3 import S3Storage

from server.apps.files.exceptions import (
    BlobMissingError,
    InvalidInputError,
    StorageFailureError,
)
from server.apps.files.infrastructure.metadata import Payload, get_payload_size

if TYPE_CHECKING:
    from server.apps.files.conf import FileStoreConfig

logger = logging.getLogger(__name__)

# Error codes of S3 HEAD/GET meaning the object is gone or access is denied
_UNREADABLE_S3_CODES: Final = frozenset((
    '403',
    '404',
    'AccessDenied',
    'Forbidden',
    'NoSuchKey',
))


class BlobStore(abc.ABC):
    """Contract for storing bytes by key."""

    @abc.abstractmethod
    def put(self, payload: Payload, key: str) -> str:
        """Store bytes under a key, overwriting existing content.

        Args:
            payload: Content to store, must not be empty.
            key: Desired storage key.

        Returns:
            Locator needed to read the bytes back.
        """

    @abc.abstractmethod
    def get(self, locator: str) -> BinaryIO:
        """Open stored bytes for reading.

        Args:
            locator: Locator returned by ``put``.

        Returns:
            Binary stream, the caller closes it.
        """

    @abc.abstractmethod
    def delete(self, locator: str) -> bool:
        """Delete stored bytes.

        Args:
            locator: Locator returned by ``put``.

        Returns:
            True if bytes were deleted, False if nothing was stored.
        """


class StorageBlobStore(BlobStore):
    """Blob store driven by a Django storage backend.

    Subclasses provide the storage instance, the exception types that
    signal an I/O failure of their backend and, where the backend has
    its own error codes, which failures mean the blob is unreadable.
    """

    failure_errors: ClassVar[tuple[type[Exception], ...]] = (OSError,)

    def __init__(self, storage: Storage) -> None:
        """Initialize blob store.

        Args:
            storage: Django storage backend doing the actual I/O.
        """
        self._storage = storage

    @override
    def put(self, payload: Payload, key: str) -> str:
        if get_payload_size(payload) == 0:
            raise InvalidInputError('No file provided')

        content = payload
        if isinstance(payload, bytes):
            content = ContentFile(payload)

        try:
            logger.info('Uploading blob to storage: %s', key)
            locator = self._storage.save(key, content)
        except self.failure_errors as exc:
            logger.exception('Failed to upload blob to storage: %s', key)
            raise StorageFailureError('put', key) from exc
        logger.info('Successfully uploaded blob: %s', locator)
        return locator

    @override
    def get(self, locator: str) -> BinaryIO:
        try:
            if not self._storage.exists(locator):
                raise BlobMissingError(locator)
            return self._storage.open(locator, 'rb')
        except self.failure_errors as exc:
            if self.is_unreadable(exc):
                logger.warning('Blob not readable: %s (%s)', locator, exc)
                raise BlobMissingError(locator) from exc
            logger.exception('Failed to read blob from storage: %s', locator)
            raise StorageFailureError('get', locator) from exc

    def is_unreadable(self, error: Exception) -> bool:
        """Tell a missing or unreadable blob apart from an I/O failure.

        Args:
            error: Exception raised while reading.

        Returns:
            True if the blob is gone or access to it is denied.
        """
        return isinstance(error, (FileNotFoundError, PermissionError))

    @override
    def delete(self, locator: str) -> bool:
        try:
            if not self._storage.exists(locator):
                logger.warning(
                    'Blob not found in storage (already deleted?): %s',
                    locator,
                )
                return False
            logger.info('Deleting blob from storage: %s', locator)
            self._storage.delete(locator)
        except self.failure_errors as exc:
            logger.exception('Failed to delete blob from storage: %s', locator)
            raise StorageFailureError('delete', locator) from exc
        logger.info('Successfully deleted blob: %s', locator)
        return True


@final
class FileSystemBlobStore(StorageBlobStore):
    """Blob store on the local filesystem.

    Directories below ``location`` are created on first write.
    """

    def __init__(self, location: str) -> None:
        """Initialize filesystem blob store.

        Args:
            location: Root directory for all blobs.
        """
        super().__init__(
            FileSystemStorage(location=location, allow_overwrite=True),
        )


@final
class S3BlobStore(StorageBlobStore):
    """Blob store in an S3-compatible bucket.

    Uses django-storages S3Storage with overwrites enabled: keys carry
    the version number, so a repeated put is an upload retry.
    """

    failure_errors: ClassVar[tuple[type[Exception], ...]] = (
        OSError,
        Boto3Error,
        BotoCoreError,
        ClientError,
    )

    def __init__(
        self,
        connect_timeout: int = 10,
        read_timeout: int = 60,
        **options: Any,
    ) -> None:
        """Initialize S3 blob store.

        Args:
            connect_timeout: Seconds to wait for a connection.
            read_timeout: Seconds to wait for a response.
            options: S3Storage options (bucket_name, access_key,
                secret_key, endpoint_url, region_name, ...).
        """
        client_config = Config(
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
        )
        super().__init__(
            S3Storage(
                file_overwrite=True,
                default_acl=None,  # Inherit bucket ACL
                client_config=client_config,
                **options,
            ),
        )

    @override
    def is_unreadable(self, error: Exception) -> bool:
        if isinstance(error, ClientError):
            code = error.response.get('Error', {}).get('Code', '')
            return code in _UNREADABLE_S3_CODES
        return super().is_unreadable(error)


def build_blob_store(config: 'FileStoreConfig') -> BlobStore:
    """Create the blob store selected by configuration.

    Args:
        config: File store configuration.

    Returns:
        Configured blob store.

    Raises:
        ImproperlyConfigured: If the backend name is unknown.
    """
    if config.blob_backend == 'filesystem':
        return FileSystemBlobStore(config.blob_root)
    if config.blob_backend == 's3':
        return S3BlobStore(**config.s3_options)
    raise ImproperlyConfigured(
        f'Unknown FILES_BLOB_BACKEND: {config.blob_backend!r}',
    )
