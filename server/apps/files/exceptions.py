"""Exceptions for files app.

Every failure the file store reports derives from ``FileStoreError``.
The HTTP layer maps each family to a status code.
"""


class FileStoreError(Exception):
    """Base class for all file store failures."""


class InvalidInputError(FileStoreError):
    """Raised for an empty file or a missing required field."""


class FileTooLargeError(InvalidInputError):
    """Raised when an upload exceeds the configured maximum size."""

    def __init__(self, size_bytes: int, max_bytes: int) -> None:
        """Initialize FileTooLargeError.

        Args:
            size_bytes: Size of the rejected upload in bytes.
            max_bytes: Configured upper bound in bytes.
        """
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes
        super().__init__(
            f'File too large: {size_bytes} bytes '
            f'(maximum allowed: {max_bytes} bytes)',
        )


class UnauthorizedError(FileStoreError):
    """Raised when the caller has no valid identity."""


class ForbiddenError(FileStoreError):
    """Raised when the identity is not allowed to touch a record."""

    def __init__(self, record_id: object, user_id: str) -> None:
        """Initialize ForbiddenError.

        Args:
            record_id: Record the caller tried to mutate.
            user_id: Id of the denied caller.
        """
        self.record_id = record_id
        self.user_id = user_id
        super().__init__(
            f'User {user_id} is not allowed to modify file {record_id}',
        )


class NotFoundError(FileStoreError):
    """Raised when a record or logical file does not exist."""


class BlobMissingError(NotFoundError):
    """Raised when a record points at bytes the blob store cannot read."""

    def __init__(self, locator: str) -> None:
        """Initialize BlobMissingError.

        Args:
            locator: Blob locator that could not be read.
        """
        self.locator = locator
        super().__init__(f'Blob not found or not readable: {locator}')


class StorageFailureError(FileStoreError):
    """Raised when the blob store fails to put, get or delete bytes."""

    def __init__(self, operation: str, locator: str) -> None:
        """Initialize StorageFailureError.

        Args:
            operation: Blob operation that failed (put, get, delete).
            locator: Key or locator the operation targeted.
        """
        self.operation = operation
        self.locator = locator
        super().__init__(f'Storage {operation} failed for: {locator}')


class UnexpectedError(FileStoreError):
    """Raised for failures that fit no other category."""
