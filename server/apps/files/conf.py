"""Configuration of the file store, read once from Django settings."""

import dataclasses
from typing import Any, Self, final

from django.conf import settings


@final
@dataclasses.dataclass(frozen=True, slots=True)
class FileStoreConfig:
    """Settings the file store components are built with.

    Components receive this object in their constructors instead of
    reading global settings on every call.
    """

    download_base_url: str
    max_upload_bytes: int
    access_policy: str = 'owner'
    blob_backend: str = 'filesystem'
    blob_root: str = ''
    s3_options: dict[str, Any] = dataclasses.field(default_factory=dict)

    @classmethod
    def from_settings(cls) -> Self:
        """Build configuration from Django settings.

        Returns:
            Configuration with values of the ``FILES_*`` settings.
        """
        return cls(
            download_base_url=settings.FILES_DOWNLOAD_BASE_URL,
            max_upload_bytes=settings.FILES_MAX_UPLOAD_BYTES,
            access_policy=settings.FILES_ACCESS_POLICY,
            blob_backend=settings.FILES_BLOB_BACKEND,
            blob_root=str(settings.FILES_BLOB_ROOT),
            s3_options=dict(settings.FILES_S3_OPTIONS),
        )
