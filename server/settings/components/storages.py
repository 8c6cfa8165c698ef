"""Blob storage configuration.

Version bytes live either on the local filesystem or in an
S3-compatible bucket:
- local directory for development and tests
- MinIO / Cloudflare R2 / AWS S3 for production

Both backends are driven by ``server.apps.files.infrastructure.storage``.
"""

from typing import Any, Final

from server.settings.components import BASE_DIR, config

# 'filesystem' or 's3'
FILES_BLOB_BACKEND = config('FILES_BLOB_BACKEND', default='filesystem')

# Root directory for the filesystem backend
FILES_BLOB_ROOT = config(
    'FILES_BLOB_ROOT',
    default=str(BASE_DIR.joinpath('blobs')),
)

# Options for the S3 backend, passed straight to S3Storage
FILES_S3_OPTIONS: Final[dict[str, Any]] = {
    'bucket_name': config('AWS_STORAGE_BUCKET_NAME', default='file-store'),
    'access_key': config('AWS_ACCESS_KEY_ID', default=''),
    'secret_key': config('AWS_SECRET_ACCESS_KEY', default=''),
    'endpoint_url': config(
        'AWS_S3_ENDPOINT_URL',
        default=None,
    ),
    'region_name': config(
        'AWS_S3_REGION_NAME',
        default='us-east-1',
    ),
    'connect_timeout': config('AWS_S3_CONNECT_TIMEOUT', cast=int, default=10),
    'read_timeout': config('AWS_S3_READ_TIMEOUT', cast=int, default=60),
}

STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        # Keep static files separate from user files
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}
