"""Settings for the versioned file store."""

from server.settings.components import config

# Prefix of download links rendered in listings, record id is appended
FILES_DOWNLOAD_BASE_URL = config(
    'FILES_DOWNLOAD_BASE_URL',
    default='http://localhost:8000/files/download/',
)

# Uploads above this size are rejected before touching the blob store
FILES_MAX_UPLOAD_BYTES = config(
    'FILES_MAX_UPLOAD_BYTES',
    cast=int,
    default=10 * 1024 * 1024,
)

# Who may update/delete a record: 'owner' or 'company'
FILES_ACCESS_POLICY = config('FILES_ACCESS_POLICY', default='owner')

# Identity tokens: HS256 signed with a base64 encoded secret
JWT_SECRET = config(
    'JWT_SECRET',
    default='ZGV2LW9ubHktc2VjcmV0LWNoYW5nZS1tZS1pbi1wcm9kdWN0aW9uIQ==',
)
JWT_ALGORITHM = config('JWT_ALGORITHM', default='HS256')
