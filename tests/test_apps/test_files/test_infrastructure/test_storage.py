"""Tests for blob store backends.

Both backends must behave the same, so the contract tests run against
the filesystem store and the S3 store (moto).
"""

from io import BytesIO

import pytest
from botocore.exceptions import ClientError
from django.core.exceptions import ImproperlyConfigured
from django.core.files.base import ContentFile
from django.core.files.storage import FileSystemStorage
from storages.backends.s3 import S3Storage

from server.apps.files.conf import FileStoreConfig
from server.apps.files.exceptions import (
    BlobMissingError,
    InvalidInputError,
    NotFoundError,
    StorageFailureError,
)
from server.apps.files.infrastructure.storage import (
    FileSystemBlobStore,
    S3BlobStore,
    build_blob_store,
)


@pytest.fixture(params=['filesystem', 's3'])
def any_blob_store(request):
    """Run a test against every backend.

    Returns:
        Blob store of the requested backend.
    """
    if request.param == 's3':
        return request.getfixturevalue('s3_blob_store')
    return request.getfixturevalue('blob_store')


class TestBlobStoreContract:
    """Behaviour shared by all blob stores."""

    def test_put_then_get(self, any_blob_store):
        """Test stored bytes are read back unchanged."""
        locator = any_blob_store.put(b'hello world', 'abc/report.txt')

        with any_blob_store.get(locator) as stream:
            assert stream.read() == b'hello world'

    def test_put_accepts_streams(self, any_blob_store):
        """Test put with a Django file and a plain stream."""
        first = any_blob_store.put(ContentFile(b'one'), 'abc/one.txt')
        second = any_blob_store.put(BytesIO(b'two'), 'abc/two.txt')

        with any_blob_store.get(first) as stream:
            assert stream.read() == b'one'
        with any_blob_store.get(second) as stream:
            assert stream.read() == b'two'

    def test_put_returns_requested_key(self, any_blob_store):
        """Test the locator is the key that was asked for."""
        locator = any_blob_store.put(b'data', 'abc/report.txt_v1')
        assert locator == 'abc/report.txt_v1'

    def test_put_overwrites(self, any_blob_store):
        """Test a second put under the same key replaces the bytes."""
        any_blob_store.put(b'old', 'abc/report.txt')
        locator = any_blob_store.put(b'new content', 'abc/report.txt')

        assert locator == 'abc/report.txt'
        with any_blob_store.get(locator) as stream:
            assert stream.read() == b'new content'

    def test_put_empty_rejected(self, any_blob_store):
        """Test empty payloads never reach the backend."""
        with pytest.raises(InvalidInputError):
            any_blob_store.put(b'', 'abc/empty.txt')

        with pytest.raises(BlobMissingError):
            any_blob_store.get('abc/empty.txt')

    def test_get_missing(self, any_blob_store):
        """Test reading an unknown locator."""
        with pytest.raises(NotFoundError):
            any_blob_store.get('nope/missing.txt')

    def test_delete(self, any_blob_store):
        """Test delete removes the bytes."""
        locator = any_blob_store.put(b'data', 'abc/report.txt')

        assert any_blob_store.delete(locator) is True
        with pytest.raises(BlobMissingError):
            any_blob_store.get(locator)

    def test_delete_is_idempotent(self, any_blob_store):
        """Test deleting twice, or something never stored, is no error."""
        locator = any_blob_store.put(b'data', 'abc/report.txt')

        assert any_blob_store.delete(locator) is True
        assert any_blob_store.delete(locator) is False
        assert any_blob_store.delete('never/stored.txt') is False


def test_filesystem_store_creates_directories(tmp_path):
    """Test nested keys end up as nested files."""
    blob_store = FileSystemBlobStore(str(tmp_path))

    blob_store.put(b'data', 'abc/report.txt')

    assert (tmp_path / 'abc' / 'report.txt').read_bytes() == b'data'


def test_s3_store_writes_bucket(mock_s3, s3_blob_store):
    """Test S3 store puts objects under the given key."""
    s3_blob_store.put(b'data', 'abc/report.txt')

    body = mock_s3.Object('file-store', 'abc/report.txt').get()['Body']
    assert body.read() == b'data'


def test_filesystem_unreadable_blob(blob_store, monkeypatch):
    """Test a blob that cannot be opened is reported as missing."""
    locator = blob_store.put(b'data', 'abc/report.txt')

    def denied_open(self, name, mode='rb'):
        raise PermissionError(13, 'Permission denied', name)

    monkeypatch.setattr(FileSystemStorage, '_open', denied_open)

    with pytest.raises(NotFoundError):
        blob_store.get(locator)


def _client_error(code):
    return ClientError(
        {'Error': {'Code': code, 'Message': code}},
        'HeadObject',
    )


@pytest.mark.parametrize('code', ['403', 'AccessDenied'])
def test_s3_access_denied_blob(s3_blob_store, monkeypatch, code):
    """Test S3 denying access is reported as a missing blob."""

    def denied_exists(self, name):
        raise _client_error(code)

    monkeypatch.setattr(S3Storage, 'exists', denied_exists)

    with pytest.raises(BlobMissingError):
        s3_blob_store.get('abc/report.txt')


def test_s3_server_error_on_read(s3_blob_store, monkeypatch):
    """Test S3 server errors stay storage failures."""

    def broken_exists(self, name):
        raise _client_error('InternalError')

    monkeypatch.setattr(S3Storage, 'exists', broken_exists)

    with pytest.raises(StorageFailureError) as exc_info:
        s3_blob_store.get('abc/report.txt')

    assert exc_info.value.operation == 'get'


def test_s3_store_unreachable_bucket(mock_s3):
    """Test backend errors surface as storage failures."""
    blob_store = S3BlobStore(
        bucket_name='no-such-bucket',
        access_key='testing',
        secret_key='testing',
        region_name='us-east-1',
    )

    with pytest.raises(StorageFailureError) as exc_info:
        blob_store.put(b'data', 'abc/report.txt')

    assert exc_info.value.operation == 'put'


class TestBuildBlobStore:
    """Tests for backend selection."""

    def test_filesystem(self, tmp_path):
        """Test the filesystem backend is built by default."""
        config = FileStoreConfig(
            download_base_url='http://testserver/files/download/',
            max_upload_bytes=10,
            blob_root=str(tmp_path),
        )
        assert isinstance(build_blob_store(config), FileSystemBlobStore)

    def test_s3(self, mock_s3):
        """Test the S3 backend receives its options."""
        config = FileStoreConfig(
            download_base_url='http://testserver/files/download/',
            max_upload_bytes=10,
            blob_backend='s3',
            s3_options={
                'bucket_name': 'file-store',
                'access_key': 'testing',
                'secret_key': 'testing',
                'region_name': 'us-east-1',
            },
        )
        assert isinstance(build_blob_store(config), S3BlobStore)

    def test_unknown_backend(self):
        """Test misconfiguration fails loudly."""
        config = FileStoreConfig(
            download_base_url='http://testserver/files/download/',
            max_upload_bytes=10,
            blob_backend='ftp',
        )
        with pytest.raises(ImproperlyConfigured):
            build_blob_store(config)
