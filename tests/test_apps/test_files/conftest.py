"""Shared fixtures for files app tests."""

import datetime as dt
import uuid

import boto3
import pytest
from django.utils import timezone
from moto import mock_aws

from server.apps.files.conf import FileStoreConfig
from server.apps.files.entities import Identity
from server.apps.files.infrastructure.storage import (
    FileSystemBlobStore,
    S3BlobStore,
)
from server.apps.files.logic.access import OwnerOrCompanyPolicy, OwnerPolicy
from server.apps.files.logic.file_operations import FileService
from server.apps.files.models import FileVersion

_TEST_BUCKET = 'file-store'


@pytest.fixture
def owner():
    """Identity of the uploading user.

    Returns:
        Identity of user u1 from company Acme.
    """
    return Identity(
        user_id='u1',
        username='alice',
        company='Acme',
        role='USER',
    )


@pytest.fixture
def stranger():
    """Identity from another company.

    Returns:
        Identity of user u2 from company Globex.
    """
    return Identity(
        user_id='u2',
        username='bob',
        company='Globex',
        role='USER',
    )


@pytest.fixture
def colleague():
    """Identity from the owner's company.

    Returns:
        Identity of user u3 from company Acme.
    """
    return Identity(
        user_id='u3',
        username='carol',
        company='Acme',
        role='USER',
    )


@pytest.fixture
def store_config(tmp_path):
    """File store configuration for tests.

    Returns:
        FileStoreConfig with a small upload limit.
    """
    return FileStoreConfig(
        download_base_url='http://testserver/files/download/',
        max_upload_bytes=1024,
        blob_root=str(tmp_path / 'blobs'),
    )


@pytest.fixture
def blob_store(tmp_path):
    """Filesystem blob store in a temporary directory.

    Returns:
        FileSystemBlobStore rooted at tmp_path/blobs.
    """
    return FileSystemBlobStore(str(tmp_path / 'blobs'))


@pytest.fixture
def mock_s3():
    """Mock S3 service with file-store bucket.

    Yields:
        boto3 S3 resource with file-store bucket created.
    """
    with mock_aws():
        conn = boto3.resource('s3', region_name='us-east-1')
        conn.create_bucket(Bucket=_TEST_BUCKET)
        yield conn


@pytest.fixture
def s3_blob_store(mock_s3):
    """S3 blob store against the mocked bucket.

    Returns:
        S3BlobStore using the file-store bucket.
    """
    return S3BlobStore(
        bucket_name=_TEST_BUCKET,
        access_key='testing',
        secret_key='testing',
        region_name='us-east-1',
    )


@pytest.fixture
def service(blob_store, store_config):
    """File service with owner-only access.

    Returns:
        FileService over the filesystem blob store.
    """
    return FileService(blob_store, OwnerPolicy(), store_config)


@pytest.fixture
def company_service(blob_store, store_config):
    """File service with owner-or-company access.

    Returns:
        FileService over the filesystem blob store.
    """
    return FileService(blob_store, OwnerOrCompanyPolicy(), store_config)


@pytest.fixture
def make_record(db):
    """Factory persisting records directly, without blobs.

    Returns:
        Callable creating FileVersion rows.
    """

    def factory(**overrides):
        values = {
            'logical_file_id': uuid.uuid4(),
            'file_name': 'report.txt',
            'blob_locator': 'missing/report.txt',
            'size_bytes': 100,
            'content_type': 'text/plain',
            'uploaded_at': timezone.now(),
            'uploader_id': 'u1',
            'uploader_username': 'alice',
            'uploader_company': 'Acme',
            'uploader_role': 'USER',
            'version': 0,
        }
        values.update(overrides)
        return FileVersion.objects.create(**values)

    return factory


@pytest.fixture
def day():
    """Build aware datetimes at noon of a calendar day.

    Returns:
        Callable (year, month, day) -> datetime.
    """

    def factory(year, month, day_of_month):
        return dt.datetime(year, month, day_of_month, 12, tzinfo=dt.UTC)

    return factory
