"""Integration tests for the S3 blob store against MinIO.

These tests need a reachable MinIO (or any S3-compatible service) and
are skipped by default; run them with ``pytest -m integration``.
"""
import os
from typing import Final

import boto3
import pytest
from botocore.client import BaseClient
from botocore.exceptions import ClientError

from server.apps.files.exceptions import BlobMissingError
from server.apps.files.infrastructure.storage import S3BlobStore

_TEST_BUCKET: Final = 'file-store-integration'
_TEST_KEY: Final = 'integration/test-file.txt'
_TEST_CONTENT: Final = b'Hello from MinIO integration test!'


def _connection() -> dict[str, str]:
    return {
        'endpoint_url': os.getenv('MINIO_ENDPOINT', 'http://minio:9000'),
        'access_key': os.getenv('MINIO_ROOT_USER', 'minioadmin'),
        'secret_key': os.getenv('MINIO_ROOT_PASSWORD', 'minioadmin'),
        'region_name': 'us-east-1',
    }


@pytest.fixture
def s3_client() -> BaseClient:
    """Create S3 client for MinIO.

    Returns:
        Configured boto3 S3 client for MinIO.
    """
    connection = _connection()
    return boto3.client(
        's3',
        endpoint_url=connection['endpoint_url'],
        aws_access_key_id=connection['access_key'],
        aws_secret_access_key=connection['secret_key'],
        region_name=connection['region_name'],
    )


@pytest.fixture
def minio_blob_store(s3_client: BaseClient) -> S3BlobStore:
    """Ensure the test bucket exists and build a blob store for it.

    Args:
        s3_client: boto3 S3 client.

    Returns:
        S3BlobStore writing to the test bucket.
    """
    try:
        s3_client.head_bucket(Bucket=_TEST_BUCKET)
    except ClientError:
        s3_client.create_bucket(Bucket=_TEST_BUCKET)

    return S3BlobStore(bucket_name=_TEST_BUCKET, **_connection())


@pytest.mark.integration
def test_put_and_get(
    minio_blob_store: S3BlobStore,
    s3_client: BaseClient,
) -> None:
    """Test a blob written by the store is a plain bucket object."""
    locator = minio_blob_store.put(_TEST_CONTENT, _TEST_KEY)

    response = s3_client.head_object(Bucket=_TEST_BUCKET, Key=locator)
    assert response['ContentLength'] == len(_TEST_CONTENT)

    with minio_blob_store.get(locator) as stream:
        assert stream.read() == _TEST_CONTENT


@pytest.mark.integration
def test_delete(minio_blob_store: S3BlobStore, s3_client: BaseClient) -> None:
    """Test deleting twice removes the object once."""
    locator = minio_blob_store.put(_TEST_CONTENT, _TEST_KEY)

    assert minio_blob_store.delete(locator) is True
    assert minio_blob_store.delete(locator) is False

    with pytest.raises(ClientError) as exc_info:
        s3_client.head_object(Bucket=_TEST_BUCKET, Key=locator)
    assert exc_info.value.response['Error']['Code'] == '404'


@pytest.mark.integration
def test_get_missing(minio_blob_store: S3BlobStore) -> None:
    """Test missing objects surface as BlobMissingError."""
    with pytest.raises(BlobMissingError):
        minio_blob_store.get('integration/never-written.txt')
