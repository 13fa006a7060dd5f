"""
Integration tests for the S3-compatible object storage wrapper.
"""

import pytest
from unittest.mock import patch, MagicMock
from botocore.exceptions import ClientError

from festival.integrations.object_storage import (
    FileStorageError,
    ObjectStorage,
    UploadError,
    ValidationError,
    create_s3_client,
)

STORAGE_CONFIG = {
    'STORAGE_ENDPOINT_URL': 'https://account.r2.cloudflarestorage.com',
    'STORAGE_ACCESS_KEY': 'test_access_key',
    'STORAGE_SECRET_KEY': 'test_secret_key',
    'STORAGE_REGION': 'auto',
}


def client_error(code, operation='Operation'):
    return ClientError({'Error': {'Code': code, 'Message': code}}, operation)


@pytest.fixture
def mock_client():
    """Mock boto3 client for testing."""
    mock_instance = MagicMock()
    mock_instance.upload_fileobj.return_value = None
    mock_instance.delete_object.return_value = {}
    mock_instance.head_object.return_value = {'ContentLength': 1024}
    return mock_instance


@pytest.fixture
def storage(mock_client):
    return ObjectStorage(mock_client, 'movies', 'https://cdn.example.test/')


class TestCreateClient:

    def test_builds_boto3_client(self):
        with patch('festival.integrations.object_storage.boto3.client') as mock_factory:
            create_s3_client(STORAGE_CONFIG)

        args, kwargs = mock_factory.call_args
        assert args == ('s3',)
        assert kwargs['endpoint_url'] == STORAGE_CONFIG['STORAGE_ENDPOINT_URL']
        assert kwargs['aws_access_key_id'] == 'test_access_key'
        assert kwargs['region_name'] == 'auto'

    def test_missing_configuration(self):
        with pytest.raises(FileStorageError) as excinfo:
            create_s3_client({'STORAGE_ENDPOINT_URL': 'https://example.test'})

        assert 'STORAGE_ACCESS_KEY' in str(excinfo.value)
        assert 'STORAGE_SECRET_KEY' in str(excinfo.value)


class TestObjectStorage:

    def test_requires_bucket(self, mock_client):
        with pytest.raises(FileStorageError):
            ObjectStorage(mock_client, '')

    def test_public_url_uses_custom_domain(self, storage):
        assert storage.get_public_url('2025/1/small.jpg') == 'https://cdn.example.test/movies/2025/1/small.jpg'

    def test_default_custom_domain(self, mock_client):
        storage = ObjectStorage(mock_client, 'movies')
        assert storage.get_public_url('a.jpg') == 'https://s3.irmf.cz/movies/a.jpg'

    def test_upload_bytes(self, storage, mock_client):
        result = storage.upload_bytes('2025/1/small.jpg', b'data', 'image/jpeg', 'public, max-age=60')

        args, kwargs = mock_client.upload_fileobj.call_args
        assert args[1:] == ('movies', '2025/1/small.jpg')
        assert args[0].read() == b'data'
        assert kwargs['ExtraArgs'] == {'ContentType': 'image/jpeg', 'CacheControl': 'public, max-age=60'}
        assert result['size'] == 4
        assert result['url'].endswith('/movies/2025/1/small.jpg')

    def test_upload_empty_data(self, storage):
        with pytest.raises(ValidationError):
            storage.upload_bytes('key.jpg', b'')

    def test_upload_error_is_mapped(self, storage, mock_client):
        mock_client.upload_fileobj.side_effect = client_error('AccessDenied', 'PutObject')

        with pytest.raises(UploadError) as excinfo:
            storage.upload_bytes('key.jpg', b'data')

        assert 'Insufficient permissions' in str(excinfo.value)

    def test_file_exists(self, storage, mock_client):
        assert storage.file_exists('key.jpg') is True

        mock_client.head_object.side_effect = client_error('404', 'HeadObject')
        assert storage.file_exists('key.jpg') is False

    def test_file_exists_other_error_raises(self, storage, mock_client):
        mock_client.head_object.side_effect = client_error('InternalError', 'HeadObject')

        with pytest.raises(UploadError):
            storage.file_exists('key.jpg')

    def test_delete_file(self, storage, mock_client):
        assert storage.delete_file('key.jpg') is True
        mock_client.delete_object.assert_called_once_with(Bucket='movies', Key='key.jpg')

    def test_delete_missing_file(self, storage, mock_client):
        mock_client.delete_object.side_effect = client_error('NoSuchKey', 'DeleteObject')
        assert storage.delete_file('key.jpg') is False

    def test_ensure_bucket_creates_missing_bucket(self, storage, mock_client):
        mock_client.head_bucket.side_effect = client_error('404', 'HeadBucket')

        assert storage.ensure_bucket() is True
        mock_client.create_bucket.assert_called_once_with(Bucket='movies')

    def test_ensure_bucket_logs_failures(self, storage, mock_client):
        mock_client.head_bucket.side_effect = client_error('404', 'HeadBucket')
        mock_client.create_bucket.side_effect = client_error('AccessDenied', 'CreateBucket')

        assert storage.ensure_bucket() is False
