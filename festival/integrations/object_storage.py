import logging
from io import BytesIO
from typing import Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError, NoCredentialsError

DEFAULT_CUSTOM_DOMAIN = 'https://s3.irmf.cz'
NOT_FOUND_CODES = {'404', 'NoSuchKey', 'NotFound'}

logger = logging.getLogger(__name__)


class FileStorageError(Exception):
    pass


class ValidationError(FileStorageError):
    pass


class UploadError(FileStorageError):
    pass


def create_s3_client(app_config: Dict[str, any]):
    """Build a boto3 S3 client from the application configuration."""
    required_vars = {
        'STORAGE_ENDPOINT_URL': app_config.get('STORAGE_ENDPOINT_URL'),
        'STORAGE_ACCESS_KEY': app_config.get('STORAGE_ACCESS_KEY'),
        'STORAGE_SECRET_KEY': app_config.get('STORAGE_SECRET_KEY'),
    }
    missing = [var for var, value in required_vars.items() if not value]
    if missing:
        raise FileStorageError(f"Missing required storage configuration: {', '.join(missing)}")

    try:
        return boto3.client(
            's3',
            endpoint_url=app_config['STORAGE_ENDPOINT_URL'],
            aws_access_key_id=app_config['STORAGE_ACCESS_KEY'],
            aws_secret_access_key=app_config['STORAGE_SECRET_KEY'],
            config=Config(
                signature_version='s3v4',
                s3={'addressing_style': 'path'},
                retries={'max_attempts': 3},
                max_pool_connections=50
            ),
            region_name=app_config.get('STORAGE_REGION', 'auto')
        )
    except NoCredentialsError:
        raise FileStorageError("Invalid storage credentials provided")


class ObjectStorage:
    """One bucket ("container") of an S3-compatible object store."""

    def __init__(self, client, bucket_name: str, custom_domain: Optional[str] = None):
        if not bucket_name:
            raise FileStorageError("Bucket name is required")

        self.client = client
        self.bucket_name = bucket_name
        self.custom_domain = (custom_domain or DEFAULT_CUSTOM_DOMAIN).rstrip('/')

    def _handle_storage_errors(self, error: ClientError) -> None:
        error_code = error.response['Error']['Code']

        error_mappings = {
            'AccessDenied': 'Insufficient permissions for storage operation',
            'SignatureDoesNotMatch': 'Invalid storage credentials or endpoint configuration',
            'InvalidRequest': 'Invalid request parameters for storage',
            'NoSuchBucket': f'Bucket "{self.bucket_name}" does not exist',
            'NoSuchKey': 'Requested file does not exist in storage',
            'EntityTooLarge': 'File size exceeds storage limits',
        }

        user_message = error_mappings.get(error_code, f'Storage error: {error_code}')
        logger.error(f"Storage Error: {error_code} - {error.response['Error'].get('Message', '')}")
        raise UploadError(user_message) from error

    def get_public_url(self, key: str) -> str:
        return f"{self.custom_domain}/{self.bucket_name}/{key}"

    def upload_bytes(
        self,
        key: str,
        data: bytes,
        content_type: str = 'application/octet-stream',
        cache_control: Optional[str] = None
    ) -> Dict[str, any]:
        if not key:
            raise ValidationError("Storage key must be provided")
        if not data:
            raise ValidationError("Cannot upload empty file")

        extra_args = {'ContentType': content_type}
        if cache_control:
            extra_args['CacheControl'] = cache_control

        try:
            logger.debug(f"Starting upload: {key} ({len(data)} bytes)")
            self.client.upload_fileobj(
                BytesIO(data),
                self.bucket_name,
                key,
                ExtraArgs=extra_args
            )
        except ClientError as e:
            self._handle_storage_errors(e)

        logger.info(f"Upload successful: {key}")
        return {
            'key': key,
            'bucket': self.bucket_name,
            'size': len(data),
            'url': self.get_public_url(key)
        }

    def file_exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            if e.response['Error']['Code'] in NOT_FOUND_CODES:
                return False
            self._handle_storage_errors(e)

    def delete_file(self, key: str) -> bool:
        """Delete an object. Deleting a missing key is not an error."""
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=key)
            logger.info(f"Successfully deleted file: {key}")
            return True

        except ClientError as e:
            if e.response['Error']['Code'] in NOT_FOUND_CODES:
                logger.warning(f"File not found for deletion: {key}")
                return False
            self._handle_storage_errors(e)

    def ensure_bucket(self) -> bool:
        """Create the bucket when it does not exist yet. Errors are logged, not raised."""
        try:
            self.client.head_bucket(Bucket=self.bucket_name)
            return True
        except ClientError as e:
            if e.response['Error']['Code'] not in NOT_FOUND_CODES | {'NoSuchBucket'}:
                logger.error(f"Error checking bucket {self.bucket_name}: {e}")
                return False

        try:
            self.client.create_bucket(Bucket=self.bucket_name)
            logger.info(f"Created bucket: {self.bucket_name}")
            return True
        except ClientError as e:
            logger.error(f"Error creating bucket {self.bucket_name}: {e}")
            return False
