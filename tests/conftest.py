"""
Test configuration and shared fixtures for the festival backend test suite.
"""

import io
import os
import threading

import pytest
from botocore.exceptions import ClientError
from PIL import Image

from festival import create_app


class FakeS3Client:
    """In-memory stand-in for the subset of the boto3 S3 client we use."""

    def __init__(self):
        self.objects = {}
        self.buckets = set()
        self.failing_keys = set()
        self.fail_head = False
        self.calls = []
        self._lock = threading.Lock()

    @staticmethod
    def _error(code, operation):
        return ClientError({'Error': {'Code': code, 'Message': code}}, operation)

    def upload_fileobj(self, Fileobj, Bucket, Key, ExtraArgs=None, Callback=None):
        if Key in self.failing_keys:
            raise self._error('AccessDenied', 'PutObject')
        with self._lock:
            self.calls.append(('upload', Bucket, Key))
            self.objects[(Bucket, Key)] = {
                'body': Fileobj.read(),
                'extra_args': dict(ExtraArgs or {})
            }

    def head_object(self, Bucket, Key):
        if self.fail_head:
            raise self._error('InternalError', 'HeadObject')
        if (Bucket, Key) not in self.objects:
            raise self._error('404', 'HeadObject')
        return {'ContentLength': len(self.objects[(Bucket, Key)]['body'])}

    def delete_object(self, Bucket, Key):
        if Key in self.failing_keys:
            raise self._error('AccessDenied', 'DeleteObject')
        with self._lock:
            self.calls.append(('delete', Bucket, Key))
            self.objects.pop((Bucket, Key), None)
        return {}

    def head_bucket(self, Bucket):
        if Bucket not in self.buckets:
            raise self._error('404', 'HeadBucket')
        return {}

    def create_bucket(self, Bucket):
        self.buckets.add(Bucket)
        return {}

    def keys(self, bucket):
        return sorted(key for (b, key) in self.objects if b == bucket)


@pytest.fixture(scope='function')
def app():
    """Create application for the tests."""
    os.environ['FLASK_ENV'] = 'testing'

    app = create_app('testing')

    ctx = app.app_context()
    ctx.push()

    yield app

    from festival.models import db
    db.session.remove()
    ctx.pop()


@pytest.fixture(scope='function')
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture(scope='function')
def runner(app):
    """Create a test runner for the app's CLI commands."""
    return app.test_cli_runner()


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture(scope='function')
def storage_app(s3_client):
    """Application wired to the in-memory object store."""
    app = create_app('testing', storage_client=s3_client)

    ctx = app.app_context()
    ctx.push()

    yield app

    from festival.models import db
    db.session.remove()
    ctx.pop()


@pytest.fixture
def storage_client_app(storage_app):
    return storage_app.test_client()


def make_image_bytes(size=(10, 10), color='red', mode='RGB', format='JPEG'):
    img = Image.new(mode, size, color=color)
    buffer = io.BytesIO()
    img.save(buffer, format=format)
    return buffer.getvalue()


@pytest.fixture
def sample_jpeg():
    """Create a small sample JPEG for testing."""
    return make_image_bytes((10, 10))


@pytest.fixture
def large_jpeg():
    """A 2400x1600 landscape JPEG, wider than every movie variant."""
    return make_image_bytes((2400, 1600), color='blue')


@pytest.fixture
def image_factory():
    return make_image_bytes
