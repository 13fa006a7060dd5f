"""
Configuration module for the festival backend.
"""

import os
from dotenv import load_dotenv

# Load .env file
load_dotenv()


def _default_guests_bucket():
    """Guest photos live in a separate container for production."""
    if os.environ.get('FLASK_ENV') == 'production':
        return 'guests'
    return 'guests-dev'


class Config:
    """Base configuration class."""

    # Database configuration
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        'sqlite:///festival.db'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Storage Configuration ('s3' or 'none')
    STORAGE_BACKEND = os.environ.get('STORAGE_BACKEND', 'none')

    # S3-compatible object storage
    STORAGE_ENDPOINT_URL = os.environ.get('STORAGE_ENDPOINT_URL')
    STORAGE_ACCESS_KEY = os.environ.get('STORAGE_ACCESS_KEY')
    STORAGE_SECRET_KEY = os.environ.get('STORAGE_SECRET_KEY')
    STORAGE_REGION = os.environ.get('STORAGE_REGION', 'auto')
    STORAGE_MOVIES_BUCKET = os.environ.get('STORAGE_MOVIES_BUCKET')
    STORAGE_GUESTS_BUCKET = os.environ.get('STORAGE_GUESTS_BUCKET') or _default_guests_bucket()
    STORAGE_CUSTOM_DOMAIN = os.environ.get('STORAGE_CUSTOM_DOMAIN', 'https://s3.irmf.cz')

    # Upload limits
    MAX_CONTENT_LENGTH = 25 * 1024 * 1024  # 25MB per request

    # Guest photo migration
    PHOTO_MIGRATION_BATCH_SIZE = int(os.environ.get('PHOTO_MIGRATION_BATCH_SIZE', 5))
    PHOTO_MIGRATION_BATCH_DELAY = float(os.environ.get('PHOTO_MIGRATION_BATCH_DELAY', 1.0))

    @classmethod
    def validate_required_config(cls):
        """Validate that required configuration is present."""
        required_vars = []

        if cls.STORAGE_BACKEND == 's3':
            required_vars.extend([
                'STORAGE_ENDPOINT_URL', 'STORAGE_ACCESS_KEY',
                'STORAGE_SECRET_KEY', 'STORAGE_MOVIES_BUCKET'
            ])

        missing = [var for var in required_vars if not getattr(cls, var)]
        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    STORAGE_BACKEND = 'none'
    STORAGE_MOVIES_BUCKET = 'movies-test'
    STORAGE_GUESTS_BUCKET = 'guests-test'
    STORAGE_CUSTOM_DOMAIN = 'https://cdn.example.test'
    PHOTO_MIGRATION_BATCH_DELAY = 0


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
