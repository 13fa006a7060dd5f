import os
import logging
from flask import Flask

# Import configuration classes
from config import config

logger = logging.getLogger(__name__)


def init_image_storage(app, client=None):
    """
    Build the storage-backed services and attach them to the application.

    ``client`` is a boto3 S3 client (or a compatible stand-in); one is built
    from the configuration when omitted.
    """
    from festival.integrations.object_storage import ObjectStorage, create_s3_client
    from festival.services.image_storage_service import MovieImageStorageService
    from festival.services.guest_image_storage import GuestImageStorageService
    from festival.services.photo_migration_service import PhotoMigrationService

    client = client or create_s3_client(app.config)
    custom_domain = app.config.get('STORAGE_CUSTOM_DOMAIN')

    movie_storage = ObjectStorage(client, app.config['STORAGE_MOVIES_BUCKET'], custom_domain)
    guest_storage = ObjectStorage(client, app.config['STORAGE_GUESTS_BUCKET'], custom_domain)
    guest_storage.ensure_bucket()

    app.movie_image_storage = MovieImageStorageService(movie_storage)
    app.guest_image_storage = GuestImageStorageService(guest_storage)
    app.photo_migration = PhotoMigrationService(
        app.guest_image_storage,
        batch_size=app.config.get('PHOTO_MIGRATION_BATCH_SIZE', 5),
        batch_delay=app.config.get('PHOTO_MIGRATION_BATCH_DELAY', 1.0)
    )


def create_app(config_name=None, storage_client=None):
    app = Flask(__name__)

    # Load configuration
    config_name = config_name or os.environ.get('FLASK_ENV', 'development')
    config_class = config[config_name]
    app.config.from_object(config_class)

    from festival.request_logging import configure_logging, init_request_logging
    configure_logging(app.config.get('LOG_LEVEL', 'INFO'))

    # Validate required configuration
    try:
        config_class.validate_required_config()
    except ValueError as e:
        if not app.config.get('TESTING'):
            raise RuntimeError(f"Configuration error: {str(e)}")

    # Initialize object storage
    app.movie_image_storage = None
    app.guest_image_storage = None
    app.photo_migration = None
    try:
        if storage_client is not None or app.config.get('STORAGE_BACKEND') == 's3':
            init_image_storage(app, storage_client)
            logger.info("Object storage initialized successfully")
        else:
            logger.info("No storage backend configured, image endpoints disabled")
    except Exception as e:
        logger.error(f"Failed to initialize object storage: {e}")
        if not app.config.get('TESTING'):
            raise RuntimeError(f"Object storage initialization failed: {e}")

    # Initialize extensions
    from festival.models import db
    db.init_app(app)

    # Create tables
    with app.app_context():
        db.create_all()

    init_request_logging(app)

    # Register blueprints
    from festival.routes import app as main_routes
    app.register_blueprint(main_routes)

    from festival.views.venues import venues as venues_bp
    app.register_blueprint(venues_bp, url_prefix='/venues')

    from festival.views.images import images as images_bp
    app.register_blueprint(images_bp, url_prefix='/movies')

    from festival.cli import register_commands
    register_commands(app)

    return app
