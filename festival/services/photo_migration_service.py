"""
Moves guest photos from the guests table (base64 text) into object storage.

Guests are processed in small batches. Storage work for one batch runs in
parallel worker threads; all database reads and writes stay on the calling
thread, which must have an application context.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from festival.models import Guest, db
from festival.services.guest_image_storage import GuestImageStorageService

logger = logging.getLogger(__name__)


class PhotoMigrationService:
    """Batch migration of legacy guest photos."""

    def __init__(
        self,
        guest_images: GuestImageStorageService,
        batch_size: int = 5,
        batch_delay: float = 1.0
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self.guest_images = guest_images
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.migration_in_progress = False
        self._lock = threading.Lock()

    @staticmethod
    def _has_photo():
        return (Guest.photo.isnot(None)) & (Guest.photo != '')

    @staticmethod
    def _not_migrated():
        return or_(Guest.image_migrated.is_(None), Guest.image_migrated.is_(False))

    def _pending_guests(self) -> List[Tuple[int, str, str]]:
        guests = (
            Guest.query
            .filter(self._has_photo(), self._not_migrated())
            .order_by(Guest.id)
            .all()
        )
        return [(guest.id, guest.photo, guest.full_name) for guest in guests]

    def _migrate_one(self, guest_id: int, photo: str) -> str:
        """Runs in a worker thread: storage calls only."""
        # Already uploaded by an earlier, interrupted run
        if self.guest_images.guest_images_exist(guest_id):
            logger.info(f"Images already exist for guest {guest_id}, marking as migrated")
            return str(guest_id)

        result = self.guest_images.migrate_base64_image(photo, guest_id)
        return result['base_path']

    def mark_guest_as_migrated(self, guest_id: int, image_path: str) -> None:
        guest = db.session.get(Guest, guest_id)
        if guest is None:
            raise LookupError(f"Guest {guest_id} no longer exists")
        guest.image_path = image_path
        guest.image_migrated = True

    def migrate_guest_photos(self) -> Dict[str, any]:
        """
        Migrate every guest photo that has not been migrated yet.

        Returns:
            Dict with:
                - total: number of guests selected for migration
                - migrated: number migrated (or found already in storage)
                - failed: number of failures
                - errors: list of error messages
                - skipped: True when another migration was already running
        """
        with self._lock:
            if self.migration_in_progress:
                logger.info("Photo migration already in progress, skipping")
                return {'total': 0, 'migrated': 0, 'failed': 0, 'errors': [], 'skipped': True}
            self.migration_in_progress = True

        try:
            return self._run_migration()
        finally:
            with self._lock:
                self.migration_in_progress = False

    def _run_migration(self) -> Dict[str, any]:
        logger.info("Starting guest photo migration")
        pending = self._pending_guests()
        logger.info(f"Found {len(pending)} guest photos to migrate")

        migrated = 0
        errors = []

        for start in range(0, len(pending), self.batch_size):
            batch = pending[start:start + self.batch_size]

            with ThreadPoolExecutor(max_workers=len(batch)) as executor:
                future_to_guest = {
                    executor.submit(self._migrate_one, guest_id, photo): (guest_id, name)
                    for guest_id, photo, name in batch
                }

                for future in as_completed(future_to_guest):
                    guest_id, name = future_to_guest[future]
                    try:
                        self.mark_guest_as_migrated(guest_id, future.result())
                        migrated += 1
                        logger.info(f"Migrated photo for guest {guest_id}")
                    except Exception as e:
                        logger.error(f"Failed to migrate photo for guest {guest_id}: {e}")
                        errors.append(f"Guest {guest_id} ({name}): {e}")

            try:
                db.session.commit()
            except SQLAlchemyError:
                db.session.rollback()
                logger.exception("Failed to record migrated guest photos")
                raise

            if self.batch_delay and start + self.batch_size < len(pending):
                time.sleep(self.batch_delay)

        logger.info(f"Photo migration completed: {migrated} migrated, {len(errors)} failed")
        if errors:
            logger.warning("Failed migrations can be retried by running the migration again")

        return {
            'total': len(pending),
            'migrated': migrated,
            'failed': len(errors),
            'errors': errors,
            'skipped': False
        }

    def get_migration_status(self) -> Dict[str, int]:
        has_photo = self._has_photo()
        return {
            'total_guests': Guest.query.count(),
            'guests_with_photos': Guest.query.filter(has_photo).count(),
            'migrated_guests': Guest.query.filter(Guest.image_migrated.is_(True)).count(),
            'pending_migration': Guest.query.filter(has_photo, self._not_migrated()).count(),
        }
