"""
Guest photo storage.

Guest photos are stored under ``{guest_id}/{suffix}.jpg`` in their own
container. The thumbnail is a square center crop, suitable for avatars.
"""

from typing import Dict, List

from festival.services.image_storage_service import VariantImageStorage


class GuestImageStorageService(VariantImageStorage):
    """Guest photos in three variants, stored under {guest_id}."""

    IMAGE_SIZES = {
        'original': {'width': 800, 'height': 800, 'suffix': 'original', 'quality': 90, 'fit': 'inside'},
        'thumbnail': {'width': 150, 'height': 150, 'suffix': 'thumbnail', 'quality': 85, 'fit': 'cover'},
        'medium': {'width': 300, 'height': 300, 'suffix': 'medium', 'quality': 85, 'fit': 'inside'},
    }
    DEFAULT_SIZE = 'thumbnail'

    def generate_blob_path(self, guest_id, size_suffix: str) -> str:
        return self._variant_key(str(guest_id), size_suffix)

    def upload_guest_image(self, image_data: bytes, guest_id) -> Dict[str, any]:
        return self._upload_variants(image_data, str(guest_id))

    def delete_guest_images(self, guest_id) -> Dict[str, List]:
        return self._delete_variants(str(guest_id))

    def guest_images_exist(self, guest_id) -> bool:
        return self._variants_exist(str(guest_id))

    def migrate_base64_image(self, base64_data: str, guest_id) -> Dict[str, any]:
        image_data = self.decode_base64_image(base64_data)
        return self.upload_guest_image(image_data, guest_id)
