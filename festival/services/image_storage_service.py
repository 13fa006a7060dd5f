"""
Image variant storage for movie artwork.

Every uploaded image is re-encoded as progressive JPEG in a fixed set of
size variants and stored in object storage under a deterministic path:

    {year}/{movie_id}/{suffix}.jpg

The variants of one image share a base path (``{year}/{movie_id}``), so a
caller only needs to remember the base path to build any variant URL.
"""

import base64
import binascii
import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from io import BytesIO
from typing import Dict, List, Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from festival.integrations.object_storage import ObjectStorage

logger = logging.getLogger(__name__)

JPEG_CONTENT_TYPE = 'image/jpeg'
CACHE_CONTROL = 'public, max-age=31536000'  # 1 year
VARIANT_EXTENSION = 'jpg'

DATA_URI_PATTERN = re.compile(r'^data:image/\w+;base64,(.+)$', re.DOTALL)


class ImageProcessingError(Exception):
    """Raised when image data cannot be decoded."""


class VariantImageStorage:
    """Shared pipeline: decode once, render each configured variant, upload."""

    # name -> {width, height, suffix, quality, fit}
    IMAGE_SIZES: Dict[str, Dict[str, any]] = {}
    DEFAULT_SIZE = 'original'

    def __init__(self, storage: ObjectStorage):
        self.storage = storage

    @property
    def container_name(self) -> str:
        return self.storage.bucket_name

    def _variant_key(self, base_path: str, suffix: str, extension: str = VARIANT_EXTENSION) -> str:
        return f"{base_path}/{suffix}.{extension}"

    def get_image_url(self, base_path: str, size: Optional[str] = None) -> str:
        """Build the public URL of one variant. No storage call is made."""
        size = size or self.DEFAULT_SIZE
        size_config = self.IMAGE_SIZES.get(size)
        if not size_config:
            raise ValueError(f"Invalid image size: {size}")
        return self.storage.get_public_url(self._variant_key(base_path, size_config['suffix']))

    def get_image_urls(self, base_path: str) -> Dict[str, str]:
        return {size: self.get_image_url(base_path, size) for size in self.IMAGE_SIZES}

    def _open_image(self, image_data: bytes) -> Image.Image:
        if not image_data:
            raise ImageProcessingError("Image data is empty")

        try:
            image = Image.open(BytesIO(image_data))
            image.load()  # Force load to catch truncated/corrupted images
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
            raise ImageProcessingError(f"Corrupted or invalid image file: {e}") from e

        # Apply orientation from EXIF data (rotated phone photos)
        try:
            return ImageOps.exif_transpose(image)
        except Exception as e:
            logger.warning(f"Ignoring unreadable EXIF orientation: {e}")
            return image

    @staticmethod
    def _to_rgb(img: Image.Image) -> Image.Image:
        """JPEG has no alpha channel: flatten transparency onto white."""
        if img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info):
            rgba = img.convert('RGBA')
            background = Image.new('RGB', rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[3])
            return background
        if img.mode not in ('RGB', 'L'):
            return img.convert('RGB')
        return img

    @staticmethod
    def _fit_inside(img: Image.Image, max_width: Optional[int], max_height: Optional[int]) -> Image.Image:
        """Scale down to fit the box, keeping aspect ratio. Never upscales."""
        width, height = img.size
        box_width = max_width or width
        box_height = max_height or height

        if width <= box_width and height <= box_height:
            return img

        scale = min(box_width / width, box_height / height)
        target_size = (max(1, round(width * scale)), max(1, round(height * scale)))
        return img.resize(target_size, Image.Resampling.LANCZOS)

    def _render_variant(self, image: Image.Image, size_config: Dict[str, any]) -> bytes:
        """
        Render one variant as JPEG bytes.

        Args:
            image: decoded source image
            size_config: entry of IMAGE_SIZES

        Returns:
            Encoded progressive JPEG
        """
        img = self._to_rgb(image.copy())

        width = size_config.get('width')
        height = size_config.get('height')
        if width or height:
            if size_config.get('fit') == 'cover':
                # Crop to exact size (square avatars)
                img = ImageOps.fit(img, (width, height), Image.Resampling.LANCZOS, centering=(0.5, 0.5))
            else:
                img = self._fit_inside(img, width, height)

        output = BytesIO()
        img.save(
            output,
            format='JPEG',
            quality=size_config['quality'],
            optimize=True,
            progressive=True
        )
        return output.getvalue()

    def _upload_variants(self, image_data: bytes, base_path: str) -> Dict[str, any]:
        image = self._open_image(image_data)
        urls = {}

        try:
            for size_name, size_config in self.IMAGE_SIZES.items():
                key = self._variant_key(base_path, size_config['suffix'])
                processed = self._render_variant(image, size_config)
                result = self.storage.upload_bytes(
                    key,
                    processed,
                    content_type=JPEG_CONTENT_TYPE,
                    cache_control=CACHE_CONTROL
                )
                urls[size_name] = result['url']
        except Exception as e:
            logger.error(f"Error uploading image variants for {base_path}: {e}")
            raise

        logger.info(f"Uploaded {len(urls)} image variants for {base_path}")
        return {
            'base_path': base_path,
            'urls': urls
        }

    def _delete_variants(self, base_path: str) -> Dict[str, List]:
        keys = [self._variant_key(base_path, config['suffix']) for config in self.IMAGE_SIZES.values()]
        succeeded = set()
        errors = []

        with ThreadPoolExecutor(max_workers=len(keys)) as executor:
            future_to_key = {executor.submit(self.storage.delete_file, key): key for key in keys}

            for future in as_completed(future_to_key):
                key = future_to_key[future]
                try:
                    future.result()
                    succeeded.add(key)
                except Exception as e:
                    logger.error(f"Failed to delete {key}: {e}")
                    errors.append({'key': key, 'message': str(e)})

        return {
            'deleted': [key for key in keys if key in succeeded],
            'errors': errors
        }

    def _variants_exist(self, base_path: str) -> bool:
        """Only the original variant is checked."""
        key = self._variant_key(base_path, self.IMAGE_SIZES['original']['suffix'])
        try:
            return self.storage.file_exists(key)
        except Exception as e:
            logger.error(f"Error checking blob existence for {key}: {e}")
            return False

    @staticmethod
    def decode_base64_image(base64_data: str) -> bytes:
        """Decode base64 image data, with or without a data URI prefix."""
        if not base64_data:
            raise ImageProcessingError("Image data is empty")
        if not isinstance(base64_data, str):
            raise ImageProcessingError("Base64 image data must be a string")

        match = DATA_URI_PATTERN.match(base64_data.strip())
        clean_base64 = match.group(1) if match else base64_data.strip()

        try:
            return base64.b64decode(clean_base64)
        except (binascii.Error, ValueError) as e:
            raise ImageProcessingError(f"Invalid base64 image data: {e}") from e


class MovieImageStorageService(VariantImageStorage):
    """Movie artwork in five widths, stored under {year}/{movie_id}."""

    IMAGE_SIZES = {
        'original': {'width': None, 'height': None, 'suffix': 'original', 'quality': 90},
        'large': {'width': 1200, 'height': None, 'suffix': 'large', 'quality': 85},
        'medium': {'width': 600, 'height': None, 'suffix': 'medium', 'quality': 85},
        'thumbnail': {'width': 300, 'height': None, 'suffix': 'thumbnail', 'quality': 85},
        'small': {'width': 150, 'height': None, 'suffix': 'small', 'quality': 85},
    }
    DEFAULT_SIZE = 'medium'

    @staticmethod
    def generate_base_path(year, movie_id) -> str:
        return f"{year}/{movie_id}"

    def generate_blob_path(self, year, movie_id, size_suffix: str, extension: str = VARIANT_EXTENSION) -> str:
        return self._variant_key(self.generate_base_path(year, movie_id), size_suffix, extension)

    def upload_movie_image(self, image_data: bytes, year, movie_id) -> Dict[str, any]:
        """
        Upload movie artwork with all size variants.

        Variants are uploaded one after another. A failure stops the upload
        and propagates; variants uploaded before it are left in place.

        Returns:
            Dict with:
                - base_path: "{year}/{movie_id}"
                - urls: size name -> public URL
        """
        return self._upload_variants(image_data, self.generate_base_path(year, movie_id))

    def delete_movie_images(self, year, movie_id) -> Dict[str, List]:
        """Delete all variants concurrently. Failures are logged, never raised."""
        return self._delete_variants(self.generate_base_path(year, movie_id))

    def movie_images_exist(self, year, movie_id) -> bool:
        return self._variants_exist(self.generate_base_path(year, movie_id))

    def migrate_base64_image(self, base64_data: str, year, movie_id) -> Dict[str, any]:
        image_data = self.decode_base64_image(base64_data)
        return self.upload_movie_image(image_data, year, movie_id)
