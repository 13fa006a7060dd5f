"""
Routes for movie artwork stored in object storage.
"""

from flask import request, jsonify, current_app

from festival.views.images import images
from festival.integrations.object_storage import FileStorageError
from festival.services.image_storage_service import ImageProcessingError


def _movie_images():
    return getattr(current_app, 'movie_image_storage', None)


def _storage_unavailable():
    return jsonify({'error': 'Image storage is not configured'}), 503


def _read_image_upload():
    """Return (kind, payload) from a multipart file or a JSON base64 body."""
    file = request.files.get('image')
    if file and file.filename:
        return 'bytes', file.read()

    data = request.get_json(silent=True)
    if isinstance(data, dict) and data.get('image_base64'):
        return 'base64', data['image_base64']

    return None, None


@images.route('/<int:year>/<int:movie_id>/image', methods=['PUT'])
def upload_movie_image(year, movie_id):
    service = _movie_images()
    if service is None:
        return _storage_unavailable()

    kind, payload = _read_image_upload()
    if kind is None:
        return jsonify({'error': 'An image file or image_base64 is required'}), 400
    if kind == 'base64' and not isinstance(payload, str):
        return jsonify({'error': 'image_base64 must be a string'}), 400

    try:
        if kind == 'base64':
            result = service.migrate_base64_image(payload, year, movie_id)
        else:
            result = service.upload_movie_image(payload, year, movie_id)
    except ImageProcessingError as e:
        return jsonify({'error': str(e)}), 400
    except FileStorageError as e:
        current_app.logger.error(f"Image upload failed for movie {year}/{movie_id}: {e}")
        return jsonify({'error': 'Failed to upload image'}), 502

    return jsonify(result), 201


@images.route('/<int:year>/<int:movie_id>/image', methods=['GET'])
def get_movie_image(year, movie_id):
    service = _movie_images()
    if service is None:
        return _storage_unavailable()

    if not service.movie_images_exist(year, movie_id):
        return jsonify({'error': 'Image not found', 'exists': False}), 404

    base_path = service.generate_base_path(year, movie_id)
    return jsonify({
        'exists': True,
        'base_path': base_path,
        'urls': service.get_image_urls(base_path)
    })


@images.route('/<int:year>/<int:movie_id>/image', methods=['DELETE'])
def delete_movie_image(year, movie_id):
    service = _movie_images()
    if service is None:
        return _storage_unavailable()

    result = service.delete_movie_images(year, movie_id)
    return jsonify(result)
