from flask import Blueprint

images = Blueprint('images', __name__)

from festival.views.images import images_routes
