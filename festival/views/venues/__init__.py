from flask import Blueprint

venues = Blueprint('venues', __name__)

from festival.views.venues import venues_routes
