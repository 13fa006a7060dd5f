"""
Logging setup, per-request access logging and JSON error responses.
"""

import logging
import time

from flask import g, jsonify, request
from werkzeug.exceptions import HTTPException

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'


def configure_logging(level_name):
    """Configure the root logger once per process."""
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        root.addHandler(handler)
    root.setLevel(level)


def init_request_logging(app):
    """Register request timing and error handlers on the application."""

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        started = g.pop('request_started', None)
        duration_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        app.logger.info(
            f"{request.method} {request.path} {response.status_code} {duration_ms:.1f}ms"
        )
        return response

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'error': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        app.logger.error(
            f"Unhandled error on {request.method} {request.path}: {error}",
            exc_info=error
        )
        return jsonify({'error': 'Internal Server Error'}), 500
