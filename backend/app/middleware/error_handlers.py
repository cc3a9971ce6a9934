"""
JSON error responses for requests that never reach a route handler.
"""
import logging
from flask import jsonify

logger = logging.getLogger(__name__)

_HTTP_ERRORS = {
    404: "Not found",
    405: "Method not allowed",
}


def _json_error(status, message):
    def handler(_):
        return jsonify({"error": message}), status
    return handler


def register_error_handlers(app):
    for status, message in _HTTP_ERRORS.items():
        app.register_error_handler(status, _json_error(status, message))

    @app.errorhandler(500)
    def handle_internal_error(e):
        logger.exception("Unhandled error: %s", e)
        return jsonify({"error": "Internal server error"}), 500
