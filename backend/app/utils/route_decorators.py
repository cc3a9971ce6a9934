"""
Route decorators for standardized error handling and response formatting.

Route handlers return plain dicts (optionally with a status code) and raise
on failure; the decorator turns both into JSON responses.
"""

import logging
from functools import wraps
from flask import jsonify

from graph_engine.errors import ParseError, WorkflowError

logger = logging.getLogger(__name__)


def handle_route_errors(route_description=None):
    """
    Decorator to standardize error handling across all routes.

    Handles:
    - ParseError / ValueError → 400 Bad Request (client error)
    - other WorkflowError → 422 Unprocessable Entity, with the run summary
      when the runner attached one
    - Exception → 500 Internal Server Error (server error)
    - Automatic JSON response formatting via jsonify()

    Args:
        route_description: Optional human-readable description for logging.
                          If not provided, defaults to the function name.

    Usage:
        @bp.route('/workflow/validate', methods=['POST'])
        @handle_route_errors("validating workflow")
        def validate():
            return validator.validate(document).to_dict()
    """
    def decorator(f):
        desc = route_description or f.__name__

        @wraps(f)
        def wrapper(*args, **kwargs):
            try:
                result = f(*args, **kwargs)
                return _format_response(result)
            except ParseError as e:
                logger.warning("%s - ParseError: %s", desc, e)
                return jsonify(_workflow_error_payload(e)), 400
            except WorkflowError as e:
                logger.warning("%s - %s: %s", desc, e.error_type, e)
                return jsonify(_workflow_error_payload(e)), 422
            except ValueError as e:
                logger.warning("%s - ValueError: %s", desc, str(e))
                return jsonify({"error": str(e)}), 400
            except Exception as e:
                logger.exception("Error in %s: %s", desc, e)
                return jsonify({"error": str(e)}), 500

        return wrapper

    return decorator


def _workflow_error_payload(error: WorkflowError):
    return {
        "error": str(error),
        "error_type": error.error_type,
        "node_id": error.node_id,
        "summary": error.summary.to_dict() if error.summary is not None else None,
    }


def _format_response(result):
    """jsonify dict and list payloads, including the first element of a (payload, status) tuple."""
    if isinstance(result, tuple) and result and isinstance(result[0], (dict, list)):
        return (jsonify(result[0]), *result[1:])
    if isinstance(result, (dict, list)):
        return jsonify(result)
    return result


def success_response(data=None, message=None, **extra):
    """Envelope used by action routes: {"success": true, "data": ..., **extra}."""
    response = {"success": True}
    if message:
        response["message"] = message
    if data is not None:
        response["data"] = data
    response.update(extra)
    return response
