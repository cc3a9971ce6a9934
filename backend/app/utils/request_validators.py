"""
Declarative extraction of workflow request bodies and query strings.

    data = extract_json_fields(
        RequestField('workflow', required=True, validator=is_dict),
        RequestField('dry_run', default=False, transform=to_bool),
    )

Every failure is raised as ValueError, which handle_route_errors turns into
a 400 response.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional
from flask import request

logger = logging.getLogger(__name__)


class RequestField:
    """
    One named field of a request payload.

    ``transform`` runs before ``validator``; neither runs when the value is
    absent and has no default. Empty strings count as absent for required
    fields.
    """

    def __init__(
        self,
        name: str,
        *,
        required: bool = False,
        default: Any = None,
        transform: Optional[Callable[[Any], Any]] = None,
        validator: Optional[Callable[[Any], bool]] = None,
        error_message: Optional[str] = None
    ):
        self.name = name
        self.required = required
        self.default = default
        self.transform = transform
        self.validator = validator
        self.error_message = error_message or f"No {name} provided"

    def read(self, source: Mapping[str, Any]) -> Any:
        value = source.get(self.name, self.default)
        if value is None or value == '':
            if self.required:
                raise ValueError(self.error_message)
            if value is None:
                return None

        if self.transform is not None:
            try:
                value = self.transform(value)
            except (TypeError, ValueError) as e:
                logger.warning("Could not convert field '%s': %s", self.name, e)
                raise ValueError(f"Invalid format for {self.name}") from e

        if self.validator is not None and not self.validator(value):
            raise ValueError(f"Invalid {self.name}")
        return value


def _read_all(source: Mapping[str, Any], fields) -> Dict[str, Any]:
    return {field.name: field.read(source) for field in fields}


def extract_json_fields(*fields: RequestField) -> Dict[str, Any]:
    """Read ``fields`` from the JSON body, which must be an object when present."""
    body = request.get_json(silent=True)
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return _read_all(body, fields)


def extract_query_params(*fields: RequestField) -> Dict[str, Any]:
    return _read_all(request.args, fields)


# Validators

def is_dict(value: Any) -> bool:
    return isinstance(value, dict)


def non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


# Transforms

def or_none(value: Any) -> Any:
    """Map falsy values (empty string, 0, {}) to None."""
    return value or None


def to_bool(value: Any) -> bool:
    """Accept JSON booleans and the usual query-string spellings ('true', '1', 'yes', 'on')."""
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'on')
    return bool(value)


def strip_whitespace(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value
