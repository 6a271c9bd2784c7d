"""Helpers for reading query-string and JSON request values."""
from flask import request

from swiftsale.exceptions import ValidationError


def int_arg(name, default=None):
    """Integer query-string argument; blank means default."""
    value = request.args.get(name, '').strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f'{name} must be an integer', payload={'field': name})


def json_body():
    """Request JSON object or a 400 ValidationError."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data
