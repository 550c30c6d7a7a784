import json
from datetime import datetime

from .exceptions import ValidationFailed


def serialize_document(value):
    """Make a Firestore document JSON-safe: timestamps become ISO 8601 strings."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: serialize_document(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_document(item) for item in value]
    return value


def parse_json_body(request):
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        raise ValidationFailed({'body': ['Request body must be valid JSON.']})
    if not isinstance(data, dict):
        raise ValidationFailed({'body': ['Request body must be a JSON object.']})
    return data


def parse_page_params(params, default_page_size=12):
    """
    Read `page` and `pageSize` query parameters.
    Raises ValidationFailed on non-numeric values.
    """
    errors = {}
    values = {}
    for name, default in (('page', 1), ('pageSize', default_page_size)):
        raw = params.get(name)
        if raw in (None, ''):
            values[name] = default
            continue
        try:
            values[name] = int(raw)
        except ValueError:
            errors[name] = [f"'{raw}' is not a whole number."]
    if errors:
        raise ValidationFailed(errors)
    return values['page'], values['pageSize']
