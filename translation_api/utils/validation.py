"""Request parsing and validation helpers shared by the route modules."""

import re
from datetime import datetime

from flask import request

from translation_api.errors import ValidationError

LOCALE_CODE_RE = re.compile(r'^[a-z]{2,3}$')
TRANSLATION_KEY_RE = re.compile(r'^[a-zA-Z0-9._-]+$')
TAG_SLUG_RE = re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*$')
EXPORT_TAG_SLUG_RE = re.compile(r'^[a-z0-9\-_]+$')
COLOR_RE = re.compile(r'^#[a-fA-F0-9]{6}$')

TRUE_VALUES = ('true', '1', 'yes', 'on')
FALSE_VALUES = ('false', '0', 'no', 'off')

MAX_PER_PAGE = 100
DEFAULT_PER_PAGE = 15


def field_error(field, message):
    return ValidationError(message, errors={field: [message]})


def reject_unknown_params(allowed, args=None):
    """Unrecognized query params are an error, not silently ignored."""
    args = request.args if args is None else args
    # 'locales[]' style array params count as 'locales'
    unknown = sorted({name for name in args.keys() if name.removesuffix('[]') not in allowed})
    if unknown:
        raise ValidationError(
            f"Unrecognized parameters: {', '.join(unknown)}",
            errors={name: ['This parameter is not recognized.'] for name in unknown},
        )


def parse_bool(value, field, default=None):
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise field_error(field, f'The {field} field must be true or false.')


def parse_int(value, field, default=None, minimum=None, maximum=None):
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        raise field_error(field, f'The {field} field must be an integer.')
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise field_error(field, f'The {field} field must be an integer.')
    if minimum is not None and number < minimum:
        raise field_error(field, f'The {field} field must be at least {minimum}.')
    if maximum is not None and number > maximum:
        raise field_error(field, f'The {field} field may not be greater than {maximum}.')
    return number


def parse_format(value):
    if value is None or value == '':
        return 'flat'
    if value not in ('flat', 'nested'):
        raise field_error('format', 'The format must be either "flat" or "nested".')
    return value


def parse_datetime(value, field):
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise field_error(field, f'The {field} field must be an ISO 8601 date.')


def parse_string_list(value, field):
    """Accept a list, or a comma-separated string; returns trimmed non-empty items."""
    if value is None or value == '':
        return []
    if isinstance(value, str):
        value = value.split(',')
    if not isinstance(value, (list, tuple)):
        raise field_error(field, f'The {field} field must be an array.')
    items = []
    for item in value:
        if not isinstance(item, str):
            raise field_error(field, f'Each {field} entry must be a string.')
        if item.strip():
            items.append(item.strip())
    return items


def query_list(name):
    """Read ?name=a,b or ?name=a&name=b (or name[]=a) from the query string."""
    values = request.args.getlist(name) + request.args.getlist(f'{name}[]')
    items = []
    for value in values:
        items.extend(parse_string_list(value, name))
    return items


def get_json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object.')
    return data


def pagination_args():
    page = parse_int(request.args.get('page'), 'page', default=1, minimum=1)
    per_page = parse_int(request.args.get('per_page'), 'per_page', default=DEFAULT_PER_PAGE,
                         minimum=1, maximum=MAX_PER_PAGE)
    return page, per_page


def validate_locale_code(code, field='locale'):
    if not isinstance(code, str) or not LOCALE_CODE_RE.match(code):
        raise field_error(field, 'The locale must be a valid 2-3 character language code.')
    return code


def validate_metadata(metadata):
    """Metadata is a flat map of string -> string (values up to 500 chars)."""
    if metadata is None:
        return None
    if not isinstance(metadata, dict):
        raise field_error('metadata', 'The metadata field must be an object.')
    for name, value in metadata.items():
        if not isinstance(value, str):
            raise field_error(f'metadata.{name}', 'Each metadata value must be a string.')
        if len(value) > 500:
            raise field_error(f'metadata.{name}', 'Each metadata value may not exceed 500 characters.')
    return dict(metadata)
