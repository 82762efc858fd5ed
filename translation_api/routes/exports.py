"""Export routes - cached JSON projections of translations for frontends."""

from flask import Blueprint, current_app, jsonify, request

from translation_api import limiter
from translation_api.errors import NotFoundError, ValidationError
from translation_api.models import Locale, TranslationTag
from translation_api.services.exports import get_export_service
from translation_api.utils.validation import (
    EXPORT_TAG_SLUG_RE,
    field_error,
    get_json_body,
    parse_bool,
    parse_format,
    parse_string_list,
    query_list,
    reject_unknown_params,
    validate_locale_code,
)

exports_bp = Blueprint('exports', __name__)

MAX_KEYS = 100
MAX_KEY_LENGTH = 255


def export_rate_limit():
    return current_app.config.get('EXPORT_RATE_LIMIT', '120 per minute')


def _check_locale_codes(codes, field='locales'):
    """Every requested locale code must exist."""
    for code in codes:
        validate_locale_code(code, field)
    if not codes:
        return codes
    found = {code for (code,) in Locale.query.with_entities(Locale.code).filter(Locale.code.in_(codes))}
    missing = [code for code in codes if code not in found]
    if missing:
        raise field_error(field, f"The selected locale does not exist: {', '.join(missing)}")
    return codes


@exports_bp.route('/locale/<code>', methods=['GET'])
@limiter.limit(export_rate_limit)
def export_locale(code):
    """Export one active locale.

    Query params:
    - tags: comma-separated tag slugs (any-of)
    - format: flat | nested (default: flat)
    - include_metadata: bool (default: false)
    """
    reject_unknown_params(('tags', 'format', 'include_metadata'))
    validate_locale_code(code)

    locale = Locale.query.filter_by(code=code, is_active=True).first()
    if not locale:
        raise NotFoundError('The specified locale does not exist or is not active.')

    response = get_export_service().export_locale(
        code,
        tags=query_list('tags'),
        fmt=parse_format(request.args.get('format')),
        include_metadata=parse_bool(request.args.get('include_metadata'), 'include_metadata', False),
    )
    return jsonify(response), 200


@exports_bp.route('/all', methods=['GET'])
@limiter.limit(export_rate_limit)
def export_all():
    """Export every locale, grouped by locale code."""
    reject_unknown_params(('tags', 'format', 'include_metadata', 'active_only'))

    response = get_export_service().export_all(
        tags=query_list('tags'),
        active_only=parse_bool(request.args.get('active_only'), 'active_only', True),
        fmt=parse_format(request.args.get('format')),
        include_metadata=parse_bool(request.args.get('include_metadata'), 'include_metadata', False),
    )
    return jsonify(response), 200


@exports_bp.route('/keys', methods=['POST'])
@limiter.limit(export_rate_limit)
def export_keys():
    """Look up specific keys across locales.

    Body: {"keys": [...1..100], "locales": [...]?, "include_metadata": bool?, "format": str?}
    """
    data = get_json_body()
    unknown = sorted(set(data) - {'keys', 'locales', 'include_metadata', 'format'})
    if unknown:
        raise ValidationError(
            f"Unrecognized fields: {', '.join(unknown)}",
            errors={name: ['This field is not recognized.'] for name in unknown},
        )

    keys = data.get('keys')
    if not isinstance(keys, list) or not keys:
        raise field_error('keys', 'At least one translation key is required.')
    if len(keys) > MAX_KEYS:
        raise field_error('keys', f'Maximum of {MAX_KEYS} translation keys allowed.')
    for key in keys:
        if not isinstance(key, str):
            raise field_error('keys', 'Each key must be a string.')
        if not key.strip():
            raise field_error('keys', 'Keys may not be blank.')
        if len(key) > MAX_KEY_LENGTH:
            raise field_error('keys', f'Each key must not exceed {MAX_KEY_LENGTH} characters.')

    locales = data.get('locales')
    if locales is not None and not isinstance(locales, list):
        raise field_error('locales', 'Locales must be provided as an array.')
    locales = _check_locale_codes(parse_string_list(locales, 'locales'))

    response = get_export_service().export_keys(
        keys,
        locales=locales,
        fmt=parse_format(data.get('format')),
        include_metadata=parse_bool(data.get('include_metadata'), 'include_metadata', False),
    )
    return jsonify(response), 200


@exports_bp.route('/tag/<slug>', methods=['GET'])
@limiter.limit(export_rate_limit)
def export_tag(slug):
    """Export translations carrying a tag, grouped by locale."""
    reject_unknown_params(('locales', 'format', 'include_metadata'))
    if not EXPORT_TAG_SLUG_RE.match(slug):
        raise field_error('tag', 'The tag must be a valid slug.')

    if not TranslationTag.query.filter_by(slug=slug).first():
        raise NotFoundError('The specified tag does not exist.')

    response = get_export_service().export_tag(
        slug,
        locales=_check_locale_codes(query_list('locales')),
        fmt=parse_format(request.args.get('format')),
        include_metadata=parse_bool(request.args.get('include_metadata'), 'include_metadata', False),
    )
    return jsonify(response), 200


@exports_bp.route('/stats', methods=['GET'])
@limiter.limit(export_rate_limit)
def export_stats():
    """Aggregate counts, cached for 30 minutes."""
    return jsonify(get_export_service().stats()), 200
