"""Locale routes - the languages translations are written in."""

import logging

from flask import Blueprint, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from translation_api import db
from translation_api.errors import ConflictError, NotFoundError, server_error
from translation_api.models import Locale
from translation_api.services.invalidation import invalidate
from translation_api.utils import token_required
from translation_api.utils.validation import (
    field_error,
    get_json_body,
    pagination_args,
    parse_bool,
    validate_locale_code,
)

logger = logging.getLogger(__name__)

locales_bp = Blueprint('locales', __name__)


def get_locale_or_404(locale_id):
    locale = db.session.get(Locale, locale_id)
    if not locale:
        raise NotFoundError('Locale not found')
    return locale


def _required_name(data, field, max_length=100, required=True):
    value = data.get(field)
    if value is None and not required:
        return None
    if not isinstance(value, str) or not value.strip():
        raise field_error(field, f'The {field} field is required.')
    if len(value) > max_length:
        raise field_error(field, f'The {field} may not be greater than {max_length} characters.')
    return value.strip()


def validate_locale_payload(data, locale=None):
    partial = locale is not None
    cleaned = {}

    if 'code' in data or not partial:
        code = validate_locale_code(data.get('code'), 'code')
        duplicate = Locale.query.filter_by(code=code)
        if partial:
            duplicate = duplicate.filter(Locale.id != locale.id)
        if duplicate.first():
            raise field_error('code', 'The code has already been taken.')
        cleaned['code'] = code

    if 'name' in data or not partial:
        cleaned['name'] = _required_name(data, 'name')

    if 'native_name' in data:
        cleaned['native_name'] = _required_name(data, 'native_name', required=False)

    for flag in ('is_active', 'is_default'):
        if flag in data:
            cleaned[flag] = parse_bool(data.get(flag), flag, False)

    return cleaned


def _clear_other_defaults(locale):
    """Only one locale may be the default."""
    Locale.query.filter(Locale.id != locale.id, Locale.is_default.is_(True)).update(
        {'is_default': False}, synchronize_session=False,
    )


@locales_bp.route('', methods=['GET'])
@token_required
def list_locales(current_user_id):
    """List locales ordered by name.

    Query params: include_inactive, with_stats, page, per_page
    """
    page, per_page = pagination_args()
    include_inactive = parse_bool(request.args.get('include_inactive'), 'include_inactive', False)
    with_stats = parse_bool(request.args.get('with_stats'), 'with_stats', False)

    query = Locale.query
    if not include_inactive:
        query = query.filter(Locale.is_active.is_(True))
    result = query.order_by(Locale.name).paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        'locales': [locale.to_dict(with_stats=with_stats) for locale in result.items],
        'total': result.total,
        'pages': result.pages,
        'current_page': page,
        'per_page': per_page,
    }), 200


@locales_bp.route('', methods=['POST'])
@token_required
def create_locale(current_user_id):
    cleaned = validate_locale_payload(get_json_body())

    try:
        locale = Locale(**cleaned)
        db.session.add(locale)
        db.session.flush()
        if locale.is_default:
            _clear_other_defaults(locale)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        return server_error('Failed to create locale.', e)

    invalidate('locale', [locale.code])
    logger.info(f"Locale created: {locale.code}")

    return jsonify({
        'message': 'Locale created successfully.',
        'locale': locale.to_dict(),
    }), 201


@locales_bp.route('/<int:locale_id>', methods=['GET'])
@token_required
def get_locale(current_user_id, locale_id):
    with_stats = parse_bool(request.args.get('with_stats'), 'with_stats', True)
    return jsonify({'locale': get_locale_or_404(locale_id).to_dict(with_stats=with_stats)}), 200


@locales_bp.route('/<int:locale_id>', methods=['PUT', 'PATCH'])
@token_required
def update_locale(current_user_id, locale_id):
    """Update a locale. A code change invalidates both the old and new code."""
    locale = get_locale_or_404(locale_id)
    cleaned = validate_locale_payload(get_json_body(), locale)
    old_code = locale.code

    try:
        for field, value in cleaned.items():
            setattr(locale, field, value)
        if cleaned.get('is_default'):
            _clear_other_defaults(locale)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        return server_error('Failed to update locale.', e)

    invalidate('locale', [old_code, locale.code])

    return jsonify({
        'message': 'Locale updated successfully.',
        'locale': locale.to_dict(),
    }), 200


@locales_bp.route('/<int:locale_id>', methods=['DELETE'])
@token_required
def delete_locale(current_user_id, locale_id):
    """Delete a locale that is not the default and has no translations."""
    locale = get_locale_or_404(locale_id)
    if locale.is_default:
        raise ConflictError('Cannot delete the default locale.')
    if locale.has_translations():
        raise ConflictError('Cannot delete a locale that has translations.')

    code = locale.code
    try:
        db.session.delete(locale)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        return server_error('Failed to delete locale.', e)

    invalidate('locale', [code])
    logger.info(f"Locale deleted: {code}")

    return jsonify({'message': 'Locale deleted successfully.'}), 200
