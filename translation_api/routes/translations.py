"""Translation routes - CRUD, ranked search and bulk actions."""

import logging

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from translation_api import db, limiter
from translation_api.errors import NotFoundError, ValidationError, server_error
from translation_api.models import Locale, Translation, TranslationTag, normalize_key
from translation_api.services.invalidation import invalidate
from translation_api.services.query_filters import (
    apply_search_ranking,
    apply_sorting,
    translation_query,
)
from translation_api.utils import token_required
from translation_api.utils.validation import (
    TRANSLATION_KEY_RE,
    field_error,
    get_json_body,
    pagination_args,
    parse_bool,
    parse_datetime,
    parse_int,
    validate_metadata,
)

logger = logging.getLogger(__name__)

translations_bp = Blueprint('translations', __name__)

BULK_ACTIONS = ('delete', 'activate', 'deactivate', 'verify', 'unverify')
MAX_BULK_IDS = 100


def bulk_rate_limit():
    return current_app.config.get('BULK_RATE_LIMIT', '10 per minute')


def get_translation_or_404(translation_id):
    translation = db.session.get(Translation, translation_id)
    if not translation:
        raise NotFoundError('Translation not found')
    return translation


def _existing_locale_code(code, field='locale'):
    if code and not Locale.query.filter_by(code=code).first():
        raise field_error(field, f'The selected {field} is invalid.')
    return code


def _existing_tag_slug(slug, field='tag'):
    if slug and not TranslationTag.query.filter_by(slug=slug).first():
        raise field_error(field, f'The selected {field} is invalid.')
    return slug


def _load_tags(tag_ids):
    if not isinstance(tag_ids, list) or not all(isinstance(i, int) and not isinstance(i, bool) for i in tag_ids):
        raise field_error('tag_ids', 'The tag_ids field must be an array of integers.')
    tags = TranslationTag.query.filter(TranslationTag.id.in_(tag_ids)).all() if tag_ids else []
    if len(tags) != len(set(tag_ids)):
        raise field_error('tag_ids', 'One or more of the selected tags is invalid.')
    return tags


def validate_translation_payload(data, translation=None):
    """Validate a create (translation=None) or partial update payload."""
    partial = translation is not None
    cleaned = {}

    if 'key' in data or not partial:
        key = data.get('key')
        if not isinstance(key, str) or not key.strip():
            raise field_error('key', 'The key field is required.')
        if len(key) > 255 or not TRANSLATION_KEY_RE.match(key.strip()):
            raise field_error('key', 'The key may only contain letters, numbers, dots, underscores and dashes (max 255).')
        cleaned['key'] = normalize_key(key)

    if 'value' in data or not partial:
        value = data.get('value')
        if not isinstance(value, str) or value == '':
            raise field_error('value', 'The value field is required.')
        if len(value) > 65535:
            raise field_error('value', 'The value may not be greater than 65535 characters.')
        cleaned['value'] = value

    if 'locale_id' in data or not partial:
        locale_id = parse_int(data.get('locale_id'), 'locale_id')
        if locale_id is None or not db.session.get(Locale, locale_id):
            raise field_error('locale_id', 'The selected locale is invalid.')
        cleaned['locale_id'] = locale_id

    if 'description' in data:
        description = data.get('description')
        if description is not None and (not isinstance(description, str) or len(description) > 1000):
            raise field_error('description', 'The description must be a string of at most 1000 characters.')
        cleaned['description'] = description

    if 'metadata' in data:
        cleaned['meta'] = validate_metadata(data.get('metadata'))

    if 'is_active' in data:
        cleaned['is_active'] = parse_bool(data.get('is_active'), 'is_active')

    # (key, locale) must stay unique
    key = cleaned.get('key', translation.key if partial else None)
    locale_id = cleaned.get('locale_id', translation.locale_id if partial else None)
    duplicate = Translation.query.filter_by(key=key, locale_id=locale_id)
    if partial:
        duplicate = duplicate.filter(Translation.id != translation.id)
    if duplicate.first():
        raise field_error('key', 'The key has already been taken for this locale.')

    return cleaned


@translations_bp.route('', methods=['GET'])
@token_required
def list_translations(current_user_id):
    """List translations with filtering, sorting and pagination.

    Query params: search, locale, tag, is_active, is_verified, created_from,
    created_to, sort_by, sort_direction, page, per_page
    """
    page, per_page = pagination_args()
    search = request.args.get('search')
    if search and len(search) > 255:
        raise field_error('search', 'The search query may not be greater than 255 characters.')

    filters = {
        'search': search,
        'locale': _existing_locale_code(request.args.get('locale')),
        'tag': _existing_tag_slug(request.args.get('tag')),
        'is_active': parse_bool(request.args.get('is_active'), 'is_active'),
        'is_verified': parse_bool(request.args.get('is_verified'), 'is_verified'),
        'created_from': parse_datetime(request.args.get('created_from'), 'created_from'),
        'created_to': parse_datetime(request.args.get('created_to'), 'created_to'),
    }

    query = apply_sorting(
        translation_query(filters),
        request.args.get('sort_by'),
        request.args.get('sort_direction'),
    )
    result = query.paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        'translations': [t.to_dict() for t in result.items],
        'total': result.total,
        'pages': result.pages,
        'current_page': page,
        'per_page': per_page,
    }), 200


@translations_bp.route('/search', methods=['GET'])
@token_required
def search_translations(current_user_id):
    """Ranked keyword search over active translations.

    Key-prefix matches rank first, value-prefix matches second.
    """
    term = (request.args.get('q') or '').strip()
    if len(term) < 2:
        raise field_error('q', 'The search query must be at least 2 characters.')
    if len(term) > 255:
        raise field_error('q', 'The search query may not be greater than 255 characters.')
    page, per_page = pagination_args()

    filters = {
        'q': term,
        'active_only': True,
        'locale': _existing_locale_code(request.args.get('locale')),
        'tag': _existing_tag_slug(request.args.get('tag')),
    }
    query = apply_search_ranking(translation_query(filters), term)
    result = query.paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        'translations': [t.to_dict() for t in result.items],
        'total': result.total,
        'pages': result.pages,
        'current_page': page,
        'per_page': per_page,
        'query': term,
    }), 200


@translations_bp.route('', methods=['POST'])
@token_required
def create_translation(current_user_id):
    """Create a translation, optionally attaching tags."""
    data = get_json_body()
    cleaned = validate_translation_payload(data)
    tags = _load_tags(data['tag_ids']) if 'tag_ids' in data else None

    try:
        translation = Translation(**cleaned)
        if tags is not None:
            translation.tags = tags
        db.session.add(translation)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        return server_error('Failed to create translation.', e)

    invalidate('translation', [translation.locale.code])
    if tags:
        invalidate('tag', [translation.locale.code])

    return jsonify({
        'message': 'Translation created successfully.',
        'translation': translation.to_dict(),
    }), 201


@translations_bp.route('/<int:translation_id>', methods=['GET'])
@token_required
def get_translation(current_user_id, translation_id):
    return jsonify({'translation': get_translation_or_404(translation_id).to_dict()}), 200


@translations_bp.route('/<int:translation_id>', methods=['PUT', 'PATCH'])
@token_required
def update_translation(current_user_id, translation_id):
    """Update a translation. Moving it to another locale invalidates both locales."""
    translation = get_translation_or_404(translation_id)
    data = get_json_body()
    cleaned = validate_translation_payload(data, translation)
    tags = _load_tags(data['tag_ids']) if 'tag_ids' in data else None

    old_locale_code = translation.locale.code
    try:
        for field, value in cleaned.items():
            setattr(translation, field, value)
        if tags is not None:
            translation.tags = tags
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        return server_error('Failed to update translation.', e)

    # Relationship is stale after a locale_id change until refreshed
    db.session.refresh(translation)
    codes = {old_locale_code, translation.locale.code}
    invalidate('translation', codes)
    if tags is not None:
        invalidate('tag', codes)

    return jsonify({
        'message': 'Translation updated successfully.',
        'translation': translation.to_dict(),
    }), 200


@translations_bp.route('/<int:translation_id>', methods=['DELETE'])
@token_required
def delete_translation(current_user_id, translation_id):
    translation = get_translation_or_404(translation_id)
    locale_code = translation.locale.code
    had_tags = bool(translation.tags)

    try:
        db.session.delete(translation)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        return server_error('Failed to delete translation.', e)

    invalidate('translation', [locale_code])
    if had_tags:
        invalidate('tag', [locale_code])

    return jsonify({'message': 'Translation deleted successfully.'}), 200


@translations_bp.route('/bulk', methods=['POST'])
@limiter.limit(bulk_rate_limit)
@token_required
def bulk_translations(current_user_id):
    """Apply one action to up to 100 translations.

    Body: {"action": "delete|activate|deactivate|verify|unverify", "ids": [...]}
    """
    data = get_json_body()
    action = data.get('action')
    ids = data.get('ids')

    if action not in BULK_ACTIONS:
        raise field_error('action', f"The action must be one of: {', '.join(BULK_ACTIONS)}.")
    if not isinstance(ids, list) or not ids:
        raise field_error('ids', 'At least one translation ID must be provided.')
    if len(ids) > MAX_BULK_IDS:
        raise field_error('ids', f'No more than {MAX_BULK_IDS} translation IDs can be processed at once.')
    if not all(isinstance(i, int) and not isinstance(i, bool) for i in ids):
        raise field_error('ids', 'Each translation ID must be an integer.')

    translations = Translation.query.filter(Translation.id.in_(ids)).all()
    if len(translations) != len(set(ids)):
        raise ValidationError(
            'One or more of the selected translations is invalid.',
            errors={'ids': ['One or more of the selected translations is invalid.']},
        )

    try:
        for translation in translations:
            if action == 'delete':
                db.session.delete(translation)
            elif action == 'activate':
                translation.is_active = True
            elif action == 'deactivate':
                translation.is_active = False
            elif action == 'verify':
                translation.mark_verified(current_user_id)
            elif action == 'unverify':
                translation.mark_unverified()
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        return server_error(f'Bulk {action} failed.', e)

    invalidate('translation', bulk=True)
    logger.info(f"Bulk {action} on {len(translations)} translations by user {current_user_id}")

    return jsonify({
        'message': f'Bulk {action} completed successfully.',
        'affected_count': len(translations),
    }), 200
