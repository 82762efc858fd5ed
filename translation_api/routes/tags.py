"""Tag routes - labels that group translations (mobile, web, checkout...)."""

import logging

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from translation_api import db
from translation_api.errors import NotFoundError, ValidationError, server_error
from translation_api.models import TranslationTag, slugify
from translation_api.models.tag import DEFAULT_TAG_COLOR
from translation_api.services.cache_keys import popular_tags_key
from translation_api.services.exports import get_export_service
from translation_api.services.invalidation import invalidate
from translation_api.utils import token_required
from translation_api.utils.validation import (
    COLOR_RE,
    TAG_SLUG_RE,
    field_error,
    get_json_body,
    pagination_args,
    parse_bool,
    parse_int,
)

logger = logging.getLogger(__name__)

tags_bp = Blueprint('tags', __name__)

TAG_SORTS = ('name', 'slug', 'created_at', 'updated_at')


def get_tag_or_404(tag_id):
    tag = db.session.get(TranslationTag, tag_id)
    if not tag:
        raise NotFoundError('Tag not found')
    return tag


def _tag_locale_codes(tag):
    """Locales of every translation carrying the tag."""
    return {translation.locale.code for translation in tag.translations}


def validate_tag_payload(data, tag=None):
    partial = tag is not None
    cleaned = {}

    def unique(field, value):
        duplicate = TranslationTag.query.filter(getattr(TranslationTag, field) == value)
        if partial:
            duplicate = duplicate.filter(TranslationTag.id != tag.id)
        if duplicate.first():
            raise field_error(field, f'The {field} has already been taken.')

    if 'name' in data or not partial:
        name = data.get('name')
        if not isinstance(name, str) or not name.strip():
            raise field_error('name', 'The name field is required.')
        if len(name) > 100:
            raise field_error('name', 'The name may not be greater than 100 characters.')
        cleaned['name'] = name.strip()
        unique('name', cleaned['name'])

    slug = data.get('slug')
    if slug is not None:
        if not isinstance(slug, str) or len(slug) > 100 or not TAG_SLUG_RE.match(slug):
            raise field_error('slug', 'The slug may only contain lowercase letters, numbers and single dashes.')
        cleaned['slug'] = slug
    elif 'name' in cleaned:
        # Re-slug from the name unless a slug was given
        cleaned['slug'] = slugify(cleaned['name'])
        if not cleaned['slug']:
            raise field_error('slug', 'A slug could not be derived from the name.')
    if 'slug' in cleaned:
        unique('slug', cleaned['slug'])

    if 'description' in data:
        description = data.get('description')
        if description is not None and (not isinstance(description, str) or len(description) > 255):
            raise field_error('description', 'The description must be a string of at most 255 characters.')
        cleaned['description'] = description

    if 'color' in data or not partial:
        color = data.get('color') or DEFAULT_TAG_COLOR
        if not isinstance(color, str) or not COLOR_RE.match(color):
            raise field_error('color', 'The color must be a valid hex color (e.g. #6366f1).')
        cleaned['color'] = color

    if 'is_active' in data:
        cleaned['is_active'] = parse_bool(data.get('is_active'), 'is_active', True)

    return cleaned


@tags_bp.route('', methods=['GET'])
@token_required
def list_tags(current_user_id):
    """List tags.

    Query params: include_inactive, with_counts, search, sort_by, sort_direction, page, per_page
    """
    page, per_page = pagination_args()
    include_inactive = parse_bool(request.args.get('include_inactive'), 'include_inactive', False)
    with_counts = parse_bool(request.args.get('with_counts'), 'with_counts', False)
    search = request.args.get('search', '').strip()

    sort_by = request.args.get('sort_by', 'name')
    if sort_by not in TAG_SORTS:
        sort_by = 'name'
    direction = request.args.get('sort_direction', 'asc')
    column = getattr(TranslationTag, sort_by)

    query = TranslationTag.query
    if not include_inactive:
        query = query.filter(TranslationTag.is_active.is_(True))
    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(
            TranslationTag.name.ilike(pattern),
            TranslationTag.slug.ilike(pattern),
            TranslationTag.description.ilike(pattern),
        ))
    query = query.order_by(column.desc() if direction == 'desc' else column.asc())
    result = query.paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        'tags': [tag.to_dict(with_counts=with_counts) for tag in result.items],
        'total': result.total,
        'pages': result.pages,
        'current_page': page,
        'per_page': per_page,
    }), 200


@tags_bp.route('/popular', methods=['GET'])
@token_required
def popular_tags(current_user_id):
    """Most used active tags, cached for an hour."""
    limit = parse_int(request.args.get('limit'), 'limit', default=10, minimum=1, maximum=50)
    tags = get_export_service().remember(
        popular_tags_key(limit),
        current_app.config.get('POPULAR_TAGS_CACHE_TTL', 3600),
        lambda: TranslationTag.most_used(limit),
        groups=('tags',),
    )
    return jsonify({'tags': tags}), 200


@tags_bp.route('', methods=['POST'])
@token_required
def create_tag(current_user_id):
    cleaned = validate_tag_payload(get_json_body())

    try:
        tag = TranslationTag(**cleaned)
        db.session.add(tag)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        return server_error('Failed to create tag.', e)

    invalidate('tag')
    logger.info(f"Tag created: {tag.slug}")

    return jsonify({
        'message': 'Tag created successfully.',
        'tag': tag.to_dict(),
    }), 201


@tags_bp.route('/<int:tag_id>', methods=['GET'])
@token_required
def get_tag(current_user_id, tag_id):
    return jsonify({'tag': get_tag_or_404(tag_id).to_dict(with_counts=True)}), 200


@tags_bp.route('/<int:tag_id>', methods=['PUT', 'PATCH'])
@token_required
def update_tag(current_user_id, tag_id):
    tag = get_tag_or_404(tag_id)
    cleaned = validate_tag_payload(get_json_body(), tag)

    try:
        for field, value in cleaned.items():
            setattr(tag, field, value)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        return server_error('Failed to update tag.', e)

    invalidate('tag', _tag_locale_codes(tag))

    return jsonify({
        'message': 'Tag updated successfully.',
        'tag': tag.to_dict(),
    }), 200


@tags_bp.route('/<int:tag_id>', methods=['DELETE'])
@token_required
def delete_tag(current_user_id, tag_id):
    """Delete a tag that no translation uses."""
    tag = get_tag_or_404(tag_id)
    if tag.has_translations():
        raise ValidationError(
            'Cannot delete a tag that is attached to translations.',
            errors={'tag': ['Cannot delete a tag that is attached to translations.']},
        )

    slug = tag.slug
    try:
        db.session.delete(tag)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        return server_error('Failed to delete tag.', e)

    invalidate('tag')
    logger.info(f"Tag deleted: {slug}")

    return jsonify({'message': 'Tag deleted successfully.'}), 200
