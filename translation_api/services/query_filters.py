"""Translate request filters into SQLAlchemy queries over translations.

Every query built here joins ``Locale`` so locale filters and the locale
code column are always available. Filter maps use the parameter names the
API accepts; a name this module does not know is a programming error.
"""

from collections import namedtuple

from sqlalchemy import case, or_
from sqlalchemy.orm import contains_eager, selectinload

from translation_api import db
from translation_api.models import Locale, Translation, TranslationTag

RECOGNIZED_FILTERS = frozenset({
    'locale', 'tags', 'tag', 'active_only', 'active_locales', 'is_active', 'is_verified',
    'keys', 'locales', 'search', 'q', 'created_from', 'created_to',
})

ALLOWED_SORTS = ('key', 'value', 'created_at', 'updated_at', 'verified_at', 'is_verified_sort')
DEFAULT_SORT = 'created_at'
DEFAULT_DIRECTION = 'desc'

ExportRow = namedtuple('ExportRow', ['key', 'value', 'metadata', 'locale_code', 'is_active', 'updated_at'])


def split_slugs(value):
    """'ui, api,,mobile' -> ['ui', 'api', 'mobile']; lists pass through."""
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(',')
    return [v.strip() for v in value if v and v.strip()]


def _sort_column(sort_by):
    if sort_by == 'is_verified_sort':
        return case((Translation.verified_at.isnot(None), 1), else_=0)
    return getattr(Translation, sort_by)


def apply_filters(query, filters):
    """Add WHERE clauses for every non-empty filter."""
    unknown = set(filters) - RECOGNIZED_FILTERS
    if unknown:
        raise ValueError(f"Unrecognized filters: {', '.join(sorted(unknown))}")

    if filters.get('locale'):
        query = query.filter(Locale.code == filters['locale'])

    locales = split_slugs(filters.get('locales'))
    if locales:
        query = query.filter(Locale.code.in_(locales))

    tag_slugs = split_slugs(filters.get('tags')) + split_slugs(filters.get('tag'))
    if tag_slugs:
        query = query.filter(Translation.tags.any(TranslationTag.slug.in_(tag_slugs)))

    if filters.get('active_only'):
        query = query.filter(Translation.is_active.is_(True), Locale.is_active.is_(True))

    if filters.get('active_locales'):
        query = query.filter(Locale.is_active.is_(True))

    if filters.get('is_active') is not None:
        query = query.filter(Translation.is_active.is_(bool(filters['is_active'])))

    if filters.get('is_verified') is not None:
        if filters['is_verified']:
            query = query.filter(Translation.verified_at.isnot(None))
        else:
            query = query.filter(Translation.verified_at.is_(None))

    # An empty key list matches nothing
    if filters.get('keys') is not None:
        query = query.filter(Translation.key.in_(list(filters['keys'])))

    term = filters.get('search') or filters.get('q')
    if term:
        pattern = f'%{term}%'
        query = query.filter(or_(
            Translation.key.ilike(pattern),
            Translation.value.ilike(pattern),
            Translation.description.ilike(pattern),
        ))

    if filters.get('created_from'):
        query = query.filter(Translation.created_at >= filters['created_from'])

    if filters.get('created_to'):
        query = query.filter(Translation.created_at <= filters['created_to'])

    return query


def apply_search_ranking(query, term):
    """Key-prefix matches first, then value-prefix matches, then the rest; newest first in each tier."""
    prefix = f'{term}%'
    rank = case(
        (Translation.key.ilike(prefix), 1),
        (Translation.value.ilike(prefix), 2),
        else_=3,
    )
    return query.order_by(rank, Translation.created_at.desc(), Translation.id.desc())


def apply_sorting(query, sort_by=None, direction=None):
    """Order by an allow-listed field; anything else falls back to newest first."""
    if sort_by not in ALLOWED_SORTS:
        sort_by, direction = DEFAULT_SORT, DEFAULT_DIRECTION
    if direction not in ('asc', 'desc'):
        direction = DEFAULT_DIRECTION

    column = _sort_column(sort_by)
    ordered = column.asc() if direction == 'asc' else column.desc()
    return query.order_by(ordered, Translation.id.desc())


def translation_query(filters):
    """ORM query for management listings with locale and tags loaded."""
    query = (
        Translation.query
        .join(Translation.locale)
        .options(contains_eager(Translation.locale), selectinload(Translation.tags))
    )
    return apply_filters(query, filters)


def export_rows(filters):
    """Column-only fetch for exports, ordered by locale then key.

    Selecting plain columns keeps full-corpus exports (100k+ rows) away
    from ORM object construction.
    """
    query = (
        db.session.query(
            Translation.key,
            Translation.value,
            Translation.meta,
            Locale.code,
            Translation.is_active,
            Translation.updated_at,
        )
        .join(Locale, Translation.locale_id == Locale.id)
    )
    query = apply_filters(query, filters).order_by(Locale.code, Translation.key, Translation.id)
    return [ExportRow(*row) for row in query.all()]
