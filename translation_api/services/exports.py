"""Cached JSON exports of translation data.

Each export request goes through the same cycle:

    lookup -> hit: return stored payload
           -> miss: fetch rows -> shape -> store (kind TTL, invalidation groups)

and, for the locale and full-corpus exports, an optional push of the
response body to the CDN mirror with ``meta.cdn_url`` pointing at it.

A failed fetch is never cached and never replaced by a stale or empty
payload: it surfaces as ``TransientStoreError``.
"""

import logging
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from translation_api import db
from translation_api.errors import TransientStoreError
from translation_api.models import Locale, Translation, normalize_key
from translation_api.services import cache_keys
from translation_api.services.cdn import export_path
from translation_api.services.query_filters import export_rows
from translation_api.services.shaping import shape, group_by_locale, first_per_key

logger = logging.getLogger(__name__)

# Every export depends on translations, locale activeness and tag links
BASE_GROUPS = ('translations', 'locales', 'tags')


def locale_group(code):
    return f"locale:{code}"


def now_iso():
    return datetime.now(timezone.utc).isoformat()


def _last_updated(rows):
    stamps = [row.updated_at for row in rows if row.updated_at is not None]
    return max(stamps).isoformat() if stamps else None


def _groups_for(codes):
    return list(BASE_GROUPS) + [locale_group(code) for code in sorted(set(codes))]


class ExportService:
    """Serves export payloads from the cache store, computing them on a miss."""

    def __init__(self, store, cdn=None, ttls=None):
        self.store = store
        self.cdn = cdn
        self.ttls = {
            'export': 300,
            'tag': 600,
            'keys': 300,
            'stats': 1800,
        }
        self.ttls.update(ttls or {})

    def remember(self, key, ttl, compute, groups=BASE_GROUPS):
        """Return the cached value for key, computing and storing it on a miss."""
        cached = self.store.get(key)
        if cached is not None:
            logger.debug(f"Export cache hit: {key}")
            return cached

        logger.debug(f"Export cache miss: {key}")
        try:
            data = compute()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise TransientStoreError(f"Translation store unavailable: {e}") from e

        group_list = groups(data) if callable(groups) else list(groups)
        self.store.put(key, data, ttl, groups=group_list)
        return data

    def _mirror(self, response, kind, identifier, params):
        if self.cdn is None or not self.cdn.enabled:
            return
        path = export_path(kind, identifier, cache_keys.params_hash(params))
        response['meta']['cdn_url'] = self.cdn.url_for(path)
        self.cdn.mirror(path, response)

    def export_locale(self, code, tags=None, fmt=None, include_metadata=False):
        """Active translations of one locale, optionally limited to tags."""
        params = cache_keys.normalize_export_params(
            'locale', tags=tags, format=fmt, include_metadata=include_metadata,
        )
        key = cache_keys.derive('locale', code, params)

        def compute():
            rows = export_rows({'locale': code, 'tags': params['tags'], 'active_only': True})
            return {
                'translations': shape(rows, params['format'], params['include_metadata']),
                'total_count': len(rows),
                'active_count': sum(1 for row in rows if row.is_active),
                'last_updated': _last_updated(rows),
            }

        data = self.remember(key, self.ttls['export'], compute, groups=_groups_for([code]))

        response = {
            'locale': code,
            'translations': data['translations'],
            'meta': {
                'total_count': data['total_count'],
                'active_count': data['active_count'],
                'last_updated': data['last_updated'],
                'generated_at': now_iso(),
                'cache_key': key,
            },
        }
        self._mirror(response, 'locale', code, params)
        return response

    def export_all(self, tags=None, active_only=True, fmt=None, include_metadata=False):
        """Every locale's translations, grouped by locale code."""
        params = cache_keys.normalize_export_params(
            'all', tags=tags, active_only=active_only, format=fmt, include_metadata=include_metadata,
        )
        key = cache_keys.derive('all', 'all', params)

        def compute():
            # Inactive locales stay out even when inactive translations are requested
            rows = export_rows({
                'tags': params['tags'],
                'active_only': params['active_only'],
                'active_locales': True,
            })
            translations = group_by_locale(rows, params['format'], params['include_metadata'])
            return {
                'locales': list(translations),
                'translations': translations,
                'total_count': len(rows),
                'last_updated': _last_updated(rows),
            }

        data = self.remember(
            key, self.ttls['export'], compute,
            groups=lambda d: _groups_for(d['locales']),
        )

        response = {
            'locales': data['locales'],
            'translations': data['translations'],
            'meta': {
                'total_locales': len(data['locales']),
                'total_translations': data['total_count'],
                'last_updated': data['last_updated'],
                'generated_at': now_iso(),
                'cache_key': key,
            },
        }
        self._mirror(response, 'all', 'all', params)
        return response

    def export_keys(self, keys, locales=None, fmt=None, include_metadata=False):
        """Look up specific keys across locales, first match per (locale, key)."""
        lookup_keys = [normalize_key(k) for k in keys]
        params = cache_keys.normalize_export_params(
            'keys', keys=lookup_keys, locales=locales, format=fmt, include_metadata=include_metadata,
        )
        key = cache_keys.derive('keys', 'batch', params)

        def compute():
            rows = export_rows({'keys': params['keys'], 'locales': params['locales'], 'active_only': True})
            return {
                'translations': first_per_key(rows, params['format'], params['include_metadata']),
                'found_count': len(rows),
            }

        data = self.remember(
            key, self.ttls['keys'], compute,
            groups=lambda d: _groups_for(d['translations']),
        )

        return {
            'keys': list(keys),
            'translations': data['translations'],
            'meta': {
                'requested_keys': len(keys),
                'found_translations': data['found_count'],
                'generated_at': now_iso(),
            },
        }

    def export_tag(self, slug, locales=None, fmt=None, include_metadata=False):
        """Active translations carrying one tag, grouped by locale."""
        params = cache_keys.normalize_export_params(
            'tag', locales=locales, format=fmt, include_metadata=include_metadata,
        )
        key = cache_keys.derive('tag', slug, params)

        def compute():
            rows = export_rows({'tag': slug, 'locales': params['locales'], 'active_only': True})
            translations = group_by_locale(rows, params['format'], params['include_metadata'])
            return {
                'translations': translations,
                'total_count': len(rows),
                'locales': list(translations),
            }

        data = self.remember(
            key, self.ttls['tag'], compute,
            groups=lambda d: _groups_for(d['locales']),
        )

        return {
            'tag': slug,
            'translations': data['translations'],
            'meta': {
                'total_count': data['total_count'],
                'locales': data['locales'],
                'generated_at': now_iso(),
            },
        }

    def stats(self):
        """Global counts, cached under a fixed key regardless of params."""
        data = self.remember(cache_keys.STATS_CACHE_KEY, self.ttls['stats'], compute_stats)
        return {
            'stats': data,
            'cache': {
                'generated_at': now_iso(),
                'ttl_seconds': self.ttls['stats'],
            },
        }


def compute_stats():
    per_locale_count = func.count(Translation.id).label('count')
    per_locale = (
        db.session.query(Locale.code, Locale.name, per_locale_count)
        .join(Translation, Translation.locale_id == Locale.id)
        .filter(Translation.is_active.is_(True), Locale.is_active.is_(True))
        .group_by(Locale.code, Locale.name)
        .order_by(per_locale_count.desc(), Locale.code)
        .all()
    )
    last_updated = db.session.query(func.max(Translation.updated_at)).scalar()

    return {
        'total_translations': Translation.query.count(),
        'active_translations': Translation.query.filter(Translation.is_active.is_(True)).count(),
        'verified_translations': Translation.query.filter(Translation.verified_at.isnot(None)).count(),
        'total_locales': Locale.query.filter(Locale.is_active.is_(True)).count(),
        'translations_per_locale': [
            {'code': code, 'name': name, 'count': count} for code, name, count in per_locale
        ],
        'last_updated': last_updated.isoformat() if last_updated else None,
    }


def get_export_service():
    """ExportService wired to the current app's cache store and CDN mirror."""
    config = current_app.config
    return ExportService(
        store=current_app.extensions['translation_cache'],
        cdn=current_app.extensions.get('translation_cdn'),
        ttls={
            'export': config.get('EXPORT_CACHE_TTL', 300),
            'tag': config.get('TAG_EXPORT_CACHE_TTL', 600),
            'keys': config.get('KEYS_EXPORT_CACHE_TTL', 300),
            'stats': config.get('STATS_CACHE_TTL', 1800),
        },
    )
