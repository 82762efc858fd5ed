"""Cache invalidation after writes to translations, locales and tags.

Invalidation is conservative: clearing too much only costs a recompute,
leaving a stale export reachable is a bug. Call these only after the
write's transaction has committed, otherwise a concurrent export could
repopulate the cache from pre-commit data.
"""

import logging

from flask import current_app

from translation_api.services.cache_keys import (
    EXPORT_ALL_CACHE_KEY,
    STATS_CACHE_KEY,
    locale_export_key,
)
from translation_api.services.exports import locale_group

logger = logging.getLogger(__name__)

ENTITY_KINDS = ('translation', 'locale', 'tag')


def _codes(locale_codes):
    return sorted({code for code in (locale_codes or ()) if code})


class CacheInvalidator:
    """Maps a write to the cache groups and keys it can affect."""

    def __init__(self, store):
        self.store = store

    def on_write(self, entity_kind, locale_codes=(), bulk=False):
        """Entry point for every write: entity kind plus the locale codes it touched."""
        if bulk:
            return self.on_bulk_write()
        if entity_kind == 'translation':
            return self.on_translation_write(locale_codes)
        if entity_kind == 'locale':
            return self.on_locale_write(locale_codes)
        if entity_kind == 'tag':
            return self.on_tag_write(locale_codes)
        raise ValueError(f"Unknown entity kind: {entity_kind}")

    def on_translation_write(self, locale_codes):
        """A translation in these locales changed. Pass old and new codes on a move."""
        codes = _codes(locale_codes)
        groups = ['translations'] + [locale_group(code) for code in codes]
        keys = [locale_export_key(code) for code in codes] + [EXPORT_ALL_CACHE_KEY, STATS_CACHE_KEY]
        return self._invalidate(groups, keys)

    def on_locale_write(self, locale_codes):
        """A locale was created, updated or deleted. Pass old and new codes on a rename."""
        codes = _codes(locale_codes)
        groups = ['locales'] + [locale_group(code) for code in codes]
        return self._invalidate(groups, [STATS_CACHE_KEY])

    def on_tag_write(self, locale_codes=()):
        """A tag changed or was attached/detached; exports filter by tag, so translations go too."""
        flushed = self._invalidate(['tags'], [])
        return flushed + self.on_translation_write(locale_codes)

    def on_bulk_write(self):
        """Bulk actions may span any locale and a bulk delete detaches tag links."""
        return self._invalidate(['translations', 'tags'], [EXPORT_ALL_CACHE_KEY, STATS_CACHE_KEY])

    def _invalidate(self, groups, keys):
        flushed = 0
        for group in groups:
            flushed += self.store.flush_group(group)
        for key in keys:
            self.store.forget(key)
        logger.info(f"Cache invalidated: groups={groups} keys={keys} entries={flushed}")
        return flushed


def get_invalidator():
    return CacheInvalidator(current_app.extensions['translation_cache'])


def invalidate(entity_kind, locale_codes=(), bulk=False):
    """Run invalidation against the current app's cache store."""
    return get_invalidator().on_write(entity_kind, locale_codes, bulk=bulk)
