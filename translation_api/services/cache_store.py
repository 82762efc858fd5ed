"""Key-value cache stores with TTLs and explicit invalidation groups.

Both stores keep an index of group -> member keys so a whole group can be
flushed without scanning key patterns. Values are JSON documents.
"""

import json
import logging
import threading
import time

import redis

from translation_api.errors import TransientStoreError

logger = logging.getLogger(__name__)


class RedisCacheStore:
    """Cache store backed by Redis, shared across workers."""

    def __init__(self, client, prefix='tms:', group_ttl=86400):
        self.client = client
        self.prefix = prefix
        # Group sets outlive every member, then expire with them
        self.group_ttl = int(group_ttl)

    def _key(self, key):
        return f"{self.prefix}{key}"

    def _group_key(self, group):
        return f"{self.prefix}group:{group}"

    def get(self, key):
        try:
            raw = self.client.get(self._key(key))
        except redis.RedisError as e:
            raise TransientStoreError(f"Redis get failed for {key}: {e}") from e
        if raw is None:
            return None
        return json.loads(raw)

    def put(self, key, value, ttl, groups=()):
        try:
            pipe = self.client.pipeline()
            pipe.setex(self._key(key), int(ttl), json.dumps(value))
            for group in groups:
                group_key = self._group_key(group)
                pipe.sadd(group_key, key)
                pipe.expire(group_key, max(self.group_ttl, int(ttl)))
            pipe.execute()
        except redis.RedisError as e:
            raise TransientStoreError(f"Redis put failed for {key}: {e}") from e

    def forget(self, key):
        try:
            return bool(self.client.delete(self._key(key)))
        except redis.RedisError as e:
            raise TransientStoreError(f"Redis delete failed for {key}: {e}") from e

    def flush_group(self, group):
        """Delete every key registered under group. Returns the member count."""
        group_key = self._group_key(group)
        try:
            members = self.client.smembers(group_key)
            pipe = self.client.pipeline()
            if members:
                pipe.delete(*[self._key(self._decode(m)) for m in members])
            pipe.delete(group_key)
            pipe.execute()
        except redis.RedisError as e:
            raise TransientStoreError(f"Redis flush failed for group {group}: {e}") from e
        return len(members)

    def clear(self):
        try:
            keys = list(self.client.scan_iter(match=f"{self.prefix}*"))
            if keys:
                self.client.delete(*keys)
        except redis.RedisError as e:
            raise TransientStoreError(f"Redis clear failed: {e}") from e

    def describe(self):
        try:
            self.client.ping()
            connected = True
        except redis.RedisError:
            connected = False
        return {'driver': 'redis', 'connected': connected}

    @staticmethod
    def _decode(value):
        return value.decode('utf-8') if isinstance(value, bytes) else value


class MemoryCacheStore:
    """In-process cache store for tests and single-worker development."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._entries = {}  # key -> (expires_at, json text)
        self._groups = {}  # group -> set of keys

    def get(self, key):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, raw = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
        return json.loads(raw)

    def put(self, key, value, ttl, groups=()):
        raw = json.dumps(value)
        with self._lock:
            now = self._clock()
            self._prune(now)
            self._entries[key] = (now + int(ttl), raw)
            for group in groups:
                self._groups.setdefault(group, set()).add(key)

    def _prune(self, now):
        """Drop expired entries and their group memberships. Caller holds the lock."""
        expired = {k for k, (expires_at, _) in self._entries.items() if expires_at <= now}
        if not expired:
            return
        for k in expired:
            del self._entries[k]
        for group in list(self._groups):
            self._groups[group] -= expired
            if not self._groups[group]:
                del self._groups[group]

    def forget(self, key):
        with self._lock:
            return self._entries.pop(key, None) is not None

    def flush_group(self, group):
        with self._lock:
            members = self._groups.pop(group, set())
            for key in members:
                self._entries.pop(key, None)
        return len(members)

    def clear(self):
        with self._lock:
            self._entries.clear()
            self._groups.clear()

    def keys(self):
        with self._lock:
            now = self._clock()
            return sorted(k for k, (expires_at, _) in self._entries.items() if expires_at > now)

    def describe(self):
        return {'driver': 'memory', 'connected': True, 'entries': len(self.keys())}


def _longest_ttl(config):
    return max(
        int(config.get(name) or 0)
        for name in ('EXPORT_CACHE_TTL', 'TAG_EXPORT_CACHE_TTL', 'KEYS_EXPORT_CACHE_TTL',
                     'STATS_CACHE_TTL', 'POPULAR_TAGS_CACHE_TTL')
    ) or 86400


def create_cache_store(config):
    """Build the cache store selected by CACHE_BACKEND."""
    backend = config.get('CACHE_BACKEND', 'memory')
    prefix = config.get('CACHE_KEY_PREFIX', 'tms:')

    if backend == 'redis':
        redis_url = config.get('REDIS_URL')
        if not redis_url:
            logger.warning("REDIS_URL not set - falling back to in-memory export cache")
            return MemoryCacheStore()
        client = redis.from_url(redis_url, decode_responses=True)
        logger.info("Export cache using Redis")
        return RedisCacheStore(client, prefix=prefix, group_ttl=_longest_ttl(config))

    return MemoryCacheStore()
