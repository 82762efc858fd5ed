"""CDN mirror for export payloads, backed by Supabase Storage.

Exports are pushed to a public bucket that sits behind the CDN, e.g.
``exports/locale/en/<params-hash>.json``. Pushes are best effort: a failed
upload is logged and never fails the request that triggered it.
"""

import atexit
import json
import logging
from concurrent.futures import ThreadPoolExecutor

from supabase import create_client

from translation_api.errors import CdnMirrorError

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = 'application/json'
CACHE_CONTROL = '3600'


class SupabaseCdnSink:
    """Object-store sink exposing put(path, bytes) and a public base URL."""

    def __init__(self, base_url, bucket, supabase_url=None, supabase_key=None, enabled=True):
        self.base_url = (base_url or '').rstrip('/')
        self.bucket = bucket
        self._supabase_url = supabase_url
        self._supabase_key = supabase_key
        self._client = None
        self.enabled = bool(enabled and self.base_url)

    def _get_client(self):
        """Get or create Supabase client (lazy initialization)."""
        if self._client is None:
            if not self._supabase_url or not self._supabase_key:
                self.enabled = False
                raise CdnMirrorError('Supabase credentials not configured, CDN mirror disabled')
            try:
                self._client = create_client(self._supabase_url, self._supabase_key)
            except Exception as e:
                logger.error(f'Failed to initialize Supabase client: {e}')
                self.enabled = False
                raise CdnMirrorError(f'Supabase client unavailable: {e}') from e
            logger.info('Supabase client initialized for CDN mirror')
        return self._client

    def put(self, path, data):
        """Upload bytes to path, overwriting any previous object."""
        if not self.enabled:
            return False
        try:
            client = self._get_client()
            client.storage.from_(self.bucket).upload(
                path=path,
                file=data,
                file_options={
                    'content-type': JSON_CONTENT_TYPE,
                    'cache-control': CACHE_CONTROL,
                    'upsert': 'true',
                },
            )
        except Exception as e:
            raise CdnMirrorError(f'Upload of {path} failed: {e}') from e
        logger.debug(f'Mirrored export to {self.bucket}/{path}')
        return True

    def url_for(self, path):
        return f"{self.base_url}/{path.lstrip('/')}"


class CdnMirror:
    """Pushes export payloads to a sink, inline or on a small thread pool."""

    def __init__(self, sink, run_async=True, max_workers=2):
        self.sink = sink
        self.run_async = run_async
        self._executor = ThreadPoolExecutor(max_workers=max_workers) if run_async else None
        if self._executor is not None:
            atexit.register(self.shutdown)

    @property
    def enabled(self):
        return bool(self.sink is not None and getattr(self.sink, 'enabled', True))

    def url_for(self, path):
        return self.sink.url_for(path)

    def mirror(self, path, payload):
        """Schedule a push of payload to path. Never raises."""
        if not self.enabled:
            return False
        data = json.dumps(payload, ensure_ascii=False, indent=2).encode('utf-8')
        executor = self._executor
        if executor is not None:
            try:
                executor.submit(self._push_safe, path, data)
                return True
            except RuntimeError:
                # pool shut down after the check
                logger.debug(f'CDN pool closed, pushing {path} inline')
        return self._push_safe(path, data)

    def shutdown(self, wait=True):
        """Stop the pool, letting in-flight pushes finish. Later pushes run inline."""
        executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    def _push_safe(self, path, data):
        # CDN failures should never cause the export request to fail
        try:
            ok = self.sink.put(path, data)
        except Exception as e:
            logger.warning(f'CDN mirror error (non-critical): {e}')
            return False
        if not ok:
            logger.warning(f'CDN mirror refused {path}')
        return bool(ok)


def export_path(kind, identifier, param_hash):
    return f"exports/{kind}/{identifier}/{param_hash}.json"


def create_cdn_sink(config):
    """Build the CDN mirror from config. Disabled unless CDN_ENABLED and CDN_BASE_URL are set."""
    sink = SupabaseCdnSink(
        base_url=config.get('CDN_BASE_URL'),
        bucket=config.get('CDN_BUCKET', 'translation-exports'),
        supabase_url=config.get('SUPABASE_URL'),
        supabase_key=config.get('SUPABASE_SERVICE_KEY'),
        enabled=config.get('CDN_ENABLED', False),
    )
    if sink.enabled:
        logger.info(f'CDN mirroring enabled: {sink.base_url}')
    return CdnMirror(sink, run_async=config.get('CDN_MIRROR_ASYNC', True))
