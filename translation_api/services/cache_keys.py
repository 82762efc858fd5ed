"""Deterministic cache fingerprints for export payloads.

A fingerprint looks like ``translations.export.locale.en.<hash>`` where the
hash covers a canonical (sorted-key) JSON encoding of the request parameters.
Two parameter maps that only differ in iteration order, or in whether a
default was spelled out, produce the same fingerprint.
"""

import hashlib
import json

EXPORT_NAMESPACE = 'translations.export'
STATS_CACHE_KEY = 'translations.stats'
EXPORT_ALL_CACHE_KEY = 'translations.export.all'

FORMATS = ('flat', 'nested')
DEFAULT_FORMAT = 'flat'

# Which params each export kind recognizes, with defaults
EXPORT_PARAM_DEFAULTS = {
    'locale': {'tags': [], 'format': DEFAULT_FORMAT, 'include_metadata': False},
    'all': {'tags': [], 'format': DEFAULT_FORMAT, 'include_metadata': False, 'active_only': True},
    'keys': {'keys': [], 'locales': [], 'format': DEFAULT_FORMAT, 'include_metadata': False},
    'tag': {'locales': [], 'format': DEFAULT_FORMAT, 'include_metadata': False},
}


def _canonical(value):
    if isinstance(value, dict):
        return {str(k): _canonical(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted(_canonical(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    return value


def canonical_params(params):
    """Serialize params with sorted keys and compact separators."""
    return json.dumps(_canonical(params or {}), sort_keys=True, separators=(',', ':'), default=str)


def params_hash(params):
    """128-bit content hash of the canonical param encoding."""
    return hashlib.sha256(canonical_params(params).encode('utf-8')).hexdigest()[:32]


def derive(kind, identifier, params):
    """Build the cache fingerprint for an export request."""
    return f"{EXPORT_NAMESPACE}.{kind}.{identifier}.{params_hash(params)}"


def locale_export_key(code):
    return f"{EXPORT_NAMESPACE}.{code}"


def popular_tags_key(limit):
    return f"tags.popular.{limit}"


def _unique_sorted(values):
    return sorted({v for v in (values or []) if v})


def normalize_export_params(kind, **params):
    """Fill defaults and order list params so equal requests hash equally.

    Tag and locale filters have any-of semantics, so their order and
    duplicates do not matter. Requested keys are sorted too: the cached
    payload is a map keyed by translation key.
    """
    if kind not in EXPORT_PARAM_DEFAULTS:
        raise ValueError(f"Unknown export kind: {kind}")

    defaults = EXPORT_PARAM_DEFAULTS[kind]
    unknown = set(params) - set(defaults)
    if unknown:
        raise ValueError(f"Unknown params for {kind} export: {', '.join(sorted(unknown))}")

    normalized = {}
    for name, default in defaults.items():
        value = params.get(name)
        if value is None:
            value = default
        if isinstance(default, list):
            value = _unique_sorted(value)
        elif isinstance(default, bool):
            value = bool(value)
        normalized[name] = value

    if normalized['format'] not in FORMATS:
        raise ValueError(f"Unknown format: {normalized['format']}")

    return normalized
