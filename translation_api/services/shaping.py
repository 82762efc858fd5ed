"""Turn translation rows into the JSON shapes served by the export endpoints.

Rows are anything with ``key``, ``value``, ``metadata`` and (for grouped
exports) ``locale_code`` attributes: SQLAlchemy result rows in production,
plain namedtuples in tests.

Formats:
- flat:   {"welcome.message": "Welcome!"}
- nested: {"welcome": {"message": "Welcome!"}}

With ``include_metadata`` every leaf becomes ``{"value": ..., "metadata": ...}``.
"""

from translation_api.services.cache_keys import FORMATS


def format_value(row, include_metadata=False):
    if include_metadata:
        return {'value': row.value, 'metadata': row.metadata or {}}
    return row.value


def set_nested(tree, dotted_key, value):
    """Write value at a dot-path, creating intermediate objects.

    A segment that already holds a leaf is replaced by an object, so
    'a.b' followed by 'a.b.c' silently drops the 'a.b' value.
    """
    current = tree
    parts = dotted_key.split('.')
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]
    current[parts[-1]] = value
    return tree


def flatten(tree, include_metadata=False, prefix=''):
    """Inverse of nested shaping: {"a": {"b": "x"}} -> {"a.b": "x"}."""
    flat = {}
    for name, value in tree.items():
        path = f"{prefix}.{name}" if prefix else name
        is_leaf = not isinstance(value, dict) or (include_metadata and set(value) == {'value', 'metadata'})
        if is_leaf:
            flat[path] = value
        else:
            flat.update(flatten(value, include_metadata, path))
    return flat


def shape(rows, fmt='flat', include_metadata=False):
    """Shape rows into a flat or nested mapping."""
    if fmt not in FORMATS:
        raise ValueError(f"Unknown format: {fmt}")

    shaped = {}
    for row in rows:
        value = format_value(row, include_metadata)
        if fmt == 'nested':
            set_nested(shaped, row.key, value)
        else:
            shaped[row.key] = value
    return shaped


def group_rows(rows):
    """Group rows by locale code, keeping first-seen order."""
    groups = {}
    for row in rows:
        groups.setdefault(row.locale_code, []).append(row)
    return groups


def group_by_locale(rows, fmt='flat', include_metadata=False):
    """{locale_code: shaped translations} for multi-locale exports."""
    return {
        code: shape(locale_rows, fmt, include_metadata)
        for code, locale_rows in group_rows(rows).items()
    }


def first_per_key(rows, fmt='flat', include_metadata=False):
    """Keyed lookups: keep only the first row per (locale, key)."""
    grouped = {}
    for code, locale_rows in group_rows(rows).items():
        seen = {}
        for row in locale_rows:
            if row.key not in seen:
                seen[row.key] = row
        grouped[code] = shape(seen.values(), fmt, include_metadata)
    return grouped
