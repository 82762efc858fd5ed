"""
Tests for export cache fingerprints.
"""

import pytest

from translation_api.services.cache_keys import (
    STATS_CACHE_KEY,
    canonical_params,
    derive,
    locale_export_key,
    normalize_export_params,
    params_hash,
    popular_tags_key,
)


class TestDerive:
    """Tests for derive()"""

    def test_key_layout(self):
        key = derive('locale', 'en', {'format': 'flat'})
        prefix, hash_part = key.rsplit('.', 1)

        assert prefix == 'translations.export.locale.en'
        assert len(hash_part) == 32
        assert int(hash_part, 16) >= 0

    def test_same_params_same_key(self):
        params = {'tags': ['ui'], 'format': 'nested', 'include_metadata': True}
        assert derive('locale', 'en', params) == derive('locale', 'en', dict(params))

    def test_param_order_does_not_matter(self):
        first = {'format': 'flat', 'tags': ['api'], 'include_metadata': False}
        second = {'include_metadata': False, 'tags': ['api'], 'format': 'flat'}
        assert derive('all', 'all', first) == derive('all', 'all', second)

    def test_nested_map_order_does_not_matter(self):
        assert canonical_params({'a': {'y': 1, 'x': 2}}) == canonical_params({'a': {'x': 2, 'y': 1}})

    def test_sets_encode_as_sorted_lists(self):
        assert canonical_params({'tags': {'b', 'a'}}) == canonical_params({'tags': ['a', 'b']})

    @pytest.mark.parametrize('kind, identifier, params', [
        ('tag', 'en', {'format': 'flat'}),
        ('locale', 'fr', {'format': 'flat'}),
        ('locale', 'en', {'format': 'nested'}),
        ('locale', 'en', {'format': 'flat', 'tags': ['ui']}),
    ])
    def test_any_field_change_changes_key(self, kind, identifier, params):
        assert derive(kind, identifier, params) != derive('locale', 'en', {'format': 'flat'})

    def test_params_hash_matches_key_suffix(self):
        params = {'format': 'flat'}
        assert derive('locale', 'en', params).endswith(params_hash(params))


class TestNormalizeExportParams:
    """Tests for normalize_export_params()"""

    def test_defaults_filled_in(self):
        assert normalize_export_params('locale') == {
            'tags': [],
            'format': 'flat',
            'include_metadata': False,
        }

    def test_explicit_defaults_fingerprint_like_omitted(self):
        omitted = normalize_export_params('all')
        explicit = normalize_export_params('all', tags=[], format='flat', include_metadata=False, active_only=True)
        assert derive('all', 'all', omitted) == derive('all', 'all', explicit)

    def test_tag_lists_deduplicated_and_sorted(self):
        params = normalize_export_params('locale', tags=['web', 'api', 'web'])
        assert params['tags'] == ['api', 'web']

    def test_tag_order_does_not_change_key(self):
        first = normalize_export_params('locale', tags=['web', 'api'])
        second = normalize_export_params('locale', tags=['api', 'web'])
        assert derive('locale', 'en', first) == derive('locale', 'en', second)

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            normalize_export_params('everything')

    def test_unknown_param_rejected(self):
        with pytest.raises(ValueError):
            normalize_export_params('locale', active_only=False)

    def test_unknown_format_rejected(self):
        with pytest.raises(ValueError):
            normalize_export_params('tag', format='yaml')


def test_fixed_keys():
    assert STATS_CACHE_KEY == 'translations.stats'
    assert locale_export_key('en') == 'translations.export.en'
    assert popular_tags_key(10) == 'tags.popular.10'
