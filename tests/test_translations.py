"""
Tests for translation management endpoints.
"""

import pytest
from faker import Faker

from translation_api import db
from translation_api.models import Translation

fake = Faker()


class TestListTranslations:
    """Tests for GET /api/translations"""

    def test_list_empty(self, client, db_session):
        response = client.get('/api/translations')

        assert response.status_code == 200
        assert response.json['translations'] == []
        assert response.json['total'] == 0

    def test_list_with_data(self, client, seed_data):
        response = client.get('/api/translations')

        assert response.status_code == 200
        assert response.json['total'] == 3
        assert response.json['per_page'] == 15
        first = response.json['translations'][0]
        assert {'key', 'value', 'locale', 'tags', 'metadata', 'is_verified'} <= set(first)

    def test_filter_by_locale(self, client, seed_data):
        response = client.get('/api/translations?locale=fr')
        assert [t['value'] for t in response.json['translations']] == ['Bienvenue!']

    def test_filter_by_tag(self, client, seed_data):
        response = client.get('/api/translations?tag=ui')
        assert response.json['total'] == 1

    def test_filter_unknown_locale(self, client, seed_data):
        assert client.get('/api/translations?locale=de').status_code == 422

    def test_sorting(self, client, seed_data):
        response = client.get('/api/translations?locale=en&sort_by=key&sort_direction=asc')
        assert [t['key'] for t in response.json['translations']] == ['app.title', 'welcome.message']

    def test_pagination(self, client, seed_data):
        response = client.get('/api/translations?page=2&per_page=2')

        assert response.status_code == 200
        assert len(response.json['translations']) == 1
        assert response.json['pages'] == 2
        assert response.json['current_page'] == 2

    def test_per_page_bounds(self, client, seed_data):
        assert client.get('/api/translations?per_page=101').status_code == 422
        assert client.get('/api/translations?per_page=0').status_code == 422


class TestSearchTranslations:
    """Tests for GET /api/translations/search"""

    def test_search_ranked(self, client, seed_data):
        response = client.get('/api/translations/search?q=welcome')

        assert response.status_code == 200
        assert response.json['total'] == 2
        assert response.json['query'] == 'welcome'

    def test_search_by_value(self, client, seed_data):
        response = client.get('/api/translations/search?q=bienvenue')
        assert [t['locale']['code'] for t in response.json['translations']] == ['fr']

    def test_search_too_short(self, client, seed_data):
        assert client.get('/api/translations/search?q=w').status_code == 422


class TestCreateTranslation:
    """Tests for POST /api/translations"""

    def test_create_success(self, client, seed_data):
        data = {
            'key': ' Checkout.Pay_Button ',
            'value': fake.sentence(),
            'locale_id': seed_data['fr'],
            'description': 'Pay button label',
            'metadata': {'context': 'checkout'},
            'tag_ids': [seed_data['ui']],
        }

        response = client.post('/api/translations', json=data)

        assert response.status_code == 201
        created = response.json['translation']
        assert created['key'] == 'checkout.pay_button'
        assert created['metadata'] == {'context': 'checkout'}
        assert [tag['slug'] for tag in created['tags']] == ['ui']

    def test_create_visible_in_export(self, client, seed_data):
        client.get('/api/export/locale/fr')

        client.post('/api/translations', json={
            'key': 'nav.home', 'value': 'Accueil', 'locale_id': seed_data['fr'],
        })

        translations = client.get('/api/export/locale/fr').json['translations']
        assert translations['nav.home'] == 'Accueil'

    def test_create_duplicate_key_in_locale(self, client, seed_data):
        response = client.post('/api/translations', json={
            'key': 'WELCOME.message', 'value': 'Again', 'locale_id': seed_data['en'],
        })
        assert response.status_code == 422
        assert 'key' in response.json['errors']

    @pytest.mark.parametrize('payload', [
        {'value': 'x'},
        {'key': 'bad key!', 'value': 'x'},
        {'key': 'a' * 256, 'value': 'x'},
        {'key': 'ok.key', 'value': ''},
        {'key': 'ok.key', 'value': 'x', 'description': 'd' * 1001},
        {'key': 'ok.key', 'value': 'x', 'metadata': {'n': 1}},
        {'key': 'ok.key', 'value': 'x', 'metadata': {'n': 'v' * 501}},
        {'key': 'ok.key', 'value': 'x', 'tag_ids': [9999]},
    ])
    def test_create_invalid(self, client, seed_data, payload):
        payload.setdefault('locale_id', seed_data['en'])
        assert client.post('/api/translations', json=payload).status_code == 422

    def test_create_unknown_locale(self, client, seed_data):
        response = client.post('/api/translations', json={'key': 'a.b', 'value': 'x', 'locale_id': 9999})
        assert response.status_code == 422

    def test_create_requires_json_object(self, client, seed_data):
        assert client.post('/api/translations', json=['not', 'an', 'object']).status_code == 422


class TestGetTranslation:
    """Tests for GET /api/translations/:id"""

    def test_get_success(self, client, seed_data):
        response = client.get(f"/api/translations/{seed_data['welcome_en']}")

        assert response.status_code == 200
        assert response.json['translation']['value'] == 'Welcome!'

    def test_get_not_found(self, client, db_session):
        assert client.get('/api/translations/99999').status_code == 404


class TestUpdateTranslation:
    """Tests for PUT/PATCH /api/translations/:id"""

    def test_update_value(self, client, seed_data):
        response = client.patch(f"/api/translations/{seed_data['title_en']}", json={'value': 'Your App'})

        assert response.status_code == 200
        assert response.json['translation']['value'] == 'Your App'
        assert response.json['translation']['key'] == 'app.title'

    def test_update_into_existing_key(self, client, seed_data):
        response = client.patch(f"/api/translations/{seed_data['title_en']}", json={'key': 'welcome.message'})
        assert response.status_code == 422

    def test_update_clears_tags(self, client, seed_data):
        response = client.put(f"/api/translations/{seed_data['welcome_en']}", json={'tag_ids': []})

        assert response.status_code == 200
        assert response.json['translation']['tags'] == []
        assert client.get('/api/export/tag/ui').json['translations'] == {}

    def test_update_not_found(self, client, db_session):
        assert client.patch('/api/translations/99999', json={'value': 'x'}).status_code == 404


class TestDeleteTranslation:
    """Tests for DELETE /api/translations/:id"""

    def test_delete_success(self, client, seed_data):
        client.get('/api/export/locale/en')

        response = client.delete(f"/api/translations/{seed_data['welcome_en']}")

        assert response.status_code == 200
        assert db.session.get(Translation, seed_data['welcome_en']) is None
        assert client.get('/api/export/locale/en').json['translations'] == {'app.title': 'My App'}

    def test_delete_not_found(self, client, db_session):
        assert client.delete('/api/translations/99999').status_code == 404


class TestBulkTranslations:
    """Tests for POST /api/translations/bulk"""

    def test_bulk_deactivate(self, client, seed_data):
        client.get('/api/export/all')

        response = client.post('/api/translations/bulk', json={
            'action': 'deactivate',
            'ids': [seed_data['welcome_en'], seed_data['welcome_fr']],
        })

        assert response.status_code == 200
        assert response.json['affected_count'] == 2
        exported = client.get('/api/export/all').json
        assert exported['translations'] == {'en': {'app.title': 'My App'}}

    def test_bulk_verify_records_user(self, client, seed_data):
        client.post('/api/translations/bulk', json={'action': 'verify', 'ids': [seed_data['title_en']]})

        translation = db.session.get(Translation, seed_data['title_en'])
        assert translation.is_verified
        assert translation.verified_by == 1

    def test_bulk_unverify(self, client, seed_data):
        ids = [seed_data['title_en']]
        client.post('/api/translations/bulk', json={'action': 'verify', 'ids': ids})
        client.post('/api/translations/bulk', json={'action': 'unverify', 'ids': ids})

        translation = db.session.get(Translation, seed_data['title_en'])
        assert translation.verified_at is None
        assert translation.verified_by is None

    def test_bulk_delete(self, client, seed_data):
        response = client.post('/api/translations/bulk', json={
            'action': 'delete', 'ids': [seed_data['welcome_en'], seed_data['title_en']],
        })

        assert response.status_code == 200
        assert Translation.query.count() == 1

    def test_bulk_delete_refreshes_popular_tags(self, client, seed_data):
        before = {t['slug']: t['translations_count'] for t in client.get('/api/tags/popular').json['tags']}
        assert before == {'ui': 1, 'api': 0}

        client.post('/api/translations/bulk', json={'action': 'delete', 'ids': [seed_data['welcome_en']]})

        after = {t['slug']: t['translations_count'] for t in client.get('/api/tags/popular').json['tags']}
        assert after == {'ui': 0, 'api': 0}

    @pytest.mark.parametrize('payload', [
        {'action': 'explode', 'ids': [1]},
        {'action': 'delete', 'ids': []},
        {'action': 'delete', 'ids': list(range(1, 102))},
        {'action': 'delete', 'ids': ['1']},
        {'action': 'delete', 'ids': [99999]},
    ])
    def test_bulk_invalid(self, client, seed_data, payload):
        assert client.post('/api/translations/bulk', json=payload).status_code == 422
