"""
Health, auth and error handling smoke tests.
"""

import jwt

from translation_api import create_app


class TestHealthEndpoints:
    """Verify the server boots and responds."""

    def test_root_health(self, client):
        resp = client.get('/health')
        assert resp.status_code == 200
        assert resp.get_json()['status'] == 'ok'

    def test_api_health(self, client, db_session):
        resp = client.get('/api/health')

        assert resp.status_code == 200
        data = resp.get_json()
        assert data['status'] == 'ok'
        assert data['database'] == 'ok'
        assert data['cache']['driver'] == 'memory'

    def test_metrics(self, client, seed_data):
        resp = client.get('/api/metrics')

        assert resp.status_code == 200
        data = resp.get_json()
        assert data['translations'] == 3
        assert data['locales'] == 2
        assert data['cdn_enabled'] is False


class TestErrors:
    def test_unknown_route_is_json(self, client):
        resp = client.get('/api/nope')
        assert resp.status_code == 404
        assert 'error' in resp.get_json()

    def test_method_not_allowed_is_json(self, client):
        resp = client.delete('/api/export/stats')
        assert resp.status_code == 405
        assert 'error' in resp.get_json()


class TestAuth:
    """token_required outside testing mode."""

    def make_app(self, monkeypatch):
        monkeypatch.setenv('JWT_SECRET_KEY', 'auth-test-secret')
        app = create_app('testing')
        app.config['TESTING'] = False
        app.config['JWT_SECRET_KEY'] = 'auth-test-secret'
        return app

    def test_missing_token(self, monkeypatch):
        app = self.make_app(monkeypatch)
        resp = app.test_client().get('/api/metrics')
        assert resp.status_code == 401
        assert resp.get_json()['error'] == 'Token is missing'

    def test_invalid_token(self, monkeypatch):
        app = self.make_app(monkeypatch)
        resp = app.test_client().get('/api/metrics', headers={'Authorization': 'Bearer nope'})
        assert resp.status_code == 401

    def test_valid_token(self, monkeypatch):
        app = self.make_app(monkeypatch)
        token = jwt.encode({'user_id': 42}, 'auth-test-secret', algorithm='HS256')
        resp = app.test_client().get('/api/metrics', headers={'Authorization': f'Bearer {token}'})
        assert resp.status_code == 200

    def test_exports_are_public(self, monkeypatch):
        app = self.make_app(monkeypatch)
        assert app.test_client().get('/api/export/stats').status_code == 200
