"""
Pytest configuration and fixtures for testing the Translation API.
"""

import os
import sys
from collections import namedtuple

import pytest
from faker import Faker

# Add the parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from translation_api import create_app, db
from translation_api.models import Locale, Translation, TranslationTag
from translation_api.services.cdn import CdnMirror

fake = Faker()

Row = namedtuple('Row', ['key', 'value', 'metadata', 'locale_code'])


class RecordingSink:
    """CDN sink double that records uploads instead of sending them."""

    base_url = 'https://cdn.test'

    def __init__(self, fail=False):
        self.fail = fail
        self.enabled = True
        self.uploads = {}

    def put(self, path, data):
        if self.fail:
            raise RuntimeError('bucket unreachable')
        self.uploads[path] = data
        return True

    def url_for(self, path):
        return f"{self.base_url}/{path}"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    os.environ['FLASK_ENV'] = 'testing'

    app = create_app('testing')

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client for each test function."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create a fresh database session for each test."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        yield db.session
        db.session.rollback()


@pytest.fixture(autouse=True)
def cache_store(app):
    """Every test starts with an empty export cache and no CDN mirror."""
    store = app.extensions['translation_cache']
    store.clear()
    previous_cdn = app.extensions.get('translation_cdn')
    yield store
    store.clear()
    app.extensions['translation_cdn'] = previous_cdn


@pytest.fixture
def cdn_sink(app):
    """Install a recording CDN sink, pushes run inline."""
    sink = RecordingSink()
    app.extensions['translation_cdn'] = CdnMirror(sink, run_async=False)
    return sink


@pytest.fixture
def failing_cdn_sink(app):
    sink = RecordingSink(fail=True)
    app.extensions['translation_cdn'] = CdnMirror(sink, run_async=False)
    return sink


def create_locale(code, name=None, **overrides):
    locale = Locale(code=code, name=name or code.upper(), **overrides)
    db.session.add(locale)
    db.session.commit()
    return locale


def create_tag(name, slug=None, **overrides):
    tag = TranslationTag(name=name, slug=slug or name.lower(), **overrides)
    db.session.add(tag)
    db.session.commit()
    return tag


def create_translation(locale, key, value=None, tags=(), **overrides):
    translation = Translation(key=key, value=value or fake.sentence(), locale_id=locale.id, **overrides)
    translation.tags = list(tags)
    db.session.add(translation)
    db.session.commit()
    return translation


@pytest.fixture
def seed_data(app, db_session):
    """en/fr locales, ui/api tags, welcome.message in both locales, app.title in en.

    Only the en welcome translation carries the ui tag.
    """
    en = create_locale('en', 'English', native_name='English', is_default=True)
    fr = create_locale('fr', 'French', native_name='Français')
    ui = create_tag('UI', 'ui')
    api = create_tag('API', 'api')

    welcome_en = create_translation(en, 'welcome.message', 'Welcome!', tags=[ui],
                                    meta={'context': 'homepage'})
    title_en = create_translation(en, 'app.title', 'My App')
    welcome_fr = create_translation(fr, 'welcome.message', 'Bienvenue!')

    return {
        'en': en.id,
        'fr': fr.id,
        'ui': ui.id,
        'api': api.id,
        'welcome_en': welcome_en.id,
        'title_en': title_en.id,
        'welcome_fr': welcome_fr.id,
    }
