"""Application configuration, one class per environment."""

import os


def env_bool(name, default=False):
    """Read a boolean flag from the environment."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('true', '1', 'yes', 'on')


def database_url():
    url = os.getenv('DATABASE_URL', 'sqlite:///translations.db')
    # Handle Render's postgres:// vs postgresql:// issue
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    APP_ENV = os.getenv('APP_ENV', 'development')

    SQLALCHEMY_DATABASE_URI = database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'dev-secret')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    EXPOSE_ERROR_DETAILS = env_bool('EXPOSE_ERROR_DETAILS', False)

    # Cache store
    REDIS_URL = os.getenv('REDIS_URL')
    CACHE_BACKEND = os.getenv('CACHE_BACKEND', 'redis' if os.getenv('REDIS_URL') else 'memory')
    CACHE_KEY_PREFIX = os.getenv('CACHE_KEY_PREFIX', 'tms:')

    # Export TTLs (seconds)
    EXPORT_CACHE_TTL = int(os.getenv('EXPORT_CACHE_TTL', 3600 if APP_ENV == 'production' else 300))
    TAG_EXPORT_CACHE_TTL = int(os.getenv('TAG_EXPORT_CACHE_TTL', 600))
    KEYS_EXPORT_CACHE_TTL = int(os.getenv('KEYS_EXPORT_CACHE_TTL', 300))
    STATS_CACHE_TTL = int(os.getenv('STATS_CACHE_TTL', 1800))
    POPULAR_TAGS_CACHE_TTL = int(os.getenv('POPULAR_TAGS_CACHE_TTL', 3600))

    # CDN mirror (Supabase Storage)
    CDN_ENABLED = env_bool('CDN_ENABLED', False)
    CDN_BASE_URL = os.getenv('CDN_BASE_URL', '')
    CDN_BUCKET = os.getenv('CDN_BUCKET', 'translation-exports')
    CDN_MIRROR_ASYNC = env_bool('CDN_MIRROR_ASYNC', True)
    SUPABASE_URL = os.getenv('SUPABASE_URL')
    SUPABASE_SERVICE_KEY = os.getenv('SUPABASE_SERVICE_KEY')

    # Rate limiting
    RATELIMIT_ENABLED = env_bool('RATELIMIT_ENABLED', True)
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
    EXPORT_RATE_LIMIT = os.getenv('EXPORT_RATE_LIMIT', '120 per minute')
    BULK_RATE_LIMIT = os.getenv('BULK_RATE_LIMIT', '10 per minute')


class DevelopmentConfig(Config):
    DEBUG = True
    EXPOSE_ERROR_DETAILS = env_bool('EXPOSE_ERROR_DETAILS', True)


class TestingConfig(Config):
    TESTING = True
    APP_ENV = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET_KEY = 'test-secret-key-for-testing'
    CACHE_BACKEND = 'memory'
    EXPORT_CACHE_TTL = 300
    CDN_ENABLED = False
    CDN_MIRROR_ASYNC = False
    RATELIMIT_ENABLED = False
    EXPOSE_ERROR_DETAILS = False


class ProductionConfig(Config):
    APP_ENV = 'production'
    EXPORT_CACHE_TTL = int(os.getenv('EXPORT_CACHE_TTL', 3600))


CONFIGS = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
}


def get_config(config_name):
    """Return the config class for an environment name."""
    return CONFIGS.get(config_name, DevelopmentConfig)
