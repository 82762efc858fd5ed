"""Health and metrics routes."""

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from translation_api import db
from translation_api.models import Locale, Translation, TranslationTag
from translation_api.utils import token_required

health_bp = Blueprint('health', __name__)


@health_bp.route('/health', methods=['GET'])
def health():
    """Liveness plus database and cache reachability."""
    try:
        db.session.execute(text('SELECT 1'))
        database = 'ok'
    except SQLAlchemyError:
        db.session.rollback()
        database = 'unavailable'

    cache = current_app.extensions['translation_cache'].describe()
    status = 'ok' if database == 'ok' and cache.get('connected') else 'degraded'

    return jsonify({
        'status': status,
        'database': database,
        'cache': cache,
        'environment': current_app.config.get('APP_ENV'),
    }), 200 if status == 'ok' else 503


@health_bp.route('/metrics', methods=['GET'])
@token_required
def metrics(current_user_id):
    cdn = current_app.extensions.get('translation_cdn')
    return jsonify({
        'translations': Translation.query.count(),
        'locales': Locale.query.count(),
        'tags': TranslationTag.query.count(),
        'cache': current_app.extensions['translation_cache'].describe(),
        'cdn_enabled': bool(cdn and cdn.enabled),
    }), 200
