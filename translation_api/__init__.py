from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import os
from dotenv import load_dotenv

load_dotenv()

db = SQLAlchemy()
limiter = Limiter(key_func=get_remote_address)


def create_app(config_name=None):
    app = Flask(__name__)

    # Config
    from translation_api.config import get_config
    config_name = config_name or os.getenv('FLASK_ENV', 'development')
    app.config.from_object(get_config(config_name))
    app.json.sort_keys = False

    from translation_api.logging_setup import configure_logging
    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    limiter.init_app(app)
    CORS(app)

    # Cache store and CDN sink live on the app, tests swap them out
    from translation_api.services.cache_store import create_cache_store
    from translation_api.services.cdn import create_cdn_sink
    app.extensions['translation_cache'] = create_cache_store(app.config)
    app.extensions['translation_cdn'] = create_cdn_sink(app.config)

    with app.app_context():
        # Import models so metadata knows every table
        from translation_api import models  # noqa: F401
        try:
            db.create_all()
        except Exception as e:
            app.logger.warning(f"Could not create database tables: {e}")

    from translation_api.errors import register_error_handlers
    register_error_handlers(app)

    from translation_api.routes import register_routes
    register_routes(app)

    @app.route('/health', methods=['GET'])
    def health():
        return {'status': 'ok'}, 200

    return app
