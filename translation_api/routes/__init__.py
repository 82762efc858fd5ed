"""Routes package for the translation service."""


def register_routes(app):
    """Register all route blueprints with the application."""
    from .exports import exports_bp
    from .health import health_bp
    from .locales import locales_bp
    from .tags import tags_bp
    from .translations import translations_bp

    app.register_blueprint(exports_bp, url_prefix='/api/export')
    app.register_blueprint(translations_bp, url_prefix='/api/translations')
    app.register_blueprint(locales_bp, url_prefix='/api/locales')
    app.register_blueprint(tags_bp, url_prefix='/api/tags')
    app.register_blueprint(health_bp, url_prefix='/api')
