#!/usr/bin/env python
"""Database initialization script for the translation service.

Creates all tables from the SQLAlchemy models and seeds an English
default locale when none exists.

Usage:
    python init_db.py
"""

import os
import sys

from sqlalchemy.exc import SQLAlchemyError

from translation_api import create_app, db


def init_database():
    """Initialize the database by creating all tables."""
    config_name = os.getenv('FLASK_ENV', 'development')
    app = create_app(config_name)

    print(f"\n{'='*60}")
    print(f"Database Initialization for {config_name.upper()} Environment")
    print(f"{'='*60}\n")

    with app.app_context():
        try:
            print("Creating database tables...")
            print(f"Database URI: {app.config['SQLALCHEMY_DATABASE_URI']}\n")

            db.create_all()

            from translation_api.models import Locale

            if not Locale.query.filter_by(is_default=True).first():
                db.session.add(Locale(code='en', name='English', native_name='English',
                                      is_active=True, is_default=True))
                db.session.commit()
                print("Added default locale: en\n")

            tables_info = [
                ("locales", "Languages translations are written in"),
                ("translations", "Key/value translation strings"),
                ("translation_tags", "Tags grouping translations"),
                ("translation_translation_tag", "Translation <-> tag links"),
            ]

            print("Created tables:")
            for table_name, description in tables_info:
                print(f"  - {table_name:<30} {description}")

            print(f"\n{'='*60}")
            print("Database initialization complete!")
            print(f"{'='*60}\n")
            print("Next steps:")
            print("  1. Start the Flask server: python wsgi.py")
            print("  2. Try an export: GET /api/export/locale/en")
            print("\n")

            return True

        except SQLAlchemyError as e:
            db.session.rollback()
            print(f"Error creating database: {type(e).__name__}: {e}\n")
            return False


if __name__ == '__main__':
    success = init_database()
    sys.exit(0 if success else 1)
