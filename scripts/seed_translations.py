#!/usr/bin/env python3
"""Seed the database with translations for performance testing.

Usage:
    python scripts/seed_translations.py --count 100000
    python scripts/seed_translations.py --count 5000 --batch-size 500 --fresh --force
"""

import argparse
import os
import random
import sys
import time

# Add parent directory to path to import app modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from translation_api import create_app, db
from translation_api.models import Locale, Translation, TranslationTag

LOCALES_DATA = [
    {'code': 'en', 'name': 'English', 'native_name': 'English', 'is_default': True},
    {'code': 'fr', 'name': 'French', 'native_name': 'Français'},
    {'code': 'es', 'name': 'Spanish', 'native_name': 'Español'},
    {'code': 'de', 'name': 'German', 'native_name': 'Deutsch'},
    {'code': 'lv', 'name': 'Latvian', 'native_name': 'Latviešu'},
    {'code': 'ru', 'name': 'Russian', 'native_name': 'Русский'},
]

TAGS_DATA = [
    {'name': 'Web', 'slug': 'web', 'color': '#6366f1'},
    {'name': 'Mobile', 'slug': 'mobile', 'color': '#10b981'},
    {'name': 'Desktop', 'slug': 'desktop', 'color': '#f59e0b'},
    {'name': 'API', 'slug': 'api', 'color': '#ef4444'},
    {'name': 'Admin', 'slug': 'admin', 'color': '#8b5cf6'},
    {'name': 'Emails', 'slug': 'emails', 'color': '#0ea5e9'},
]

SECTIONS = ['auth', 'nav', 'checkout', 'profile', 'settings', 'errors', 'dashboard', 'forms']
WORDS = [
    'welcome', 'title', 'submit', 'cancel', 'save', 'delete', 'confirm', 'back',
    'next', 'email', 'password', 'search', 'loading', 'empty', 'success', 'failed',
]


def positive_range(minimum, maximum):
    def parse(value):
        number = int(value)
        if not minimum <= number <= maximum:
            raise argparse.ArgumentTypeError(f"must be between {minimum} and {maximum}")
        return number
    return parse


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Seed translations for performance testing.')
    parser.add_argument('--count', type=positive_range(1, 1_000_000), default=100_000,
                        help='Number of translations to create (default: 100000)')
    parser.add_argument('--batch-size', type=positive_range(100, 10_000), default=1000,
                        help='Rows per commit (default: 1000)')
    parser.add_argument('--fresh', action='store_true', help='Drop and recreate all tables first')
    parser.add_argument('--force', action='store_true', help='Do not ask for confirmation')
    return parser.parse_args(argv)


def seed_locales():
    locales = []
    for data in LOCALES_DATA:
        locale = Locale.query.filter_by(code=data['code']).first()
        if not locale:
            locale = Locale(is_active=True, **data)
            db.session.add(locale)
            print(f"  Added locale: {data['code']}")
        locales.append(locale)
    db.session.commit()
    return [locale.id for locale in locales]


def seed_tags():
    tags = []
    for data in TAGS_DATA:
        tag = TranslationTag.query.filter_by(slug=data['slug']).first()
        if not tag:
            tag = TranslationTag(is_active=True, **data)
            db.session.add(tag)
            print(f"  Added tag: {data['slug']}")
        tags.append(tag)
    db.session.commit()
    return [tag.id for tag in tags]


def build_translation(index, locale_id, tags):
    section = SECTIONS[index % len(SECTIONS)]
    word = random.choice(WORDS)
    translation = Translation(
        key=f"{section}.{word}_{index}",
        value=f"{word.capitalize()} {section} text #{index}",
        locale_id=locale_id,
        description=f"Seeded {section} string",
        is_active=random.random() > 0.1,
    )
    translation.tags = random.sample(tags, k=random.randint(0, 2))
    return translation


def seed_translations(count, batch_size, locale_ids, tag_ids):
    """Insert count translations, committing every batch_size rows."""
    # Offset keys past existing rows so re-runs don't collide
    offset = Translation.query.count()
    created = 0
    started = time.monotonic()

    while created < count:
        size = min(batch_size, count - created)
        tags = TranslationTag.query.filter(TranslationTag.id.in_(tag_ids)).all()
        batch = []
        for i in range(size):
            index = offset + created + i
            batch.append(build_translation(index, locale_ids[index % len(locale_ids)], tags))
        db.session.add_all(batch)
        db.session.commit()
        db.session.expunge_all()

        created += size
        elapsed = time.monotonic() - started
        print(f"  {created}/{count} translations ({created / elapsed:.0f} rows/s)")

    return created


def main(argv=None):
    args = parse_args(argv)
    app = create_app()

    with app.app_context():
        if args.fresh:
            if not args.force:
                confirm = input("--fresh will DELETE ALL DATA. Type 'yes' to confirm: ")
                if confirm.lower() != 'yes':
                    print("Aborted.")
                    return 1
            print("Dropping and recreating all tables...")
            db.drop_all()
            db.create_all()

        print("Seeding locales and tags...")
        locale_ids = seed_locales()
        tag_ids = seed_tags()

        print(f"\nSeeding {args.count} translations in batches of {args.batch_size}...")
        seed_translations(args.count, args.batch_size, locale_ids, tag_ids)

        # Seeding bypasses the API, so drop whatever the cache holds
        app.extensions['translation_cache'].clear()

        print("\n" + "="*50)
        print("Translation seeding completed!")
        print(f"Locales: {Locale.query.count()}")
        print(f"Tags: {TranslationTag.query.count()}")
        print(f"Translations: {Translation.query.count()}")
        print("="*50)

    return 0


if __name__ == '__main__':
    sys.exit(main())
