"""Database models for the translation service."""

from .locale import Locale
from .tag import TranslationTag, translation_tags, slugify
from .translation import Translation, normalize_key

__all__ = ['Locale', 'TranslationTag', 'Translation', 'translation_tags', 'slugify', 'normalize_key']
