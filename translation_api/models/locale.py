"""Locale model - a language translations are written in."""

from translation_api import db
from translation_api.models.base import utcnow, isoformat


class Locale(db.Model):
    """A language/locale for translations (en, fr, pt...)."""

    __tablename__ = 'locales'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(3), unique=True, nullable=False, index=True)  # 2-3 lowercase letters
    name = db.Column(db.String(100), nullable=False)
    native_name = db.Column(db.String(100), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)
    is_default = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    translations = db.relationship('Translation', back_populates='locale', lazy='dynamic')

    @property
    def display_name(self):
        return self.native_name or self.name

    def has_translations(self):
        return self.translations.limit(1).count() > 0

    def to_dict(self, with_stats=False):
        """Convert locale to dictionary."""
        result = {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'native_name': self.native_name,
            'display_name': self.display_name,
            'is_active': self.is_active,
            'is_default': self.is_default,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }

        if with_stats:
            result['translations_count'] = self.translations.count()
            result['active_translations_count'] = self.translations.filter_by(is_active=True).count()

        return result

    def __repr__(self):
        return f'<Locale {self.code}: {self.name}>'
