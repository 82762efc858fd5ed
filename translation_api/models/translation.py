"""Translation model - one string for one key in one locale."""

from sqlalchemy.orm import validates

from translation_api import db
from translation_api.models.base import utcnow, isoformat
from translation_api.models.tag import translation_tags


def normalize_key(key):
    """Keys are stored trimmed and lowercased."""
    return key.strip().lower() if isinstance(key, str) else key


class Translation(db.Model):
    """Translation entry: namespaced dot-path key -> value for a locale."""

    __tablename__ = 'translations'

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(255), nullable=False, index=True)  # e.g. 'auth.login.title'
    value = db.Column(db.Text, nullable=False)
    locale_id = db.Column(db.Integer, db.ForeignKey('locales.id'), nullable=False, index=True)
    description = db.Column(db.String(1000), nullable=True)
    # 'metadata' is reserved on declarative models, so the attribute is 'meta'
    meta = db.Column('metadata', db.JSON, nullable=True)  # string -> string
    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)
    verified_at = db.Column(db.DateTime, nullable=True)
    verified_by = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False, index=True)

    __table_args__ = (
        db.UniqueConstraint('key', 'locale_id', name='unique_translation_key_locale'),
    )

    locale = db.relationship('Locale', back_populates='translations', lazy='joined')
    tags = db.relationship('TranslationTag', secondary=translation_tags, back_populates='translations')

    @validates('key')
    def _normalize_key(self, _field, key):
        return normalize_key(key)

    @property
    def is_verified(self):
        return self.verified_at is not None

    def mark_verified(self, user_id=None):
        self.verified_at = utcnow()
        self.verified_by = user_id

    def mark_unverified(self):
        self.verified_at = None
        self.verified_by = None

    def to_dict(self, include_tags=True):
        """Convert translation to dictionary."""
        result = {
            'id': self.id,
            'key': self.key,
            'value': self.value,
            'description': self.description,
            'metadata': self.meta or {},
            'is_active': self.is_active,
            'is_verified': self.is_verified,
            'verified_at': isoformat(self.verified_at),
            'verified_by': self.verified_by,
            'locale_id': self.locale_id,
            'locale': {
                'id': self.locale.id,
                'code': self.locale.code,
                'name': self.locale.name,
            } if self.locale else None,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }

        if include_tags:
            result['tags'] = [tag.to_dict() for tag in self.tags]

        return result

    def __repr__(self):
        return f'<Translation {self.key} [{self.locale_id}]>'
