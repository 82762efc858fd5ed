"""Translation tag model and the translation<->tag association table."""

import re
import unicodedata

from sqlalchemy import func

from translation_api import db
from translation_api.models.base import utcnow, isoformat

DEFAULT_TAG_COLOR = '#6366f1'

# Association table: no ownership direction, deleting either side drops the link
translation_tags = db.Table(
    'translation_translation_tag',
    db.Column('translation_id', db.Integer, db.ForeignKey('translations.id', ondelete='CASCADE'), primary_key=True),
    db.Column('translation_tag_id', db.Integer, db.ForeignKey('translation_tags.id', ondelete='CASCADE'), primary_key=True),
)


def slugify(text):
    """Build a URL slug: 'Mobile App' -> 'mobile-app'."""
    if not text:
        return ''
    text = unicodedata.normalize('NFKD', str(text)).encode('ascii', 'ignore').decode('ascii')
    text = re.sub(r'[^a-z0-9]+', '-', text.lower())
    return text.strip('-')


class TranslationTag(db.Model):
    """Tag for grouping translations (mobile, desktop, web...)."""

    __tablename__ = 'translation_tags'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False, index=True)
    description = db.Column(db.String(255), nullable=True)
    color = db.Column(db.String(7), default=DEFAULT_TAG_COLOR, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    translations = db.relationship(
        'Translation',
        secondary=translation_tags,
        back_populates='tags',
        lazy='dynamic',
    )

    def has_translations(self):
        return self.translations.limit(1).count() > 0

    @classmethod
    def most_used(cls, limit=10):
        """Active tags ordered by how many translations use them."""
        count = func.count(translation_tags.c.translation_id).label('translations_count')
        rows = (
            db.session.query(cls, count)
            .outerjoin(translation_tags, translation_tags.c.translation_tag_id == cls.id)
            .filter(cls.is_active.is_(True))
            .group_by(cls.id)
            .order_by(count.desc(), cls.name)
            .limit(limit)
            .all()
        )
        return [dict(tag.to_dict(), translations_count=total) for tag, total in rows]

    def to_dict(self, with_counts=False):
        result = {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'description': self.description,
            'color': self.color,
            'is_active': self.is_active,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }

        if with_counts:
            result['translations_count'] = self.translations.count()
            result['active_translations_count'] = self.translations.filter_by(is_active=True).count()

        return result

    def __repr__(self):
        return f'<TranslationTag {self.slug}>'
