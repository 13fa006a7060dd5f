"""
Database models for the festival backend.
"""

from flask_sqlalchemy import SQLAlchemy
from datetime import datetime, timezone

db = SQLAlchemy()


class Venue(db.Model):
    """Screening venue with Czech and English names."""

    __tablename__ = 'venues'

    id = db.Column(db.Integer, primary_key=True)
    name_cs = db.Column(db.String(255), nullable=False)
    name_en = db.Column(db.String(255), nullable=False)
    capacity = db.Column(db.Integer)
    sort_order = db.Column(db.Integer, default=0, nullable=False)
    active = db.Column(db.Boolean, default=True, nullable=False)

    schedule_entries = db.relationship('ProgrammingScheduleEntry', backref='venue', lazy=True)

    def __repr__(self):
        return f'<Venue {self.name_en}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name_cs': self.name_cs,
            'name_en': self.name_en,
            'capacity': self.capacity,
            'sort_order': self.sort_order,
            'active': self.active,
        }


class ProgrammingScheduleEntry(db.Model):
    """One scheduled screening slot in a venue."""

    __tablename__ = 'programming_schedule'

    id = db.Column(db.Integer, primary_key=True)
    venue_id = db.Column(db.Integer, db.ForeignKey('venues.id'), nullable=False, index=True)
    movie_id = db.Column(db.Integer)
    scheduled_date = db.Column(db.Date)
    scheduled_time = db.Column(db.Time)
    discussion_time = db.Column(db.Integer, default=0, nullable=False)  # minutes
    notes = db.Column(db.Text)

    def __repr__(self):
        return f'<ProgrammingScheduleEntry {self.id} venue={self.venue_id}>'


class Guest(db.Model):
    """Festival guest. Only the photo-related columns are modelled."""

    __tablename__ = 'guests'

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(255), nullable=False)
    last_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    photo = db.Column(db.Text)  # base64, legacy storage
    image_path = db.Column(db.String(500))  # base path in object storage
    image_migrated = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f'<Guest {self.first_name} {self.last_name}>'

    @property
    def full_name(self):
        return f'{self.first_name} {self.last_name}'
