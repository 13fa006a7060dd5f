"""
Routes for venue management.
"""

from flask import request, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from festival.views.venues import venues
from festival.models import db, Venue, ProgrammingScheduleEntry

NAMES_REQUIRED = 'Name in both Czech and English is required'


def _optional_int(data, field):
    """Return the integer value of a field, or None when absent or falsy."""
    value = data.get(field)
    if not value:
        return None
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f'{field} must be an integer')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f'{field} must be an integer')


def _parse_venue_payload(data):
    """Validate a create/update body. Raises ValueError with a client message."""
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    if not data.get('name_cs') or not data.get('name_en'):
        raise ValueError(NAMES_REQUIRED)

    return {
        'name_cs': data['name_cs'],
        'name_en': data['name_en'],
        'capacity': _optional_int(data, 'capacity'),
        'sort_order': _optional_int(data, 'sort_order') or 0,
    }


def _server_error(message, error):
    db.session.rollback()
    current_app.logger.error(f"{message}: {error}")
    return jsonify({'error': message}), 500


@venues.route('', methods=['GET'])
def list_venues():
    """Active venues ordered by sort order, then Czech name."""
    try:
        rows = (
            Venue.query
            .filter_by(active=True)
            .order_by(Venue.sort_order, Venue.name_cs)
            .all()
        )
        return jsonify([venue.to_dict() for venue in rows])
    except SQLAlchemyError as e:
        return _server_error('Failed to fetch venues', e)


@venues.route('/<int:venue_id>', methods=['GET'])
def get_venue(venue_id):
    try:
        venue = db.session.get(Venue, venue_id)
    except SQLAlchemyError as e:
        return _server_error('Failed to fetch venue', e)

    if venue is None:
        return jsonify({'error': 'Venue not found'}), 404

    return jsonify(venue.to_dict())


@venues.route('', methods=['POST'])
def create_venue():
    data = request.get_json(silent=True) or {}

    try:
        fields = _parse_venue_payload(data)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    try:
        venue = Venue(**fields)
        db.session.add(venue)
        db.session.commit()
    except SQLAlchemyError as e:
        return _server_error('Failed to create venue', e)

    current_app.logger.info(f"Venue created: {venue.id} ({venue.name_en})")
    return jsonify(venue.to_dict()), 201


@venues.route('/<int:venue_id>', methods=['PUT'])
def update_venue(venue_id):
    data = request.get_json(silent=True) or {}

    try:
        fields = _parse_venue_payload(data)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    # Omitting "active" reactivates the venue
    fields['active'] = data.get('active') is not False

    try:
        venue = db.session.get(Venue, venue_id)
        if venue is None:
            return jsonify({'error': 'Venue not found'}), 404

        for name, value in fields.items():
            setattr(venue, name, value)
        db.session.commit()
    except SQLAlchemyError as e:
        return _server_error('Failed to update venue', e)

    return jsonify(venue.to_dict())


@venues.route('/<int:venue_id>', methods=['DELETE'])
def delete_venue(venue_id):
    """
    Delete a venue.

    Venues referenced by the programming schedule are only deactivated so
    that existing schedule rows stay valid.
    """
    try:
        venue = db.session.get(Venue, venue_id)
        if venue is None:
            return jsonify({'error': 'Venue not found'}), 404

        usage_count = (
            ProgrammingScheduleEntry.query
            .filter_by(venue_id=venue_id)
            .count()
        )

        if usage_count > 0:
            venue.active = False
            db.session.commit()
            current_app.logger.info(f"Venue {venue_id} deactivated ({usage_count} schedule entries)")
            return jsonify({
                'message': 'Venue deactivated (was used in programming)',
                'deactivated': True,
                'venue': venue.to_dict()
            })

        removed = venue.to_dict()
        db.session.delete(venue)
        db.session.commit()
    except SQLAlchemyError as e:
        return _server_error('Failed to delete venue', e)

    current_app.logger.info(f"Venue {venue_id} deleted")
    return jsonify({
        'message': 'Venue deleted successfully',
        'deactivated': False,
        'venue': removed
    })
