from flask import Blueprint, current_app, jsonify

from pong.services.matches import DIFFICULTY_PROFILES

matches = Blueprint('matches', __name__)


def _registry():
    return current_app.extensions['pong'].registry


@matches.route('', methods=['GET'])
def list_matches():
    """
    Returns a summary of every live match.
    """
    registry = _registry()
    with registry.lock:
        payload = [m.summary() for m in registry.matches.values()]
    return jsonify(payload), 200


@matches.route('/difficulties', methods=['GET'])
def list_difficulties():
    return jsonify({name: p.to_dict() for name, p in DIFFICULTY_PROFILES.items()}), 200


@matches.route('/<string:match_id>/state', methods=['GET'])
def get_match_state(match_id):
    """
    Returns the board state of one match, in the same shape as the
    ``gameUpdate`` broadcast plus its lifecycle fields.
    """
    registry = _registry()
    with registry.lock:
        match = registry.get(match_id)
        if match is None:
            return jsonify({'error': 'Match not found'}), 404
        payload = match.to_dict()
        payload.update(match.summary())
    return jsonify(payload), 200
