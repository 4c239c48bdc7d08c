from flask import Blueprint, current_app, jsonify

from beauty_contest import EXTENSION_KEY

rooms = Blueprint('rooms', __name__)


def _machine():
    return current_app.extensions[EXTENSION_KEY]


@rooms.route('', methods=['GET'])
def list_rooms():
    return jsonify(_machine().registry.summaries())


@rooms.route('/<string:room_code>/state', methods=['GET'])
def get_room_state(room_code):
    payload = _machine().state(room_code)
    if payload is None:
        return jsonify({'error': 'Room not found'}), 404
    # Include phase durations so clients can show countdowns
    timings = _machine().timings
    payload['durations'] = {
        'round': timings.round_duration,
        'rule_announcement': timings.announce_delay,
        'results_reveal': timings.results_delay,
        'scoreboard': timings.scoreboard_duration,
    }
    return jsonify(payload)
