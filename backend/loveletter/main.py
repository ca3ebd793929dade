from flask import Blueprint, jsonify

from loveletter.sessions import registry

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return 'Love Letter Socket server is running.'


@main.route('/api/games/<string:game_code>', methods=['GET'])
def get_game_state(game_code):
    """Public view of a game: hands and discards, never the deck or burn card."""
    session = registry.get(game_code)
    if session is None:
        return jsonify({'error': 'Game not found'}), 404
    return jsonify(session.view())
