from flask import Blueprint, jsonify, request, current_app

games = Blueprint('games', __name__)


@games.route('/history', methods=['GET'])
def get_history():
    """
    Returns the most recently completed games, newest first.
    """
    max_limit = int(current_app.config.get('HISTORY_LIMIT', 50))
    limit = request.args.get('limit', default=max_limit, type=int)
    limit = max(1, min(limit, max_limit))
    history = current_app.extensions['rooms'].history
    return jsonify(history.recent(limit)), 200


@games.route('/rooms', methods=['GET'])
def get_joinable_rooms():
    """
    Returns rooms that have a challenge set but no second player yet.
    """
    registry = current_app.extensions['rooms'].registry
    return jsonify(registry.list_joinable()), 200
