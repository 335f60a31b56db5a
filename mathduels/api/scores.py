from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user
from mathduels.auth import token_required
from mathduels.services.scores import record_score, user_scores, fetch_leaderboard, DEFAULT_GAME_TYPE
from mathduels.services.game.leaderboard import SORT_KEYS, sort_leaderboard


scores = Blueprint('scores', __name__)


@scores.route('/scores', methods=['POST'])
@token_required
def add_score():
    data = request.get_json(silent=True) or {}
    score = data.get('score')
    game_type = data.get('gameType') or DEFAULT_GAME_TYPE
    # bool is an int subclass; reject it along with floats and strings
    if isinstance(score, bool) or not isinstance(score, int) or score < 0:
        return jsonify({'error': 'Valid score is required'}), 400

    try:
        row = record_score(current_user.id, score, game_type)
    except Exception:
        current_app.logger.exception(f"[score-failed] user={current_user.id} score={score}")
        return jsonify({'error': 'Internal server error'}), 500
    current_app.logger.info(f"[score-saved] user={current_user.id} score={score} id={row.id}")
    return jsonify(row.to_dict()), 201


@scores.route('/users/<int:user_id>/scores', methods=['GET'])
@token_required
def get_user_scores(user_id):
    # Users can only read their own history
    if user_id != current_user.id:
        return jsonify({'error': 'Access denied'}), 403
    limit = int(current_app.config.get('RECENT_SCORES_LIMIT', 10))
    return jsonify([s.to_dict() for s in user_scores(user_id, limit=limit)])


@scores.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    sort_key = request.args.get('sort', 'high_score')
    if sort_key not in SORT_KEYS:
        return jsonify({'error': f"sort must be one of {', '.join(SORT_KEYS)}"}), 400
    limit = int(current_app.config.get('LEADERBOARD_SIZE', 10))
    entries = fetch_leaderboard(limit=limit)
    return jsonify(sort_leaderboard(entries, sort_key))
