from typing import Dict, List

from sqlalchemy import func

from mathduels import db
from mathduels.models import Score, User

DEFAULT_GAME_TYPE = 'math_duel'


def record_score(user_id: int, score: int, game_type: str = DEFAULT_GAME_TYPE) -> Score:
    """Persist one finished game for ``user_id``.

    Rolls the session back and re-raises on database errors so callers can
    decide whether the failure is user-visible.
    """
    row = Score(user_id=user_id, score=int(score), game_type=game_type or DEFAULT_GAME_TYPE)
    try:
        db.session.add(row)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return row


def user_scores(user_id: int, limit: int = 10) -> List[Score]:
    return (
        Score.query.filter_by(user_id=user_id)
        .order_by(Score.score.desc(), Score.achieved_at.desc(), Score.id.desc())
        .limit(limit)
        .all()
    )


def fetch_leaderboard(limit: int = 10) -> List[Dict]:
    high_score = func.max(Score.score).label('high_score')
    games_played = func.count(Score.id).label('games_played')
    rows = (
        db.session.query(User.name, User.picture, high_score, games_played)
        .join(Score, Score.user_id == User.id)
        .group_by(User.id, User.name, User.picture)
        .order_by(high_score.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            'name': r.name,
            'picture': r.picture,
            'high_score': int(r.high_score or 0),
            'games_played': int(r.games_played or 0),
        }
        for r in rows
    ]


def make_score_sink(app, user_id: int, game_type: str = DEFAULT_GAME_TYPE):
    """Bind the score store to one user for a hosted game session.

    The returned callable may run on the ticker's background task, so it
    pushes its own application context.
    """

    def _sink(score: int) -> bool:
        with app.app_context():
            row = record_score(user_id, score, game_type)
            app.logger.info(f"[score-saved] user={user_id} score={score} id={row.id}")
        return True

    return _sink
