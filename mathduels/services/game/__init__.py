"""Game session engine: question generation, timing and scoring.

Everything in this package is transport-free. HTTP routes and socket
handlers import from here, keeping persistence and networking separated
from the drill mechanics.
"""

from .questions import Question, QuestionGenerator
from .session import (
    AnswerResult,
    GameSession,
    Identity,
    ResultSummary,
    SessionStateError,
    SessionStatus,
    parse_answer,
)
from .timer import BackgroundTicker, ManualTicker, Ticker
from .leaderboard import SORT_KEYS, average_score, sort_leaderboard

__all__ = [
    'AnswerResult',
    'BackgroundTicker',
    'GameSession',
    'Identity',
    'ManualTicker',
    'Question',
    'QuestionGenerator',
    'ResultSummary',
    'SORT_KEYS',
    'SessionStateError',
    'SessionStatus',
    'Ticker',
    'average_score',
    'parse_answer',
    'sort_leaderboard',
]
