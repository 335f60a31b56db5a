import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .questions import Question, QuestionGenerator
from .timer import ManualTicker, Ticker

logger = logging.getLogger(__name__)

DEFAULT_DURATION_SEC = 120

_ANSWER_RE = re.compile(r'-?\d+')
_STRIP_RE = re.compile(r'[^0-9-]')


class SessionStateError(RuntimeError):
    """Raised when the engine is asked to grade without a live question."""


class SessionStatus(str, Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    PAUSED = 'paused'
    ENDED = 'ended'


@dataclass(frozen=True)
class Identity:
    id: int
    name: str
    picture: Optional[str] = None


@dataclass(frozen=True)
class AnswerResult:
    is_correct: bool
    given: Optional[int]
    expected: int

    def to_dict(self):
        return {'is_correct': self.is_correct, 'given': self.given, 'expected': self.expected}


@dataclass(frozen=True)
class ResultSummary:
    score: int
    questions_answered: int
    correct_answers: int
    accuracy: int

    @classmethod
    def from_counts(cls, score: int, answered: int, correct: int) -> 'ResultSummary':
        # half rounds up, matching what players see in the browser
        accuracy = (200 * correct + answered) // (2 * answered) if answered > 0 else 0
        return cls(score=score, questions_answered=answered, correct_answers=correct, accuracy=accuracy)

    def to_dict(self):
        return {
            'score': self.score,
            'questions_answered': self.questions_answered,
            'correct_answers': self.correct_answers,
            'accuracy': self.accuracy,
        }


def parse_answer(raw: Any) -> Optional[int]:
    """Read an integer out of raw player input.

    Everything except digits and minus signs is dropped first, then an
    optional leading minus and the digits after it are read. Input with no
    usable number yields None.
    """
    if raw is None:
        return None
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    cleaned = _STRIP_RE.sub('', str(raw))
    match = _ANSWER_RE.match(cleaned)
    if not match:
        return None
    return int(match.group(0))


Listener = Callable[[str, Dict[str, Any]], None]
ScoreSink = Callable[[int], Any]


class GameSession:
    """One timed play-through.

    States move ``idle -> running <-> paused -> ended`` and ``reset()``
    returns to ``idle`` from anywhere. Transitions requested from the wrong
    state are ignored and report ``False``. The session emits events to an
    optional ``listener(event, payload)``: ``state``, ``question``,
    ``tick``, ``answer`` and ``ended``.
    """

    def __init__(
        self,
        generator: Optional[QuestionGenerator] = None,
        ticker: Optional[Ticker] = None,
        duration: int = DEFAULT_DURATION_SEC,
        identity: Optional[Identity] = None,
        score_sink: Optional[ScoreSink] = None,
        listener: Optional[Listener] = None,
    ):
        self.generator = generator or QuestionGenerator()
        self.ticker = ticker or ManualTicker()
        self.duration = int(duration)
        self.identity = identity
        self.score_sink = score_sink
        self.listener = listener
        self.score_saved: Optional[bool] = None
        self._clear()

    def _clear(self) -> None:
        self.status = SessionStatus.IDLE
        self.score = 0
        self.time_left = self.duration
        self.questions_answered = 0
        self.correct_answers = 0
        self.current_question: Optional[Question] = None
        self.result: Optional[ResultSummary] = None
        self.score_saved = None

    @property
    def is_playing(self) -> bool:
        return self.status in (SessionStatus.RUNNING, SessionStatus.PAUSED)

    @property
    def is_paused(self) -> bool:
        return self.status == SessionStatus.PAUSED

    @property
    def is_ended(self) -> bool:
        return self.status == SessionStatus.ENDED

    # -- transitions -------------------------------------------------

    def reset(self) -> None:
        self.ticker.stop()
        self._clear()
        self._emit('state', self.to_dict())

    def start(self) -> bool:
        if self.status != SessionStatus.IDLE:
            logger.debug(f"[start-skip] status={self.status.value}")
            return False
        self.status = SessionStatus.RUNNING
        self.ticker.start(self.tick)
        self._next_question()
        self._emit('state', self.to_dict())
        return True

    def pause(self) -> bool:
        if self.status != SessionStatus.RUNNING:
            return False
        self.status = SessionStatus.PAUSED
        self.ticker.stop()
        self._emit('state', self.to_dict())
        return True

    def resume(self) -> bool:
        if self.status != SessionStatus.PAUSED:
            return False
        self.status = SessionStatus.RUNNING
        self.ticker.start(self.tick)
        self._emit('state', self.to_dict())
        return True

    def end(self) -> Optional[ResultSummary]:
        if not self.is_playing:
            return None
        self.status = SessionStatus.ENDED
        self.ticker.stop()
        self.result = ResultSummary.from_counts(self.score, self.questions_answered, self.correct_answers)
        logger.info(
            f"[game-over] score={self.result.score} answered={self.result.questions_answered} "
            f"accuracy={self.result.accuracy}%"
        )
        self._hand_off_score()
        self._emit('ended', self.result_payload())
        return self.result

    def tick(self) -> None:
        if self.status != SessionStatus.RUNNING:
            return
        self.time_left = max(0, self.time_left - 1)
        self._emit('tick', {'time_left': self.time_left})
        if self.time_left == 0:
            self.end()

    # -- answers -----------------------------------------------------

    def check(self, raw: Any) -> bool:
        """Return True when ``raw`` already matches the live answer."""
        if self.status != SessionStatus.RUNNING or self.current_question is None:
            return False
        return parse_answer(raw) == self.current_question.correct_answer

    def submit(self, raw: Any) -> Optional[AnswerResult]:
        if self.status != SessionStatus.RUNNING:
            logger.debug(f"[answer-ignored] status={self.status.value}")
            return None
        question = self.current_question
        if question is None:
            raise SessionStateError('no active question to grade')

        given = parse_answer(raw)
        is_correct = given is not None and given == question.correct_answer
        if is_correct:
            self.score += 1
            self.correct_answers += 1
        self.questions_answered += 1

        result = AnswerResult(is_correct=is_correct, given=given, expected=question.correct_answer)
        self._emit('answer', result.to_dict())
        self._next_question()
        return result

    # -- helpers -----------------------------------------------------

    def _next_question(self) -> None:
        self.current_question = self.generator.generate()
        self._emit('question', self.current_question.to_dict())

    def _hand_off_score(self) -> None:
        if self.identity is None or self.score_sink is None:
            return
        try:
            outcome = self.score_sink(self.result.score)
        except Exception:
            logger.exception(f"[score-failed] user={self.identity.id} score={self.result.score}")
            self.score_saved = False
            return
        self.score_saved = outcome is not False
        if not self.score_saved:
            logger.warning(f"[score-failed] user={self.identity.id} score={self.result.score} rejected")

    def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        if self.listener is not None:
            self.listener(event, payload)

    def result_payload(self) -> Dict[str, Any]:
        payload = self.result.to_dict() if self.result else {}
        payload['score_saved'] = self.score_saved
        return payload

    def to_dict(self):
        return {
            'status': self.status.value,
            'is_playing': self.is_playing,
            'is_paused': self.is_paused,
            'score': self.score,
            'time_left': self.time_left,
            'questions_answered': self.questions_answered,
            'correct_answers': self.correct_answers,
            'question': self.current_question.to_dict() if self.current_question else None,
        }
