import random
from dataclasses import dataclass
from typing import Optional

ADD = '+'
SUB = '-'
MUL = '×'
DIV = '÷'

OPERATORS = (ADD, SUB, MUL, DIV)


@dataclass(frozen=True)
class Question:
    operator: str
    operand_a: int
    operand_b: int
    display_text: str
    correct_answer: int

    def to_dict(self, include_answer: bool = False):
        data = {
            'operator': self.operator,
            'operand_a': self.operand_a,
            'operand_b': self.operand_b,
            'text': self.display_text,
        }
        if include_answer:
            data['answer'] = self.correct_answer
        return data


def _make(operator: str, a: int, b: int, answer: int) -> Question:
    return Question(operator, a, b, f"{a} {operator} {b}", answer)


class QuestionGenerator:
    """Produce timed-drill arithmetic problems.

    Each call picks one of the four operators uniformly. Subtraction and
    division are built as reversed addition/multiplication facts so every
    answer is a non-negative integer.
    """

    ADDEND_RANGE = (2, 100)
    FACTOR_RANGE = (2, 12)

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self._builders = {
            ADD: self._addition,
            SUB: self._subtraction,
            MUL: self._multiplication,
            DIV: self._division,
        }

    def generate(self) -> Question:
        operator = self._rng.choice(OPERATORS)
        return self._builders[operator]()

    def _addend(self) -> int:
        return self._rng.randint(*self.ADDEND_RANGE)

    def _factor(self) -> int:
        return self._rng.randint(*self.FACTOR_RANGE)

    def _addition(self) -> Question:
        a, b = self._addend(), self._addend()
        return _make(ADD, a, b, a + b)

    def _subtraction(self) -> Question:
        first, second = self._addend(), self._addend()
        total = first + second
        # subtract one addend, the other is the answer
        if self._rng.random() < 0.5:
            return _make(SUB, total, first, second)
        return _make(SUB, total, second, first)

    def _multiplication(self) -> Question:
        a, b = self._factor(), self._addend()
        return _make(MUL, a, b, a * b)

    def _division(self) -> Question:
        divisor, quotient = self._addend(), self._factor()
        return _make(DIV, divisor * quotient, divisor, quotient)
