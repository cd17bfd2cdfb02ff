"""
Answer checking for quiz questions.

Each question type has its own comparison rule:

- SINGLE_CHOICE / TRUE_FALSE: equality after normalization
- MULTIPLE_SELECT: order-independent comparison of the selected options
- SHORT_ANSWER: case-insensitive, whitespace-trimmed exact match
- FILL_IN_BLANK: like SHORT_ANSWER, blank by blank when the answer is a list

Unknown question types never match.
"""

from typing import Any, List, Union

from app.quizzes.models import QuestionType


def _normalize(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value.strip()
    return value


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _fold(value: Any) -> str:
    return str(value).strip().lower()


def _check_exact(correct: Any, candidate: Any) -> bool:
    return _normalize(correct) == _normalize(candidate)


def _check_multi_select(correct: Any, candidate: Any) -> bool:
    expected = sorted(str(_normalize(v)) for v in _as_list(correct))
    given = sorted(str(_normalize(v)) for v in _as_list(candidate))
    return expected == given


def _check_text(correct: Any, candidate: Any) -> bool:
    if isinstance(candidate, (list, tuple)):
        return False
    return _fold(correct) == _fold(candidate)


def _check_blanks(correct: Any, candidate: Any) -> bool:
    if not isinstance(correct, (list, tuple)):
        return _check_text(correct, candidate)
    given = _as_list(candidate)
    if len(given) != len(correct):
        return False
    return all(_fold(c) == _fold(g) for c, g in zip(correct, given))


_CHECKERS = {
    QuestionType.SINGLE_CHOICE: _check_exact,
    QuestionType.TRUE_FALSE: _check_exact,
    QuestionType.MULTIPLE_SELECT: _check_multi_select,
    QuestionType.SHORT_ANSWER: _check_text,
    QuestionType.FILL_IN_BLANK: _check_blanks,
}


def check_answer(
    question_type: Union[QuestionType, str], correct_answer: Any, candidate: Any
) -> bool:
    """Return True when ``candidate`` matches ``correct_answer`` for the given type."""
    if candidate is None:
        return False
    try:
        checker = _CHECKERS.get(QuestionType(question_type))
    except ValueError:
        return False
    if checker is None:
        return False
    return checker(correct_answer, candidate)


def score_percentage(score: int, max_score: int) -> int:
    """Whole-number percentage, rounding halves up."""
    if max_score <= 0:
        return 0
    return (score * 200 + max_score) // (max_score * 2)
