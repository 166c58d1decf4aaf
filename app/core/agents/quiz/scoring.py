"""
Per-kind answer scoring.

Each question scores 0 or 1. An answer with the wrong shape for its kind
scores 0, it never raises.
"""
from typing import Any, Callable, Dict, List, Sequence

from app.schemas.question import (
    ClozeQuestion,
    MatchQuestion,
    McqQuestion,
    MsqQuestion,
    OrderQuestion,
    QuestionBase,
    QuestionKind,
    ShortQuestion,
    TrueFalseQuestion,
)


def _norm(value: Any) -> str:
    return str(value if value is not None else "").strip().lower()


def _is_index(value: Any) -> bool:
    # bool is an int subclass; True must not count as option 1
    if isinstance(value, bool):
        return False
    # JSON clients may send 2.0 for index 2
    return isinstance(value, int) or (isinstance(value, float) and value.is_integer())


def _is_identity(answer: Any, size: int) -> bool:
    if not isinstance(answer, list) or len(answer) != size:
        return False
    return all(_is_index(a) and a == i for i, a in enumerate(answer))


def _score_mcq(q: McqQuestion, answer: Any) -> int:
    # numeric index only, letters are translated when answers are written
    if not _is_index(answer):
        return 0
    return int(q.correct_indices[0] == answer)


def _score_msq(q: MsqQuestion, answer: Any) -> int:
    if not isinstance(answer, list) or not all(_is_index(a) for a in answer):
        return 0
    return int(sorted(answer) == sorted(q.correct_indices))


def _score_tf(q: TrueFalseQuestion, answer: Any) -> int:
    if not isinstance(answer, bool):
        return 0
    return int(answer == q.correct_bool)


def _score_cloze(q: ClozeQuestion, answer: Any) -> int:
    if not isinstance(answer, list) or len(answer) != len(q.cloze_answers):
        return 0
    if not all(isinstance(a, str) for a in answer):
        return 0
    return int(all(_norm(expected) == _norm(given) for expected, given in zip(q.cloze_answers, answer)))


def _score_short(q: ShortQuestion, answer: Any) -> int:
    if not isinstance(answer, str):
        return 0
    given = _norm(answer)
    return int(any(_norm(accepted) == given for accepted in q.acceptable_answers))


def _score_match(q: MatchQuestion, answer: Any) -> int:
    # answer[i] is the right-column index chosen for left[i]
    return int(_is_identity(answer, len(q.match_left)))


def _score_order(q: OrderQuestion, answer: Any) -> int:
    return int(_is_identity(answer, len(q.order_items)))


_SCORERS: Dict[QuestionKind, Callable[[Any, Any], int]] = {
    QuestionKind.MCQ: _score_mcq,
    QuestionKind.MSQ: _score_msq,
    QuestionKind.TF: _score_tf,
    QuestionKind.CLOZE: _score_cloze,
    QuestionKind.SHORT: _score_short,
    QuestionKind.MATCH: _score_match,
    QuestionKind.ORDER: _score_order,
}


def score_one(question: QuestionBase, answer: Any) -> int:
    """Score one answer against its question: 1 when correct, else 0."""
    scorer = _SCORERS.get(QuestionKind(question.kind))
    return scorer(question, answer) if scorer else 0


def score_attempt(questions: Sequence[QuestionBase], answers: List[Any]) -> int:
    """Total score; missing answer slots count as unanswered."""
    return sum(
        score_one(q, answers[i] if i < len(answers) else None)
        for i, q in enumerate(questions)
    )
