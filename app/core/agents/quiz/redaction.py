"""
Strip answer keys from stored questions before they are shown to a test taker.
"""
from typing import Any, Dict, List, Sequence

from app.schemas.question import QuestionKind

# wire fields a test taker may see, besides the common ones
_VISIBLE_FIELDS = {
    QuestionKind.MCQ.value: ("options",),
    QuestionKind.MSQ.value: ("options",),
    QuestionKind.TF.value: (),
    QuestionKind.CLOZE.value: (),
    QuestionKind.SHORT.value: (),
    QuestionKind.MATCH.value: ("matchLeft", "matchRight"),
    QuestionKind.ORDER.value: ("orderItems",),
}

_COMMON_FIELDS = ("kind", "text", "rationale", "source")


def redact_question(question: Dict[str, Any]) -> Dict[str, Any]:
    kind = question.get("kind")
    out = {field: question[field] for field in _COMMON_FIELDS if question.get(field) is not None}
    for field in _VISIBLE_FIELDS.get(kind, ()):
        out[field] = list(question.get(field) or [])
    return out


def redact_questions(questions: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Wire-shaped questions without correctIndices, correctBool, clozeAnswers or acceptableAnswers."""
    return [redact_question(q) for q in questions]
