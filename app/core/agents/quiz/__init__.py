"""
Quiz agent modules: question synthesis, AI generation and scoring.
"""
from .fake_factory import FakeQuestionFactory
from .question_generator import QuestionGenerator
from .redaction import redact_questions
from .schemas import SourceChunk
from .scoring import score_attempt, score_one

__all__ = [
    "FakeQuestionFactory",
    "QuestionGenerator",
    "SourceChunk",
    "redact_questions",
    "score_attempt",
    "score_one",
]
