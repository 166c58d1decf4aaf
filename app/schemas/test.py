"""
Pydantic schemas for generated tests and attempts.

Request and response bodies use camelCase on the wire.
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.question import QuestionKind

OPTION_LETTERS = {"A": 0, "B": 1, "C": 2, "D": 3}


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ---------- Generation ----------

class GenerateFolderTests(CamelModel):
    """Options for generating a folder's topic tests and final test."""

    topic_count: int = Field(5, ge=1, le=50, description="Questions per topic (file) test")
    final_count: int = Field(20, ge=1, le=200, description="Questions in the final test")
    archive_existing: bool = Field(True, description="Archive the folder's active tests first")
    strategy: Literal["fake", "ai"] = "fake"
    mix: Optional[Dict[QuestionKind, float]] = Field(
        None,
        description="Relative weight per question kind, e.g. {\"mcq\": 5, \"tf\": 2}",
    )


class GenerateTestsResponse(CamelModel):
    created_test_ids: List[int]


# ---------- Tests ----------

class TestSummary(CamelModel):
    """Test listing entry."""

    id: int
    folder_id: int
    document_id: Optional[int] = None
    type: str
    title: str
    archived: bool
    strategy: str
    question_count: int
    created_at: Optional[datetime] = None


class TestDetail(TestSummary):
    """Test with its questions, answer keys removed."""

    questions: List[Dict[str, Any]]


class TestArchiveUpdate(CamelModel):
    archived: bool


# ---------- Attempts ----------

class AttemptCreated(CamelModel):
    attempt_id: int
    total: int
    status: str


class AnswerUpdate(BaseModel):
    """
    One answer slot update.

    ``q`` is the question index. The answer itself may arrive under any of
    several aliases; the first one present in the order ``value``,
    ``option``, ``index``, ``indices``, ``bool``, ``cloze``, ``text``,
    ``match``, ``order`` wins. ``option`` is the legacy letter encoding of
    a single choice (A-D map to 0-3).
    """

    model_config = ConfigDict(populate_by_name=True)

    q: int
    value: Any = None
    option: Optional[str] = None
    index: Optional[int] = None
    indices: Optional[List[int]] = None
    bool_: Optional[bool] = Field(None, alias="bool")
    cloze: Optional[List[str]] = None
    text: Optional[str] = None
    match: Optional[List[int]] = None
    order: Optional[List[int]] = None

    def resolved_value(self) -> Any:
        """Answer in its internal representation, None when unanswered."""
        for name in ("value", "option", "index", "indices", "bool_", "cloze", "text", "match", "order"):
            if name not in self.model_fields_set:
                continue
            raw = getattr(self, name)
            if name == "option":
                return OPTION_LETTERS.get((raw or "").strip().upper())
            return raw
        return None


class AnswersUpdate(BaseModel):
    answers: List[AnswerUpdate] = Field(..., min_length=1)


class SubmitResult(CamelModel):
    attempt_id: int
    score: int
    total: int
    submitted_at: datetime


class AttemptTestMeta(CamelModel):
    id: int
    title: str
    type: str
    question_count: int


class AttemptDetail(CamelModel):
    id: int
    test_id: int
    status: str
    answers: List[Any]
    score: Optional[int] = None
    total: int
    submitted_at: Optional[datetime] = None
    test: AttemptTestMeta
