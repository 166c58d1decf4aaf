"""
Question model: a tagged union over the seven question kinds.

Questions are stored and exchanged in the camelCase wire shape
(``correctIndices``, ``clozeAnswers``, ``matchLeft`` ...). Python code uses
the snake_case attribute names. Instances are frozen: a generated test is
never edited in place, regeneration replaces the whole set.
"""
import re
from enum import Enum
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel

GAP_PATTERN = re.compile(r"\{\{gap\d+\}\}")


class QuestionKind(str, Enum):
    """Discriminator values of the question union."""

    MCQ = "mcq"
    MSQ = "msq"
    TF = "tf"
    CLOZE = "cloze"
    SHORT = "short"
    MATCH = "match"
    ORDER = "order"


def count_gaps(text: str) -> int:
    """Number of ``{{gapN}}`` markers in a cloze text."""
    return len(GAP_PATTERN.findall(text or ""))


def _require_distinct(values: Iterable[Any], field: str) -> None:
    values = list(values)
    if len(set(values)) != len(values):
        raise ValueError(f"{field} must not contain duplicates")


def _require_in_range(indices: Iterable[int], size: int) -> None:
    for idx in indices:
        if idx < 0 or idx >= size:
            raise ValueError(f"index {idx} out of range for {size} options")


class QuestionSource(BaseModel):
    """Provenance of a generated question."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    chunk_id: Optional[str] = None
    file_id: Optional[str] = None


class QuestionBase(BaseModel):
    """Attributes shared by every question kind."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
    )

    text: str = Field(..., min_length=8, description="Prompt shown to the user")
    rationale: Optional[str] = Field(None, description="Why the answer is correct")
    source: Optional[QuestionSource] = None


class McqQuestion(QuestionBase):
    """Single choice: exactly one correct option."""

    kind: Literal["mcq"] = "mcq"
    options: List[str] = Field(..., min_length=2)
    correct_indices: List[int] = Field(..., min_length=1, max_length=1)

    @model_validator(mode="after")
    def check_answer_key(self):
        _require_distinct(self.options, "options")
        _require_in_range(self.correct_indices, len(self.options))
        return self


class MsqQuestion(QuestionBase):
    """Multiple choice: one or more correct options."""

    kind: Literal["msq"] = "msq"
    options: List[str] = Field(..., min_length=2)
    correct_indices: List[int] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_answer_key(self):
        _require_distinct(self.options, "options")
        _require_distinct(self.correct_indices, "correctIndices")
        _require_in_range(self.correct_indices, len(self.options))
        return self


class TrueFalseQuestion(QuestionBase):
    kind: Literal["tf"] = "tf"
    correct_bool: bool


class ClozeQuestion(QuestionBase):
    """Gap fill; answers fill the ``{{gapN}}`` markers left to right."""

    kind: Literal["cloze"] = "cloze"
    cloze_answers: List[Annotated[str, Field(min_length=1)]] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_gaps(self):
        gaps = count_gaps(self.text)
        if gaps == 0:
            raise ValueError("cloze text has no {{gapN}} markers")
        if len(self.cloze_answers) > gaps:
            raise ValueError(f"{len(self.cloze_answers)} answers for {gaps} gaps")
        return self


class ShortQuestion(QuestionBase):
    """Free text; matched case and whitespace insensitively when scored."""

    kind: Literal["short"] = "short"
    acceptable_answers: List[Annotated[str, Field(min_length=1)]] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_answers(self):
        _require_distinct(self.acceptable_answers, "acceptableAnswers")
        return self


class MatchQuestion(QuestionBase):
    """Pairing; left[i] belongs to right[i]."""

    kind: Literal["match"] = "match"
    match_left: List[Annotated[str, Field(min_length=1)]] = Field(..., min_length=2)
    match_right: List[Annotated[str, Field(min_length=1)]] = Field(..., min_length=2)

    @model_validator(mode="after")
    def check_columns(self):
        if len(self.match_left) != len(self.match_right):
            raise ValueError("matchLeft and matchRight must have equal length")
        return self


class OrderQuestion(QuestionBase):
    """Ordering; the stored sequence is the correct order."""

    kind: Literal["order"] = "order"
    order_items: List[Annotated[str, Field(min_length=1)]] = Field(..., min_length=3)


Question = Annotated[
    Union[
        McqQuestion,
        MsqQuestion,
        TrueFalseQuestion,
        ClozeQuestion,
        ShortQuestion,
        MatchQuestion,
        OrderQuestion,
    ],
    Field(discriminator="kind"),
]

question_adapter: TypeAdapter = TypeAdapter(Question)
question_list_adapter: TypeAdapter = TypeAdapter(List[Question])


def parse_question(data: Dict[str, Any]):
    """Validate one wire-shaped dict into its question variant."""
    return question_adapter.validate_python(data)


def parse_questions(data: List[Dict[str, Any]]) -> list:
    return question_list_adapter.validate_python(data)


def dump_questions(questions: Iterable[QuestionBase]) -> List[Dict[str, Any]]:
    """Serialize questions to the camelCase wire shape used for storage."""
    return [q.model_dump(mode="json", by_alias=True, exclude_none=True) for q in questions]
