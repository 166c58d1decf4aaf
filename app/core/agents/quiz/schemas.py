"""
Wire-level schemas for model-authored question batches.

These mirror the structural rules the model is asked to follow. They are
looser than :mod:`app.schemas.question` (no range or duplicate checks);
sanitization tightens the accepted questions afterwards.
"""
from dataclasses import dataclass
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.question import QuestionKind

NonEmpty = Annotated[str, Field(min_length=1)]
Index = Annotated[int, Field(ge=0)]


@dataclass(frozen=True)
class SourceChunk:
    """Chunk text handed to a question generator, with its provenance ids."""

    id: str
    text: str
    file_id: Optional[str] = None


class RawSource(BaseModel):
    model_config = ConfigDict(extra="ignore")

    chunkId: Optional[str] = None
    fileId: Optional[str] = None


class RawQuestionBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str = Field(..., min_length=8)
    rationale: Optional[str] = None
    source: Optional[RawSource] = None


class RawMcq(RawQuestionBase):
    kind: Literal["mcq"]
    options: List[str] = Field(..., min_length=2)
    correctIndices: List[Index] = Field(..., min_length=1, max_length=1)


class RawMsq(RawQuestionBase):
    kind: Literal["msq"]
    options: List[str] = Field(..., min_length=2)
    correctIndices: List[Index] = Field(..., min_length=1)


class RawTf(RawQuestionBase):
    kind: Literal["tf"]
    correctBool: bool


class RawCloze(RawQuestionBase):
    kind: Literal["cloze"]
    clozeAnswers: List[NonEmpty] = Field(..., min_length=1)


class RawShort(RawQuestionBase):
    kind: Literal["short"]
    acceptableAnswers: List[NonEmpty] = Field(..., min_length=1)


class RawMatch(RawQuestionBase):
    kind: Literal["match"]
    matchLeft: List[NonEmpty] = Field(..., min_length=2)
    matchRight: List[NonEmpty] = Field(..., min_length=2)


class RawOrder(RawQuestionBase):
    kind: Literal["order"]
    orderItems: List[NonEmpty] = Field(..., min_length=3)


RawQuestion = Annotated[
    Union[RawMcq, RawMsq, RawTf, RawCloze, RawShort, RawMatch, RawOrder],
    Field(discriminator="kind"),
]


class RawPayload(BaseModel):
    """Top-level object returned through the tool/function call."""

    questions: List[RawQuestion] = Field(..., min_length=1)


FUNCTION_NAME = "return_questions"
FUNCTION_DESCRIPTION = "Returns a batch of generated questions following the schema"


def questions_parameters(max_items: int) -> Dict[str, Any]:
    """JSON schema of the function arguments, shared by both calling conventions."""
    string_list = {"type": "array", "items": {"type": "string"}}
    return {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "questions": {
                "type": "array",
                "minItems": 1,
                "maxItems": max_items,
                "items": {
                    "type": "object",
                    "additionalProperties": False,
                    "properties": {
                        "kind": {"type": "string", "enum": [k.value for k in QuestionKind]},
                        "text": {"type": "string"},
                        "rationale": {"type": "string"},
                        "source": {
                            "type": "object",
                            "additionalProperties": False,
                            "properties": {
                                "chunkId": {"type": "string"},
                                "fileId": {"type": "string"},
                            },
                        },
                        "options": string_list,
                        "correctIndices": {"type": "array", "items": {"type": "integer"}},
                        "correctBool": {"type": "boolean"},
                        "clozeAnswers": string_list,
                        "acceptableAnswers": string_list,
                        "matchLeft": string_list,
                        "matchRight": string_list,
                        "orderItems": string_list,
                    },
                    "required": ["kind", "text"],
                },
            },
        },
        "required": ["questions"],
    }


def tool_descriptor(max_items: int) -> Dict[str, Any]:
    """Descriptor for the ``tools`` calling convention."""
    return {
        "type": "function",
        "function": {
            "name": FUNCTION_NAME,
            "description": FUNCTION_DESCRIPTION,
            "parameters": questions_parameters(max_items),
        },
    }


def legacy_function_descriptor(max_items: int) -> Dict[str, Any]:
    """Descriptor for the legacy ``functions`` calling convention."""
    return {
        "name": FUNCTION_NAME,
        "description": FUNCTION_DESCRIPTION,
        "parameters": questions_parameters(max_items),
    }
