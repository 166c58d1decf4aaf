"""Schemas module - Import all schemas."""
from app.schemas.question import (
    Question,
    QuestionKind,
    QuestionSource,
    dump_questions,
    parse_question,
    parse_questions,
)
from app.schemas.folder import FolderCreate, FolderUpdate, FolderInDB, FolderWithDocumentCount
from app.schemas.document import Document, DocumentChunk, DocumentDownload, ParseResult
from app.schemas.test import (
    AnswerUpdate,
    AnswersUpdate,
    AttemptCreated,
    AttemptDetail,
    GenerateFolderTests,
    GenerateTestsResponse,
    SubmitResult,
)
from app.schemas.common import ErrorResponse, OkResponse

__all__ = [
    "Question",
    "QuestionKind",
    "QuestionSource",
    "dump_questions",
    "parse_question",
    "parse_questions",
    "FolderCreate",
    "FolderUpdate",
    "FolderInDB",
    "FolderWithDocumentCount",
    "Document",
    "DocumentChunk",
    "DocumentDownload",
    "ParseResult",
    "AnswerUpdate",
    "AnswersUpdate",
    "AttemptCreated",
    "AttemptDetail",
    "GenerateFolderTests",
    "GenerateTestsResponse",
    "SubmitResult",
    "ErrorResponse",
    "OkResponse",
]
