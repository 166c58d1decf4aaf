"""Generated tests and attempts API endpoints."""
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.agents.quiz.fake_factory import FakeQuestionFactory
from app.core.agents.quiz.question_generator import QuestionGenerator
from app.core.dependencies import get_current_user, get_db, get_question_factory, get_question_generator
from app.core.permissions import UserContext
from app.schemas.common import ErrorResponse, OkResponse
from app.schemas.test import (
    AnswersUpdate,
    AttemptCreated,
    AttemptDetail,
    GenerateFolderTests,
    GenerateTestsResponse,
    SubmitResult,
    TestArchiveUpdate,
    TestDetail,
    TestSummary,
)
from app.services.test_service import TestService

router = APIRouter()

CONFLICT = {status.HTTP_409_CONFLICT: {"model": ErrorResponse}}


def get_test_service(
    db: Session = Depends(get_db),
    generator: Optional[QuestionGenerator] = Depends(get_question_generator),
    factory: FakeQuestionFactory = Depends(get_question_factory),
) -> TestService:
    return TestService(db, generator, factory)


@router.post(
    "/folders/{folder_id}/tests/generate",
    response_model=GenerateTestsResponse,
    status_code=status.HTTP_201_CREATED,
)
def generate_folder_tests(
    folder_id: int,
    options: GenerateFolderTests = GenerateFolderTests(),
    service: TestService = Depends(get_test_service),
    current_user: UserContext = Depends(get_current_user),
) -> Any:
    """
    Generate one topic test per document and a final test for the folder.
    """
    ids = service.generate_for_folder(folder_id, current_user, options)
    return GenerateTestsResponse(created_test_ids=ids)


@router.get("/folders/{folder_id}/tests", response_model=List[TestSummary])
def list_folder_tests(
    folder_id: int,
    include_archived: bool = Query(False),
    service: TestService = Depends(get_test_service),
    current_user: UserContext = Depends(get_current_user),
) -> Any:
    return service.list_tests_for_folder(folder_id, current_user, include_archived)


@router.get("/tests/{test_id}", response_model=TestDetail)
def get_test(
    test_id: int,
    service: TestService = Depends(get_test_service),
    current_user: UserContext = Depends(get_current_user),
) -> Any:
    """Test with questions; answer keys are not included."""
    return service.get_public_test(test_id, current_user)


@router.patch("/tests/{test_id}", response_model=TestSummary)
def update_test(
    test_id: int,
    update: TestArchiveUpdate,
    service: TestService = Depends(get_test_service),
    current_user: UserContext = Depends(get_current_user),
) -> Any:
    """Archive or unarchive a test."""
    return service.update_test(test_id, current_user, update.archived)


@router.post(
    "/tests/{test_id}/attempts",
    response_model=AttemptCreated,
    status_code=status.HTTP_201_CREATED,
    responses=CONFLICT,
)
def start_attempt(
    test_id: int,
    service: TestService = Depends(get_test_service),
    current_user: UserContext = Depends(get_current_user),
) -> Any:
    return service.create_attempt(test_id, current_user)


@router.patch("/attempts/{attempt_id}/answers", response_model=OkResponse, responses=CONFLICT)
def update_answers(
    attempt_id: int,
    payload: AnswersUpdate,
    service: TestService = Depends(get_test_service),
    current_user: UserContext = Depends(get_current_user),
) -> Any:
    """Write one or more answer slots of an in-progress attempt."""
    return service.update_answers(attempt_id, current_user, payload.answers)


@router.post("/attempts/{attempt_id}/submit", response_model=SubmitResult, responses=CONFLICT)
def submit_attempt(
    attempt_id: int,
    service: TestService = Depends(get_test_service),
    current_user: UserContext = Depends(get_current_user),
) -> Any:
    return service.submit_attempt(attempt_id, current_user)


@router.get("/attempts/{attempt_id}", response_model=AttemptDetail)
def get_attempt(
    attempt_id: int,
    service: TestService = Depends(get_test_service),
    current_user: UserContext = Depends(get_current_user),
) -> Any:
    return service.get_attempt(attempt_id, current_user)
