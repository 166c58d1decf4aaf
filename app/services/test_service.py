"""
Test generation and attempt lifecycle.

A folder generation run creates one topic test per document and one final
test across all of the folder's documents. Questions come from the AI
generator when requested and available, with deterministic questions as
the fallback for every test. Attempts collect answers while in progress and
are scored once on submit.
"""
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.agents.quiz.fake_factory import FakeQuestionFactory
from app.core.agents.quiz.question_generator import QuestionGenerator
from app.core.agents.quiz.redaction import redact_questions
from app.core.agents.quiz.schemas import SourceChunk
from app.core.agents.quiz.scoring import score_attempt
from app.core.helpers.saver import ChunkStorage
from app.core.permissions import UserContext, get_owned_or_404
from app.models.document import Document
from app.models.folder import Folder
from app.models.test import AttemptStatus, Test, TestAttempt, TestType
from app.schemas.question import QuestionBase, dump_questions, parse_questions
from app.schemas.test import AnswerUpdate, GenerateFolderTests

logger = logging.getLogger(__name__)

STRATEGY_LABELS = {"fake": "fake-v1", "ai": "ai-v1"}


def topic_title(filename: Optional[str]) -> str:
    """Topic test title: the file name without its extension."""
    return Path(filename or "").stem or "Topic"


def final_title(folder_name: Optional[str]) -> str:
    return f"Final – {folder_name or 'Lesson'}"


def _summary(test: Test) -> Dict[str, Any]:
    return {
        "id": test.id,
        "folder_id": test.folder_id,
        "document_id": test.document_id,
        "type": test.type,
        "title": test.title,
        "archived": bool(test.archived),
        "strategy": test.strategy,
        "question_count": len(test.questions or []),
        "created_at": test.created_at,
    }


class TestService:
    """Generate tests for folders and run attempts against them."""

    def __init__(
        self,
        db: Session,
        generator: Optional[QuestionGenerator] = None,
        factory: Optional[FakeQuestionFactory] = None,
    ):
        """
        Args:
            db: Database session, committed by the service
            generator: AI question generator; None disables the AI path
            factory: Deterministic question factory used as fallback
        """
        self.db = db
        self.generator = generator
        self.factory = factory or FakeQuestionFactory()
        self.chunks = ChunkStorage(db)

    # ---------- Tests ----------

    def get_public_test(self, test_id: int, user: UserContext) -> Dict[str, Any]:
        """Test with its questions redacted."""
        test = get_owned_or_404(self.db, Test, test_id, user, "Test")
        return {**_summary(test), "questions": redact_questions(test.questions or [])}

    def list_tests_for_folder(
        self, folder_id: int, user: UserContext, include_archived: bool = False
    ) -> List[Dict[str, Any]]:
        """Folder tests ordered by type, then newest first."""
        folder = get_owned_or_404(self.db, Folder, folder_id, user, "Folder")
        query = self.db.query(Test).filter(
            Test.folder_id == folder.id,
            Test.owner_id == folder.owner_id,
        )
        if not include_archived:
            query = query.filter(Test.archived.is_(False))
        rows = query.order_by(Test.type.asc(), Test.created_at.desc(), Test.id.desc()).all()
        return [_summary(t) for t in rows]

    def update_test(self, test_id: int, user: UserContext, archived: bool) -> Dict[str, Any]:
        test = get_owned_or_404(self.db, Test, test_id, user, "Test")
        test.archived = archived  # type: ignore
        self.db.commit()
        self.db.refresh(test)
        logger.info(f"Test {test_id} archived={archived}")
        return _summary(test)

    # ---------- Generation ----------

    def generate_for_folder(self, folder_id: int, user: UserContext, options: GenerateFolderTests) -> List[int]:
        """
        Create the topic tests and the final test of a folder.

        Documents that yield no questions are skipped. The archive step and
        every created test are committed together.

        Returns:
            Ids of the created tests

        Raises:
            HTTPException 404/403: Missing or foreign folder
            HTTPException 400: Folder has no documents, or no test could be created
        """
        folder = get_owned_or_404(self.db, Folder, folder_id, user, "Folder")
        owner_id = folder.owner_id
        documents = (
            self.db.query(Document)
            .filter(Document.folder_id == folder.id, Document.owner_id == owner_id)
            .order_by(Document.id)
            .all()
        )
        if not documents:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Folder has no files for this user",
            )

        if options.archive_existing:
            archived = (
                self.db.query(Test)
                .filter(Test.owner_id == owner_id, Test.folder_id == folder.id, Test.archived.is_(False))
                .update({Test.archived: True}, synchronize_session=False)
            )
            logger.info(f"Archived {archived} tests of folder {folder.id}")

        if options.strategy == "ai" and self.generator is None:
            logger.warning("AI strategy requested but no generator is configured, using deterministic questions")

        label = STRATEGY_LABELS[options.strategy]
        created: List[Test] = []

        for doc in documents:
            questions = self._build_questions([doc.id], options.topic_count, options.strategy, options.mix)
            if not questions:
                logger.warning(f"Document {doc.id} produced no questions, skipping topic test")
                continue
            created.append(self._add_test(
                owner_id, folder.id, TestType.TOPIC, topic_title(doc.filename), questions, label, doc.id
            ))

        final_questions = self._build_questions(
            [d.id for d in documents], options.final_count, options.strategy, options.mix
        )
        if final_questions:
            created.append(self._add_test(
                owner_id, folder.id, TestType.FINAL, final_title(folder.name), final_questions, label
            ))

        if not created:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No questions could be generated from chunks",
            )

        self.db.commit()
        ids = [t.id for t in created]
        logger.info(f"Generated {len(ids)} tests for folder {folder.id} with strategy {label}")
        return ids

    def _add_test(
        self,
        owner_id: str,
        folder_id: int,
        test_type: str,
        title: str,
        questions: Sequence[QuestionBase],
        strategy: str,
        document_id: Optional[int] = None,
    ) -> Test:
        test = Test(
            owner_id=owner_id,
            folder_id=folder_id,
            document_id=document_id,
            type=test_type,
            title=title,
            archived=False,
            strategy=strategy,
            questions=dump_questions(questions),
        )
        self.db.add(test)
        self.db.flush()
        return test

    def _build_questions(
        self,
        document_ids: Sequence[int],
        count: int,
        strategy: str,
        mix: Optional[Mapping[Any, float]] = None,
    ) -> List[QuestionBase]:
        sample = self.chunks.sample_chunks(count * 2, document_ids)
        chunks = [
            SourceChunk(id=str(c.id), text=c.chunk_text, file_id=str(c.document_id))  # type: ignore
            for c in sample
        ]
        if not chunks:
            return []

        if strategy == "ai" and self.generator is not None:
            questions = self.generator.generate_from_chunks(chunks, count, mix)
            if questions:
                return list(questions[:count])
            logger.warning(f"AI generation returned nothing for documents {list(document_ids)}, falling back")

        return self.factory.make_batch(chunks[:count])

    # ---------- Attempts ----------

    def create_attempt(self, test_id: int, user: UserContext) -> Dict[str, Any]:
        test = get_owned_or_404(self.db, Test, test_id, user, "Test")
        if test.archived:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Test is archived")

        answers: List[Any] = [None] * len(test.questions or [])
        attempt = TestAttempt(
            owner_id=user.user_id,
            test_id=test.id,
            status=AttemptStatus.IN_PROGRESS,
            answers=answers,
        )
        self.db.add(attempt)
        self.db.commit()
        self.db.refresh(attempt)
        return {"attempt_id": attempt.id, "total": len(answers), "status": attempt.status}

    def _get_open_attempt(self, attempt_id: int, user: UserContext) -> TestAttempt:
        attempt = get_owned_or_404(self.db, TestAttempt, attempt_id, user, "Attempt")
        if attempt.status != AttemptStatus.IN_PROGRESS:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Attempt already submitted")
        return attempt

    def update_answers(self, attempt_id: int, user: UserContext, updates: Sequence[AnswerUpdate]) -> Dict[str, Any]:
        """Write answer slots; updates for out-of-range question indices are ignored."""
        attempt = self._get_open_attempt(attempt_id, user)

        # assign a new list so the JSON column change is detected
        answers = list(attempt.answers or [])
        for update in updates:
            if not 0 <= update.q < len(answers):
                logger.debug(f"Attempt {attempt_id}: ignoring answer for question {update.q}")
                continue
            answers[update.q] = update.resolved_value()
        attempt.answers = answers  # type: ignore
        self.db.commit()
        return {"ok": True}

    def submit_attempt(self, attempt_id: int, user: UserContext) -> Dict[str, Any]:
        """Score and close an attempt."""
        attempt = self._get_open_attempt(attempt_id, user)
        test = attempt.test
        if test is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Test missing")

        questions = parse_questions(test.questions or [])
        score = score_attempt(questions, list(attempt.answers or []))
        submitted_at = datetime.now(timezone.utc)

        attempt.status = AttemptStatus.SUBMITTED  # type: ignore
        attempt.score = score  # type: ignore
        attempt.total = len(questions)  # type: ignore
        attempt.submitted_at = submitted_at  # type: ignore
        self.db.commit()
        logger.info(f"Attempt {attempt_id} submitted: {score}/{len(questions)}")

        return {
            "attempt_id": attempt.id,
            "score": score,
            "total": len(questions),
            "submitted_at": submitted_at,
        }

    def get_attempt(self, attempt_id: int, user: UserContext) -> Dict[str, Any]:
        attempt = get_owned_or_404(self.db, TestAttempt, attempt_id, user, "Attempt")
        test = attempt.test
        if test is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Test missing")

        question_count = len(test.questions or [])
        return {
            "id": attempt.id,
            "test_id": attempt.test_id,
            "status": attempt.status,
            "answers": list(attempt.answers or []),
            "score": attempt.score,
            "total": attempt.total if attempt.total is not None else question_count,
            "submitted_at": attempt.submitted_at,
            "test": {
                "id": test.id,
                "title": test.title,
                "type": test.type,
                "question_count": question_count,
            },
        }
