"""
Generated tests and the attempts users make against them.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, JSON, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base


class TestType:
    TOPIC = "topic"
    FINAL = "final"


class AttemptStatus:
    """Attempt lifecycle; submitted is terminal."""

    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


class Test(Base):
    """Generated test model (one topic test per file, one final test per folder)."""

    __tablename__ = "tests"
    __table_args__ = (
        Index("ix_tests_owner_folder_type", "owner_id", "folder_id", "type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String, nullable=False)
    folder_id = Column(Integer, ForeignKey("folders.id", ondelete="CASCADE"), nullable=False, index=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="SET NULL"), nullable=True, index=True)  # topic tests only
    type = Column(String, nullable=False)  # topic, final
    title = Column(String, nullable=False)
    archived = Column(Boolean, default=False, nullable=False)
    strategy = Column(String, default="fake-v1", nullable=False)  # fake-v1, ai-v1
    questions = Column(JSON, nullable=False, default=list)  # serialized Question union, wire (camelCase) shape
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    folder = relationship("Folder", back_populates="tests")
    attempts = relationship("TestAttempt", back_populates="test", cascade="all, delete-orphan")


class TestAttempt(Base):
    """One user's answering session against a test."""

    __tablename__ = "test_attempts"
    __table_args__ = (
        Index("ix_test_attempts_owner_test", "owner_id", "test_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String, nullable=False)
    test_id = Column(Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String, default="in_progress", nullable=False, index=True)  # in_progress, submitted
    answers = Column(JSON, nullable=False, default=list)  # one slot per question, None = unanswered
    score = Column(Integer, nullable=True)
    total = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    submitted_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    test = relationship("Test", back_populates="attempts")
