"""Models module - Import all models here for Alembic."""
from app.db.base import Base
from app.models.folder import Folder
from app.models.document import Document, DocumentStatus
from app.models.document_chunk import DocumentChunk
from app.models.test import AttemptStatus, Test, TestAttempt, TestType

__all__ = ["Base", "Folder", "Document", "DocumentStatus", "DocumentChunk", "Test", "TestAttempt", "TestType", "AttemptStatus"]
