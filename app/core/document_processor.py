"""
Document processing pipeline: fetch bytes, extract page text, chunk, store.
Handles PDF, DOCX, PPTX, and TXT/Markdown files.
"""
import logging
from typing import Optional
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.helpers.chunker import TextChunker
from app.core.helpers.extracter import DocumentExtractor
from app.core.helpers.saver import ChunkStorage
from app.core.permissions import UserContext, get_owned_or_404
from app.models.document import Document, DocumentStatus
from app.services.file_service import FileService

logger = logging.getLogger(__name__)


class DocumentProcessor:
    """
    Main document processing pipeline.
    Orchestrates extraction, chunking and chunk storage.
    """

    def __init__(
        self,
        db: Session,
        file_service: FileService,
        extractor: Optional[DocumentExtractor] = None,
        chunker: Optional[TextChunker] = None,
    ):
        """
        Initialize document processor with database session.

        Args:
            db: SQLAlchemy database session
            file_service: Object storage holding the uploaded bytes
            extractor: Page text extractor
            chunker: Chunker carrying the default size and overlap
        """
        self.db = db
        self.file_service = file_service
        self.extractor = extractor or DocumentExtractor()
        self.chunker = chunker or TextChunker(settings.CHUNK_SIZE, settings.CHUNK_OVERLAP)
        self.storage = ChunkStorage(db)

    def parse_and_chunk(
        self,
        document_id: int,
        user: UserContext,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
    ) -> int:
        """
        (Re-)parse a stored document and replace its chunks.

        Args:
            document_id: Document to parse
            user: Caller, must own the document
            chunk_size: Overrides the default chunk size
            chunk_overlap: Overrides the default overlap

        Returns:
            Number of chunks stored

        Raises:
            HTTPException: 404/403 for a missing or foreign document
            ValueError: Invalid chunk parameters (before any change) or
                content that cannot be extracted (document marked failed)
        """
        doc = get_owned_or_404(self.db, Document, document_id, user, "Document")
        size = chunk_size or self.chunker.chunk_size
        overlap = self.chunker.chunk_overlap if chunk_overlap is None else chunk_overlap
        TextChunker.check_params(size, overlap)

        try:
            doc.status = DocumentStatus.PROCESSING  # type: ignore
            self.db.commit()

            logger.info(f"Loading file bytes for document {document_id} ('{doc.filename}')")
            file_bytes = self.file_service.get_file_content(doc.file_path)  # type: ignore

            pages = self.extractor.extract_pages(file_bytes, doc.filename, doc.mime_type)  # type: ignore
            chunks = self.chunker.split(document_id, pages, size, overlap)
            logger.info(f"Created {len(chunks)} chunks from {len(pages)} pages of document {document_id}")

            count = self.storage.replace_chunks(document_id, chunks)
            doc.page_count = len(pages)  # type: ignore
            doc.status = DocumentStatus.PARSED  # type: ignore
            self.db.commit()
            return count

        except Exception as e:
            logger.error(f"Failed to parse document {document_id}: {str(e)}")
            self.db.rollback()
            doc = self.db.query(Document).filter(Document.id == document_id).first()
            if doc:
                doc.status = DocumentStatus.FAILED  # type: ignore
                self.db.commit()
            raise
