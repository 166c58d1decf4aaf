"""
Chunk storage service for saving and sampling document chunks.
"""
import logging
from typing import List, Optional, Sequence
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.helpers.chunker import TextChunk
from app.models.document_chunk import DocumentChunk

logger = logging.getLogger(__name__)


class ChunkStorage:
    """Handle storing, listing and sampling document chunks."""

    def __init__(self, db: Session):
        """
        Initialize chunk storage.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def replace_chunks(self, document_id: int, chunks: Sequence[TextChunk]) -> int:
        """
        Delete every chunk of a document and insert a new batch.

        Both steps are flushed in the caller's transaction; the caller
        commits.

        Args:
            document_id: Document whose chunks are replaced
            chunks: New chunks, indices starting at 0

        Returns:
            Number of inserted chunks
        """
        deleted = (
            self.db.query(DocumentChunk)
            .filter(DocumentChunk.document_id == document_id)
            .delete(synchronize_session=False)
        )
        self.db.add_all(
            DocumentChunk(
                document_id=document_id,
                chunk_index=chunk.index,
                chunk_text=chunk.text,
                token_count=chunk.token_count,
                start_offset=chunk.start_offset,
                end_offset=chunk.end_offset,
                page_from=chunk.page_from,
                page_to=chunk.page_to,
            )
            for chunk in chunks
        )
        self.db.flush()
        logger.info(f"Replaced {deleted} chunks of document {document_id} with {len(chunks)} new ones")
        return len(chunks)

    def list_chunks(self, document_id: int, skip: int = 0, limit: Optional[int] = None) -> List[DocumentChunk]:
        """Chunks of a document ordered by index, optionally one page of them."""
        query = (
            self.db.query(DocumentChunk)
            .filter(DocumentChunk.document_id == document_id)
            .order_by(DocumentChunk.chunk_index)
            .offset(skip)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def sample_chunks(self, size: int, document_ids: Optional[Sequence[int]] = None) -> List[DocumentChunk]:
        """
        Random selection of chunks.

        Args:
            size: Maximum number of chunks to return
            document_ids: Restrict the sample to these documents

        Returns:
            Up to ``size`` chunks in random order
        """
        if size <= 0:
            return []
        query = self.db.query(DocumentChunk)
        if document_ids is not None:
            if not document_ids:
                return []
            query = query.filter(DocumentChunk.document_id.in_(list(document_ids)))
        return query.order_by(func.random()).limit(size).all()

    def delete_chunks(self, document_id: int) -> int:
        """Delete every chunk of a document."""
        return (
            self.db.query(DocumentChunk)
            .filter(DocumentChunk.document_id == document_id)
            .delete(synchronize_session=False)
        )
