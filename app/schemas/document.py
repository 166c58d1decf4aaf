"""
Pydantic schemas for Document and DocumentChunk models.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class DocumentInDB(BaseModel):
    """Schema for document in database."""

    id: int
    folder_id: int
    owner_id: str
    filename: str
    mime_type: Optional[str] = None
    file_size: int
    page_count: Optional[int] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        """Pydantic config."""

        from_attributes = True


class Document(DocumentInDB):
    """Schema for document response."""

    pass


class DocumentDownload(BaseModel):
    url: str
    expires_in_minutes: int


class ParseResult(BaseModel):
    """Outcome of a parse-and-chunk run."""

    document_id: int
    chunks: int
    status: str


class DocumentChunk(BaseModel):
    """Schema for a stored chunk."""

    id: int
    document_id: int
    chunk_index: int
    chunk_text: str
    token_count: int
    start_offset: int
    end_offset: int
    page_from: Optional[int] = None
    page_to: Optional[int] = None

    class Config:
        from_attributes = True
