"""Folder schemas for request/response validation."""

from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime


class FolderBase(BaseModel):
    """Base folder schema."""
    name: str = Field(..., min_length=1, max_length=255, description="Folder name")
    color: Optional[str] = Field(None, max_length=32)
    icon: Optional[str] = Field(None, max_length=64)


class FolderCreate(FolderBase):
    """Schema for creating a new folder."""
    pass


class FolderUpdate(BaseModel):
    """Schema for renaming a folder."""
    name: str = Field(..., min_length=1, max_length=255, description="New folder name")


class FolderInDB(FolderBase):
    """Folder schema with database fields."""
    id: int
    owner_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FolderWithDocumentCount(FolderInDB):
    """Folder schema with the number of documents it holds."""
    document_count: int = 0

    class Config:
        from_attributes = True
