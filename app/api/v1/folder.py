"""Folder management API endpoints."""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import func
from app.core.dependencies import get_current_user, get_db
from app.core.permissions import UserContext, get_owned_or_404
from app.models.document import Document
from app.models.folder import Folder
from app.schemas.folder import FolderCreate, FolderUpdate, FolderInDB, FolderWithDocumentCount

router = APIRouter()


def _document_count(db: Session, folder: Folder) -> int:
    return (
        db.query(func.count(Document.id))
        .filter(Document.folder_id == folder.id, Document.owner_id == folder.owner_id)
        .scalar()
    ) or 0


@router.post("/", response_model=FolderInDB, status_code=status.HTTP_201_CREATED)
def create_folder(
    folder: FolderCreate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user)
):
    """
    Create a new folder to organize documents.
    """
    db_folder = Folder(
        name=folder.name,
        color=folder.color,
        icon=folder.icon,
        owner_id=current_user.user_id,
    )
    db.add(db_folder)
    db.commit()
    db.refresh(db_folder)

    return db_folder


@router.get("/", response_model=List[FolderWithDocumentCount])
def list_folders(
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user)
):
    """
    Get the caller's folders with document counts, newest first.
    """
    folders = db.query(
        Folder,
        func.count(Document.id).label("document_count")
    ).outerjoin(
        Document, Folder.id == Document.folder_id
    ).filter(
        Folder.owner_id == current_user.user_id
    ).group_by(Folder.id).order_by(Folder.created_at.desc(), Folder.id.desc()).all()

    result = []
    for folder, document_count in folders:
        result.append(FolderWithDocumentCount(
            id=folder.id,
            name=folder.name,
            color=folder.color,
            icon=folder.icon,
            owner_id=folder.owner_id,
            created_at=folder.created_at,
            updated_at=folder.updated_at,
            document_count=document_count,
        ))

    return result


@router.get("/{folder_id}", response_model=FolderWithDocumentCount)
def get_folder(
    folder_id: int,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user)
):
    """
    Get a specific folder with document count.
    """
    folder = get_owned_or_404(db, Folder, folder_id, current_user, "Folder")
    return FolderWithDocumentCount(
        id=folder.id,
        name=folder.name,
        color=folder.color,
        icon=folder.icon,
        owner_id=folder.owner_id,
        created_at=folder.created_at,
        updated_at=folder.updated_at,
        document_count=_document_count(db, folder),
    )


@router.patch("/{folder_id}", response_model=FolderInDB)
def rename_folder(
    folder_id: int,
    folder_update: FolderUpdate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user)
):
    """
    Rename a folder.
    """
    folder = get_owned_or_404(db, Folder, folder_id, current_user, "Folder")
    folder.name = folder_update.name  # type: ignore
    db.commit()
    db.refresh(folder)

    return folder


@router.delete("/{folder_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_folder(
    folder_id: int,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user)
):
    """
    Delete an empty folder together with its tests.

    A folder that still holds documents cannot be deleted.
    """
    folder = get_owned_or_404(db, Folder, folder_id, current_user, "Folder")

    document_count = _document_count(db, folder)
    if document_count > 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Folder still contains {document_count} documents. Delete them first."
        )

    db.delete(folder)
    db.commit()

    return None
