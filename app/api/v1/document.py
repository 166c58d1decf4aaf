import logging
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query, status
from fastapi import UploadFile, File, HTTPException
from sqlalchemy.orm import Session

from app.core.dependencies import get_current_user, get_db, get_file_service
from app.core.document_processor import DocumentProcessor
from app.core.helpers.saver import ChunkStorage
from app.core.permissions import UserContext, get_owned_or_404
from app.models.document import Document, DocumentStatus
from app.models.folder import Folder
from app.schemas.document import (
    Document as DocumentSchema,
    DocumentChunk as DocumentChunkSchema,
    DocumentDownload,
    ParseResult,
)
from app.services.file_service import FileService, guess_content_type, validate_upload

logger = logging.getLogger(__name__)

router = APIRouter()

DOWNLOAD_URL_MINUTES = 15


@router.post(
    "/folders/{folder_id}/documents",
    response_model=DocumentSchema,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    folder_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
    file_service: FileService = Depends(get_file_service),
) -> Any:
    """
    Upload a document into a folder. Parsing is a separate step.
    """
    folder = get_owned_or_404(db, Folder, folder_id, current_user, "Folder")

    filename = getattr(file, "filename", "") or ""
    content = await file.read()
    is_valid, message = validate_upload(filename, len(content))
    if not is_valid:
        logger.warning(f"File validation failed: {message}")
        raise HTTPException(status_code=400, detail=message)

    content_type = guess_content_type(filename, file.content_type)
    try:
        object_key = file_service.upload_bytes(content, filename, folder.owner_id, content_type)  # type: ignore
    except Exception as e:
        logger.error(f"Error uploading file: {e}")
        raise HTTPException(status_code=500, detail="Failed to upload document.")

    document = Document(
        folder_id=folder.id,
        owner_id=folder.owner_id,
        filename=filename,
        file_path=object_key,
        mime_type=content_type,
        file_size=len(content),
        status=DocumentStatus.UPLOADED,
    )
    db.add(document)
    db.commit()
    db.refresh(document)

    logger.info(f"Document '{filename}' uploaded to folder {folder.id} by user '{current_user.user_id}'.")
    return document


@router.get("/folders/{folder_id}/documents", response_model=List[DocumentSchema])
def list_documents(
    folder_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
) -> Any:
    """List the documents of a folder, newest first."""
    folder = get_owned_or_404(db, Folder, folder_id, current_user, "Folder")
    return (
        db.query(Document)
        .filter(Document.folder_id == folder.id, Document.owner_id == folder.owner_id)
        .order_by(Document.created_at.desc(), Document.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


@router.get("/documents/{document_id}", response_model=DocumentSchema)
def get_document(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
) -> Any:
    return get_owned_or_404(db, Document, document_id, current_user, "Document")


@router.get("/documents/{document_id}/download", response_model=DocumentDownload)
def get_download_url(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
    file_service: FileService = Depends(get_file_service),
) -> Any:
    """Signed, short-lived download URL for the stored file."""
    document = get_owned_or_404(db, Document, document_id, current_user, "Document")
    url = file_service.generate_signed_url(document.file_path, DOWNLOAD_URL_MINUTES)  # type: ignore
    return DocumentDownload(url=url, expires_in_minutes=DOWNLOAD_URL_MINUTES)


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
    file_service: FileService = Depends(get_file_service),
):
    """Delete a document, its stored file and its chunks."""
    document = get_owned_or_404(db, Document, document_id, current_user, "Document")

    if not file_service.delete_file(document.file_path):  # type: ignore
        logger.warning(f"Stored file of document {document_id} could not be deleted")

    ChunkStorage(db).delete_chunks(document.id)  # type: ignore
    db.delete(document)
    db.commit()
    logger.info(f"Document {document_id} deleted by user '{current_user.user_id}'")
    return None


@router.post("/documents/{document_id}/parse", response_model=ParseResult)
def parse_document(
    document_id: int,
    size: Optional[int] = Query(None, ge=1, description="Target chunk size in characters"),
    overlap: Optional[int] = Query(None, ge=0, description="Overlap between consecutive chunks"),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
    file_service: FileService = Depends(get_file_service),
) -> Any:
    """
    Extract the document's text and replace its chunks.
    """
    processor = DocumentProcessor(db, file_service)
    try:
        count = processor.parse_and_chunk(document_id, current_user, size, overlap)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return ParseResult(document_id=document_id, chunks=count, status=DocumentStatus.PARSED)


@router.get("/documents/{document_id}/chunks", response_model=List[DocumentChunkSchema])
def list_chunks(
    document_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
) -> Any:
    """Chunks of a document in index order, paged with skip/limit."""
    document = get_owned_or_404(db, Document, document_id, current_user, "Document")
    return ChunkStorage(db).list_chunks(document.id, skip, limit)  # type: ignore
