"""
Document upload, search, tag lookup and download
"""
import logging
from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies.auth import get_current_user
from ..models import User
from ..schemas.document import (
    DocumentEntryData,
    SearchDocumentRequest,
    SearchDocumentResponse,
    DocumentTagsRequest,
)
from ..services.document_service import DocumentService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["documents"])


@router.post("/saveDocumentEntry")
def save_document_entry(
    file: UploadFile = File(...),
    data: str = Form(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Upload a document. `data` is a JSON string with major_head, minor_head,
    document_date, document_remarks and tags.
    """
    try:
        entry = DocumentEntryData.model_validate_json(data)
    except ValidationError as e:
        raise RequestValidationError(e.errors())

    document = DocumentService.save_document(
        db,
        user,
        filename=file.filename or "",
        content_type=file.content_type,
        fileobj=file.file,
        entry=entry,
    )
    return {
        "success": True,
        "message": "Document uploaded successfully",
        "data": document.to_dict(),
    }


@router.post("/searchDocumentEntry", response_model=SearchDocumentResponse)
def search_document_entry(
    payload: SearchDocumentRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    documents, total, filtered = DocumentService.search(db, user, payload)
    return SearchDocumentResponse(
        data=[doc.to_dict() for doc in documents],
        recordsTotal=total,
        recordsFiltered=filtered,
    )


@router.post("/documentTags")
def document_tags(
    payload: DocumentTagsRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    names = DocumentService.tag_suggestions(db, payload.term)
    return {"success": True, "data": [{"tag_name": name} for name in names]}


@router.get("/documents/{document_id}")
def get_document(
    document_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    document = DocumentService.get_document(db, user, document_id)
    return {"success": True, "data": document.to_dict()}


@router.get("/documents/{document_id}/download")
def download_document(
    document_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    document, path = DocumentService.open_for_download(db, user, document_id)
    logger.info(f"[Documents] User {user.id} downloading document {document.id}")
    return FileResponse(
        path=str(path),
        filename=document.original_name,
        media_type=document.mime_type,
    )
