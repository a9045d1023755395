"""
Document storage and search

Uploaded bytes live on local disk under UPLOAD_DIR/<user_id>/; metadata and
tags live in the documents / document_tags tables. Regular users only see
their own documents, admins see everything.
"""
import logging
import os
import re
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..models import Document, DocumentTag, User, UserRole
from ..schemas.document import DocumentEntryData, SearchDocumentRequest
from ..utils.clock import utcnow

logger = logging.getLogger(__name__)

# Extension -> canonical MIME type
ALLOWED_EXTENSIONS = {
    ".pdf": "application/pdf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
}
GENERIC_CONTENT_TYPES = {"", "application/octet-stream"}
CHUNK_SIZE = 64 * 1024
MAX_TAG_SUGGESTIONS = 20


class DocumentError(Exception):
    status_code = 400
    message = "Document operation failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_payload(self) -> dict:
        return {"success": False, "message": self.message}


class UnsupportedFileType(DocumentError):
    message = "Only PDF, JPEG and PNG files are allowed"


class EmptyFile(DocumentError):
    message = "Uploaded file is empty"


class FileTooLarge(DocumentError):
    status_code = 413

    def __init__(self, max_mb: int):
        super().__init__(f"File exceeds the {max_mb} MB limit")


class DocumentNotFound(DocumentError):
    status_code = 404
    message = "Document not found"


class DocumentStorageFailure(DocumentError):
    status_code = 500
    message = "Failed to upload document"


def sanitize_filename(filename: str) -> str:
    """Keep the basename and replace anything outside [A-Za-z0-9._-] with '_'."""
    name = os.path.basename(filename or "").strip()
    name = re.sub(r"[^A-Za-z0-9._-]", "_", name)
    return name.lstrip(".") or "document"


def resolve_mime_type(filename: str, content_type: Optional[str]) -> str:
    """
    Decide the stored MIME type from the extension, cross-checked against
    the declared content type.

    Raises:
        UnsupportedFileType: Unknown extension or conflicting content type
    """
    ext = Path(filename or "").suffix.lower()
    mime_type = ALLOWED_EXTENSIONS.get(ext)
    if mime_type is None:
        raise UnsupportedFileType()
    declared = (content_type or "").split(";")[0].strip().lower()
    if declared not in GENERIC_CONTENT_TYPES and declared != mime_type:
        raise UnsupportedFileType()
    return mime_type


def _is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN.value


def _visible_documents(db: Session, user: User):
    query = db.query(Document)
    if not _is_admin(user):
        query = query.filter(Document.uploaded_by == user.id)
    return query


class DocumentService:

    @staticmethod
    def save_document(
        db: Session,
        user: User,
        filename: str,
        content_type: Optional[str],
        fileobj: BinaryIO,
        entry: DocumentEntryData,
    ) -> Document:
        """
        Persist an uploaded file and its metadata.

        Bytes are streamed to disk in chunks; the upload is aborted (and the
        partial file removed) as soon as MAX_UPLOAD_SIZE_MB is exceeded.

        Raises:
            UnsupportedFileType, EmptyFile, FileTooLarge: Rejected upload
            DocumentStorageFailure: Disk or database error
        """
        mime_type = resolve_mime_type(filename, content_type)
        max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024

        user_dir = Path(settings.UPLOAD_DIR) / str(user.id)
        stored_name = f"{utcnow().strftime('%Y%m%dT%H%M%S%f')}_{sanitize_filename(filename)}"
        target = user_dir / stored_name

        size = 0
        try:
            user_dir.mkdir(parents=True, exist_ok=True)
            with open(target, "wb") as out:
                while True:
                    chunk = fileobj.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > max_bytes:
                        break
                    out.write(chunk)
        except OSError as e:
            target.unlink(missing_ok=True)
            logger.error(f"[Documents] Failed to write {target}: {e}", exc_info=True)
            raise DocumentStorageFailure()

        if size > max_bytes:
            target.unlink(missing_ok=True)
            raise FileTooLarge(settings.MAX_UPLOAD_SIZE_MB)
        if size == 0:
            target.unlink(missing_ok=True)
            raise EmptyFile()

        document = Document(
            filename=stored_name,
            original_name=os.path.basename(filename),
            file_path=str(target),
            file_size=size,
            mime_type=mime_type,
            major_head=entry.major_head.value,
            minor_head=entry.minor_head.strip(),
            document_date=entry.document_date,
            remarks=(entry.document_remarks or "").strip() or None,
            uploaded_by=user.id,
        )
        seen = set()
        for tag in entry.tags:
            if tag.tag_name.lower() in seen:
                continue
            seen.add(tag.tag_name.lower())
            document.tags.append(DocumentTag(tag_name=tag.tag_name))

        db.add(document)
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            target.unlink(missing_ok=True)
            logger.error(f"[Documents] Failed to save metadata for {stored_name}: {e}", exc_info=True)
            raise DocumentStorageFailure()

        db.refresh(document)
        logger.info(f"[Documents] User {user.id} uploaded document {document.id} ({size} bytes, {mime_type})")
        return document

    @staticmethod
    def search(db: Session, user: User, req: SearchDocumentRequest) -> Tuple[List[Document], int, int]:
        """
        Filtered, paginated listing, newest upload first.

        Returns:
            (page, records_total, records_filtered) where records_total counts
            every document visible to the user and records_filtered counts
            those matching the filters
        """
        base = _visible_documents(db, user)
        records_total = base.count()

        query = base
        if req.major_head is not None:
            query = query.filter(Document.major_head == req.major_head.value)
        if req.minor_head:
            query = query.filter(func.lower(Document.minor_head) == req.minor_head.strip().lower())
        if req.from_date is not None:
            query = query.filter(Document.document_date >= req.from_date)
        if req.to_date is not None:
            query = query.filter(Document.document_date <= req.to_date)
        if req.uploaded_by is not None:
            query = query.filter(Document.uploaded_by == req.uploaded_by)
        if req.tags:
            names = [tag.tag_name.lower() for tag in req.tags]
            query = query.filter(Document.tags.any(func.lower(DocumentTag.tag_name).in_(names)))
        term = (req.search.value if req.search else "").strip()
        if term:
            query = query.filter(or_(
                Document.original_name.icontains(term, autoescape=True),
                Document.remarks.icontains(term, autoescape=True),
                Document.tags.any(DocumentTag.tag_name.icontains(term, autoescape=True)),
            ))

        records_filtered = query.count()
        page = (
            query.order_by(Document.upload_date.desc(), Document.id.desc())
            .offset(req.start)
            .limit(req.length)
            .all()
        )
        return page, records_total, records_filtered

    @staticmethod
    def tag_suggestions(db: Session, term: str) -> List[str]:
        """Distinct tag names starting with `term` (case-insensitive), alphabetical."""
        query = db.query(DocumentTag.tag_name).distinct()
        term = (term or "").strip()
        if term:
            query = query.filter(DocumentTag.tag_name.istartswith(term, autoescape=True))
        rows = query.order_by(DocumentTag.tag_name).limit(MAX_TAG_SUGGESTIONS).all()
        return [row[0] for row in rows]

    @staticmethod
    def get_document(db: Session, user: User, document_id: int) -> Document:
        """
        Raises:
            DocumentNotFound: Missing, or owned by someone else (not revealed)
        """
        document = _visible_documents(db, user).filter(Document.id == document_id).first()
        if document is None:
            raise DocumentNotFound()
        return document

    @staticmethod
    def open_for_download(db: Session, user: User, document_id: int) -> Tuple[Document, Path]:
        document = DocumentService.get_document(db, user, document_id)
        path = Path(document.file_path)
        if not path.is_file():
            logger.error(f"[Documents] File for document {document.id} missing on disk: {path}")
            raise DocumentNotFound("Document file is missing")
        return document, path
