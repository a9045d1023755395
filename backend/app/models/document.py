from ..utils.clock import utcnow
import enum
from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, Text, Index
from sqlalchemy.orm import relationship
from ..db import Base


class MajorHead(str, enum.Enum):
    PERSONAL = "Personal"
    PROFESSIONAL = "Professional"


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True)
    filename = Column(String, nullable=False)  # stored name on disk
    original_name = Column(String, nullable=False)
    file_path = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(64), nullable=False)
    major_head = Column(String(32), nullable=False)
    minor_head = Column(String, nullable=False)
    document_date = Column(Date, nullable=True)
    remarks = Column(Text, nullable=True)
    uploaded_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    upload_date = Column(DateTime, default=utcnow, nullable=False, index=True)

    tags = relationship("DocumentTag", back_populates="document", cascade="all, delete-orphan", lazy="selectin")

    __table_args__ = (
        Index("ix_documents_heads", "major_head", "minor_head"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "original_name": self.original_name,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "major_head": self.major_head,
            "minor_head": self.minor_head,
            "document_date": self.document_date.isoformat() if self.document_date else None,
            "remarks": self.remarks,
            "tags": [{"tag_name": tag.tag_name} for tag in self.tags],
            "uploaded_by": self.uploaded_by,
            "upload_date": self.upload_date.isoformat() if self.upload_date else None,
        }


class DocumentTag(Base):
    __tablename__ = "document_tags"

    id = Column(Integer, primary_key=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    tag_name = Column(String, nullable=False, index=True)

    document = relationship("Document", back_populates="tags")
