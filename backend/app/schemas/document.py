"""
Schemas for the document endpoints
"""
from datetime import date
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List

from ..models.document import MajorHead


class TagIn(BaseModel):
    tag_name: str

    @field_validator("tag_name")
    @classmethod
    def strip_tag(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Tag name cannot be empty")
        return v


class DocumentEntryData(BaseModel):
    """JSON carried in the `data` form field of saveDocumentEntry."""
    major_head: MajorHead
    minor_head: str = Field(min_length=1)
    document_date: Optional[date] = None
    document_remarks: Optional[str] = None
    tags: List[TagIn] = []

    @field_validator("document_date", mode="before")
    @classmethod
    def empty_date_is_none(cls, v):
        return v or None


class SearchValue(BaseModel):
    value: str = ""


class SearchDocumentRequest(BaseModel):
    major_head: Optional[MajorHead] = None
    minor_head: Optional[str] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    tags: List[TagIn] = []
    uploaded_by: Optional[int] = None
    start: int = Field(default=0, ge=0)
    length: int = Field(default=10, ge=1, le=100)
    search: Optional[SearchValue] = None

    @field_validator("major_head", "minor_head", "from_date", "to_date", "uploaded_by", mode="before")
    @classmethod
    def blank_is_none(cls, v):
        # The web client sends "" for unset filters
        return None if v == "" else v


class SearchDocumentResponse(BaseModel):
    success: bool = True
    data: List[dict]
    recordsTotal: int
    recordsFiltered: int


class DocumentTagsRequest(BaseModel):
    term: str = ""
