# models/attachment.py

from typing import Optional
from datetime import datetime
from pydantic import BaseModel

from models.enums import DocumentCategory


class AttachmentRead(BaseModel):
    id: str
    request_id: str
    file_path: str
    file_name: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_by: Optional[str] = None
    document_category: DocumentCategory
    created_at: Optional[datetime] = None


class SignedUrlResponse(BaseModel):
    url: str
    expires_in: int
