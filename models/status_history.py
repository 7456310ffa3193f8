# models/status_history.py

from typing import Optional
from datetime import datetime
from pydantic import BaseModel


class StatusHistoryRead(BaseModel):
    """
    One append-only transition record.
    ``changed_by`` is None for resident self-service actions (cancellation).
    """
    id: str
    request_id: str
    old_status: Optional[str] = None
    new_status: str
    notes: Optional[str] = None
    changed_by: Optional[str] = None
    changed_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
