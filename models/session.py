# models/session.py

from typing import Any, Dict, Optional
from pydantic import BaseModel

from core.roles import is_admin_tier, is_staff


# ============================================================
# Current User (resolved from a confirmed session + profile)
# ============================================================
class CurrentUser(BaseModel):
    id: str
    email: Optional[str] = None
    role: str
    full_name: Optional[str] = None

    @property
    def is_staff(self) -> bool:
        return is_staff(self.role)

    @property
    def is_admin_tier(self) -> bool:
        return is_admin_tier(self.role)


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None
    email_confirmed: bool = False
    metadata: Dict[str, Any] = {}


class SessionRead(BaseModel):
    """``GET /session``; both fields are null for an anonymous caller."""
    user: Optional[SessionUser] = None
    profile: Optional[Dict[str, Any]] = None


class AccessDecisionRead(BaseModel):
    path: str
    allow: bool
    redirect_to: Optional[str] = None
