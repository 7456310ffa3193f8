from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.access import Allow, resolve_access
from dependencies.auth import get_optional_session
from models.session import AccessDecisionRead, SessionRead, SessionUser
from services.session_gate import Session


router = APIRouter(
    prefix="/session",
    tags=["Session"],
)


# -----------------------------------------------------
# GET /session
# {user, profile}; both null when anonymous
# -----------------------------------------------------
@router.get("", response_model=SessionRead, summary="Current session and profile")
def read_session(session: Optional[Session] = Depends(get_optional_session)):
    if session is None:
        return SessionRead()

    return SessionRead(
        user=SessionUser(
            id=session.user.id,
            email=session.user.email,
            email_confirmed=session.user.confirmed,
            metadata=session.user.metadata,
        ),
        profile=session.profile,
    )


# -----------------------------------------------------
# GET /session/access?path=/admin/analytics
# Route gate for the frontend router
# -----------------------------------------------------
@router.get("/access", response_model=AccessDecisionRead, summary="Resolve access to a UI route")
def read_access(
    path: str = Query(..., description="UI path, e.g. /admin/analytics"),
    session: Optional[Session] = Depends(get_optional_session),
):
    decision = resolve_access(
        path,
        session_present=session is not None,
        role=session.role if session else None,
    )

    if isinstance(decision, Allow):
        return AccessDecisionRead(path=path, allow=True)
    return AccessDecisionRead(path=path, allow=False, redirect_to=decision.path)
