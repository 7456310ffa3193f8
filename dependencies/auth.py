from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import Client

from core.config import settings
from core.roles import has_permission
from core.storage import ObjectStorage
from core.supabase_client import create_auth_client
from models.session import CurrentUser
from services.session_gate import Session, SessionGate


# auto_error=False so a missing header is answered with 401 rather than 403
bearer_scheme = HTTPBearer(auto_error=False)


# ============================================================
# Application-owned clients (built in main.lifespan)
# ============================================================
def get_supabase(request: Request) -> Client:
    client = getattr(request.app.state, "supabase", None)
    if client is None:
        raise HTTPException(500, "Supabase client not configured")
    return client


def get_storage(request: Request) -> ObjectStorage:
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise HTTPException(500, "Object storage not configured")
    return storage


# ============================================================
# SESSION RESOLUTION
# ============================================================
def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    if not credentials or not credentials.credentials:
        return None
    return credentials.credentials


def get_session(
    token: Optional[str] = Depends(get_bearer_token),
    client: Client = Depends(get_supabase),
) -> Session:
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return SessionGate(client).resolve(token)


def get_optional_session(
    request: Request,
    token: Optional[str] = Depends(get_bearer_token),
) -> Optional[Session]:
    """
    Anonymous-friendly variant. An invalid token reads as no session;
    an unconfirmed one has already been signed out by the gate.
    """
    if not token:
        return None

    try:
        return SessionGate(get_supabase(request)).resolve(token)
    except HTTPException:
        return None


def get_current_user(session: Session = Depends(get_session)) -> CurrentUser:
    """
    A session whose profile could not be resolved carries no role
    and is refused like an anonymous caller.
    """
    if session.role is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Profile not available for this session",
        )

    profile = session.profile or {}
    return CurrentUser(
        id=session.user.id,
        email=profile.get("email") or session.user.email,
        role=session.role,
        full_name=profile.get("full_name"),
    )


# ============================================================
# PERMISSION CHECK (core.roles.ROLE_PERMISSIONS)
# ============================================================
def requires_permission(permission: str):
    def checker(current_user: CurrentUser = Depends(get_current_user)):
        if not has_permission(current_user.role, permission):
            raise HTTPException(
                status_code=403,
                detail=f"Missing permission: {permission}",
            )
        return current_user
    return checker


# ============================================================
# AUTH-FLOW CLIENT (never the shared service-role client)
# ============================================================
def get_auth_client() -> Client:
    try:
        return create_auth_client(settings)
    except RuntimeError as e:
        raise HTTPException(500, str(e))
