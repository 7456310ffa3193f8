# services/session_gate.py

"""
Resolves a bearer token into ``{user, profile}``.

An unconfirmed identity is signed out and rejected. Profile resolution never
fails the request: a fetch or creation error leaves ``profile`` as None, which
every downstream check treats as the most restrictive (anonymous) case.
"""

from dataclasses import dataclass, field
from typing import Optional

from fastapi import HTTPException, status
from supabase import Client

from core.errors import extract_supabase_error
from core.logging_config import get_logger
from core.roles import ROLES
from services.profile_store import ProfileStore, seed_from_identity


logger = get_logger("session")

UNCONFIRMED_MESSAGE = "Please confirm your email before continuing."


@dataclass
class Identity:
    id: str
    email: Optional[str]
    confirmed: bool
    metadata: dict = field(default_factory=dict)


@dataclass
class Session:
    token: str
    user: Identity
    profile: Optional[dict] = None

    @property
    def role(self) -> Optional[str]:
        if not self.profile:
            return None
        role = self.profile.get("role")
        return role if role in ROLES else None


def identity_from_auth_user(auth_user) -> Identity:
    confirmed_at = getattr(auth_user, "email_confirmed_at", None) or getattr(auth_user, "confirmed_at", None)
    return Identity(
        id=str(auth_user.id),
        email=getattr(auth_user, "email", None),
        confirmed=bool(confirmed_at),
        metadata=getattr(auth_user, "user_metadata", None) or {},
    )


def invalid_token() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired authentication token",
        headers={"WWW-Authenticate": "Bearer"},
    )


class SessionGate:
    def __init__(self, client: Client):
        self.client = client
        self.profiles = ProfileStore(client)

    def resolve(self, token: str) -> Session:
        try:
            auth_resp = self.client.auth.get_user(token)
        except Exception as e:
            logger.info(f"Token rejected by identity provider: {extract_supabase_error(e)}")
            raise invalid_token()

        if not auth_resp or not auth_resp.user:
            raise invalid_token()

        identity = identity_from_auth_user(auth_resp.user)

        if not identity.confirmed:
            self.sign_out(token)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=UNCONFIRMED_MESSAGE,
            )

        return Session(token=token, user=identity, profile=self.load_profile(identity))

    def load_profile(self, identity: Identity) -> Optional[dict]:
        try:
            return self.profiles.create_profile_if_absent(
                identity.id,
                seed_from_identity(identity.email, identity.metadata),
            )
        except Exception as e:
            detail = getattr(e, "detail", None) or extract_supabase_error(e)
            logger.warning(f"Profile resolution failed for {identity.id}: {detail}")
            return None

    def sign_out(self, token: str) -> None:
        try:
            self.client.auth.admin.sign_out(token)
        except Exception as e:
            logger.warning(f"Server-side sign-out failed: {extract_supabase_error(e)}")
