from fastapi import APIRouter, HTTPException, Depends, Request
from supabase import Client

from core.config import settings
from core.errors import extract_supabase_error
from core.logging_config import logger
from core.rate_limiter import require_rate_limit, get_rate_limit_identifier
from dependencies.auth import get_auth_client, get_bearer_token, get_supabase
from models.auth import (
    AuthCallbackRequest,
    EmailRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
)
from services.session_gate import (
    UNCONFIRMED_MESSAGE,
    SessionGate,
    identity_from_auth_user,
    invalid_token,
)


router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)

EMAIL_RATE_LIMIT = 5
EMAIL_RATE_WINDOW_SECONDS = 15 * 60

GENERIC_RESET_MESSAGE = "If an account exists with this email, a password reset link has been sent."
GENERIC_RESEND_MESSAGE = "If this email is awaiting confirmation, a new confirmation link has been sent."


def callback_url() -> str:
    return f"{settings.SITE_URL.rstrip('/')}/auth/callback"


def email_in_use(client: Client, email: str, exclude_id: str = None) -> bool:
    try:
        rows = (
            client.table("profiles")
            .select("id")
            .ilike("email", email)
            .limit(2)
            .execute()
            .data
        ) or []
    except Exception as e:
        logger.warning(f"Email lookup failed for {email}: {extract_supabase_error(e)}")
        return False
    return any(r["id"] != exclude_id for r in rows)


def session_tokens(auth_response, gate: SessionGate) -> TokenResponse:
    """
    Shared tail of login and OAuth callback: refuse unconfirmed identities,
    make sure the profile exists, return the session.
    """
    session = auth_response.session
    if not session or not session.access_token or not auth_response.user:
        raise HTTPException(401, "Invalid email or password")

    identity = identity_from_auth_user(auth_response.user)
    if not identity.confirmed:
        gate.sign_out(session.access_token)
        raise HTTPException(401, UNCONFIRMED_MESSAGE)

    return TokenResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in or 3600,
        profile=gate.load_profile(identity),
    )


# ============================================================
# REGISTER (resident self sign-up)
# ============================================================
@router.post("/register", response_model=MessageResponse, status_code=201, summary="Register a resident account")
def register(
    payload: RegisterRequest,
    client: Client = Depends(get_supabase),
    auth_client: Client = Depends(get_auth_client),
):
    email = payload.email.strip().lower()

    if email_in_use(client, email):
        raise HTTPException(409, "An account with this email already exists. Please sign in instead.")

    metadata = {
        "full_name": payload.full_name.strip(),
        "mobile": payload.mobile,
        "address": payload.address,
        "birth_date": payload.birth_date.isoformat() if payload.birth_date else None,
    }

    try:
        response = auth_client.auth.sign_up({
            "email": email,
            "password": payload.password,
            "options": {
                "data": metadata,
                "email_redirect_to": callback_url(),
            },
        })
    except Exception as e:
        detail = extract_supabase_error(e)
        logger.warning(f"Registration failed for {email}: {detail}")
        raise HTTPException(400, detail)

    # The identity provider answers a repeat sign-up with an identity-less user
    user = response.user
    if user is not None and getattr(user, "identities", None) == []:
        raise HTTPException(409, "An account with this email already exists. Please sign in instead.")

    logger.info(f"Resident registered: email={email}")
    return MessageResponse(message="Registration successful! Please check your email to confirm your account.")


# ============================================================
# LOGIN (SUPABASE AUTH)
# ============================================================
@router.post("/login", response_model=TokenResponse, summary="Authenticate user")
def login(
    payload: LoginRequest,
    client: Client = Depends(get_supabase),
    auth_client: Client = Depends(get_auth_client),
):
    email = payload.email.strip().lower()

    try:
        response = auth_client.auth.sign_in_with_password(
            {"email": email, "password": payload.password}
        )
    except Exception as e:
        detail = extract_supabase_error(e)
        logger.warning(f"Login attempt failed for {email}: {type(e).__name__}")
        if "not confirmed" in detail.lower():
            raise HTTPException(401, UNCONFIRMED_MESSAGE)
        raise HTTPException(401, "Invalid email or password")

    return session_tokens(response, SessionGate(client))


# ============================================================
# LOGOUT
# ============================================================
@router.post("/logout", response_model=MessageResponse, summary="Sign out the current session")
def logout(
    token: str = Depends(get_bearer_token),
    client: Client = Depends(get_supabase),
):
    if not token:
        raise invalid_token()

    SessionGate(client).sign_out(token)
    return MessageResponse(message="Signed out")


# ============================================================
# PASSWORD RESET (request link)
# ============================================================
@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="Send a password reset email",
    responses={429: {"description": "Rate limit exceeded"}},
)
def forgot_password(
    payload: EmailRequest,
    request: Request,
    auth_client: Client = Depends(get_auth_client),
):
    """
    Rate limited per e-mail. Always answers with the same message so the
    endpoint cannot be used to discover registered addresses.
    """
    email = payload.email.strip().lower()
    require_rate_limit(
        request,
        identifier=get_rate_limit_identifier(request, email=email),
        max_requests=EMAIL_RATE_LIMIT,
        window_seconds=EMAIL_RATE_WINDOW_SECONDS,
    )

    try:
        auth_client.auth.reset_password_for_email(
            email,
            {"redirect_to": f"{settings.SITE_URL.rstrip('/')}/reset-password"},
        )
        logger.info(f"Password reset email sent: email={email}")
    except Exception as e:
        logger.error(f"Failed to send password reset email to {email}: {extract_supabase_error(e)}")

    return MessageResponse(message=GENERIC_RESET_MESSAGE)


# ============================================================
# RESEND CONFIRMATION
# ============================================================
@router.post(
    "/resend-confirmation",
    response_model=MessageResponse,
    summary="Resend the sign-up confirmation email",
    responses={429: {"description": "Rate limit exceeded"}},
)
def resend_confirmation(
    payload: EmailRequest,
    request: Request,
    auth_client: Client = Depends(get_auth_client),
):
    email = payload.email.strip().lower()
    require_rate_limit(
        request,
        identifier=get_rate_limit_identifier(request, email=email),
        max_requests=EMAIL_RATE_LIMIT,
        window_seconds=EMAIL_RATE_WINDOW_SECONDS,
    )

    try:
        auth_client.auth.resend({
            "type": "signup",
            "email": email,
            "options": {"email_redirect_to": callback_url()},
        })
        logger.info(f"Confirmation email resent: email={email}")
    except Exception as e:
        logger.error(f"Failed to resend confirmation to {email}: {extract_supabase_error(e)}")

    return MessageResponse(message=GENERIC_RESEND_MESSAGE)


# ============================================================
# PASSWORD RESET (set new password with recovery session)
# ============================================================
@router.post("/reset-password", response_model=MessageResponse, summary="Set a new password")
def reset_password(
    payload: ResetPasswordRequest,
    token: str = Depends(get_bearer_token),
    client: Client = Depends(get_supabase),
):
    if payload.new_password != payload.confirm_password:
        raise HTTPException(400, "Passwords do not match")
    if not token:
        raise invalid_token()

    try:
        auth_resp = client.auth.get_user(token)
    except Exception:
        raise invalid_token()
    if not auth_resp or not auth_resp.user:
        raise invalid_token()

    user_id = auth_resp.user.id
    try:
        client.auth.admin.update_user_by_id(user_id, {"password": payload.new_password})
    except Exception as e:
        detail = extract_supabase_error(e)
        logger.warning(f"Password update failed for {user_id}: {detail}")
        raise HTTPException(400, f"Failed to update password: {detail}")

    logger.info(f"Password updated for {user_id}")
    return MessageResponse(message="Password updated successfully. You may now sign in.")


# ============================================================
# GOOGLE OAUTH
# ============================================================
@router.get("/oauth/google", summary="Provider URL for Google sign-in")
def oauth_google(auth_client: Client = Depends(get_auth_client)):
    try:
        response = auth_client.auth.sign_in_with_oauth({
            "provider": "google",
            "options": {"redirect_to": callback_url()},
        })
    except Exception as e:
        detail = extract_supabase_error(e)
        logger.error(f"OAuth start failed: {detail}")
        raise HTTPException(502, f"Google sign-in unavailable: {detail}")

    return {"provider": "google", "url": response.url}


@router.post("/callback", response_model=TokenResponse, summary="Complete an e-mail or OAuth sign-in")
def auth_callback(
    payload: AuthCallbackRequest,
    client: Client = Depends(get_supabase),
    auth_client: Client = Depends(get_auth_client),
):
    """
    Exchanges the auth code. An e-mail that already belongs to a different
    account (registered with another sign-in method) is refused with 409.
    """
    params = {"auth_code": payload.code, "redirect_to": callback_url()}
    if payload.code_verifier:
        params["code_verifier"] = payload.code_verifier

    try:
        response = auth_client.auth.exchange_code_for_session(params)
    except Exception as e:
        detail = extract_supabase_error(e)
        logger.warning(f"Auth code exchange failed: {detail}")
        raise HTTPException(401, f"Sign-in link is invalid or has expired: {detail}")

    gate = SessionGate(client)
    user = response.user
    session = response.session
    if user is not None and session is not None and user.email and email_in_use(client, user.email, exclude_id=str(user.id)):
        gate.sign_out(session.access_token)
        raise HTTPException(
            409,
            "This email is already registered with a different sign-in method. "
            "Please sign in with your email and password.",
        )

    return session_tokens(response, gate)
