# core/supabase_client.py

from typing import Optional

from supabase import create_client, Client

from core.config import Settings
from core.logging_config import logger


# ============================================================
# Supabase Client Factory (ALWAYS service role)
# ============================================================

def create_supabase_client(settings: Settings) -> Optional[Client]:
    """
    Creates the one Supabase client the application uses, with the SERVICE ROLE KEY.
    Built during application start-up and handed to request handlers through
    ``dependencies.auth.get_supabase``. REQUIRED for:
        - auth.admin.update_user_by_id (profile e-mail changes, password reset)
        - auth.admin.sign_out (unconfirmed sessions)
        - read/write on profiles, requests, status_history, resident_documents, payments
    """
    supabase_url = settings.SUPABASE_URL
    supabase_key = settings.SUPABASE_SERVICE_ROLE_KEY

    if not supabase_url or not supabase_key:
        logger.error("Missing Supabase credentials")
        logger.error(f"   URL: {supabase_url}")
        logger.error(f"   SERVICE ROLE KEY: {'SET' if supabase_key else 'MISSING'}")
        return None

    try:
        return create_client(supabase_url, supabase_key)
    except Exception as e:
        logger.error(f"Supabase Init Error: {e}", exc_info=True)
        return None


def create_auth_client(settings: Settings) -> Client:
    """
    Short-lived client for end-user auth flows (sign-up, sign-in, OAuth,
    resend). Signing in stores the user's session on the client that did it,
    so these flows never run on the shared service-role client.
    """
    supabase_url = settings.SUPABASE_URL
    supabase_key = settings.SUPABASE_ANON_KEY or settings.SUPABASE_SERVICE_ROLE_KEY

    if not supabase_url or not supabase_key:
        raise RuntimeError("Supabase auth client not configured")

    return create_client(supabase_url, supabase_key)


def close_supabase_client(client: Optional[Client]) -> None:
    """Release the HTTP session held by the PostgREST sub-client."""
    if client is None:
        return

    postgrest = getattr(client, "postgrest", None)
    session = getattr(postgrest, "session", None)
    if session is None:
        return

    try:
        session.close()
    except Exception as e:
        logger.warning(f"Supabase client close failed: {e}")


# ============================================================
# Ping Supabase for health checks
# ============================================================

def ping_supabase(client: Optional[Client]) -> dict:
    """
    Simple connectivity check.
    Does NOT query auth tables.
    """
    if client is None:
        return {"service": "Supabase", "status": "not_configured"}

    tables = ["profiles", "document_types", "requests", "resident_documents", "payments"]
    results = {}

    for t in tables:
        try:
            res = client.table(t).select("id").limit(1).execute()
            results[t] = {
                "status": "ok",
                "rows_found": len(res.data or []),
            }
        except Exception as err:
            results[t] = {"status": "error", "detail": str(err)}

    overall = "ok" if all(r["status"] == "ok" for r in results.values()) else "degraded"
    return {
        "service": "Supabase",
        "status": overall,
        "tables": results,
    }
