# routers/health.py

from fastapi import APIRouter, Request

from core.config import settings
from core.supabase_client import ping_supabase

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


# -----------------------------------------------------
# GET /health/db
# Supabase connectivity + table queries, no auth
# -----------------------------------------------------
@router.get("/db", summary="Supabase / DB health check")
def health_db(request: Request):
    """
    - reports not_configured when the app started without Supabase credentials
    - otherwise queries each table and reports row-count / error per table
    """
    try:
        status = ping_supabase(getattr(request.app.state, "supabase", None))
        return {
            "service": "Supabase",
            "status": status.get("status", "unknown"),
            "details": status,
        }

    except Exception as e:
        return {
            "service": "Supabase",
            "status": "error",
            "error": str(e),
        }


# -----------------------------------------------------
# GET /health/app
# -----------------------------------------------------
@router.get("/app", summary="App health check")
def health_app():
    return {
        "service": settings.PROJECT_NAME,
        "status": "ok",
        "storage_backend": settings.STORAGE_BACKEND,
        "payment_provider": settings.PAYMENT_PROVIDER,
    }
