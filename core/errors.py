# core/errors.py

from typing import NoReturn, Optional

from fastapi import HTTPException

from core.logging_config import logger


UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


class StorageError(Exception):
    """Object storage call failed (upload, download, remove, URL resolution)."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path


class PaymentError(Exception):
    """Payment provider or payment function call failed."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors (APIError.message)
      • GoTrue (Auth) errors
      • Storage errors
      • Generic Python exceptions
    """

    # Supabase Auth / PostgREST errors carry a message attribute
    message = getattr(error, "message", None)
    if message:
        return str(message)

    if error.args:
        return str(error.args[0])

    return str(error) or type(error).__name__


def error_code(error: Exception) -> Optional[str]:
    """Postgres SQLSTATE carried by a PostgREST APIError, if any."""
    code = getattr(error, "code", None)
    return str(code) if code else None


def is_unique_violation(error: Exception) -> bool:
    if error_code(error) == UNIQUE_VIOLATION:
        return True
    detail = extract_supabase_error(error).lower()
    return "duplicate key" in detail or "unique constraint" in detail


def supabase_error(error: Exception, operation: str) -> NoReturn:
    """
    Convert a Supabase / database error into an HTTPException that carries the cause.
    Always raises.
    """
    detail = extract_supabase_error(error)
    logger.error(f"{operation}: {detail}")

    if is_unique_violation(error):
        raise HTTPException(status_code=409, detail=f"{operation}: {detail}")
    if error_code(error) == FOREIGN_KEY_VIOLATION:
        raise HTTPException(status_code=400, detail=f"{operation}: {detail}")

    raise HTTPException(status_code=500, detail=f"{operation}: {detail}")


def storage_error(error: StorageError, operation: str) -> NoReturn:
    """Surface a storage failure as 502 with the underlying cause."""
    logger.error(f"{operation}: {error.message} (path={error.path})")
    raise HTTPException(status_code=502, detail=f"{operation}: {error.message}")
