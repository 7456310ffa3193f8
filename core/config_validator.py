# core/config_validator.py

from typing import List

from core.config import Settings
from core.logging_config import logger


def validate_required_config(settings: Settings) -> List[str]:
    """
    Missing variables the API cannot serve data without.
    Returns list of missing required variables.
    """
    missing = []

    if not settings.SUPABASE_URL:
        missing.append("SUPABASE_URL")
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        missing.append("SUPABASE_SERVICE_ROLE_KEY")

    return missing


def validate_backend_config(settings: Settings) -> List[str]:
    """
    Settings that contradict each other (a backend selected without its credentials).
    """
    problems = []

    if settings.STORAGE_BACKEND not in ("supabase", "s3"):
        problems.append(f"STORAGE_BACKEND must be 'supabase' or 's3', got '{settings.STORAGE_BACKEND}'")
    if settings.STORAGE_BACKEND == "s3":
        for name in ("S3_ENDPOINT_URL", "AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY"):
            if not getattr(settings, name):
                problems.append(f"{name} is required when STORAGE_BACKEND=s3")

    if settings.PAYMENT_PROVIDER not in ("placeholder", "stripe"):
        problems.append(f"PAYMENT_PROVIDER must be 'placeholder' or 'stripe', got '{settings.PAYMENT_PROVIDER}'")
    if settings.PAYMENT_PROVIDER == "stripe" and not settings.STRIPE_SECRET_KEY:
        problems.append("STRIPE_SECRET_KEY is required when PAYMENT_PROVIDER=stripe")

    return problems


def validate_config_on_startup(settings: Settings) -> None:
    """
    Missing Supabase credentials are logged (health checks report not_configured).
    Contradictory backend settings raise RuntimeError.
    """
    missing_required = validate_required_config(settings)
    if missing_required:
        logger.error(f"Missing required environment variables: {', '.join(missing_required)}")

    problems = validate_backend_config(settings)
    if problems:
        error_msg = "Invalid configuration: " + "; ".join(problems)
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    if not settings.SUPABASE_ANON_KEY:
        logger.warning("Optional configuration missing: SUPABASE_ANON_KEY")

    logger.info("Configuration validation passed")
