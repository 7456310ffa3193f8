from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "Barangay Document Portal API"
    ENV: str = "development"

    # Frontend base URL (auth redirects land here)
    SITE_URL: str = "http://localhost:5173"
    EXTRA_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # CORS (auto-built below)
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (Auth, Postgres, Storage)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    # -------------------------------------------------
    # Object storage
    # -------------------------------------------------
    STORAGE_BACKEND: str = "supabase"  # supabase | s3
    ID_UPLOADS_BUCKET: str = "id-uploads"
    DOCUMENTS_BUCKET: str = "signed-documents"
    STORAGE_TRY_PUBLIC_URL: bool = True
    SIGNED_URL_EXPIRY_SECONDS: int = 300

    # S3-compatible endpoint (Supabase Storage exposes one)
    S3_ENDPOINT_URL: Optional[str] = None
    S3_REGION: str = "ap-southeast-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None

    # -------------------------------------------------
    # Upload limits
    # -------------------------------------------------
    REQUEST_UPLOAD_MAX_BYTES: int = 5 * 1024 * 1024
    ATTACHMENT_UPLOAD_MAX_BYTES: int = 10 * 1024 * 1024

    # -------------------------------------------------
    # Payments
    # -------------------------------------------------
    PAYMENT_PROVIDER: str = "placeholder"  # placeholder | stripe
    PAYMENT_CURRENCY: str = "PHP"
    STRIPE_SECRET_KEY: Optional[str] = None

    # -------------------------------------------------
    # Calendar buckets for analytics
    # -------------------------------------------------
    TIMEZONE: str = "Asia/Manila"

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    model_config = SettingsConfigDict(case_sensitive=True)


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list dynamically after loading settings
# -------------------------------------------------
cors_origins = [settings.SITE_URL.rstrip("/")]
cors_origins.extend([d.rstrip("/") for d in settings.EXTRA_CORS_ORIGINS])

settings.BACKEND_CORS_ORIGINS = sorted(list(set(cors_origins)))
