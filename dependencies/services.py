from fastapi import Depends, Request
from supabase import Client

from core.config import settings
from core.payment_providers import build_payment_provider
from core.storage import ObjectStorage
from dependencies.auth import get_storage, get_supabase
from services.analytics import AnalyticsService
from services.attachments import AttachmentService
from services.document_catalog import DocumentCatalog
from services.payments import PaymentService
from services.profile_store import ProfileStore
from services.request_lifecycle import RequestLifecycle


# ============================================================
# Service factories (one per request, sharing app-owned clients)
# ============================================================
def get_profile_store(client: Client = Depends(get_supabase)) -> ProfileStore:
    return ProfileStore(client)


def get_document_catalog(client: Client = Depends(get_supabase)) -> DocumentCatalog:
    return DocumentCatalog(client)


def get_request_lifecycle(
    client: Client = Depends(get_supabase),
    storage: ObjectStorage = Depends(get_storage),
) -> RequestLifecycle:
    return RequestLifecycle(client, storage, settings)


def get_attachment_service(
    client: Client = Depends(get_supabase),
    storage: ObjectStorage = Depends(get_storage),
) -> AttachmentService:
    return AttachmentService(client, storage, settings)


def get_analytics_service(client: Client = Depends(get_supabase)) -> AnalyticsService:
    return AnalyticsService(client, settings)


def get_payment_service(request: Request, client: Client = Depends(get_supabase)) -> PaymentService:
    provider = getattr(request.app.state, "payment_provider", None) or build_payment_provider(settings)
    return PaymentService(client, provider, settings)
