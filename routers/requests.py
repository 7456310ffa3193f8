# routers/requests.py

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from dependencies.auth import get_current_user, requires_permission
from dependencies.services import get_analytics_service, get_request_lifecycle
from models.enums import IdSide
from models.request import RequestCreated, RequestRead, ResidentSummary, StatusUpdate
from models.session import CurrentUser
from models.status_history import StatusHistoryRead
from services.analytics import AnalyticsService
from services.attachments import Preview, UploadedFile
from services.request_lifecycle import RequestLifecycle


router = APIRouter(
    prefix="/requests",
    tags=["Requests"],
)


def stream_preview(preview: Preview, disposition: str = "inline") -> StreamingResponse:
    """Stream fetched bytes; the buffer is released once the response completes."""
    return StreamingResponse(
        preview.iter_chunks(),
        media_type=preview.content_type,
        headers={
            "Content-Disposition": f'{disposition}; filename="{preview.filename}"',
            "Content-Length": str(preview.size),
            "Cache-Control": "private, no-store",
        },
        background=BackgroundTask(preview.close),
    )


# -----------------------------------------------------
# POST /requests
# Multipart: both ID images are required, supplementary files optional
# -----------------------------------------------------
@router.post("", response_model=RequestCreated, status_code=201, summary="Submit a document request")
def create_request(
    document_type_id: str = Form(...),
    purpose: str = Form(...),
    id_front: Optional[UploadFile] = File(None),
    id_back: Optional[UploadFile] = File(None),
    attachments: List[UploadFile] = File(default=[]),
    current_user: CurrentUser = Depends(requires_permission("requests:create")),
    lifecycle: RequestLifecycle = Depends(get_request_lifecycle),
):
    """
    ID images are validated and uploaded before the request row exists.
    Supplementary uploads that fail are listed in ``attachment_errors``.
    """
    limit = lifecycle.settings.REQUEST_UPLOAD_MAX_BYTES
    extras = [f for f in (UploadedFile.from_upload(a, limit) for a in attachments) if f is not None]
    return lifecycle.create_request(
        user_id=current_user.id,
        document_type_id=document_type_id,
        purpose=purpose,
        id_front=UploadedFile.from_upload(id_front, limit),
        id_back=UploadedFile.from_upload(id_back, limit),
        supplementary=extras,
    )


# -----------------------------------------------------
# Resident reads
# -----------------------------------------------------
@router.get("/mine", response_model=List[RequestRead], summary="Own requests, newest first")
def list_my_requests(
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_request_lifecycle),
):
    return lifecycle.list_mine(current_user.id)


@router.get("/mine/summary", response_model=ResidentSummary, summary="Own request counts by status")
def my_request_summary(
    current_user: CurrentUser = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    return analytics.resident_summary(current_user.id)


# -----------------------------------------------------
# Staff listing with search + status filter
# -----------------------------------------------------
@router.get("", response_model=List[RequestRead], summary="All requests (staff)")
def list_requests(
    q: Optional[str] = Query(None, description="Tracking number (with or without #), resident or document name"),
    status: Optional[str] = Query(None, description="Status filter; 'all' for none"),
    current_user: CurrentUser = Depends(requires_permission("requests:read_all")),
    lifecycle: RequestLifecycle = Depends(get_request_lifecycle),
):
    return lifecycle.list_all(term=q, status=status)


@router.get("/{request_id}", response_model=RequestRead, summary="One request (owner or staff)")
def get_request(
    request_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_request_lifecycle),
):
    return lifecycle.get_request(request_id, current_user)


@router.get("/{request_id}/history", response_model=List[StatusHistoryRead], summary="Status history, newest first")
def get_request_history(
    request_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_request_lifecycle),
):
    return lifecycle.history(request_id, current_user)


# -----------------------------------------------------
# Transitions
# -----------------------------------------------------
@router.patch("/{request_id}/status", response_model=RequestRead, summary="Set request status (staff)")
def update_request_status(
    request_id: str,
    payload: StatusUpdate,
    current_user: CurrentUser = Depends(requires_permission("requests:update_status")),
    lifecycle: RequestLifecycle = Depends(get_request_lifecycle),
):
    return lifecycle.update_status(request_id, payload.status, payload.notes, current_user)


@router.post("/{request_id}/cancel", response_model=RequestRead, summary="Cancel own request")
def cancel_request(
    request_id: str,
    current_user: CurrentUser = Depends(requires_permission("requests:cancel")),
    lifecycle: RequestLifecycle = Depends(get_request_lifecycle),
):
    return lifecycle.cancel(request_id, current_user)


# -----------------------------------------------------
# Identification images
# -----------------------------------------------------
@router.put("/{request_id}/id-images/{side}", response_model=RequestRead, summary="Replace an ID image")
def replace_id_image(
    request_id: str,
    side: IdSide,
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_request_lifecycle),
):
    upload = UploadedFile.from_upload(file, lifecycle.settings.REQUEST_UPLOAD_MAX_BYTES)
    return lifecycle.replace_id_image(request_id, side, upload, current_user)


@router.get("/{request_id}/id-images/{side}", summary="View an ID image")
def view_id_image(
    request_id: str,
    side: IdSide,
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_request_lifecycle),
):
    return stream_preview(lifecycle.open_id_image(request_id, side, current_user))
