# routers/attachments.py

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from dependencies.auth import get_current_user
from dependencies.services import get_attachment_service, get_request_lifecycle
from models.attachment import AttachmentRead, SignedUrlResponse
from models.enums import DocumentCategory
from models.session import CurrentUser
from routers.requests import stream_preview
from services.attachments import AttachmentService, UploadedFile
from services.request_lifecycle import RequestLifecycle


router = APIRouter(tags=["Attachments"])


# -----------------------------------------------------
# Per-request attachment list
# -----------------------------------------------------
@router.post(
    "/requests/{request_id}/attachments",
    response_model=AttachmentRead,
    status_code=201,
    summary="Attach a document to a request",
)
def upload_attachment(
    request_id: str,
    category: DocumentCategory = Form(DocumentCategory.additional_document),
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(get_current_user),
    attachments: AttachmentService = Depends(get_attachment_service),
):
    """
    additional-document: the request owner or staff.
    signed-document: staff only. Images or PDF, 10MB at most.
    """
    upload = UploadedFile.from_upload(file, attachments.settings.ATTACHMENT_UPLOAD_MAX_BYTES)
    return attachments.upload(request_id, upload, category, current_user)


@router.get(
    "/requests/{request_id}/attachments",
    response_model=List[AttachmentRead],
    summary="List a request's attachments",
)
def list_attachments(
    request_id: str,
    category: Optional[DocumentCategory] = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_request_lifecycle),
    attachments: AttachmentService = Depends(get_attachment_service),
):
    lifecycle.get_for_viewer(request_id, current_user)
    return attachments.list_for_request(request_id, category)


# -----------------------------------------------------
# Single attachment
# -----------------------------------------------------
@router.delete("/attachments/{attachment_id}", status_code=204, summary="Delete an attachment")
def delete_attachment(
    attachment_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    attachments: AttachmentService = Depends(get_attachment_service),
):
    attachments.delete(attachment_id, current_user)


@router.get("/attachments/{attachment_id}/view", summary="View an attachment inline")
def view_attachment(
    attachment_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    attachments: AttachmentService = Depends(get_attachment_service),
):
    attachment = attachments.get(attachment_id)
    attachments.authorize_read(attachment, current_user)
    return stream_preview(attachments.open_preview(attachment))


@router.get("/attachments/{attachment_id}/download", summary="Download an attachment")
def download_attachment(
    attachment_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    attachments: AttachmentService = Depends(get_attachment_service),
):
    attachment = attachments.get(attachment_id)
    attachments.authorize_read(attachment, current_user)
    return stream_preview(attachments.open_preview(attachment), disposition="attachment")


@router.get(
    "/attachments/{attachment_id}/signed-url",
    response_model=SignedUrlResponse,
    summary="Time-bounded URL for an attachment",
)
def attachment_signed_url(
    attachment_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    attachments: AttachmentService = Depends(get_attachment_service),
):
    attachment = attachments.get(attachment_id)
    attachments.authorize_read(attachment, current_user)
    return SignedUrlResponse(
        url=attachments.signed_url(attachment),
        expires_in=attachments.settings.SIGNED_URL_EXPIRY_SECONDS,
    )
