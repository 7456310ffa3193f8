# services/attachments.py

"""
Attachment workflow: validation, upload, listing, deletion and authenticated
retrieval of request files.

Identification images live in ``ID_UPLOADS_BUCKET`` and are referenced from the
request row itself. Supplementary and signed documents live in
``DOCUMENTS_BUCKET`` with one ``resident_documents`` row each.
"""

import io
import mimetypes
from dataclasses import dataclass
from typing import Iterator, List, Optional

from fastapi import HTTPException
from supabase import Client

from core.config import Settings
from core.errors import StorageError, extract_supabase_error, storage_error, supabase_error
from core.logging_config import get_logger
from core.roles import is_staff
from core.storage import ObjectStorage, attachment_key, object_path
from core.utils import utcnow_iso
from models.enums import DocumentCategory
from models.session import CurrentUser


logger = get_logger("attachments")

IMAGE_TYPES = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
})
DOCUMENT_TYPES = IMAGE_TYPES | {"application/pdf"}

PREVIEW_CHUNK_SIZE = 64 * 1024


@dataclass
class UploadedFile:
    filename: str
    content_type: Optional[str]
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_upload(cls, upload, max_bytes: int) -> Optional["UploadedFile"]:
        """
        fastapi.UploadFile -> UploadedFile; an empty form field reads as None.

        At most ``max_bytes + 1`` bytes are read. An oversized upload keeps
        only that prefix, which ``validate_file`` then rejects on size.
        """
        if upload is None or not getattr(upload, "filename", None):
            return None
        data = upload.file.read(max_bytes + 1)
        return cls(filename=upload.filename, content_type=upload.content_type, data=data)


def describe_limit(max_bytes: int) -> str:
    return f"{max_bytes // (1024 * 1024)}MB"


def validate_file(upload: Optional[UploadedFile], max_bytes: int, allowed_types) -> UploadedFile:
    """Raises 400 before any storage call is made."""
    if upload is None or not upload.filename:
        raise HTTPException(400, "No file provided")
    if upload.size == 0:
        raise HTTPException(400, f"File {upload.filename} is empty")
    if upload.size > max_bytes:
        raise HTTPException(400, f"File {upload.filename} exceeds the {describe_limit(max_bytes)} limit")

    content_type = (upload.content_type or "").lower()
    if content_type not in allowed_types:
        raise HTTPException(
            400,
            f"File type {content_type or 'unknown'} is not allowed. "
            f"Allowed: {', '.join(sorted(allowed_types))}",
        )
    return upload


def guess_content_type(path: str, fallback: str = "application/octet-stream") -> str:
    return mimetypes.guess_type(path)[0] or fallback


class Preview:
    """
    Fetched object bytes held for the lifetime of one response.
    ``close`` releases the buffer; it is registered as the response's
    background task so it runs once streaming finishes.
    """

    def __init__(self, data: bytes, content_type: str, filename: str):
        self._buffer = io.BytesIO(data)
        self.content_type = content_type
        self.filename = filename
        self.size = len(data)

    @property
    def closed(self) -> bool:
        return self._buffer.closed

    def iter_chunks(self) -> Iterator[bytes]:
        while True:
            chunk = self._buffer.read(PREVIEW_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk

    def close(self) -> None:
        self._buffer.close()


class AttachmentService:
    def __init__(self, client: Client, storage: ObjectStorage, settings: Settings):
        self.client = client
        self.storage = storage
        self.settings = settings

    # -----------------------------------------------------
    # Upload
    # -----------------------------------------------------
    def upload(
        self,
        request_id: str,
        upload: UploadedFile,
        category: DocumentCategory,
        actor: CurrentUser,
    ) -> dict:
        """
        Post-creation upload: images or PDF, up to ATTACHMENT_UPLOAD_MAX_BYTES.
        The file is checked before the request row is read.
        """
        if category == DocumentCategory.signed_document and not actor.is_staff:
            raise HTTPException(403, "Only staff can upload signed documents")
        validate_file(upload, self.settings.ATTACHMENT_UPLOAD_MAX_BYTES, DOCUMENT_TYPES)

        request_row = self._request_row(request_id)
        if request_row is None:
            raise HTTPException(404, "Request not found")
        if request_row["user_id"] != actor.id and not actor.is_staff:
            raise HTTPException(403, "You can only attach documents to your own requests")

        return self.store(request_row, upload, category, actor.id)

    def store(self, request_row: dict, upload: UploadedFile, category: DocumentCategory, uploaded_by: str) -> dict:
        """
        Object first, row second. A failed row insert removes the object
        again so no unreferenced file is left behind.
        """
        bucket = self.settings.DOCUMENTS_BUCKET
        path = attachment_key(request_row["user_id"], request_row["id"], str(category), upload.filename)
        content_type = upload.content_type or guess_content_type(upload.filename)

        try:
            self.storage.upload(
                bucket,
                path,
                upload.data,
                content_type,
                metadata={"owner": request_row["user_id"], "uploaded_by": uploaded_by},
            )
        except StorageError as e:
            storage_error(e, f"Failed to upload {upload.filename}")

        row = {
            "request_id": request_row["id"],
            "file_path": path,
            "file_name": upload.filename,
            "file_type": content_type,
            "file_size": upload.size,
            "uploaded_by": uploaded_by,
            "document_category": str(category),
            "created_at": utcnow_iso(),
        }

        try:
            res = self.client.table("resident_documents").insert(row).execute()
        except Exception as e:
            self.discard(bucket, path)
            supabase_error(e, "Failed to save attachment record")

        logger.info(
            f"Attachment uploaded request={request_row['id']} category={category} "
            f"by={uploaded_by} path={path}"
        )
        return res.data[0] if res.data else row

    def discard(self, bucket: str, path: str) -> None:
        """Best-effort cleanup of an object nothing references."""
        try:
            self.storage.remove(bucket, path)
        except StorageError as e:
            logger.warning(f"Could not remove orphaned object {bucket}/{path}: {e.message}")

    # -----------------------------------------------------
    # Read
    # -----------------------------------------------------
    def list_for_request(self, request_id: str, category: Optional[DocumentCategory] = None) -> List[dict]:
        try:
            query = self.client.table("resident_documents").select("*").eq("request_id", request_id)
            if category:
                query = query.eq("document_category", str(category))
            res = query.order("created_at", desc=True).execute()
        except Exception as e:
            supabase_error(e, "Failed to load attachments")
        return res.data or []

    def get(self, attachment_id: str) -> dict:
        try:
            res = (
                self.client.table("resident_documents")
                .select("*")
                .eq("id", attachment_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            supabase_error(e, "Failed to load attachment")

        rows = res.data or []
        if not rows:
            raise HTTPException(404, "Attachment not found")
        return rows[0]

    def _request_row(self, request_id: str) -> Optional[dict]:
        try:
            res = (
                self.client.table("requests")
                .select("id, user_id")
                .eq("id", request_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            supabase_error(e, "Failed to load request")

        rows = res.data or []
        return rows[0] if rows else None

    def authorize_read(self, attachment: dict, viewer: CurrentUser) -> None:
        if viewer.is_staff or attachment.get("uploaded_by") == viewer.id:
            return

        request_row = self._request_row(attachment["request_id"])
        if not request_row or request_row["user_id"] != viewer.id:
            raise HTTPException(403, "You do not have access to this attachment")

    def open_preview(self, attachment: dict) -> Preview:
        data = self.fetch_object(self.settings.DOCUMENTS_BUCKET, attachment["file_path"])
        content_type = attachment.get("file_type") or guess_content_type(attachment["file_name"])
        return Preview(data, content_type, attachment["file_name"])

    def fetch_object(self, bucket: str, stored_path: str) -> bytes:
        try:
            return self.storage.fetch(bucket, object_path(stored_path, bucket))
        except StorageError as e:
            storage_error(e, "Failed to retrieve file")

    def signed_url(self, attachment: dict) -> str:
        try:
            return self.storage.signed_url(
                self.settings.DOCUMENTS_BUCKET,
                object_path(attachment["file_path"], self.settings.DOCUMENTS_BUCKET),
                self.settings.SIGNED_URL_EXPIRY_SECONDS,
            )
        except StorageError as e:
            storage_error(e, "Failed to create signed URL")

    # -----------------------------------------------------
    # Delete
    # -----------------------------------------------------
    def delete(self, attachment_id: str, actor: CurrentUser) -> None:
        """
        Object first, then row. If the object cannot be removed the row is
        kept and the storage error surfaced.
        """
        attachment = self.get(attachment_id)
        if attachment.get("uploaded_by") != actor.id and not is_staff(actor.role):
            raise HTTPException(403, "You can only delete attachments you uploaded")

        path = object_path(attachment["file_path"], self.settings.DOCUMENTS_BUCKET)
        try:
            self.storage.remove(self.settings.DOCUMENTS_BUCKET, path)
        except StorageError as e:
            storage_error(e, "Failed to delete file")

        try:
            self.client.table("resident_documents").delete().eq("id", attachment_id).execute()
        except Exception as e:
            logger.error(
                f"Attachment {attachment_id} object removed but row delete failed: "
                f"{extract_supabase_error(e)}"
            )
            supabase_error(e, "Failed to delete attachment record")

        logger.info(f"Attachment deleted id={attachment_id} by={actor.id}")
