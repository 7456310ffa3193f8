# services/request_lifecycle.py

"""
Request lifecycle: creation, status transitions, cancellation, reads and
identification-image management.

Status vocabulary and transition sets live in ``core.statuses``. Every
transition writes the request row and then appends a ``status_history`` row;
a failed history insert puts the request row back to its prior values.
"""

import secrets
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional

import pytz
from fastapi import HTTPException
from supabase import Client

from core.config import Settings
from core.errors import StorageError, extract_supabase_error, storage_error, supabase_error
from core.logging_config import get_logger
from core.statuses import (
    CANCELLABLE_STATUSES,
    CANCELLATION_NOTE,
    CANCELLED,
    PENDING,
    STAFF_SETTABLE_STATUSES,
    TERMINAL_STATUSES,
    normalize_status,
)
from core.storage import ObjectStorage, attachment_key, object_path
from core.utils import utcnow
from models.enums import DocumentCategory, IdSide
from models.session import CurrentUser
from services.attachments import (
    IMAGE_TYPES,
    AttachmentService,
    Preview,
    UploadedFile,
    guess_content_type,
    validate_file,
)


logger = get_logger("requests")

TRACKING_PREFIX = "BRGY"

ID_IMAGE_COLUMNS = {
    IdSide.front: "id_image_url",
    IdSide.back: "id_image_back_url",
}


# -----------------------------------------------------
# Pure helpers
# -----------------------------------------------------
def generate_tracking_number(now: datetime, tz_name: str = "Asia/Manila") -> str:
    """BRGY-YYYYMMDD-XXXXXXXX, date in the office's local calendar."""
    local = now.astimezone(pytz.timezone(tz_name))
    return f"{TRACKING_PREFIX}-{local.strftime('%Y%m%d')}-{secrets.token_hex(4).upper()}"


def matches_search(row: dict, term: Optional[str]) -> bool:
    """
    Case-insensitive substring match over tracking number, resident name and
    document type name. A leading '#' on the term is ignored.
    """
    needle = (term or "").strip().lstrip("#").strip().lower()
    if not needle:
        return True

    haystacks = (
        row.get("tracking_number"),
        row.get("resident_name"),
        row.get("document_type_name"),
    )
    return any(needle in str(h).lower() for h in haystacks if h)


def _by_id(rows: List[dict]) -> Dict[str, dict]:
    return {r["id"]: r for r in rows}


def enrich_requests(client: Client, rows: List[dict]) -> List[dict]:
    """Attach document type name/price and resident name/email with one lookup per table."""
    if not rows:
        return []

    type_ids = sorted({r["document_type_id"] for r in rows if r.get("document_type_id")})
    user_ids = sorted({r["user_id"] for r in rows if r.get("user_id")})

    try:
        types = (
            client.table("document_types").select("id, name, price").in_("id", type_ids).execute().data
            if type_ids else []
        )
        people = (
            client.table("profiles").select("id, full_name, email").in_("id", user_ids).execute().data
            if user_ids else []
        )
    except Exception as e:
        supabase_error(e, "Failed to load request details")

    types_by_id = _by_id(types or [])
    people_by_id = _by_id(people or [])

    enriched = []
    for r in rows:
        doc = types_by_id.get(r.get("document_type_id"), {})
        person = people_by_id.get(r.get("user_id"), {})
        enriched.append({
            **r,
            "status": normalize_status(r.get("status")),
            "document_type_name": doc.get("name"),
            "document_price": doc.get("price"),
            "resident_name": person.get("full_name"),
            "resident_email": person.get("email"),
        })
    return enriched


class RequestLifecycle:
    def __init__(
        self,
        client: Client,
        storage: ObjectStorage,
        settings: Settings,
        now: Callable[[], datetime] = utcnow,
    ):
        self.client = client
        self.storage = storage
        self.settings = settings
        self.now = now
        self.attachments = AttachmentService(client, storage, settings)

    # =====================================================
    # Creation
    # =====================================================
    def create_request(
        self,
        user_id: str,
        document_type_id: str,
        purpose: str,
        id_front: Optional[UploadedFile],
        id_back: Optional[UploadedFile],
        supplementary: Optional[List[UploadedFile]] = None,
    ) -> dict:
        """
        Both identification images are uploaded before the row is inserted,
        so a request row never exists without them. Supplementary files
        follow the insert; their failures are reported, not fatal.
        """
        supplementary = supplementary or []
        purpose = (purpose or "").strip()

        if not document_type_id:
            raise HTTPException(400, "Document type is required")
        if not purpose:
            raise HTTPException(400, "Purpose is required")
        if id_front is None or id_back is None:
            raise HTTPException(400, "Both front and back ID images are required")

        limit = self.settings.REQUEST_UPLOAD_MAX_BYTES
        validate_file(id_front, limit, IMAGE_TYPES)
        validate_file(id_back, limit, IMAGE_TYPES)
        for extra in supplementary:
            validate_file(extra, limit, IMAGE_TYPES)

        document_type = self._get_document_type(document_type_id)
        if not document_type.get("is_active", True):
            raise HTTPException(400, f"{document_type.get('name')} is not currently available")

        request_id = str(uuid.uuid4())
        bucket = self.settings.ID_UPLOADS_BUCKET

        front_path = self._upload_id_image(bucket, user_id, request_id, IdSide.front, id_front)
        try:
            back_path = self._upload_id_image(bucket, user_id, request_id, IdSide.back, id_back)
        except HTTPException:
            self.attachments.discard(bucket, front_path)
            raise

        now = self.now()
        row = {
            "id": request_id,
            "user_id": user_id,
            "document_type_id": document_type_id,
            "tracking_number": generate_tracking_number(now, self.settings.TIMEZONE),
            "status": PENDING,
            "purpose": purpose,
            "id_image_url": front_path,
            "id_image_back_url": back_path,
            "created_at": now.isoformat(),
            "updated_at": now.isoformat(),
        }

        try:
            res = self.client.table("requests").insert(row).execute()
        except Exception as e:
            self.attachments.discard(bucket, front_path)
            self.attachments.discard(bucket, back_path)
            supabase_error(e, "Failed to create request")

        created = res.data[0] if res.data else row
        logger.info(
            f"Request created id={request_id} tracking={created['tracking_number']} "
            f"user={user_id} type={document_type_id}"
        )

        stored, errors = [], []
        for extra in supplementary:
            try:
                stored.append(
                    self.attachments.store(created, extra, DocumentCategory.additional_document, user_id)
                )
            except HTTPException as e:
                logger.warning(f"Supplementary upload failed for request {request_id}: {e.detail}")
                errors.append(f"{extra.filename}: {e.detail}")

        return {
            "request": enrich_requests(self.client, [created])[0],
            "attachments": stored,
            "attachment_errors": errors,
        }

    def _upload_id_image(self, bucket: str, user_id: str, request_id: str, side: IdSide, upload: UploadedFile) -> str:
        path = attachment_key(user_id, request_id, f"id-{side}", upload.filename)
        try:
            self.storage.upload(
                bucket,
                path,
                upload.data,
                upload.content_type or guess_content_type(upload.filename),
                metadata={"owner": user_id, "side": str(side)},
            )
        except StorageError as e:
            storage_error(e, f"Failed to upload {side} ID image")
        return path

    def _get_document_type(self, document_type_id: str) -> dict:
        try:
            res = (
                self.client.table("document_types")
                .select("*")
                .eq("id", document_type_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            supabase_error(e, "Failed to load document type")

        rows = res.data or []
        if not rows:
            raise HTTPException(404, "Document type not found")
        return rows[0]

    # =====================================================
    # Transitions
    # =====================================================
    def update_status(self, request_id: str, new_status: str, notes: Optional[str], staff: CurrentUser) -> dict:
        if not new_status or not new_status.strip():
            raise HTTPException(400, "A status is required")
        target = normalize_status(new_status)
        if target == CANCELLED:
            raise HTTPException(400, "Only the resident can cancel a request")
        if target not in STAFF_SETTABLE_STATUSES:
            raise HTTPException(400, f"Unknown status: {new_status}")

        row = self.get_row(request_id)
        current = normalize_status(row.get("status"))
        if current in TERMINAL_STATUSES:
            raise HTTPException(
                409,
                f"Request {row.get('tracking_number')} is {current} and can no longer be updated",
            )

        notes = (notes or "").strip() or None
        changes = {
            "status": target,
            "processed_by": staff.id,
            "updated_at": self.now().isoformat(),
        }
        if notes is not None:
            changes["admin_notes"] = notes

        updated = self._transition(row, changes, {
            "old_status": current,
            "new_status": target,
            "notes": notes,
            "changed_by": staff.id,
        })
        logger.info(f"Request {request_id} status {current} -> {target} by={staff.id}")
        return updated

    def cancel(self, request_id: str, user: CurrentUser) -> dict:
        row = self.get_row(request_id)
        if row["user_id"] != user.id:
            raise HTTPException(403, "You can only cancel your own requests")

        current = normalize_status(row.get("status"))
        if current not in CANCELLABLE_STATUSES:
            raise HTTPException(
                409,
                f"Only pending or processing requests can be cancelled (current status: {current})",
            )

        updated = self._transition(
            row,
            {"status": CANCELLED, "updated_at": self.now().isoformat()},
            {
                "old_status": current,
                "new_status": CANCELLED,
                "notes": CANCELLATION_NOTE,
                "changed_by": None,
            },
        )
        logger.info(f"Request {request_id} cancelled by resident {user.id}")
        return updated

    def _transition(self, row: dict, changes: dict, history: dict) -> dict:
        prior = {k: row.get(k) for k in changes}

        try:
            res = self.client.table("requests").update(changes).eq("id", row["id"]).execute()
        except Exception as e:
            supabase_error(e, "Failed to update request status")

        history_row = {**history, "request_id": row["id"], "created_at": self.now().isoformat()}
        try:
            self.client.table("status_history").insert(history_row).execute()
        except Exception as e:
            self._restore(row["id"], prior)
            supabase_error(e, "Failed to record status history")

        return res.data[0] if res.data else {**row, **changes}

    def _restore(self, request_id: str, prior: dict) -> None:
        try:
            self.client.table("requests").update(prior).eq("id", request_id).execute()
            logger.warning(f"Request {request_id} reverted after history insert failure")
        except Exception as e:
            logger.error(f"Request {request_id} revert failed: {extract_supabase_error(e)}")

    # =====================================================
    # Reads
    # =====================================================
    def get_row(self, request_id: str) -> dict:
        try:
            res = (
                self.client.table("requests")
                .select("*")
                .eq("id", request_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            supabase_error(e, "Failed to load request")

        rows = res.data or []
        if not rows:
            raise HTTPException(404, "Request not found")
        return rows[0]

    def get_for_viewer(self, request_id: str, viewer: CurrentUser) -> dict:
        row = self.get_row(request_id)
        if row["user_id"] != viewer.id and not viewer.is_staff:
            raise HTTPException(403, "You do not have access to this request")
        return row

    def get_request(self, request_id: str, viewer: CurrentUser) -> dict:
        return enrich_requests(self.client, [self.get_for_viewer(request_id, viewer)])[0]

    def list_mine(self, user_id: str) -> List[dict]:
        try:
            res = (
                self.client.table("requests")
                .select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            supabase_error(e, "Failed to load requests")
        return enrich_requests(self.client, res.data or [])

    def list_all(self, term: Optional[str] = None, status: Optional[str] = None) -> List[dict]:
        """
        Staff listing. Filtering happens after normalisation so legacy status
        spellings and joined names are matched consistently.
        """
        try:
            res = self.client.table("requests").select("*").order("created_at", desc=True).execute()
        except Exception as e:
            supabase_error(e, "Failed to load requests")

        rows = enrich_requests(self.client, res.data or [])

        wanted = normalize_status(status) if status and status != "all" else None
        if wanted:
            rows = [r for r in rows if r["status"] == wanted]
        return [r for r in rows if matches_search(r, term)]

    def history(self, request_id: str, viewer: CurrentUser) -> List[dict]:
        self.get_for_viewer(request_id, viewer)

        try:
            res = (
                self.client.table("status_history")
                .select("*")
                .eq("request_id", request_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            supabase_error(e, "Failed to load status history")

        entries = res.data or []
        actor_ids = sorted({h["changed_by"] for h in entries if h.get("changed_by")})
        names = {}
        if actor_ids:
            try:
                people = (
                    self.client.table("profiles")
                    .select("id, full_name")
                    .in_("id", actor_ids)
                    .execute()
                    .data
                )
            except Exception as e:
                supabase_error(e, "Failed to load status history")
            names = {p["id"]: p.get("full_name") for p in people or []}

        return [
            {
                **h,
                "old_status": normalize_status(h["old_status"]) if h.get("old_status") else None,
                "new_status": normalize_status(h.get("new_status")),
                "changed_by_name": names.get(h.get("changed_by")),
            }
            for h in entries
        ]

    # =====================================================
    # Identification images
    # =====================================================
    def replace_id_image(self, request_id: str, side: IdSide, upload: UploadedFile, user: CurrentUser) -> dict:
        """
        Upload the new image, point the row at it, then remove the old one.
        The row never references a missing object.
        """
        row = self.get_row(request_id)
        if row["user_id"] != user.id:
            raise HTTPException(403, "You can only replace ID images on your own requests")
        if normalize_status(row.get("status")) in TERMINAL_STATUSES:
            raise HTTPException(409, "ID images cannot be changed once a request is closed")

        validate_file(upload, self.settings.REQUEST_UPLOAD_MAX_BYTES, IMAGE_TYPES)

        bucket = self.settings.ID_UPLOADS_BUCKET
        column = ID_IMAGE_COLUMNS[side]
        old_path = row.get(column)
        new_path = self._upload_id_image(bucket, user.id, request_id, side, upload)

        try:
            res = (
                self.client.table("requests")
                .update({column: new_path, "updated_at": self.now().isoformat()})
                .eq("id", request_id)
                .execute()
            )
        except Exception as e:
            self.attachments.discard(bucket, new_path)
            supabase_error(e, "Failed to update ID image")

        if old_path and old_path != new_path:
            self.attachments.discard(bucket, object_path(old_path, bucket))

        logger.info(f"Request {request_id} {side} ID image replaced by {user.id}")
        return res.data[0] if res.data else {**row, column: new_path}

    def open_id_image(self, request_id: str, side: IdSide, viewer: CurrentUser) -> Preview:
        row = self.get_for_viewer(request_id, viewer)
        stored = row.get(ID_IMAGE_COLUMNS[side])
        if not stored:
            raise HTTPException(404, f"No {side} ID image on this request")

        data = self.attachments.fetch_object(self.settings.ID_UPLOADS_BUCKET, stored)
        filename = stored.rsplit("/", 1)[-1]
        return Preview(data, guess_content_type(filename, "image/jpeg"), filename)
