# services/document_catalog.py

from typing import List

from fastapi import HTTPException
from supabase import Client

from core.errors import supabase_error
from core.logging_config import get_logger
from core.utils import sanitize


logger = get_logger("document_types")

DOCUMENT_TYPE_FIELDS = ("name", "description", "price", "requirements", "processing_days", "is_active")


class DocumentCatalog:
    """
    Document-type definitions. There is no delete: deactivation is the
    supported way to withdraw a type.
    """

    def __init__(self, client: Client):
        self.client = client

    def list_active(self) -> List[dict]:
        try:
            res = (
                self.client.table("document_types")
                .select("*")
                .eq("is_active", True)
                .order("name")
                .execute()
            )
        except Exception as e:
            supabase_error(e, "Failed to load document types")
        return res.data or []

    def list_all(self) -> List[dict]:
        try:
            res = self.client.table("document_types").select("*").order("name").execute()
        except Exception as e:
            supabase_error(e, "Failed to load document types")
        return res.data or []

    def get(self, document_type_id: str) -> dict:
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

    def create(self, fields: dict) -> dict:
        row = sanitize(fields, DOCUMENT_TYPE_FIELDS)
        if not row.get("name"):
            raise HTTPException(400, "Document name is required")

        try:
            res = self.client.table("document_types").insert(row).execute()
        except Exception as e:
            supabase_error(e, "Failed to create document type")

        created = res.data[0] if res.data else row
        logger.info(f"Document type created: {created.get('name')}")
        return created

    def update(self, document_type_id: str, fields: dict) -> dict:
        changes = sanitize(fields, DOCUMENT_TYPE_FIELDS)
        if "name" in changes and not changes["name"]:
            raise HTTPException(400, "Document name cannot be empty")
        if not changes:
            return self.get(document_type_id)

        try:
            res = (
                self.client.table("document_types")
                .update(changes)
                .eq("id", document_type_id)
                .execute()
            )
        except Exception as e:
            supabase_error(e, "Failed to update document type")

        if not res.data:
            raise HTTPException(404, "Document type not found")

        logger.info(f"Document type {document_type_id} updated fields={sorted(changes)}")
        return res.data[0]

    def set_active(self, document_type_id: str, active: bool) -> dict:
        return self.update(document_type_id, {"is_active": active})
