from typing import List

from fastapi import APIRouter, Depends

from dependencies.auth import get_current_user, requires_permission
from dependencies.services import get_document_catalog
from models.document_type import (
    DocumentTypeActive,
    DocumentTypeCreate,
    DocumentTypeRead,
    DocumentTypeUpdate,
)
from models.session import CurrentUser
from services.document_catalog import DocumentCatalog


router = APIRouter(
    prefix="/document-types",
    tags=["Document Types"],
)


# -----------------------------------------------------
# Resident-facing: active types for the request form
# -----------------------------------------------------
@router.get("", response_model=List[DocumentTypeRead], summary="Active document types")
def list_active_document_types(
    current_user: CurrentUser = Depends(get_current_user),
    catalog: DocumentCatalog = Depends(get_document_catalog),
):
    return catalog.list_active()


# -----------------------------------------------------
# Staff-facing
# -----------------------------------------------------
@router.get("/all", response_model=List[DocumentTypeRead], summary="All document types (staff)")
def list_all_document_types(
    current_user: CurrentUser = Depends(requires_permission("document_types:read_all")),
    catalog: DocumentCatalog = Depends(get_document_catalog),
):
    return catalog.list_all()


@router.post("", response_model=DocumentTypeRead, status_code=201, summary="Create a document type")
def create_document_type(
    payload: DocumentTypeCreate,
    current_user: CurrentUser = Depends(requires_permission("document_types:write")),
    catalog: DocumentCatalog = Depends(get_document_catalog),
):
    return catalog.create(payload.model_dump())


@router.patch("/{document_type_id}", response_model=DocumentTypeRead, summary="Edit a document type")
def update_document_type(
    document_type_id: str,
    payload: DocumentTypeUpdate,
    current_user: CurrentUser = Depends(requires_permission("document_types:write")),
    catalog: DocumentCatalog = Depends(get_document_catalog),
):
    return catalog.update(document_type_id, payload.model_dump(exclude_unset=True))


@router.patch("/{document_type_id}/active", response_model=DocumentTypeRead, summary="Activate or deactivate")
def set_document_type_active(
    document_type_id: str,
    payload: DocumentTypeActive,
    current_user: CurrentUser = Depends(requires_permission("document_types:write")),
    catalog: DocumentCatalog = Depends(get_document_catalog),
):
    return catalog.set_active(document_type_id, payload.is_active)
