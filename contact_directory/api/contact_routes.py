"""
Name: Contact routes

Responsibilities:
  - Search / read contacts (view capability)
  - Create, update and delete single contacts (edit capability)
  - Bulk delete, import and export (administer capability)

Collaborators:
  - application/usecases/contacts.py: ContactDirectory
  - api/dependencies.py: require_capability
  - api/result_errors.py
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ..application.usecases.contacts import ContactDirectory
from ..container import get_contact_directory
from ..crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from ..domain.entities import Contact, Principal
from ..identity.permissions import Capability
from .dependencies import require_capability
from .result_errors import raise_for_error

router = APIRouter(prefix="/contacts", tags=["contacts"], responses=OPENAPI_ERROR_RESPONSES)

require_view = require_capability(Capability.VIEW)
require_edit = require_capability(Capability.EDIT)
require_admin = require_capability(Capability.ADMINISTER)


class ContactFields(BaseModel):
    name: str | None = Field(None, max_length=255)
    title: str | None = Field(None, max_length=255)
    company: str | None = Field(None, max_length=255)
    email: str | None = Field(None, max_length=320)
    mobile_phone: str | None = Field(None, max_length=64)
    work_phone: str | None = Field(None, max_length=64)
    fax: str | None = Field(None, max_length=64)
    website: str | None = Field(None, max_length=1024)
    address: str | None = Field(None, max_length=1024)
    notes: str | None = Field(None, max_length=20000)


class ContactResponse(BaseModel):
    id: str
    name: str
    title: str
    company: str
    email: str
    mobile_phone: str
    work_phone: str
    fax: str
    website: str
    address: str
    notes: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None


class ImportRequest(BaseModel):
    contacts: list[dict[str, str | None]] = Field(default_factory=list)


class ImportResponse(BaseModel):
    imported: int
    skipped: list[dict]


def _to_response(contact: Contact) -> ContactResponse:
    return ContactResponse(
        id=contact.id,
        **contact.text_fields(),
        created_at=contact.created_at,
        updated_at=contact.updated_at,
        created_by=contact.created_by,
    )


# Static paths are registered before /{contact_id}.


@router.get("/export")
async def export_contacts(
    principal: Principal = Depends(require_admin),
    directory: ContactDirectory = Depends(get_contact_directory),
):
    rows = await directory.export_contacts(actor=principal)
    return {"contacts": rows, "count": len(rows)}


@router.post("/import", response_model=ImportResponse)
async def import_contacts(
    req: ImportRequest,
    principal: Principal = Depends(require_admin),
    directory: ContactDirectory = Depends(get_contact_directory),
):
    result = await directory.import_contacts(req.contacts, actor=principal)
    raise_for_error(result)
    return ImportResponse(imported=result.value.count, skipped=result.value.skipped)


@router.get("", response_model=list[ContactResponse])
async def list_contacts(
    q: str | None = Query(None, max_length=255),
    _principal: Principal = Depends(require_view),
    directory: ContactDirectory = Depends(get_contact_directory),
):
    contacts = await directory.list_contacts(q)
    return [_to_response(c) for c in contacts]


@router.post("", response_model=ContactResponse, status_code=201)
async def create_contact(
    req: ContactFields,
    principal: Principal = Depends(require_edit),
    directory: ContactDirectory = Depends(get_contact_directory),
):
    result = await directory.create_contact(req.model_dump(exclude_none=True), actor=principal)
    raise_for_error(result)
    return _to_response(result.value)


@router.delete("")
async def delete_all_contacts(
    principal: Principal = Depends(require_admin),
    directory: ContactDirectory = Depends(get_contact_directory),
):
    result = await directory.delete_all_contacts(actor=principal)
    return {"deleted": result.count}


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(
    contact_id: str,
    _principal: Principal = Depends(require_view),
    directory: ContactDirectory = Depends(get_contact_directory),
):
    result = await directory.get_contact(contact_id)
    raise_for_error(result)
    return _to_response(result.value)


@router.put("/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: str,
    req: ContactFields,
    principal: Principal = Depends(require_edit),
    directory: ContactDirectory = Depends(get_contact_directory),
):
    result = await directory.update_contact(
        contact_id, req.model_dump(exclude_none=True), actor=principal
    )
    raise_for_error(result)
    return _to_response(result.value)


@router.delete("/{contact_id}")
async def delete_contact(
    contact_id: str,
    principal: Principal = Depends(require_edit),
    directory: ContactDirectory = Depends(get_contact_directory),
):
    result = await directory.delete_contact(contact_id, actor=principal)
    raise_for_error(result)
    return {"ok": True}


__all__ = ["router"]
