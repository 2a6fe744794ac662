"""Contacts (buyers, sellers, tenants, landlords) of the current brokerage."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from realtyflow.api.dependencies import CrmDelete, CrmRead, CrmWrite, DbSession
from realtyflow.core.limits import ensure_within_limit
from realtyflow.core.membership import ensure_assignable
from realtyflow.db.models.crm import ContactType
from realtyflow.db.repositories.crm import ContactRepository
from realtyflow.db.schemas.crm import ContactCreate, ContactResponse, ContactUpdate

router = APIRouter(prefix="/contacts", tags=["contacts"])


@router.get("", response_model=list[ContactResponse], summary="List contacts")
async def list_contacts(
    access: CrmRead,
    db: DbSession,
    contact_type: Annotated[ContactType | None, Query()] = None,
    q: Annotated[str | None, Query(max_length=100, description="Search name, email and phone")] = None,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[ContactResponse]:
    contacts = await ContactRepository(db, access.tenant_id).search(
        contact_type=contact_type.value if contact_type else None,
        query=q,
        limit=limit,
        offset=offset,
    )
    return [ContactResponse.model_validate(c) for c in contacts]


@router.post(
    "",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a contact",
    responses={402: {"description": "Contact limit of the plan reached"}},
)
async def create_contact(data: ContactCreate, access: CrmWrite, db: DbSession) -> ContactResponse:
    repo = ContactRepository(db, access.tenant_id)
    await ensure_within_limit(access.require_tenant(), "contacts", repo)
    if data.assigned_to is not None:
        await ensure_assignable(db, access.tenant_id, data.assigned_to)
    contact = await repo.create(data.model_dump())
    return ContactResponse.model_validate(contact)


@router.get("/{contact_id}", response_model=ContactResponse, summary="Get a contact")
async def get_contact(contact_id: UUID, access: CrmRead, db: DbSession) -> ContactResponse:
    contact = await ContactRepository(db, access.tenant_id).get_or_raise(contact_id)
    return ContactResponse.model_validate(contact)


@router.patch("/{contact_id}", response_model=ContactResponse, summary="Update a contact")
async def update_contact(
    contact_id: UUID,
    data: ContactUpdate,
    access: CrmWrite,
    db: DbSession,
) -> ContactResponse:
    repo = ContactRepository(db, access.tenant_id)
    contact = await repo.get_or_raise(contact_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("assigned_to") is not None:
        await ensure_assignable(db, access.tenant_id, changes["assigned_to"])
    contact = await repo.update(contact, changes)
    return ContactResponse.model_validate(contact)


@router.delete(
    "/{contact_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a contact",
)
async def delete_contact(contact_id: UUID, access: CrmDelete, db: DbSession) -> Response:
    await ContactRepository(db, access.tenant_id).delete_by_pk(contact_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
