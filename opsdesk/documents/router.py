"""Document store router: projects, quotations, purchase orders, contacts.

Every create is recorded in the activity log with the target collection.
"""

from typing import Any

from fastapi import APIRouter, Depends, status

from opsdesk.access.dependencies import CurrentProfileDep, require_access
from opsdesk.activity.service import try_record_activity
from opsdesk.core.constants import CommonResponses, Routes
from opsdesk.core.deps import SessionDep
from opsdesk.core.exceptions import NotFoundError
from opsdesk.documents.schemas import (
    ContactCreate,
    ContactCreated,
    LinkedProject,
    ProjectCreate,
    PurchaseOrderCreate,
    QuotationCreate,
)
from opsdesk.documents.service import (
    CONTACT_ACTIONS,
    CONTACT_COLLECTIONS,
    fetch_linked_data,
    list_contacts,
)
from opsdesk.documents.store import Collections, DocumentStoreDep

router = APIRouter(
    prefix=Routes.DOCUMENTS.prefix,
    tags=[Routes.DOCUMENTS.tag],
    dependencies=[Depends(require_access)],
    responses={
        **CommonResponses.UNAUTHORIZED,
        **CommonResponses.FORBIDDEN,
        **CommonResponses.BAD_GATEWAY,
    },
)


@router.get("/projects", response_model=list[dict[str, Any]])
async def list_projects(store: DocumentStoreDep):
    return await store.list_all(Collections.PROJECTS)


@router.get("/projects/linked", response_model=list[LinkedProject])
async def list_linked_projects(store: DocumentStoreDep):
    """Projects with their quotations and purchase orders."""
    return await fetch_linked_data(store)


@router.get(
    "/projects/{project_id}",
    response_model=dict[str, Any],
    responses={**CommonResponses.NOT_FOUND},
)
async def get_project(project_id: str, store: DocumentStoreDep):
    project = await store.get(Collections.PROJECTS, project_id)
    if project is None:
        raise NotFoundError("Project not found")
    return project


@router.post(
    "/projects", response_model=dict[str, Any], status_code=status.HTTP_201_CREATED
)
async def create_project(
    payload: ProjectCreate,
    store: DocumentStoreDep,
    profile: CurrentProfileDep,
    session: SessionDep,
):
    created = await store.create(Collections.PROJECTS, payload.model_dump())
    try_record_activity(
        session,
        profile.id,
        "Created project",
        details=f"Project {payload.projectRefNo} created (id: {created['id']})",
        meta={"collection": Collections.PROJECTS},
    )
    return created


@router.get("/quotations", response_model=list[dict[str, Any]])
async def list_quotations(store: DocumentStoreDep):
    return await store.list_all(Collections.QUOTATIONS)


@router.post(
    "/quotations", response_model=dict[str, Any], status_code=status.HTTP_201_CREATED
)
async def create_quotation(
    payload: QuotationCreate,
    store: DocumentStoreDep,
    profile: CurrentProfileDep,
    session: SessionDep,
):
    created = await store.create(Collections.QUOTATIONS, payload.model_dump())
    try_record_activity(
        session,
        profile.id,
        "Created quotation",
        details=(
            f"Quotation for project {payload.projectRefNo} created "
            f"(id: {created['id']})"
        ),
        meta={"collection": Collections.QUOTATIONS},
    )
    return created


@router.get("/purchase-orders", response_model=list[dict[str, Any]])
async def list_purchase_orders(store: DocumentStoreDep):
    return await store.list_all(Collections.PURCHASE_ORDERS)


@router.post(
    "/purchase-orders",
    response_model=dict[str, Any],
    status_code=status.HTTP_201_CREATED,
)
async def create_purchase_order(
    payload: PurchaseOrderCreate,
    store: DocumentStoreDep,
    profile: CurrentProfileDep,
    session: SessionDep,
):
    created = await store.create(
        Collections.PURCHASE_ORDERS, payload.model_dump(exclude_none=True)
    )
    try_record_activity(
        session,
        profile.id,
        "Created purchase order",
        details=(
            f"PO {payload.poNumber} created for project {payload.projectRefNo} "
            f"(id: {created['id']})"
        ),
        meta={"collection": Collections.PURCHASE_ORDERS},
    )
    return created


@router.get("/contacts", response_model=list[dict[str, Any]])
async def get_contacts(store: DocumentStoreDep):
    """Suppliers and customers, each tagged with its ``type``."""
    return await list_contacts(store)


@router.post(
    "/contacts", response_model=ContactCreated, status_code=status.HTTP_201_CREATED
)
async def create_contact(
    payload: ContactCreate,
    store: DocumentStoreDep,
    profile: CurrentProfileDep,
    session: SessionDep,
):
    """Add a contact; ``both`` writes the same record to both collections."""
    collections = CONTACT_COLLECTIONS[payload.type]
    document = payload.document()
    ids = [(await store.create(name, document))["id"] for name in collections]
    try_record_activity(
        session,
        profile.id,
        CONTACT_ACTIONS[payload.type],
        details=f"{document['name']} (ids: {', '.join(ids)})",
        meta={"collection": "/".join(collections)},
    )
    return ContactCreated(type=payload.type, ids=ids)
