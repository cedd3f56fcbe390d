"""Queries that join records across collections."""

import asyncio
from typing import Any

from opsdesk.documents.schemas import ContactType, LinkedProject, ProjectSummary
from opsdesk.documents.store import Collections, DocumentStore

CONTACT_COLLECTIONS: dict[ContactType, tuple[str, ...]] = {
    ContactType.customer: (Collections.CUSTOMERS,),
    ContactType.supplier: (Collections.SUPPLIERS,),
    ContactType.both: (Collections.CUSTOMERS, Collections.SUPPLIERS),
}

CONTACT_ACTIONS: dict[ContactType, str] = {
    ContactType.customer: "Added customer",
    ContactType.supplier: "Added supplier",
    ContactType.both: "Added customer/supplier",
}


def project_summary(document: dict[str, Any]) -> ProjectSummary:
    """Older projects store the reference as ``refNo``."""
    return ProjectSummary(
        id=document["id"],
        projectRefNo=document.get("projectRefNo") or document.get("refNo") or "",
        projectName=document.get("projectName") or "",
        clientName=document.get("clientName") or "",
    )


def _unique_by_id(*groups: list[dict[str, Any]]) -> list[dict[str, Any]]:
    seen: set[str] = set()
    merged = []
    for group in groups:
        for document in group:
            if document["id"] in seen:
                continue
            seen.add(document["id"])
            merged.append(document)
    return merged


async def _link_project(store: DocumentStore, project: ProjectSummary) -> LinkedProject:
    ref_no = project.projectRefNo
    quotations, by_project_ref, by_legacy_ref = await asyncio.gather(
        store.where_equal(Collections.QUOTATIONS, "projectRefNo", ref_no),
        store.where_equal(Collections.PURCHASE_ORDERS, "projectRefNo", ref_no),
        store.where_equal(Collections.PURCHASE_ORDERS, "RefNo", ref_no),
    )
    return LinkedProject(
        project=project,
        quotations=quotations,
        purchaseOrders=_unique_by_id(by_project_ref, by_legacy_ref),
    )


async def fetch_linked_data(store: DocumentStore) -> list[LinkedProject]:
    """Every project with the quotations and purchase orders that reference it.

    Purchase orders link through ``projectRefNo`` or the legacy ``RefNo``.
    """
    projects = [project_summary(d) for d in await store.list_all(Collections.PROJECTS)]
    return list(await asyncio.gather(*(_link_project(store, p) for p in projects)))


async def list_contacts(store: DocumentStore) -> list[dict[str, Any]]:
    """Suppliers and customers in one list, sorted by name."""
    suppliers, customers = await asyncio.gather(
        store.list_all(Collections.SUPPLIERS), store.list_all(Collections.CUSTOMERS)
    )
    contacts = [{**d, "type": ContactType.supplier.value} for d in suppliers]
    contacts += [{**d, "type": ContactType.customer.value} for d in customers]
    return sorted(contacts, key=lambda c: c.get("name") or "")
