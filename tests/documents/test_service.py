"""Tests for opsdesk/documents/service.py."""

import pytest

from opsdesk.documents.service import fetch_linked_data, list_contacts, project_summary
from tests.documents.fakes import InMemoryDocumentStore


@pytest.fixture(name="store")
def store_fixture():
    return InMemoryDocumentStore(
        {
            "projects": [
                {"id": "p1", "projectRefNo": "PRJ-1", "projectName": "Tower"},
                {"id": "p2", "refNo": "PRJ-2", "projectName": "Bridge"},
            ],
            "quotations": [
                {"id": "q1", "projectRefNo": "PRJ-1"},
                {"id": "q2", "projectRefNo": "PRJ-9"},
            ],
            "purchaseOrders": [
                {"id": "po1", "projectRefNo": "PRJ-1"},
                {"id": "po2", "RefNo": "PRJ-1"},
                {"id": "po3", "projectRefNo": "PRJ-2", "RefNo": "PRJ-2"},
            ],
            "suppliers": [{"id": "s1", "name": "Zeta"}],
            "customers": [{"id": "c1", "name": "Acme"}],
        }
    )


def test_project_summary_reads_legacy_ref():
    summary = project_summary({"id": "p", "refNo": "OLD-1"})

    assert summary.projectRefNo == "OLD-1"
    assert summary.projectName == ""


@pytest.mark.asyncio
async def test_fetch_linked_data(store):
    linked = {item.project.id: item for item in await fetch_linked_data(store)}

    tower = linked["p1"]
    assert [q["id"] for q in tower.quotations] == ["q1"]
    assert sorted(po["id"] for po in tower.purchaseOrders) == ["po1", "po2"]


@pytest.mark.asyncio
async def test_purchase_order_matching_both_fields_listed_once(store):
    linked = {item.project.id: item for item in await fetch_linked_data(store)}

    assert [po["id"] for po in linked["p2"].purchaseOrders] == ["po3"]
    assert linked["p2"].project.projectRefNo == "PRJ-2"


@pytest.mark.asyncio
async def test_fetch_linked_data_empty():
    assert await fetch_linked_data(InMemoryDocumentStore()) == []


@pytest.mark.asyncio
async def test_list_contacts_tags_and_sorts(store):
    contacts = await list_contacts(store)

    assert [(c["name"], c["type"]) for c in contacts] == [
        ("Acme", "customer"),
        ("Zeta", "supplier"),
    ]
