"""Tests for opsdesk/documents/store.py against a mocked Firestore client."""

import typing
from unittest.mock import MagicMock

import pytest
from google.api_core.exceptions import ServiceUnavailable

from opsdesk.core.exceptions import DocumentStoreError
from opsdesk.documents.store import DocumentStore


def snapshot(doc_id, data, exists=True):
    snap = MagicMock()
    snap.id = doc_id
    snap.exists = exists
    snap.to_dict.return_value = data
    return snap


@pytest.fixture(name="client")
def client_fixture():
    return MagicMock()


@pytest.mark.asyncio
async def test_list_includes_ids(client):
    client.collection.return_value.stream.return_value = [
        snapshot("a", {"name": "A"}),
        snapshot("b", None),
    ]

    documents = await DocumentStore(client).list_all("customers")

    assert documents == [{"id": "a", "name": "A"}, {"id": "b"}]
    client.collection.assert_called_with("customers")


@pytest.mark.asyncio
async def test_get_missing_returns_none(client):
    document = client.collection.return_value.document.return_value
    document.get.return_value = snapshot("x", None, exists=False)

    assert await DocumentStore(client).get("projects", "x") is None


@pytest.mark.asyncio
async def test_create_returns_generated_id(client):
    ref = MagicMock(id="new-id")
    client.collection.return_value.add.return_value = (None, ref)

    created = await DocumentStore(client).create("projects", {"projectName": "T"})

    assert created == {"id": "new-id", "projectName": "T"}
    stored = client.collection.return_value.add.call_args.args[0]
    assert "createdAt" in stored


@pytest.mark.asyncio
async def test_where_equal(client):
    query = client.collection.return_value.where.return_value
    query.stream.return_value = [snapshot("q1", {"projectRefNo": "P"})]

    result = await DocumentStore(client).where_equal("quotations", "projectRefNo", "P")

    assert result == [{"id": "q1", "projectRefNo": "P"}]


@pytest.mark.asyncio
async def test_api_errors_become_document_store_error(client):
    client.collection.return_value.stream.side_effect = ServiceUnavailable("down")

    with pytest.raises(DocumentStoreError):
        await DocumentStore(client).list_all("projects")


@pytest.mark.parametrize("method", ["list_all", "get", "where_equal", "create"])
def test_method_annotations_resolve(method):
    hints = typing.get_type_hints(getattr(DocumentStore, method))

    assert "return" in hints
