"""Firestore-backed document store for the business records.

The Firestore client is synchronous; every call runs in a worker thread so
request handlers never block the event loop.
"""

import asyncio
import logging
from functools import lru_cache
from typing import Annotated, Any

from fastapi import Depends
from firebase_admin import firestore
from google.api_core.exceptions import GoogleAPICallError

from opsdesk.core.exceptions import DocumentStoreError
from opsdesk.core.firebase import get_firestore_client

logger = logging.getLogger(__name__)


class Collections:
    PROJECTS = "projects"
    QUOTATIONS = "quotations"
    PURCHASE_ORDERS = "purchaseOrders"
    SUPPLIERS = "suppliers"
    CUSTOMERS = "customers"


def _snapshot_to_dict(snapshot) -> dict[str, Any]:
    return {"id": snapshot.id, **(snapshot.to_dict() or {})}


class DocumentStore:
    """Async facade over a Firestore client.

    Args:
        client: Firestore client; resolved from the default Firebase app on
            first use when omitted
    """

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_firestore_client()
        return self._client

    async def _run(self, description: str, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except GoogleAPICallError as e:
            logger.warning("Firestore %s failed: %s", description, e)
            raise DocumentStoreError(f"Failed to {description}") from e

    async def list_all(self, collection: str) -> list[dict[str, Any]]:
        def _list():
            snapshots = self.client.collection(collection).stream()
            return [_snapshot_to_dict(s) for s in snapshots]

        return await self._run(f"list {collection}", _list)

    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        def _get():
            snapshot = self.client.collection(collection).document(document_id).get()
            return _snapshot_to_dict(snapshot) if snapshot.exists else None

        return await self._run(f"read {collection}", _get)

    async def where_equal(
        self, collection: str, field: str, value: Any
    ) -> list[dict[str, Any]]:
        def _query():
            query = self.client.collection(collection).where(
                filter=firestore.FieldFilter(field, "==", value)
            )
            return [_snapshot_to_dict(s) for s in query.stream()]

        return await self._run(f"query {collection}", _query)

    async def create(self, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """Add a document with a server-side ``createdAt``.

        Returns:
            The stored fields plus the generated ``id`` (without ``createdAt``,
            which is only known after the write)
        """

        def _create():
            _, ref = self.client.collection(collection).add(
                {**data, "createdAt": firestore.SERVER_TIMESTAMP}
            )
            return ref.id

        document_id = await self._run(f"create {collection}", _create)
        logger.debug("Created %s/%s", collection, document_id)
        return {"id": document_id, **data}


@lru_cache
def get_document_store() -> DocumentStore:
    return DocumentStore()


DocumentStoreDep = Annotated[DocumentStore, Depends(get_document_store)]
