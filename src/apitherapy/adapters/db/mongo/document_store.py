"""
MongoDB implementation of DocumentStore.

A hierarchical path maps onto one MongoDB collection per collection-name
chain, with the document ids joined into ``_id`` and the parent's ids kept
in ``_parent`` for sub-collection listing:

    patients/p1                              -> patients                          _id "p1"
    patients/p1/treatments/t1                -> patients.treatments               _id "p1/t1",    _parent "p1"
    patients/p1/medical_records/v1/treatments/t1
                                             -> patients.medical_records.treatments
                                                                                  _id "p1/v1/t1", _parent "p1/v1"

Documents already in a collection may carry non-string keys (``ObjectId``
by default). Paths only hold the string form, so the store remembers the
raw ``_id`` of every listed document and addresses later reads and writes
with it.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import certifi  # type: ignore
from motor.motor_asyncio import AsyncIOMotorClient  # type: ignore
from pymongo.errors import PyMongoError

from ....application.ports.repositories.document_store import (
    DELETE_FIELD,
    CollectionPath,
    DeleteDocument,
    DocumentPath,
    DocumentSnapshot,
    DocumentStore,
    SetDocument,
    UpdateDocument,
    WriteOperation,
)
from ....core.config import DatabaseSettings
from ....core.exceptions import ConfigurationError, DatabaseError

logger = logging.getLogger(__name__)

_RESERVED = ("_id", "_parent")


def collection_name(segments: Tuple[str, ...]) -> str:
    """Collection names of a path joined with dots."""
    return ".".join(segments[0::2])


def document_key(path: DocumentPath) -> Tuple[str, Optional[str]]:
    """(``_id``, ``_parent``) of a document path."""
    ids = path.segments[1::2]
    parent = "/".join(ids[:-1]) or None
    return "/".join(ids), parent


def create_motor_client(settings: DatabaseSettings) -> AsyncIOMotorClient:
    """Create a motor client; TLS is enabled only for Atlas SRV URIs."""
    if not settings.uri:
        raise ConfigurationError(
            "MongoDB URI is required. Please set MONGO_URI environment variable."
        )
    if settings.uri.startswith("mongodb+srv://"):
        return AsyncIOMotorClient(
            settings.uri,
            serverSelectionTimeoutMS=15000,
            tls=True,
            tlsCAFile=certifi.where(),
            tlsAllowInvalidCertificates=False,
        )
    return AsyncIOMotorClient(settings.uri, serverSelectionTimeoutMS=15000)


class MongoDocumentStore(DocumentStore):
    """MongoDB implementation of DocumentStore."""

    def __init__(
        self,
        client: AsyncIOMotorClient,
        db_name: str,
        use_transactions: bool = True,
    ) -> None:
        self.client = client
        self.db = client[db_name]
        self.use_transactions = use_transactions
        self._raw_ids: Dict[Tuple[str, str], Any] = {}

    async def list_documents(self, collection: CollectionPath) -> List[DocumentSnapshot]:
        name = collection_name(collection.segments)
        parent_ids = collection.segments[1::2]
        query: Dict[str, Any] = {"_parent": "/".join(parent_ids)} if parent_ids else {}
        try:
            cursor = self.db[name].find(query).sort("_id", 1)
            documents = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise DatabaseError(f"Failed to list {collection}: {e}") from e
        snapshots = []
        for doc in documents:
            key = str(doc["_id"])
            self._raw_ids[(name, key)] = doc["_id"]
            snapshots.append(DocumentSnapshot(collection.document(key.split("/")[-1]), self._strip(doc)))
        return snapshots

    async def get_document(self, path: DocumentPath) -> Optional[DocumentSnapshot]:
        try:
            doc = await self.db[collection_name(path.segments)].find_one(self._id_filter(path))
        except PyMongoError as e:
            raise DatabaseError(f"Failed to read {path}: {e}") from e
        if doc is None:
            return None
        return DocumentSnapshot(path, self._strip(doc))

    async def commit(self, operations: Sequence[WriteOperation]) -> None:
        try:
            if self.use_transactions:
                async with await self.client.start_session() as session:
                    async with session.start_transaction():
                        for operation in operations:
                            await self._apply(operation, session)
            else:
                for operation in operations:
                    await self._apply(operation, None)
        except PyMongoError as e:
            raise DatabaseError(
                f"Batch of {len(operations)} operations failed: {e}",
                {"operations": len(operations)},
            ) from e
        logger.debug(f"Committed {len(operations)} operations")

    def _id_filter(self, path: DocumentPath) -> Dict[str, Any]:
        """Match on the raw ``_id`` seen for this path, falling back to its string key."""
        doc_id, _ = document_key(path)
        return {"_id": self._raw_ids.get((collection_name(path.segments), doc_id), doc_id)}

    async def _apply(self, operation: WriteOperation, session) -> None:
        collection = self.db[collection_name(operation.path.segments)]
        _, parent = document_key(operation.path)
        id_filter = self._id_filter(operation.path)

        if isinstance(operation, SetDocument):
            body = {k: v for k, v in operation.data.items() if k not in _RESERVED}
            if parent is not None:
                body["_parent"] = parent
            await collection.replace_one(id_filter, body, upsert=True, session=session)
        elif isinstance(operation, UpdateDocument):
            to_set = {k: v for k, v in operation.fields.items() if v is not DELETE_FIELD}
            to_unset = {k: "" for k, v in operation.fields.items() if v is DELETE_FIELD}
            update: Dict[str, Any] = {}
            if to_set:
                update["$set"] = to_set
            if to_unset:
                update["$unset"] = to_unset
            if update:
                result = await collection.update_one(id_filter, update, session=session)
                if result.matched_count == 0:
                    raise DatabaseError(
                        f"Update matched no document at {operation.path}",
                        {"path": str(operation.path)},
                    )
        elif isinstance(operation, DeleteDocument):
            await collection.delete_one(id_filter, session=session)
        else:
            raise TypeError(f"Unsupported write operation: {operation!r}")

    @staticmethod
    def _strip(doc: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in doc.items() if k not in _RESERVED}

    def close(self) -> None:
        self.client.close()
