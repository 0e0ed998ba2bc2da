"""
Shared fakes and fixtures.
"""

import copy
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import pytest

from apitherapy.adapters.storage.local_session_storage import InMemorySessionRepository
from apitherapy.application.autosave import AutosaveIndicator, ScheduledTask, Scheduler
from apitherapy.application.ports.repositories.document_store import (
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
from apitherapy.application.session_store import SessionStore
from apitherapy.core.exceptions import DatabaseError


class ManualTask(ScheduledTask):
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Keeps scheduled callbacks until the test fires them."""

    def __init__(self) -> None:
        self.tasks: List[ManualTask] = []

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledTask:
        task = ManualTask(delay_seconds, callback)
        self.tasks.append(task)
        return task

    @property
    def live_tasks(self) -> List[ManualTask]:
        return [t for t in self.tasks if not t.cancelled]

    def fire_all(self) -> None:
        """Run every task that was not cancelled."""
        for task in list(self.live_tasks):
            task.callback()


class FakeClock:
    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed document store; each commit is applied atomically."""

    def __init__(self, fail_on_commit: Optional[int] = None) -> None:
        self.documents: Dict[Tuple[str, ...], Dict[str, Any]] = {}
        self.committed_batches: List[int] = []
        self.fail_on_commit = fail_on_commit
        self._commit_attempts = 0

    def put(self, path: str, data: Dict[str, Any]) -> None:
        self.documents[tuple(path.split("/"))] = dict(data)

    def data(self, path: str) -> Optional[Dict[str, Any]]:
        return self.documents.get(tuple(path.split("/")))

    def ids(self, collection: str) -> List[str]:
        prefix = tuple(collection.split("/"))
        return sorted(
            key[-1]
            for key in self.documents
            if len(key) == len(prefix) + 1 and key[: len(prefix)] == prefix
        )

    async def list_documents(self, collection: CollectionPath) -> List[DocumentSnapshot]:
        prefix = collection.segments
        return [
            DocumentSnapshot(collection.document(doc_id), dict(self.documents[prefix + (doc_id,)]))
            for doc_id in self.ids(str(collection))
        ]

    async def get_document(self, path: DocumentPath) -> Optional[DocumentSnapshot]:
        data = self.documents.get(path.segments)
        return DocumentSnapshot(path, dict(data)) if data is not None else None

    async def commit(self, operations: Sequence[WriteOperation]) -> None:
        self._commit_attempts += 1
        if self.fail_on_commit == self._commit_attempts:
            raise DatabaseError("simulated commit failure")

        documents = copy.deepcopy(self.documents)
        for op in operations:
            if isinstance(op, SetDocument):
                documents[op.path.segments] = dict(op.data)
            elif isinstance(op, UpdateDocument):
                current = documents.setdefault(op.path.segments, {})
                for name, value in op.fields.items():
                    if value is DELETE_FIELD:
                        current.pop(name, None)
                    else:
                        current[name] = value
            elif isinstance(op, DeleteDocument):
                documents.pop(op.path.segments, None)
        self.documents = documents
        self.committed_batches.append(len(operations))


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repository():
    return InMemorySessionRepository()


@pytest.fixture
def indicator(scheduler, clock):
    return AutosaveIndicator(scheduler, settle_seconds=0.4, clock=clock)


@pytest.fixture
def store(repository, indicator, clock):
    return SessionStore(repository, indicator, clock=clock)


@pytest.fixture
def document_store():
    return InMemoryDocumentStore()


@pytest.fixture
def make_document_store():
    return InMemoryDocumentStore
