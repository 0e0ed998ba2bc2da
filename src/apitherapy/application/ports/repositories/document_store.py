"""
Hierarchical document store interface used by the one-time migrations.

Documents are addressed by alternating collection / document-id segments,
e.g. ``patients/p1/medical_records/v1/treatments/t1``. Writes are applied in
batches of operations committed together.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union


class _DeleteField:
    """Sentinel marking a field for removal in an update (distinct from None)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DELETE_FIELD"


DELETE_FIELD = _DeleteField()


@dataclass(frozen=True)
class CollectionPath:
    """Path of a collection: odd number of segments."""

    segments: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.segments or len(self.segments) % 2 != 1 or not all(self.segments):
            raise ValueError(f"Invalid collection path: {'/'.join(self.segments)}")

    @classmethod
    def root(cls, name: str) -> "CollectionPath":
        return cls((name,))

    @property
    def name(self) -> str:
        return self.segments[-1]

    def document(self, document_id: str) -> "DocumentPath":
        return DocumentPath(self.segments + (document_id,))

    def __str__(self) -> str:
        return "/".join(self.segments)


@dataclass(frozen=True)
class DocumentPath:
    """Path of a document: even number of segments."""

    segments: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.segments or len(self.segments) % 2 != 0 or not all(self.segments):
            raise ValueError(f"Invalid document path: {'/'.join(self.segments)}")

    @property
    def id(self) -> str:
        return self.segments[-1]

    @property
    def parent(self) -> CollectionPath:
        return CollectionPath(self.segments[:-1])

    def collection(self, name: str) -> CollectionPath:
        return CollectionPath(self.segments + (name,))

    def __str__(self) -> str:
        return "/".join(self.segments)


@dataclass(frozen=True)
class DocumentSnapshot:
    path: DocumentPath
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.path.id


@dataclass(frozen=True)
class SetDocument:
    """Create or fully overwrite a document."""

    path: DocumentPath
    data: Dict[str, Any]


@dataclass(frozen=True)
class UpdateDocument:
    """Field-level update; values equal to DELETE_FIELD remove the field."""

    path: DocumentPath
    fields: Dict[str, Any]


@dataclass(frozen=True)
class DeleteDocument:
    path: DocumentPath


WriteOperation = Union[SetDocument, UpdateDocument, DeleteDocument]


class DocumentStore(ABC):
    """Abstract hierarchical document store."""

    @abstractmethod
    async def list_documents(self, collection: CollectionPath) -> List[DocumentSnapshot]:
        """Return every document of a collection in enumeration order."""
        pass

    @abstractmethod
    async def get_document(self, path: DocumentPath) -> Optional[DocumentSnapshot]:
        """Return a single document, or None when it does not exist."""
        pass

    @abstractmethod
    async def commit(self, operations: Sequence[WriteOperation]) -> None:
        """Apply a batch of write operations. Raises DatabaseError on failure."""
        pass
