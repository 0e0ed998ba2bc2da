"""
Write batch accumulator for the one-time migrations.

Collects write operations and commits them as one batch once the running
operation count would pass the safety threshold. The threshold sits strictly
below the backing store's hard per-batch limit.
"""

from typing import List, Sequence

from ...core.exceptions import DatabaseError, MigrationCommitError
from ...core.structured_logger import get_logger
from ..ports.repositories.document_store import DocumentStore, WriteOperation

logger = get_logger(__name__)


class WriteBatchAccumulator:
    """Counted batch of write operations with threshold-based flushing."""

    def __init__(
        self,
        store: DocumentStore,
        threshold: int,
        max_operations: int,
        dry_run: bool = False,
    ) -> None:
        if not 0 < threshold < max_operations:
            raise ValueError(
                f"Threshold ({threshold}) must be positive and below the hard limit ({max_operations})"
            )
        self._store = store
        self.threshold = threshold
        self.max_operations = max_operations
        self.dry_run = dry_run
        self._operations: List[WriteOperation] = []
        self.batch_sizes: List[int] = []

    @property
    def count(self) -> int:
        return len(self._operations)

    @property
    def is_full(self) -> bool:
        return self.count >= self.threshold

    def add(self, operation: WriteOperation) -> None:
        """Queue one operation. The caller flushes before the batch is full."""
        if self.is_full:
            raise ValueError(f"Batch already holds {self.count} operations; flush before adding")
        self._operations.append(operation)

    async def flush_if_needed(self, incoming: int = 0) -> bool:
        """Commit the pending batch when ``incoming`` more operations would pass the threshold."""
        if self._operations and self.count + incoming > self.threshold:
            await self.flush()
            return True
        return False

    async def add_group(self, operations: Sequence[WriteOperation]) -> None:
        """Queue a group of operations that belong together (one patient).

        The flush check happens before the group so a group is never split,
        unless the group alone is larger than the threshold.
        """
        await self.flush_if_needed(incoming=len(operations))
        if len(operations) > self.threshold:
            logger.warning(
                "oversized_group_split",
                operations=len(operations),
                threshold=self.threshold,
            )
        for operation in operations:
            if self.is_full:
                await self.flush()
            self.add(operation)

    async def flush(self) -> int:
        """Commit whatever is pending. Returns the number of operations committed."""
        if not self._operations:
            return 0

        operations = list(self._operations)
        batch_number = len(self.batch_sizes) + 1
        if not self.dry_run:
            try:
                await self._store.commit(operations)
            except DatabaseError as e:
                logger.error(
                    "batch_commit_failed",
                    batch=batch_number,
                    operations=len(operations),
                    error=e.message,
                )
                raise MigrationCommitError(batch_number, len(operations), e) from e

        self.batch_sizes.append(len(operations))
        self._operations = []
        logger.info(
            "batch_committed",
            batch=batch_number,
            operations=len(operations),
            dry_run=self.dry_run,
        )
        return len(operations)
