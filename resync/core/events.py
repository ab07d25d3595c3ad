from typing import TYPE_CHECKING, Any, Dict
from .metadata import (
    BatchResult,
    ConflictRecord,
    ConflictType,
    SyncOperation,
    SyncResult,
)
import logging
import traceback
import sys

if TYPE_CHECKING:  # pragma: no cover
    from .store import BaseConflictStore, BaseQueueStore

logger = logging.getLogger(__name__)


class EventsManager:
    """Handles the events that happen while operations are synced and conflicts are resolved."""

    conflict_store: "BaseConflictStore"
    queue_store: "BaseQueueStore"

    def __init__(
        self, conflict_store: "BaseConflictStore", queue_store: "BaseQueueStore"
    ):
        self.conflict_store = conflict_store
        self.queue_store = queue_store

    def on_conflict_detected(
        self,
        user_id: "str",
        sync_operation: "SyncOperation",
        local_version: "Dict[str, Any]",
        server_version: "Dict[str, Any]",
        conflict_type: "ConflictType",
    ) -> "ConflictRecord":
        """Called when an operation diverges from the server state. It creates a ConflictRecord and saves it.

        Args:
            user_id (str): The user that sent the operation.
            sync_operation (SyncOperation): The operation that caused the conflict.
            local_version (Dict): The client's snapshot, its payload plus the declared timestamp.
            server_version (Dict): The entity as it exists on the server.
            conflict_type (ConflictType): Type of conflict.
        """
        conflict = self.conflict_store.insert(
            user_id=user_id,
            entity_type=sync_operation.entity_type,
            entity_id=sync_operation.entity_id,
            local_version=local_version,
            server_version=server_version,
            conflict_type=conflict_type,
        )
        logger.warning(
            "Conflict %s detected for %s '%s' (%s, user %s)",
            conflict.id,
            sync_operation.entity_type,
            sync_operation.entity_id,
            conflict_type.value,
            user_id,
        )
        return conflict

    def _format_stacktrace(self):
        parts = ["Traceback (most recent call last):\n"]
        parts.extend(traceback.format_stack(limit=25)[:-2])
        parts.extend(traceback.format_exception(*sys.exc_info())[1:])
        return "".join(parts)

    def on_exception(self, sync_operation: "SyncOperation", exception: "Exception"):
        """Called when the entity store raises while an operation is applied.

        Args:
            sync_operation (SyncOperation): Operation that was being applied when the exception was raised.
            exception (Exception): Exception that was raised.
        """
        logger.error(
            "Failed to apply operation %s on %s '%s': %s\n%s",
            sync_operation.id,
            sync_operation.entity_type,
            sync_operation.entity_id,
            exception,
            self._format_stacktrace(),
        )

    def on_operation_processed(
        self, user_id: "str", sync_operation: "SyncOperation", sync_result: "SyncResult"
    ):
        """Called after an operation is processed, whatever the outcome. It adds the operation to the queue history.

        Args:
            user_id (str): The user that sent the operation.
            sync_operation (SyncOperation): The operation.
            sync_result (SyncResult): The outcome.
        """
        self.queue_store.record(
            user_id=user_id,
            sync_operation=sync_operation,
            synced=sync_result.success,
            conflict_id=sync_result.conflict.conflict_id
            if sync_result.conflict
            else None,
        )

    def on_batch_processed(self, user_id: "str", batch_result: "BatchResult"):
        logger.info(
            "Processed %d operations for user %s (%d successful, %d failed)",
            batch_result.total_processed,
            user_id,
            batch_result.successful,
            batch_result.failed,
        )

    def on_conflict_resolved(self, conflict: "ConflictRecord"):
        """Called after a conflict is resolved. The operations that produced it are marked as synced.

        Args:
            conflict (ConflictRecord): The resolved conflict.
        """
        self.queue_store.mark_conflict_settled(conflict_id=conflict.id)
        logger.info(
            "Conflict %s resolved with %s",
            conflict.id,
            conflict.strategy.value if conflict.strategy else None,
        )
