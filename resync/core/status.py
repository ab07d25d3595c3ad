from typing import TYPE_CHECKING, Dict
from .metadata import ConflictSummary, SyncStatus, SyncStatusSummary
from .conflicts import can_auto_resolve, suggest_strategy

if TYPE_CHECKING:  # pragma: no cover
    from .store import BaseConflictStore, BaseQueueStore


class SyncStatusAggregator:
    """Read-only summary of a user's sync state, safe to be polled."""

    queue_store: "BaseQueueStore"
    conflict_store: "BaseConflictStore"

    def __init__(
        self, queue_store: "BaseQueueStore", conflict_store: "BaseConflictStore"
    ):
        self.queue_store = queue_store
        self.conflict_store = conflict_store

    def get_status(self, user_id: "str") -> "SyncStatusSummary":
        queued_operations = self.queue_store.list_by_user(user_id=user_id)
        synced = [op for op in queued_operations if op.synced]
        pending = [op for op in queued_operations if not op.synced]

        last_sync_time = max((op.timestamp for op in synced), default=None)

        pending_by_entity: "Dict[str, int]" = {}
        for op in pending:
            pending_by_entity[op.entity_type] = pending_by_entity.get(op.entity_type, 0) + 1

        open_conflicts = self.conflict_store.list_open_by_user(user_id=user_id)
        conflicts = [
            ConflictSummary(
                id=conflict.id,
                entity_type=conflict.entity_type,
                entity_id=conflict.entity_id,
                strategy=conflict.strategy,
                suggested_strategy=suggest_strategy(
                    conflict.local_version, conflict.server_version
                ),
                auto_resolvable=can_auto_resolve(
                    conflict.local_version,
                    conflict.server_version,
                    conflict.conflict_type,
                ),
            )
            for conflict in open_conflicts
        ]

        return SyncStatusSummary(
            status=SyncStatus.PENDING if pending else SyncStatus.SYNCED,
            total_operations=len(queued_operations),
            synced_operations=len(synced),
            pending_operations=len(pending),
            unresolved_conflicts=len(open_conflicts),
            last_sync_time=last_sync_time,
            pending_by_entity=pending_by_entity,
            conflicts=conflicts,
        )
