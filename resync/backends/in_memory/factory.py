from resync.core.service import SyncService
from resync.core.utils import BaseEntityLock
from .store import InMemoryEntityStore, InMemoryConflictStore, InMemoryQueueStore
from typing import Optional


def create_in_memory_service(
    entity_lock: "Optional[BaseEntityLock]" = None,
    max_operations: "Optional[int]" = None,
) -> "SyncService":
    return SyncService.create(
        entity_store=InMemoryEntityStore(entity_lock=entity_lock),
        conflict_store=InMemoryConflictStore(),
        queue_store=InMemoryQueueStore(),
        max_operations=max_operations,
    )
