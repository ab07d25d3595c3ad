import tests.base
from resync.core.entities import EntityRegistry, create_registry
from resync.backends.in_memory import (
    InMemoryConflictStore,
    InMemoryEntityStore,
    InMemoryQueueStore,
)


class InMemoryBackendTestMixin(tests.base.BackendTestMixin):
    entity_store: "InMemoryEntityStore"

    def _create_stores(self):
        return InMemoryEntityStore(), InMemoryConflictStore(), InMemoryQueueStore()

    def _create_registry(self, entity_store: "InMemoryEntityStore") -> "EntityRegistry":
        return create_registry(entity_store=entity_store)
