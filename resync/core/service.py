from typing import TYPE_CHECKING, Any, Dict, Optional, Type
from .entities import create_registry
from .events import EventsManager
from .execution import OperationApplier
from .processor import SyncQueueProcessor
from .resolution import ConflictResolver
from .serializer import BaseMetadataSerializer, MetadataSerializer
from .status import SyncStatusAggregator
from .exceptions import ValidationException

if TYPE_CHECKING:  # pragma: no cover
    from .entities import EntityRegistry
    from .store import BaseConflictStore, BaseEntityStore, BaseQueueStore


class SyncService:
    """Entry point used by the transport layer. Receives and returns JSON-ready dictionaries.

    Attributes:
        processor (SyncQueueProcessor): Processes batches of operations.
        resolver (ConflictResolver): Resolves conflicts.
        aggregator (SyncStatusAggregator): Summarizes the sync state.
        queue_store (BaseQueueStore): The history of operations.
        serializer (BaseMetadataSerializer): Converts the results to primitive types.
    """

    processor: "SyncQueueProcessor"
    resolver: "ConflictResolver"
    aggregator: "SyncStatusAggregator"
    queue_store: "BaseQueueStore"
    serializer: "BaseMetadataSerializer"

    def __init__(
        self,
        processor: "SyncQueueProcessor",
        resolver: "ConflictResolver",
        aggregator: "SyncStatusAggregator",
        queue_store: "BaseQueueStore",
        serializer: "Optional[BaseMetadataSerializer]" = None,
    ):
        self.processor = processor
        self.resolver = resolver
        self.aggregator = aggregator
        self.queue_store = queue_store
        self.serializer = serializer if serializer is not None else MetadataSerializer()

    @classmethod
    def create(
        cls,
        entity_store: "BaseEntityStore",
        conflict_store: "BaseConflictStore",
        queue_store: "BaseQueueStore",
        registry: "Optional[EntityRegistry]" = None,
        events_manager_class: "Type[EventsManager]" = EventsManager,
        max_operations: "Optional[int]" = None,
    ) -> "SyncService":
        """Wires all the components around the given stores.

        Args:
            entity_store (BaseEntityStore): The canonical entity records.
            conflict_store (BaseConflictStore): The conflict records.
            queue_store (BaseQueueStore): The history of operations.
            registry (Optional[EntityRegistry]): Entity handlers. Defaults to the default entity types.
            events_manager_class (Type[EventsManager]): The class that will handle sync events.
            max_operations (Optional[int]): The maximum number of operations accepted in a batch.
        """
        if registry is None:
            registry = create_registry(entity_store=entity_store)

        events_manager = events_manager_class(
            conflict_store=conflict_store, queue_store=queue_store
        )
        applier = OperationApplier(registry=registry, events_manager=events_manager)
        return cls(
            processor=SyncQueueProcessor(
                applier=applier,
                events_manager=events_manager,
                max_operations=max_operations,
            ),
            resolver=ConflictResolver(
                registry=registry,
                conflict_store=conflict_store,
                events_manager=events_manager,
            ),
            aggregator=SyncStatusAggregator(
                queue_store=queue_store, conflict_store=conflict_store
            ),
            queue_store=queue_store,
        )

    def _check_body(self, body: "Any") -> "Dict[str, Any]":
        if not isinstance(body, dict):
            raise ValidationException("Request body must be an object")
        return body

    def sync_queue(self, user_id: "str", body: "Any") -> "Dict[str, Any]":
        """Processes a batch of operations: {"operations": [...]}.

        Returns:
            Dict: {"results", "totalProcessed", "successful", "failed"}
        """
        body = self._check_body(body)
        batch_result = self.processor.process(
            user_id=user_id, operations=body.get("operations")
        )
        return self.serializer.serialize(batch_result)

    def resolve_conflict(self, user_id: "str", body: "Any") -> "Dict[str, Any]":
        """Resolves a conflict: {"conflictId", "strategy", "resolvedData"}.

        Returns:
            Dict: {"success", "conflict", "message"}
        """
        body = self._check_body(body)
        resolution_result = self.resolver.resolve(
            user_id=user_id,
            conflict_id=body.get("conflictId"),
            strategy=body.get("strategy"),
            resolved_data=body.get("resolvedData"),
        )
        return self.serializer.serialize(resolution_result)

    def auto_resolve_conflict(self, user_id: "str", body: "Any") -> "Dict[str, Any]":
        """Resolves a conflict without a strategy chosen by the caller: {"conflictId"}.

        Returns:
            Dict: {"success", "conflict", "message"}
        """
        body = self._check_body(body)
        resolution_result = self.resolver.auto_resolve(
            user_id=user_id, conflict_id=body.get("conflictId")
        )
        return self.serializer.serialize(resolution_result)

    def get_status(self, user_id: "str") -> "Dict[str, Any]":
        """Summarizes the user's sync state.

        Returns:
            Dict: {"status", "totalOperations", "syncedOperations", "pendingOperations",
            "unresolvedConflicts", "lastSyncTime", "pendingByEntity", "conflicts"}
        """
        status_summary = self.aggregator.get_status(user_id=user_id)
        return self.serializer.serialize(status_summary)

    def clear_synced_operations(self, user_id: "str") -> "Dict[str, Any]":
        removed = self.queue_store.clear_synced(user_id=user_id)
        return {"removed": removed}
