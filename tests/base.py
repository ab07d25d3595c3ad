from typing import Any, Dict, List, Optional, Tuple
from resync.core.entities import EntityRegistry
from resync.core.store import BaseConflictStore, BaseEntityStore, BaseQueueStore
from resync.core.service import SyncService
from resync.core.utils import to_datetime
import datetime as dt


class BackendTestMixin:
    entity_store: "BaseEntityStore"
    conflict_store: "BaseConflictStore"
    queue_store: "BaseQueueStore"
    registry: "EntityRegistry"
    service: "SyncService"

    def _create_stores(
        self,
    ) -> "Tuple[BaseEntityStore, BaseConflictStore, BaseQueueStore]":  # pragma: no cover
        raise NotImplementedError()

    def _create_registry(
        self, entity_store: "BaseEntityStore"
    ) -> "EntityRegistry":  # pragma: no cover
        raise NotImplementedError()

    def _setup_backend(self, max_operations: "Optional[int]" = None):
        self.entity_store, self.conflict_store, self.queue_store = self._create_stores()
        self.registry = self._create_registry(entity_store=self.entity_store)
        self.service = SyncService.create(
            entity_store=self.entity_store,
            conflict_store=self.conflict_store,
            queue_store=self.queue_store,
            registry=self.registry,
            max_operations=max_operations,
        )

    def _get_entity(self, entity_type: "str", id: "str") -> "Optional[Dict[str, Any]]":
        return self.registry.get_handler(entity_type=entity_type).get(id=id)

    def _get_updated_at(self, entity_type: "str", id: "str") -> "dt.datetime":
        entity = self._get_entity(entity_type=entity_type, id=id)
        assert entity is not None
        return to_datetime(entity["updatedAt"])

    def _sync(
        self, user_id: "str", operations: "List[Dict[str, Any]]"
    ) -> "Dict[str, Any]":
        return self.service.sync_queue(user_id=user_id, body={"operations": operations})

    def _operation(
        self,
        id: "str",
        kind: "str",
        entity_id: "Optional[str]" = None,
        entity_type: "str" = "task",
        payload: "Optional[Dict[str, Any]]" = None,
        client_timestamp: "Any" = None,
    ) -> "Dict[str, Any]":
        operation = {
            "id": id,
            "kind": kind,
            "entityType": entity_type,
            "entityId": entity_id if entity_id is not None else id,
            "payload": payload if payload is not None else {},
        }
        if client_timestamp is not None:
            operation["clientTimestamp"] = client_timestamp
        return operation
