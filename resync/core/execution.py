from typing import TYPE_CHECKING, Any, Dict
from .metadata import (
    ConflictDetails,
    ConflictType,
    Operation,
    SyncOperation,
    SyncResult,
)
from .conflicts import get_conflict_type, get_conflicting_fields
from .exceptions import UnknownEntityTypeException
from .utils import EPOCH, to_datetime

if TYPE_CHECKING:  # pragma: no cover
    from .entities import EntityHandler, EntityRegistry
    from .events import EventsManager


class OperationApplier:
    """Applies a single operation received from a client to the entity store.

    Attributes:
        registry (EntityRegistry): Gives access to the handler of each entity type.
        events_manager (EventsManager): The class that will handle sync events.
    """

    registry: "EntityRegistry"
    events_manager: "EventsManager"

    def __init__(self, registry: "EntityRegistry", events_manager: "EventsManager"):
        self.registry = registry
        self.events_manager = events_manager

    def apply(self, user_id: "str", sync_operation: "SyncOperation") -> "SyncResult":
        """Applies the operation. Processing means:

            - Finding the handler for the entity type
            - Checking to see if the operation causes a conflict
            - Recording conflicts
            - Executing the operation

        Conflicts, unknown entity types and store failures are reported in the result,
        this method doesn't raise.

        Args:
            user_id (str): The user that sent the operation.
            sync_operation (SyncOperation): The operation to be applied.
        """
        try:
            handler = self.registry.get_handler(entity_type=sync_operation.entity_type)
        except UnknownEntityTypeException as e:
            return SyncResult(
                operation_id=sync_operation.id, success=False, error=str(e)
            )

        def in_transaction() -> "SyncResult":
            if sync_operation.operation == Operation.CREATE:
                return self.apply_create(
                    user_id=user_id, handler=handler, sync_operation=sync_operation
                )
            elif sync_operation.operation == Operation.UPDATE:
                return self.apply_update(
                    user_id=user_id, handler=handler, sync_operation=sync_operation
                )
            elif sync_operation.operation == Operation.DELETE:
                return self.apply_delete(handler=handler, sync_operation=sync_operation)

            return SyncResult(
                operation_id=sync_operation.id,
                success=False,
                error="Unknown operation: %s" % (sync_operation.operation,),
            )

        try:
            return handler.run_in_transaction(
                id=sync_operation.entity_id, callback=in_transaction
            )
        except Exception as e:
            self.events_manager.on_exception(sync_operation=sync_operation, exception=e)
            return SyncResult(
                operation_id=sync_operation.id,
                success=False,
                error=str(e) or e.__class__.__name__,
            )

    def apply_create(
        self, user_id: "str", handler: "EntityHandler", sync_operation: "SyncOperation"
    ) -> "SyncResult":
        """Creates the entity. If an entity with the same id already exists, the operation
        is reported as a conflict instead of overwriting it, so that a retried or colliding
        creation surfaces as something that can be reconciled.
        """
        existing = handler.get(id=sync_operation.entity_id)
        if existing is not None:
            return self.handle_conflict(
                user_id=user_id,
                handler=handler,
                sync_operation=sync_operation,
                server_version=existing,
                conflict_type=get_conflict_type(
                    operation=Operation.CREATE, server_exists=True
                ),
            )

        handler.create(
            id=sync_operation.entity_id, owner_id=user_id, payload=sync_operation.payload
        )
        return SyncResult(operation_id=sync_operation.id, success=True)

    def apply_update(
        self, user_id: "str", handler: "EntityHandler", sync_operation: "SyncOperation"
    ) -> "SyncResult":
        """Applies the payload as a partial update.

        An update for an entity that doesn't exist creates it (its creation may not have
        been delivered yet). If the server changed the entity after the moment the client
        last fetched it, the operation is reported as a conflict.
        """
        existing = handler.get(id=sync_operation.entity_id)
        if existing is None:
            handler.create(
                id=sync_operation.entity_id,
                owner_id=user_id,
                payload=sync_operation.payload,
            )
            return SyncResult(operation_id=sync_operation.id, success=True)

        if self.is_stale(handler=handler, sync_operation=sync_operation, existing=existing):
            return self.handle_conflict(
                user_id=user_id,
                handler=handler,
                sync_operation=sync_operation,
                server_version=existing,
                conflict_type=get_conflict_type(
                    operation=Operation.UPDATE, server_exists=True
                ),
            )

        handler.update(id=sync_operation.entity_id, payload=sync_operation.payload)
        return SyncResult(operation_id=sync_operation.id, success=True)

    def apply_delete(
        self, handler: "EntityHandler", sync_operation: "SyncOperation"
    ) -> "SyncResult":
        # Deleting a missing entity is already satisfied.
        handler.delete(id=sync_operation.entity_id)
        return SyncResult(operation_id=sync_operation.id, success=True)

    def is_stale(
        self,
        handler: "EntityHandler",
        sync_operation: "SyncOperation",
        existing: "Dict[str, Any]",
    ) -> "bool":
        """Checks if the server's last-modified time is strictly newer than the one the client declared.
        An operation that declares no timestamp is compared as if the client had seen the entity at the epoch.
        """
        server_timestamp = to_datetime(existing.get(handler.timestamp_field))
        if server_timestamp is None:
            return False

        prior_timestamp = sync_operation.get_prior_timestamp(
            timestamp_field=handler.timestamp_field
        )
        if prior_timestamp is None:
            prior_timestamp = EPOCH

        return server_timestamp > prior_timestamp

    def get_local_version(
        self, handler: "EntityHandler", sync_operation: "SyncOperation"
    ) -> "Dict[str, Any]":
        """The snapshot recorded as the client's version of a conflict. When the payload has no
        timestamp, the operation's client timestamp is stored in the timestamp field so that
        ResolutionStrategy.LATEST_WINS compares what the client declared.
        """
        local_version = dict(sync_operation.payload)
        if (
            local_version.get(handler.timestamp_field) is None
            and sync_operation.client_timestamp is not None
        ):
            local_version[handler.timestamp_field] = (
                sync_operation.client_timestamp.isoformat()
            )
        return local_version

    def handle_conflict(
        self,
        user_id: "str",
        handler: "EntityHandler",
        sync_operation: "SyncOperation",
        server_version: "Dict[str, Any]",
        conflict_type: "ConflictType",
    ) -> "SyncResult":
        """Called whenever a conflict is detected. The conflict is recorded and returned with both versions.

        Args:
            user_id (str): The user that sent the operation.
            handler (EntityHandler): The handler of the entity type.
            sync_operation (SyncOperation): The operation that caused the conflict.
            server_version (Dict): The entity as it exists on the server.
            conflict_type (ConflictType): Type of conflict.
        """
        conflict = self.events_manager.on_conflict_detected(
            user_id=user_id,
            sync_operation=sync_operation,
            local_version=self.get_local_version(
                handler=handler, sync_operation=sync_operation
            ),
            server_version=server_version,
            conflict_type=conflict_type,
        )
        return SyncResult(
            operation_id=sync_operation.id,
            success=False,
            error="Conflict detected",
            conflict=ConflictDetails(
                conflict_id=conflict.id,
                conflict_type=conflict_type,
                local_version=conflict.local_version,
                server_version=conflict.server_version,
                conflicting_fields=get_conflicting_fields(
                    conflict.local_version, conflict.server_version
                ),
            ),
        )
