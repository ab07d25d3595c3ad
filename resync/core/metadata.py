import datetime as dt
from enum import Enum
from typing import Any, Dict, List, Optional
from .utils import to_datetime


class Operation(Enum):

    """Represents an operation that a client performed to an entity while offline."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ConflictType(Enum):
    """Represents the type of conflict that was detected."""

    CREATE_CREATE = "CREATE_CREATE"
    UPDATE_UPDATE = "UPDATE_UPDATE"
    UPDATE_DELETE = "UPDATE_DELETE"
    DELETE_UPDATE = "DELETE_UPDATE"


class ResolutionStrategy(Enum):
    """Represents the policy used to derive an entity's final value from two divergent snapshots."""

    LOCAL_WINS = "LOCAL_WINS"
    SERVER_WINS = "SERVER_WINS"
    LATEST_WINS = "LATEST_WINS"
    MERGE = "MERGE"
    MANUAL = "MANUAL"


class SyncStatus(Enum):
    PENDING = "pending"
    SYNCED = "synced"


class SyncOperation:
    """Represents a mutation queued by a client while it was offline.

    Attributes:
        id (str): Client-generated identifier. Used as the correlation id in the results.
        operation (Operation): The kind of mutation.
        entity_type (str): Tag identifying the entity store partition.
        entity_id (str): Primary key of the target entity. Assigned by the client, equal to "id" on creation.
        payload (Dict): Entity fields produced by the client's local state.
        client_timestamp (Optional[dt.datetime]): Time the client believes it last observed the entity.
    """

    id: "str"
    operation: "Operation"
    entity_type: "str"
    entity_id: "str"
    payload: "Dict[str, Any]"
    client_timestamp: "Optional[dt.datetime]"

    def __init__(
        self,
        id: "str",
        operation: "Operation",
        entity_type: "str",
        entity_id: "Optional[str]",
        payload: "Dict[str, Any]",
        client_timestamp: "Optional[dt.datetime]" = None,
    ):
        self.id = id
        self.operation = operation
        self.entity_type = entity_type
        self.entity_id = entity_id if entity_id is not None else id
        self.payload = payload
        self.client_timestamp = client_timestamp

    def __repr__(self):  # pragma: no cover
        return f"SyncOperation(id='{self.id}', operation={self.operation}, entity_type='{self.entity_type}', entity_id='{self.entity_id}')"

    def get_prior_timestamp(self, timestamp_field: "str") -> "Optional[dt.datetime]":
        """Returns the server timestamp the client last fetched for the entity.

        The payload's timestamp field takes precedence, the operation's client
        timestamp is used when the payload doesn't carry one.

        Args:
            timestamp_field (str): Name of the entity's last-modified field.
        """
        prior_timestamp = to_datetime(self.payload.get(timestamp_field))
        if prior_timestamp is None:
            prior_timestamp = self.client_timestamp
        return prior_timestamp


class ConflictDetails:
    """Both versions of an entity whose client view diverged from the server's.

    Attributes:
        conflict_id (str): Primary key of the ConflictRecord that was saved.
        conflict_type (ConflictType): Type of conflict.
        local_version (Dict): The payload sent by the client.
        server_version (Dict): The entity as it existed on the server.
        conflicting_fields (List[str]): Fields whose values differ between both versions.
    """

    def __init__(
        self,
        conflict_id: "str",
        conflict_type: "ConflictType",
        local_version: "Dict[str, Any]",
        server_version: "Dict[str, Any]",
        conflicting_fields: "List[str]",
    ):
        self.conflict_id = conflict_id
        self.conflict_type = conflict_type
        self.local_version = local_version
        self.server_version = server_version
        self.conflicting_fields = conflicting_fields

    def __repr__(self):  # pragma: no cover
        return f"ConflictDetails(conflict_id='{self.conflict_id}', conflict_type={self.conflict_type})"


class SyncResult:
    """Outcome of applying a single SyncOperation."""

    operation_id: "str"
    success: "bool"
    error: "Optional[str]"
    conflict: "Optional[ConflictDetails]"

    def __init__(
        self,
        operation_id: "str",
        success: "bool",
        error: "Optional[str]" = None,
        conflict: "Optional[ConflictDetails]" = None,
    ):
        self.operation_id = operation_id
        self.success = success
        self.error = error
        self.conflict = conflict

    def __repr__(self):  # pragma: no cover
        return f"SyncResult(operation_id='{self.operation_id}', success={self.success}, error={self.error!r})"

    @property
    def has_conflict(self) -> "bool":
        return self.conflict is not None


class BatchResult:
    """Aggregated outcome of a batch of operations."""

    def __init__(self, results: "List[SyncResult]"):
        self.results = results
        self.total_processed = len(results)
        self.successful = len([result for result in results if result.success])
        self.failed = self.total_processed - self.successful

    def __repr__(self):  # pragma: no cover
        return f"BatchResult(total_processed={self.total_processed}, successful={self.successful}, failed={self.failed})"


class ConflictRecord:
    """Durable record of a detected divergence.

    Attributes:
        id (str): This instance's primary key.
        user_id (str): The user that owns the conflict.
        entity_type (str): Tag of the entity involved.
        entity_id (str): Primary key of the entity involved.
        local_version (Dict): Snapshot supplied by the client at detection time.
        server_version (Dict): Snapshot of the entity on the server at detection time.
        strategy (Optional[ResolutionStrategy]): The strategy used for the resolution. None while the conflict is open.
        resolved_version (Optional[Dict]): The value written to the entity store. None while the conflict is open.
        created_at (dt.datetime): The date that this conflict was detected.
        resolved_at (Optional[dt.datetime]): The date when the conflict was resolved.
        conflict_type (Optional[ConflictType]): The type of conflict.
    """

    id: "str"
    user_id: "str"
    entity_type: "str"
    entity_id: "str"
    local_version: "Dict[str, Any]"
    server_version: "Dict[str, Any]"
    strategy: "Optional[ResolutionStrategy]"
    resolved_version: "Optional[Dict[str, Any]]"
    created_at: "dt.datetime"
    resolved_at: "Optional[dt.datetime]"
    conflict_type: "Optional[ConflictType]"

    def __init__(
        self,
        id: "str",
        user_id: "str",
        entity_type: "str",
        entity_id: "str",
        local_version: "Dict[str, Any]",
        server_version: "Dict[str, Any]",
        created_at: "dt.datetime",
        strategy: "Optional[ResolutionStrategy]" = None,
        resolved_version: "Optional[Dict[str, Any]]" = None,
        resolved_at: "Optional[dt.datetime]" = None,
        conflict_type: "Optional[ConflictType]" = None,
    ):
        self.id = id
        self.user_id = user_id
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.local_version = local_version
        self.server_version = server_version
        self.created_at = created_at
        self.strategy = strategy
        self.resolved_version = resolved_version
        self.resolved_at = resolved_at
        self.conflict_type = conflict_type

    def __repr__(self):  # pragma: no cover
        return f"ConflictRecord(id='{self.id}', user_id='{self.user_id}', entity_type='{self.entity_type}', entity_id='{self.entity_id}', strategy={self.strategy}, resolved_at={self.resolved_at})"

    @property
    def is_resolved(self) -> "bool":
        return self.resolved_version is not None

    def __eq__(self, other: "object"):
        assert isinstance(other, ConflictRecord)

        for param in [
            "id",
            "user_id",
            "entity_type",
            "entity_id",
            "local_version",
            "server_version",
            "strategy",
            "resolved_version",
            "created_at",
            "resolved_at",
            "conflict_type",
        ]:
            if not getattr(self, param) == getattr(other, param):
                return False

        return True


class QueuedOperation:
    """History entry for an operation received from a client.

    Attributes:
        id (str): This instance's primary key.
        user_id (str): The user that sent the operation.
        operation_id (str): The client-generated id of the operation.
        operation (Operation): The kind of mutation.
        entity_type (str): Tag of the entity involved.
        entity_id (str): Primary key of the entity involved.
        payload (Dict): The payload sent by the client.
        timestamp (dt.datetime): When the operation was received.
        synced (bool): Whether the operation has been applied (or its conflict resolved).
        conflict_id (Optional[str]): The conflict the operation produced, if any.
    """

    def __init__(
        self,
        id: "str",
        user_id: "str",
        operation_id: "str",
        operation: "Operation",
        entity_type: "str",
        entity_id: "str",
        payload: "Dict[str, Any]",
        timestamp: "dt.datetime",
        synced: "bool",
        conflict_id: "Optional[str]" = None,
    ):
        self.id = id
        self.user_id = user_id
        self.operation_id = operation_id
        self.operation = operation
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.payload = payload
        self.timestamp = timestamp
        self.synced = synced
        self.conflict_id = conflict_id

    def __repr__(self):  # pragma: no cover
        return f"QueuedOperation(id='{self.id}', operation={self.operation}, entity_type='{self.entity_type}', entity_id='{self.entity_id}', synced={self.synced})"

    def __eq__(self, other: "object"):
        assert isinstance(other, QueuedOperation)
        return self.__dict__ == other.__dict__


class ConflictSummary:
    """Lightweight projection of an open conflict."""

    def __init__(
        self,
        id: "str",
        entity_type: "str",
        entity_id: "str",
        strategy: "Optional[ResolutionStrategy]",
        suggested_strategy: "ResolutionStrategy",
        auto_resolvable: "bool",
    ):
        self.id = id
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.strategy = strategy
        self.suggested_strategy = suggested_strategy
        self.auto_resolvable = auto_resolvable


class SyncStatusSummary:
    """Read-only summary of a user's sync state. Derived, never stored."""

    def __init__(
        self,
        status: "SyncStatus",
        total_operations: "int",
        synced_operations: "int",
        pending_operations: "int",
        unresolved_conflicts: "int",
        last_sync_time: "Optional[dt.datetime]",
        pending_by_entity: "Dict[str, int]",
        conflicts: "List[ConflictSummary]",
    ):
        self.status = status
        self.total_operations = total_operations
        self.synced_operations = synced_operations
        self.pending_operations = pending_operations
        self.unresolved_conflicts = unresolved_conflicts
        self.last_sync_time = last_sync_time
        self.pending_by_entity = pending_by_entity
        self.conflicts = conflicts

    def __repr__(self):  # pragma: no cover
        return f"SyncStatusSummary(status={self.status}, pending_operations={self.pending_operations}, unresolved_conflicts={self.unresolved_conflicts})"


class ResolutionResult:
    """Outcome of a conflict resolution request."""

    def __init__(self, success: "bool", conflict: "ConflictRecord", message: "str"):
        self.success = success
        self.conflict = conflict
        self.message = message
