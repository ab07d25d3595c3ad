from typing import Any, Callable, Dict, List, Optional
from abc import ABC, abstractmethod
import datetime as dt
import copy
import uuid
from .metadata import (
    ConflictRecord,
    ConflictType,
    QueuedOperation,
    ResolutionStrategy,
    SyncOperation,
)
from .utils import BaseEntityLock, BaseMetadataConverter, ThreadEntityLock, get_now_utc
from .exceptions import ItemNotFoundException


class BaseEntityStore(ABC):
    """Abstract class that encapsulates the access to the canonical entity records.

    Entities are exchanged as dictionaries keyed by field name. The id, owner and
    timestamp fields are managed by the store and never taken from a payload.

    Attributes:
        owner_field (str): Name of the field holding the id of the user that owns the entity.
        created_field (str): Name of the creation timestamp field.
        updated_field (str): Name of the last-modified timestamp field.
        entity_lock (BaseEntityLock): Lock held while a single entity is read and written.
    """

    owner_field: "str"
    created_field: "str"
    updated_field: "str"
    entity_lock: "BaseEntityLock"

    def __init__(
        self,
        owner_field: "str" = "userId",
        created_field: "str" = "createdAt",
        updated_field: "str" = "updatedAt",
        entity_lock: "Optional[BaseEntityLock]" = None,
    ):
        self.owner_field = owner_field
        self.created_field = created_field
        self.updated_field = updated_field
        self.entity_lock = entity_lock if entity_lock is not None else ThreadEntityLock()

    def __repr__(self):  # pragma: no cover
        return f"{self.__class__.__name__}()"

    @property
    def protected_fields(self) -> "List[str]":
        return ["id", self.owner_field, self.created_field, self.updated_field]

    def clean_payload(self, payload: "Dict[str, Any]") -> "Dict[str, Any]":
        """Returns a copy of the payload without the fields managed by the store.

        Args:
            payload (Dict): Fields sent by a client.
        """
        return {
            key: copy.deepcopy(value)
            for key, value in payload.items()
            if key not in self.protected_fields
        }

    def upsert(
        self, entity_type: "str", id: "str", owner_id: "str", payload: "Dict[str, Any]"
    ) -> "Dict[str, Any]":
        """Creates the entity if it doesn't exist, otherwise overwrites its fields with the payload.

        Args:
            entity_type (str): Entity store partition.
            id (str): Entity primary key.
            owner_id (str): User that will own the entity if it is created.
            payload (Dict): Entity fields.
        """
        if self.get(entity_type=entity_type, id=id) is None:
            return self.create(
                entity_type=entity_type, id=id, owner_id=owner_id, payload=payload
            )
        return self.update(entity_type=entity_type, id=id, payload=payload)

    def run_in_transaction(
        self, entity_type: "str", entity_id: "str", callback: "Callable[[], Any]"
    ) -> "Any":
        """Runs the given callback while holding the lock of a single entity.

        Args:
            entity_type (str): Entity store partition.
            entity_id (str): Primary key of the entity being processed.
            callback (Callable): Callback to be run.

        Returns:
            Any: Whatever the callback returns.
        """
        with self.entity_lock.lock(entity_type=entity_type, entity_id=entity_id):
            return callback()

    @abstractmethod
    def get(
        self, entity_type: "str", id: "str"
    ) -> "Optional[Dict[str, Any]]":  # pragma: no cover
        """Returns the entity with the given id or None if it doesn't exist.

        Args:
            entity_type (str): Entity store partition.
            id (str): Entity primary key.
        """

    @abstractmethod
    def create(
        self, entity_type: "str", id: "str", owner_id: "str", payload: "Dict[str, Any]"
    ) -> "Dict[str, Any]":  # pragma: no cover
        """Creates an entity owned by the given user.

        Args:
            entity_type (str): Entity store partition.
            id (str): Entity primary key.
            owner_id (str): User that owns the entity.
            payload (Dict): Entity fields.
        """

    @abstractmethod
    def update(
        self, entity_type: "str", id: "str", payload: "Dict[str, Any]"
    ) -> "Dict[str, Any]":  # pragma: no cover
        """Applies the payload as a partial update.

        Args:
            entity_type (str): Entity store partition.
            id (str): Entity primary key.
            payload (Dict): Fields to be changed.

        Raises:
            ItemNotFoundException: If the entity doesn't exist.
        """

    @abstractmethod
    def delete(self, entity_type: "str", id: "str"):  # pragma: no cover
        """Deletes the entity. Deleting an entity that doesn't exist is not an error.

        Args:
            entity_type (str): Entity store partition.
            id (str): Entity primary key.
        """


class BaseConflictStore(ABC):
    """Abstract class that encapsulates the access to the conflict records.

    Attributes:
        conflict_metadata_converter (BaseMetadataConverter): Instance used to convert ConflictRecord objects to data store native records and back.
    """

    conflict_metadata_converter: "BaseMetadataConverter"

    def __init__(self, conflict_metadata_converter: "BaseMetadataConverter"):
        self.conflict_metadata_converter = conflict_metadata_converter

    def insert(
        self,
        user_id: "str",
        entity_type: "str",
        entity_id: "str",
        local_version: "Dict[str, Any]",
        server_version: "Dict[str, Any]",
        conflict_type: "Optional[ConflictType]" = None,
    ) -> "ConflictRecord":
        """Records a newly detected conflict.

        Returns:
            ConflictRecord: The open conflict that was saved.
        """
        conflict = ConflictRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            local_version=copy.deepcopy(local_version),
            server_version=copy.deepcopy(server_version),
            created_at=get_now_utc(),
            conflict_type=conflict_type,
        )
        self.save_conflict(conflict=conflict)
        return conflict

    def update(
        self,
        conflict_id: "str",
        resolved_version: "Dict[str, Any]",
        strategy: "ResolutionStrategy",
        resolved_at: "dt.datetime",
    ) -> "ConflictRecord":
        """Marks a conflict as resolved.

        Raises:
            ItemNotFoundException: If the conflict doesn't exist.
        """
        conflict = self.get_by_id(conflict_id=conflict_id)
        if conflict is None:
            raise ItemNotFoundException(item_type="ConflictRecord", id=conflict_id)

        conflict.resolved_version = copy.deepcopy(resolved_version)
        conflict.strategy = strategy
        conflict.resolved_at = resolved_at
        self.save_conflict(conflict=conflict)
        return conflict

    def list_open_by_user(self, user_id: "str") -> "List[ConflictRecord]":
        """Returns the user's conflicts that haven't been resolved yet, oldest first."""
        return [
            conflict
            for conflict in self.list_all_by_user(user_id=user_id)
            if not conflict.is_resolved
        ]

    @abstractmethod
    def save_conflict(self, conflict: "ConflictRecord"):  # pragma: no cover
        """Saves the ConflictRecord to the data store.

        Args:
            conflict (ConflictRecord): Conflict to be saved.
        """

    @abstractmethod
    def get_by_id(
        self, conflict_id: "str"
    ) -> "Optional[ConflictRecord]":  # pragma: no cover
        """Returns the conflict with the given id or None if it's not found."""

    @abstractmethod
    def list_all_by_user(
        self, user_id: "str"
    ) -> "List[ConflictRecord]":  # pragma: no cover
        """Returns all the user's conflicts ordered by their date of creation."""


class BaseQueueStore(ABC):
    """Abstract class that encapsulates the history of operations received from clients.

    Attributes:
        queued_operation_metadata_converter (BaseMetadataConverter): Instance used to convert QueuedOperation objects to data store native records and back.
    """

    queued_operation_metadata_converter: "BaseMetadataConverter"

    def __init__(self, queued_operation_metadata_converter: "BaseMetadataConverter"):
        self.queued_operation_metadata_converter = queued_operation_metadata_converter

    def record(
        self,
        user_id: "str",
        sync_operation: "SyncOperation",
        synced: "bool",
        conflict_id: "Optional[str]" = None,
    ) -> "QueuedOperation":
        """Adds an operation received from a client to the history.

        Args:
            user_id (str): The user that sent the operation.
            sync_operation (SyncOperation): The operation.
            synced (bool): Whether the operation was applied.
            conflict_id (Optional[str]): The conflict the operation produced, if any.
        """
        queued_operation = QueuedOperation(
            id=str(uuid.uuid4()),
            user_id=user_id,
            operation_id=sync_operation.id,
            operation=sync_operation.operation,
            entity_type=sync_operation.entity_type,
            entity_id=sync_operation.entity_id,
            payload=copy.deepcopy(sync_operation.payload),
            timestamp=get_now_utc(),
            synced=synced,
            conflict_id=conflict_id,
        )
        self.save_queued_operation(queued_operation=queued_operation)
        return queued_operation

    def list_pending_by_user(self, user_id: "str") -> "List[QueuedOperation]":
        return [
            queued_operation
            for queued_operation in self.list_by_user(user_id=user_id)
            if not queued_operation.synced
        ]

    def mark_conflict_settled(self, conflict_id: "str") -> "List[QueuedOperation]":
        """Marks as synced the operations that produced the given conflict.

        Args:
            conflict_id (str): The conflict that was resolved.
        """
        settled = []
        for queued_operation in self.list_by_conflict(conflict_id=conflict_id):
            if queued_operation.synced:
                continue
            queued_operation.synced = True
            self.save_queued_operation(queued_operation=queued_operation)
            settled.append(queued_operation)
        return settled

    def clear_synced(self, user_id: "str") -> "int":
        """Removes the user's operations that were already synced.

        Returns:
            int: The number of operations removed.
        """
        ids = [
            queued_operation.id
            for queued_operation in self.list_by_user(user_id=user_id)
            if queued_operation.synced
        ]
        if ids:
            self.delete_queued_operations(ids=ids)
        return len(ids)

    def deduplicate_pending(self, user_id: "str") -> "int":
        """Keeps only the latest pending operation for each entity.

        Returns:
            int: The number of operations removed.
        """
        latest_by_entity: "Dict[Any, QueuedOperation]" = {}
        duplicated_ids = []
        for queued_operation in self.list_pending_by_user(user_id=user_id):
            key = (queued_operation.entity_type, queued_operation.entity_id)
            previous = latest_by_entity.get(key)
            if previous is not None:
                duplicated_ids.append(previous.id)
            latest_by_entity[key] = queued_operation

        if duplicated_ids:
            self.delete_queued_operations(ids=duplicated_ids)
        return len(duplicated_ids)

    @abstractmethod
    def save_queued_operation(
        self, queued_operation: "QueuedOperation"
    ):  # pragma: no cover
        """Saves the QueuedOperation to the data store."""

    @abstractmethod
    def list_by_user(
        self, user_id: "str"
    ) -> "List[QueuedOperation]":  # pragma: no cover
        """Returns the user's operations ordered by the time they were received."""

    @abstractmethod
    def list_by_conflict(
        self, conflict_id: "str"
    ) -> "List[QueuedOperation]":  # pragma: no cover
        """Returns the operations that produced the given conflict."""

    @abstractmethod
    def delete_queued_operations(self, ids: "List[str]"):  # pragma: no cover
        """Removes the operations with the given ids."""
