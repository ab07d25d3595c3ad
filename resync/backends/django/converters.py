from django.apps import apps
from resync.core.utils import BaseMetadataConverter
from resync.core.serializer import MetadataSerializer
from resync.core.metadata import (
    ConflictRecord,
    ConflictType,
    Operation,
    QueuedOperation,
    ResolutionStrategy,
)
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .models import SyncConflictRecord, SyncQueueRecord


class ConflictRecordMetadataConverter(BaseMetadataConverter):
    def __init__(self):
        self.metadata_serializer = MetadataSerializer()

    def to_metadata(self, record: "SyncConflictRecord") -> "ConflictRecord":
        return ConflictRecord(
            id=record.id,
            user_id=record.user_id,
            entity_type=record.entity_type,
            entity_id=record.entity_id,
            local_version=record.local_version,
            server_version=record.server_version,
            created_at=record.created_at,
            strategy=ResolutionStrategy[record.strategy] if record.strategy else None,
            resolved_version=record.resolved_version,
            resolved_at=record.resolved_at,
            conflict_type=ConflictType[record.conflict_type]
            if record.conflict_type
            else None,
        )

    def to_record(self, metadata_object: "ConflictRecord") -> "SyncConflictRecord":
        SyncConflictRecord = apps.get_model("resync", "SyncConflictRecord")
        return SyncConflictRecord(
            id=metadata_object.id,
            user_id=metadata_object.user_id,
            entity_type=metadata_object.entity_type,
            entity_id=metadata_object.entity_id,
            local_version=self.metadata_serializer.serialize(
                metadata_object.local_version
            ),
            server_version=self.metadata_serializer.serialize(
                metadata_object.server_version
            ),
            strategy=metadata_object.strategy.value
            if metadata_object.strategy
            else None,
            resolved_version=self.metadata_serializer.serialize(
                metadata_object.resolved_version
            ),
            created_at=metadata_object.created_at,
            resolved_at=metadata_object.resolved_at,
            conflict_type=metadata_object.conflict_type.value
            if metadata_object.conflict_type
            else None,
        )


class QueuedOperationMetadataConverter(BaseMetadataConverter):
    def __init__(self):
        self.metadata_serializer = MetadataSerializer()

    def to_metadata(self, record: "SyncQueueRecord") -> "QueuedOperation":
        return QueuedOperation(
            id=record.id,
            user_id=record.user_id,
            operation_id=record.operation_id,
            operation=Operation[record.operation],
            entity_type=record.entity_type,
            entity_id=record.entity_id,
            payload=record.payload,
            timestamp=record.timestamp,
            synced=record.synced,
            conflict_id=record.conflict_id,
        )

    def to_record(self, metadata_object: "QueuedOperation") -> "SyncQueueRecord":
        SyncQueueRecord = apps.get_model("resync", "SyncQueueRecord")
        return SyncQueueRecord(
            id=metadata_object.id,
            user_id=metadata_object.user_id,
            operation_id=metadata_object.operation_id,
            operation=metadata_object.operation.value,
            entity_type=metadata_object.entity_type,
            entity_id=metadata_object.entity_id,
            payload=self.metadata_serializer.serialize(metadata_object.payload),
            timestamp=metadata_object.timestamp,
            synced=metadata_object.synced,
            conflict_id=metadata_object.conflict_id,
        )
