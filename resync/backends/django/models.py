from django.db import models

from resync.core.metadata import ConflictType, Operation, ResolutionStrategy


class SyncConflictRecord(models.Model):
    id = models.CharField(primary_key=True, max_length=64)
    user_id = models.CharField(max_length=255, null=False)
    entity_type = models.CharField(max_length=100, null=False)
    entity_id = models.CharField(max_length=255, null=False)
    local_version = models.JSONField(default=dict, null=False)
    server_version = models.JSONField(default=dict, null=False)
    strategy = models.CharField(
        max_length=20,
        null=True,
        choices=[(strategy.value, strategy.value) for strategy in ResolutionStrategy],
    )
    resolved_version = models.JSONField(null=True)
    created_at = models.DateTimeField(null=False)
    resolved_at = models.DateTimeField(null=True)
    conflict_type = models.CharField(
        max_length=20,
        null=True,
        choices=[
            (conflict_type.value, conflict_type.value) for conflict_type in ConflictType
        ],
    )

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["user_id"], name="resync_sync_user_id_5f0c1e_idx"),
            models.Index(
                fields=["entity_type", "entity_id"], name="resync_sync_entity__8a2d4b_idx"
            ),
            models.Index(fields=["resolved_at"], name="resync_sync_resolve_3c7e90_idx"),
        ]

    def __repr__(self):  # pragma: no cover
        return f"SyncConflictRecord(id={self.id}, entity_type={self.entity_type}, entity_id={self.entity_id})"


class SyncQueueRecord(models.Model):
    id = models.CharField(primary_key=True, max_length=64)
    user_id = models.CharField(max_length=255, null=False)
    operation_id = models.CharField(max_length=255, null=False)
    operation = models.CharField(
        max_length=10,
        choices=(
            (Operation.CREATE.value, "Create"),
            (Operation.UPDATE.value, "Update"),
            (Operation.DELETE.value, "Delete"),
        ),
    )
    entity_type = models.CharField(max_length=100, null=False)
    entity_id = models.CharField(max_length=255, null=False)
    payload = models.JSONField(default=dict, null=False)
    timestamp = models.DateTimeField(null=False)
    synced = models.BooleanField(default=False, null=False)
    conflict_id = models.CharField(max_length=64, null=True)

    class Meta:
        ordering = ["timestamp"]
        indexes = [
            models.Index(
                fields=["user_id", "synced"], name="resync_sync_user_id_b41f27_idx"
            ),
            models.Index(fields=["timestamp"], name="resync_sync_timesta_6e9a12_idx"),
            models.Index(fields=["conflict_id"], name="resync_sync_conflic_d07b35_idx"),
        ]

    def __repr__(self):  # pragma: no cover
        return f"SyncQueueRecord(id={self.id}, operation={self.operation}, entity_type={self.entity_type}, synced={self.synced})"
