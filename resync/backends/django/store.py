from django.apps import apps
from django.core.exceptions import FieldDoesNotExist
from django.db import models, transaction
from resync.core.store import BaseConflictStore, BaseEntityStore, BaseQueueStore
from resync.core.metadata import ConflictRecord, QueuedOperation
from resync.core.exceptions import ItemNotFoundException, UnknownEntityTypeException
from resync.core.utils import get_entity_timestamp
from .converters import ConflictRecordMetadataConverter, QueuedOperationMetadataConverter
from .settings import resync_settings
from typing import Any, Callable, Dict, List, Optional, Type


class DjangoEntityStore(BaseEntityStore):
    """Entity store backed by Django models. The model of each entity type is defined
    by the ENTITIES setting ({"task": "app_label.Task"}).
    """

    def __init__(self, *args, **kwargs):
        self.entity_models: "Dict[str, str]" = kwargs.pop("entity_models", None)
        super().__init__(*args, **kwargs)

    def get_model(self, entity_type: "str") -> "Type[models.Model]":
        entity_models = (
            self.entity_models
            if self.entity_models is not None
            else resync_settings.ENTITIES
        )
        try:
            app_model = entity_models[entity_type]
        except KeyError:
            raise UnknownEntityTypeException(entity_type=entity_type)
        return apps.get_model(app_model)

    def entity_to_dict(self, instance: "models.Model") -> "Dict[str, Any]":
        return {
            field.attname: getattr(instance, field.attname)
            for field in instance._meta.concrete_fields
        }

    def _set_fields(self, instance: "models.Model", payload: "Dict[str, Any]"):
        for key, value in self.clean_payload(payload).items():
            try:
                field = instance._meta.get_field(key)
            except FieldDoesNotExist:
                # Fields unknown to the model are dropped
                continue
            setattr(instance, field.attname, value)

    def _get_instance(
        self, entity_type: "str", id: "str"
    ) -> "Optional[models.Model]":
        queryset = self.get_model(entity_type).objects.filter(pk=id)
        if transaction.get_connection().in_atomic_block:
            queryset = queryset.select_for_update()
        return queryset.first()

    def get(self, entity_type: "str", id: "str") -> "Optional[Dict[str, Any]]":
        instance = self._get_instance(entity_type=entity_type, id=id)
        return self.entity_to_dict(instance) if instance is not None else None

    def create(
        self, entity_type: "str", id: "str", owner_id: "str", payload: "Dict[str, Any]"
    ) -> "Dict[str, Any]":
        model = self.get_model(entity_type)
        now = get_entity_timestamp()
        instance = model()
        setattr(instance, model._meta.pk.attname, id)
        self._set_fields(instance, payload)
        setattr(instance, model._meta.get_field(self.owner_field).attname, owner_id)
        setattr(instance, self.created_field, now)
        setattr(instance, self.updated_field, now)
        instance.save(force_insert=True)
        instance.refresh_from_db()
        return self.entity_to_dict(instance)

    def update(
        self, entity_type: "str", id: "str", payload: "Dict[str, Any]"
    ) -> "Dict[str, Any]":
        instance = self._get_instance(entity_type=entity_type, id=id)
        if instance is None:
            raise ItemNotFoundException(item_type=entity_type, id=id)

        self._set_fields(instance, payload)
        setattr(instance, self.updated_field, get_entity_timestamp())
        instance.save()
        instance.refresh_from_db()
        return self.entity_to_dict(instance)

    def delete(self, entity_type: "str", id: "str"):
        self.get_model(entity_type).objects.filter(pk=id).delete()

    def run_in_transaction(
        self, entity_type: "str", entity_id: "str", callback: "Callable[[], Any]"
    ) -> "Any":
        with transaction.atomic():
            with self.entity_lock.lock(entity_type=entity_type, entity_id=entity_id):
                return callback()


class DjangoConflictStore(BaseConflictStore):
    conflict_metadata_converter: "ConflictRecordMetadataConverter"

    def __init__(self, *args, **kwargs):
        kwargs.setdefault(
            "conflict_metadata_converter", ConflictRecordMetadataConverter()
        )
        super().__init__(*args, **kwargs)

    def save_conflict(self, conflict: "ConflictRecord"):
        record = self.conflict_metadata_converter.to_record(metadata_object=conflict)
        record.save()

    def get_by_id(self, conflict_id: "str") -> "Optional[ConflictRecord]":
        SyncConflictRecord = apps.get_model("resync", "SyncConflictRecord")
        record = SyncConflictRecord.objects.filter(pk=str(conflict_id)).first()
        if record is None:
            return None
        return self.conflict_metadata_converter.to_metadata(record=record)

    def list_all_by_user(self, user_id: "str") -> "List[ConflictRecord]":
        SyncConflictRecord = apps.get_model("resync", "SyncConflictRecord")
        records = SyncConflictRecord.objects.filter(user_id=user_id).order_by(
            "created_at"
        )
        return [
            self.conflict_metadata_converter.to_metadata(record=record)
            for record in records
        ]

    def list_open_by_user(self, user_id: "str") -> "List[ConflictRecord]":
        SyncConflictRecord = apps.get_model("resync", "SyncConflictRecord")
        records = SyncConflictRecord.objects.filter(
            user_id=user_id, resolved_version__isnull=True
        ).order_by("created_at")
        return [
            self.conflict_metadata_converter.to_metadata(record=record)
            for record in records
        ]


class DjangoQueueStore(BaseQueueStore):
    queued_operation_metadata_converter: "QueuedOperationMetadataConverter"

    def __init__(self, *args, **kwargs):
        kwargs.setdefault(
            "queued_operation_metadata_converter", QueuedOperationMetadataConverter()
        )
        super().__init__(*args, **kwargs)

    def _to_metadata(self, queryset) -> "List[QueuedOperation]":
        return [
            self.queued_operation_metadata_converter.to_metadata(record=record)
            for record in queryset
        ]

    def save_queued_operation(self, queued_operation: "QueuedOperation"):
        record = self.queued_operation_metadata_converter.to_record(
            metadata_object=queued_operation
        )
        record.save()

    def list_by_user(self, user_id: "str") -> "List[QueuedOperation]":
        SyncQueueRecord = apps.get_model("resync", "SyncQueueRecord")
        return self._to_metadata(
            SyncQueueRecord.objects.filter(user_id=user_id).order_by("timestamp", "pk")
        )

    def list_by_conflict(self, conflict_id: "str") -> "List[QueuedOperation]":
        SyncQueueRecord = apps.get_model("resync", "SyncQueueRecord")
        return self._to_metadata(
            SyncQueueRecord.objects.filter(conflict_id=conflict_id).order_by("timestamp")
        )

    def delete_queued_operations(self, ids: "List[str]"):
        SyncQueueRecord = apps.get_model("resync", "SyncQueueRecord")
        SyncQueueRecord.objects.filter(pk__in=ids).delete()
