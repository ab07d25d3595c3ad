from resync.core.store import BaseConflictStore, BaseEntityStore, BaseQueueStore
from resync.core.metadata import ConflictRecord, QueuedOperation
from resync.core.exceptions import ItemNotFoundException
from resync.core.utils import get_entity_timestamp
from .converters import NullConverter
from typing import Any, Dict, List, Optional
import copy


class InMemoryEntityStore(BaseEntityStore):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._db: "Dict[str, Dict[str, Dict[str, Any]]]" = {}

    def _get_table(self, entity_type: "str") -> "Dict[str, Dict[str, Any]]":
        return self._db.setdefault(entity_type, {})

    def get(self, entity_type: "str", id: "str") -> "Optional[Dict[str, Any]]":
        record = self._get_table(entity_type).get(str(id))
        return copy.deepcopy(record) if record is not None else None

    def create(
        self, entity_type: "str", id: "str", owner_id: "str", payload: "Dict[str, Any]"
    ) -> "Dict[str, Any]":
        table = self._get_table(entity_type)
        if str(id) in table:
            raise ValueError(f"Item of type '{entity_type}' and ID '{id}' already exists.")

        now = get_entity_timestamp()
        record = self.clean_payload(payload)
        record.update(
            {
                "id": str(id),
                self.owner_field: owner_id,
                self.created_field: now,
                self.updated_field: now,
            }
        )
        table[str(id)] = record
        return copy.deepcopy(record)

    def update(
        self, entity_type: "str", id: "str", payload: "Dict[str, Any]"
    ) -> "Dict[str, Any]":
        record = self._get_table(entity_type).get(str(id))
        if record is None:
            raise ItemNotFoundException(item_type=entity_type, id=id)

        record.update(self.clean_payload(payload))
        record[self.updated_field] = get_entity_timestamp()
        return copy.deepcopy(record)

    def delete(self, entity_type: "str", id: "str"):
        self._get_table(entity_type).pop(str(id), None)

    def get_items(self, entity_type: "str") -> "List[Dict[str, Any]]":
        """Returns all the entities of a type. Used only in tests."""
        return copy.deepcopy(list(self._get_table(entity_type).values()))


class InMemoryConflictStore(BaseConflictStore):
    def __init__(self, *args, **kwargs):
        kwargs.setdefault(
            "conflict_metadata_converter", NullConverter(metadata_class=ConflictRecord)
        )
        super().__init__(*args, **kwargs)
        self._db: "List[Dict[str, Any]]" = []

    def save_conflict(self, conflict: "ConflictRecord"):
        record = self.conflict_metadata_converter.to_record(metadata_object=conflict)
        for i, existing in enumerate(self._db):
            if existing["id"] == record["id"]:
                self._db[i] = record
                return
        self._db.append(record)

    def get_by_id(self, conflict_id: "str") -> "Optional[ConflictRecord]":
        for record in self._db:
            if record["id"] == str(conflict_id):
                return self.conflict_metadata_converter.to_metadata(record=record)
        return None

    def list_all_by_user(self, user_id: "str") -> "List[ConflictRecord]":
        records = [record for record in self._db if record["user_id"] == user_id]
        records.sort(key=lambda record: record["created_at"])
        return [
            self.conflict_metadata_converter.to_metadata(record=record)
            for record in records
        ]


class InMemoryQueueStore(BaseQueueStore):
    def __init__(self, *args, **kwargs):
        kwargs.setdefault(
            "queued_operation_metadata_converter",
            NullConverter(metadata_class=QueuedOperation),
        )
        super().__init__(*args, **kwargs)
        self._db: "List[Dict[str, Any]]" = []

    def _to_metadata(self, records: "List[Dict[str, Any]]") -> "List[QueuedOperation]":
        return [
            self.queued_operation_metadata_converter.to_metadata(record=record)
            for record in sorted(records, key=lambda record: record["timestamp"])
        ]

    def save_queued_operation(self, queued_operation: "QueuedOperation"):
        record = self.queued_operation_metadata_converter.to_record(
            metadata_object=queued_operation
        )
        for i, existing in enumerate(self._db):
            if existing["id"] == record["id"]:
                self._db[i] = record
                return
        self._db.append(record)

    def list_by_user(self, user_id: "str") -> "List[QueuedOperation]":
        return self._to_metadata(
            [record for record in self._db if record["user_id"] == user_id]
        )

    def list_by_conflict(self, conflict_id: "str") -> "List[QueuedOperation]":
        return self._to_metadata(
            [record for record in self._db if record["conflict_id"] == conflict_id]
        )

    def delete_queued_operations(self, ids: "List[str]"):
        ids_set = set(ids)
        self._db = [record for record in self._db if record["id"] not in ids_set]
