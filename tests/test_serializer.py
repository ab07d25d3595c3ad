import unittest
import datetime as dt
import uuid
from resync.core.exceptions import ValidationException
from resync.core.metadata import (
    ConflictDetails,
    ConflictType,
    Operation,
    SyncOperation,
    SyncResult,
)
from resync.core.serializer import (
    MetadataSerializer,
    OperationDeserializer,
    to_camel_case,
)


class MetadataSerializerTest(unittest.TestCase):
    def test_to_camel_case(self):
        self.assertEqual(to_camel_case("operation_id"), "operationId")
        self.assertEqual(to_camel_case("total_processed"), "totalProcessed")
        self.assertEqual(to_camel_case("success"), "success")

    def test_serialize(self):
        serializer = MetadataSerializer()
        sync_result = SyncResult(
            operation_id="op1",
            success=False,
            error="Conflict detected",
            conflict=ConflictDetails(
                conflict_id="c1",
                conflict_type=ConflictType.UPDATE_UPDATE,
                local_version={"title": "Local", "due_date": None},
                server_version={
                    "title": "Server",
                    "updatedAt": dt.datetime(2021, 6, 26, 7, 2, tzinfo=dt.timezone.utc),
                    "owner": uuid.UUID("533ce3b4-9ef6-42fe-b220-64c86aaad444"),
                },
                conflicting_fields=["title"],
            ),
        )

        self.assertEqual(
            serializer.serialize(sync_result),
            {
                "operationId": "op1",
                "success": False,
                "error": "Conflict detected",
                "conflict": {
                    "conflictId": "c1",
                    "conflictType": "UPDATE_UPDATE",
                    # Entity fields are kept as they are
                    "localVersion": {"title": "Local", "due_date": None},
                    "serverVersion": {
                        "title": "Server",
                        "updatedAt": "2021-06-26T07:02:00+00:00",
                        "owner": "533ce3b4-9ef6-42fe-b220-64c86aaad444",
                    },
                    "conflictingFields": ["title"],
                },
            },
        )


class OperationDeserializerTest(unittest.TestCase):
    def setUp(self):
        self.deserializer = OperationDeserializer()

    def test_deserialize(self):
        sync_operation = self.deserializer.deserialize(
            {
                "id": "op1",
                "kind": "UPDATE",
                "entityType": "task",
                "entityId": "t1",
                "payload": {"title": "A"},
                "clientTimestamp": "2021-06-26T07:02:00Z",
            }
        )
        self.assertIsInstance(sync_operation, SyncOperation)
        self.assertEqual(sync_operation.id, "op1")
        self.assertEqual(sync_operation.operation, Operation.UPDATE)
        self.assertEqual(sync_operation.entity_type, "task")
        self.assertEqual(sync_operation.entity_id, "t1")
        self.assertEqual(sync_operation.payload, {"title": "A"})
        self.assertEqual(
            sync_operation.client_timestamp,
            dt.datetime(2021, 6, 26, 7, 2, tzinfo=dt.timezone.utc),
        )

    def test_alternative_names(self):
        sync_operation = self.deserializer.deserialize(
            {
                "id": 10,
                "operation": "CREATE",
                "entity": "habit",
                "data": {"name": "Run"},
                "timestamp": 0,
            }
        )
        self.assertEqual(sync_operation.id, "10")
        self.assertEqual(sync_operation.operation, Operation.CREATE)
        self.assertEqual(sync_operation.entity_type, "habit")
        # The entity id defaults to the operation id
        self.assertEqual(sync_operation.entity_id, "10")
        self.assertEqual(sync_operation.payload, {"name": "Run"})
        self.assertEqual(
            sync_operation.client_timestamp,
            dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc),
        )

    def test_prior_timestamp(self):
        sync_operation = self.deserializer.deserialize(
            {
                "id": "op1",
                "kind": "UPDATE",
                "entityType": "task",
                "payload": {"updatedAt": "2021-06-26T08:00:00Z"},
                "clientTimestamp": "2021-06-26T07:00:00Z",
            }
        )
        self.assertEqual(
            sync_operation.get_prior_timestamp(timestamp_field="updatedAt"),
            dt.datetime(2021, 6, 26, 8, tzinfo=dt.timezone.utc),
        )
        self.assertEqual(
            sync_operation.get_prior_timestamp(timestamp_field="modified"),
            dt.datetime(2021, 6, 26, 7, tzinfo=dt.timezone.utc),
        )

    def test_invalid(self):
        valid = {"id": "op1", "kind": "CREATE", "entityType": "task", "payload": {}}
        for data, message in [
            ("op1", "Operation must be an object"),
            ({**valid, "id": None}, "Operation id is required"),
            ({**valid, "id": True}, "Invalid id: True"),
            ({**valid, "kind": "UPSERT"}, "Unknown operation: UPSERT"),
            ({**valid, "entityType": ""}, "Entity type is required"),
            ({**valid, "payload": ["title"]}, "Payload must be an object"),
        ]:
            with self.assertRaises(ValidationException) as context:
                self.deserializer.deserialize(data)
            self.assertEqual(str(context.exception), message)

        with self.assertRaises(ValidationException):
            self.deserializer.deserialize({**valid, "clientTimestamp": "yesterday"})
