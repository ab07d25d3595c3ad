import tests.base_sync
import tests.in_memory.base
from resync.backends.in_memory import create_in_memory_service


class InMemorySyncTest(
    tests.in_memory.base.InMemoryBackendTestMixin, tests.base_sync.BaseSyncTest
):
    def test_water_partition(self):
        self._sync(
            user_id="user_1",
            operations=[
                self._operation(id="w1", kind="CREATE", entity_type="water", payload={"amount": 100})
            ],
        )
        self.assertEqual(
            [entity["id"] for entity in self.entity_store.get_items("waterIntake")],
            ["w1"],
        )

    def test_factory(self):
        service = create_in_memory_service(max_operations=1)
        result = service.sync_queue(
            user_id="user_1",
            body={
                "operations": [
                    {"id": "h1", "kind": "CREATE", "entityType": "habit", "payload": {"name": "Run"}}
                ]
            },
        )
        self.assertEqual(result["successful"], 1)
        self.assertEqual(service.get_status(user_id="user_1")["syncedOperations"], 1)

    def test_entity_locks_are_discarded(self):
        operations = [
            self._operation(id=f"d{i}", kind="DELETE", entity_id=f"t{i}")
            for i in range(500)
        ]
        result = self.service.sync_queue(user_id="user_1", body={"operations": operations})
        self.assertEqual(result["successful"], 500)
        self.assertEqual(self.entity_store.entity_lock._locks, {})
