import unittest
from resync.core.entities import EntityHandler, EntityRegistry, create_registry
from resync.core.exceptions import ItemNotFoundException, UnknownEntityTypeException
from resync.backends.in_memory import InMemoryEntityStore


class EntityRegistryTest(unittest.TestCase):
    def setUp(self):
        self.entity_store = InMemoryEntityStore()
        self.registry = create_registry(entity_store=self.entity_store)

    def test_default_entity_types(self):
        for entity_type in [
            "task",
            "habit",
            "transaction",
            "exercise",
            "meal",
            "water",
            "water-intake",
            "learningResource",
            "learning-resource",
        ]:
            self.assertIn(entity_type, self.registry)

        self.assertEqual(self.registry.get_handler("water-intake").store_name, "waterIntake")
        self.assertIs(
            self.registry.get_handler("learning-resource"),
            self.registry.get_handler("learningResource"),
        )

    def test_unknown_entity_type(self):
        for entity_type in ["unknown", None, ["task"]]:
            with self.assertRaises(UnknownEntityTypeException):
                self.registry.get_handler(entity_type)

    def test_duplicate_entity_type(self):
        registry = EntityRegistry(
            [EntityHandler(entity_type="task", entity_store=self.entity_store)]
        )
        with self.assertRaises(ValueError):
            registry.register(
                EntityHandler(entity_type="note", entity_store=self.entity_store),
                aliases=["task"],
            )

    def test_handler(self):
        handler = self.registry.get_handler("task")
        created = handler.create(
            id="t1",
            owner_id="user_1",
            payload={"title": "A", "id": "other", "createdAt": "2020-01-01T00:00:00Z"},
        )
        self.assertEqual(created["id"], "t1")
        self.assertEqual(created["userId"], "user_1")
        self.assertEqual(created["createdAt"], created["updatedAt"])

        updated = handler.update(id="t1", payload={"done": True})
        self.assertEqual(updated["title"], "A")
        self.assertTrue(updated["done"])
        self.assertGreaterEqual(updated["updatedAt"], created["updatedAt"])

        with self.assertRaises(ItemNotFoundException):
            handler.update(id="t2", payload={"done": True})

        upserted = handler.upsert(id="t2", owner_id="user_2", payload={"title": "B"})
        self.assertEqual(upserted["userId"], "user_2")
        upserted = handler.upsert(id="t2", owner_id="user_1", payload={"title": "C"})
        self.assertEqual(upserted["userId"], "user_2")
        self.assertEqual(upserted["title"], "C")

        handler.delete(id="t1")
        handler.delete(id="t1")
        self.assertIsNone(handler.get(id="t1"))

    def test_run_in_transaction(self):
        handler = self.registry.get_handler("task")
        self.assertEqual(handler.run_in_transaction(id="t1", callback=lambda: 42), 42)
