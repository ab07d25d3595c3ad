import unittest
import datetime as dt
from resync.core.exceptions import ValidationException
from resync.core.metadata import ConflictRecord, ConflictType, ResolutionStrategy
from resync.core.resolution import ConflictResolver
from resync.core.entities import create_registry
from resync.core.events import EventsManager
from resync.backends.in_memory import (
    InMemoryConflictStore,
    InMemoryEntityStore,
    InMemoryQueueStore,
)


class ComputeResolvedVersionTest(unittest.TestCase):
    def setUp(self):
        conflict_store = InMemoryConflictStore()
        self.resolver = ConflictResolver(
            registry=create_registry(entity_store=InMemoryEntityStore()),
            conflict_store=conflict_store,
            events_manager=EventsManager(
                conflict_store=conflict_store, queue_store=InMemoryQueueStore()
            ),
        )

    def _conflict(self, local_version, server_version):
        return ConflictRecord(
            id="c1",
            user_id="user_1",
            entity_type="task",
            entity_id="t1",
            local_version=local_version,
            server_version=server_version,
            created_at=dt.datetime(2021, 6, 26, tzinfo=dt.timezone.utc),
            conflict_type=ConflictType.UPDATE_UPDATE,
        )

    def test_strategies(self):
        local_version = {"title": "Local", "done": True}
        server_version = {"title": "Server", "priority": 2}
        conflict = self._conflict(local_version, server_version)

        self.assertEqual(
            self.resolver.compute_resolved_version(conflict, ResolutionStrategy.LOCAL_WINS),
            local_version,
        )
        self.assertEqual(
            self.resolver.compute_resolved_version(conflict, ResolutionStrategy.SERVER_WINS),
            server_version,
        )
        self.assertEqual(
            self.resolver.compute_resolved_version(conflict, ResolutionStrategy.MERGE),
            {"title": "Local", "done": True, "priority": 2},
        )
        with self.assertRaises(ValidationException):
            self.resolver.compute_resolved_version(conflict, ResolutionStrategy.MANUAL)

        self.assertEqual(
            self.resolver.compute_resolved_version(
                conflict, ResolutionStrategy.MANUAL, resolved_data={"title": "Mine"}
            ),
            {"title": "Mine"},
        )

        # The snapshots are not modified
        self.assertEqual(conflict.local_version, {"title": "Local", "done": True})
        self.assertEqual(conflict.server_version, {"title": "Server", "priority": 2})

    def test_merge_is_shallow(self):
        conflict = self._conflict(
            {"settings": {"color": "red"}},
            {"settings": {"color": "blue", "size": 2}, "title": "Server"},
        )
        self.assertEqual(
            self.resolver.compute_resolved_version(conflict, ResolutionStrategy.MERGE),
            {"settings": {"color": "red"}, "title": "Server"},
        )

    def test_latest_wins(self):
        earlier = "2021-06-26T07:00:00Z"
        later = dt.datetime(2021, 6, 26, 8, tzinfo=dt.timezone.utc)

        conflict = self._conflict(
            {"title": "Local", "updatedAt": earlier},
            {"title": "Server", "updatedAt": later},
        )
        self.assertEqual(
            self.resolver.compute_resolved_version(conflict, ResolutionStrategy.LATEST_WINS)["title"],
            "Server",
        )

        conflict = self._conflict(
            {"title": "Local", "updatedAt": int(later.timestamp() * 1000) + 1},
            {"title": "Server", "updatedAt": later},
        )
        self.assertEqual(
            self.resolver.compute_resolved_version(conflict, ResolutionStrategy.LATEST_WINS)["title"],
            "Local",
        )

        # Ties go to the server
        conflict = self._conflict(
            {"title": "Local", "updatedAt": later.isoformat()},
            {"title": "Server", "updatedAt": later},
        )
        self.assertEqual(
            self.resolver.compute_resolved_version(conflict, ResolutionStrategy.LATEST_WINS)["title"],
            "Server",
        )

        # Missing timestamps are compared as the epoch
        conflict = self._conflict({"title": "Local"}, {"title": "Server"})
        self.assertEqual(
            self.resolver.compute_resolved_version(conflict, ResolutionStrategy.LATEST_WINS)["title"],
            "Server",
        )
        conflict = self._conflict({"title": "Local", "updatedAt": earlier}, {"title": "Server"})
        self.assertEqual(
            self.resolver.compute_resolved_version(conflict, ResolutionStrategy.LATEST_WINS)["title"],
            "Local",
        )

    def test_parse_strategy(self):
        self.assertEqual(
            self.resolver.parse_strategy("LATEST_WINS"), ResolutionStrategy.LATEST_WINS
        )
        self.assertEqual(
            self.resolver.parse_strategy(ResolutionStrategy.MERGE), ResolutionStrategy.MERGE
        )
        for strategy in [None, "", "FIRST_WINS", 3]:
            with self.assertRaises(ValidationException):
                self.resolver.parse_strategy(strategy)
