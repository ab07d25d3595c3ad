from django.contrib.auth.models import AnonymousUser
from django.test import RequestFactory, TestCase
from resync.backends.django.contrib.views import (
    auto_resolve_conflict_view,
    clear_synced_view,
    resolve_conflict_view,
    sync_queue_view,
    sync_status_view,
)
from resync.core.service import SyncService
from resync.core.utils import get_now_utc
import unittest.mock
import datetime as dt
import json


class FakeUser:
    is_authenticated = True

    def __init__(self, pk):
        self.pk = pk


class ViewsTest(TestCase):
    def setUp(self):
        self.factory = RequestFactory()

    def _post(self, view, path, body, user=None):
        request = self.factory.post(
            path,
            data=body if isinstance(body, str) else json.dumps(body),
            content_type="application/json",
        )
        request.user = user if user is not None else FakeUser(pk="user_1")
        return view(request)

    def _get_status(self, user=None):
        request = self.factory.get("/sync/status/")
        request.user = user if user is not None else FakeUser(pk="user_1")
        return sync_status_view(request)

    def test_sync_queue(self):
        response = self._post(
            sync_queue_view,
            "/sync/queue/",
            {
                "operations": [
                    {"id": "t1", "kind": "CREATE", "entityType": "task", "payload": {"title": "A"}},
                    {"id": "t1", "kind": "CREATE", "entityType": "task", "payload": {"title": "B"}},
                ]
            },
        )
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.content)
        self.assertEqual(data["totalProcessed"], 2)
        self.assertEqual(data["successful"], 1)
        self.assertEqual(data["failed"], 1)
        self.assertEqual(data["results"][1]["error"], "Conflict detected")

        conflict_id = data["results"][1]["conflict"]["conflictId"]
        response = self._post(
            resolve_conflict_view,
            "/sync/resolve-conflict/",
            {"conflictId": conflict_id, "strategy": "LOCAL_WINS"},
        )
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.content)
        self.assertTrue(data["success"])
        self.assertEqual(data["conflict"]["resolvedVersion"], {"title": "B"})

        response = self._get_status()
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.content)
        self.assertEqual(data["status"], "synced")
        self.assertEqual(data["totalOperations"], 2)
        self.assertEqual(data["unresolvedConflicts"], 0)

        response = self._post(clear_synced_view, "/sync/clear-synced/", {})
        self.assertEqual(json.loads(response.content), {"removed": 2})

    def test_auto_resolve_conflict(self):
        later = get_now_utc() + dt.timedelta(minutes=5)
        response = self._post(
            sync_queue_view,
            "/sync/queue/",
            {
                "operations": [
                    {"id": "t1", "kind": "CREATE", "entityType": "task", "payload": {"title": "A"}},
                    {
                        "id": "t1",
                        "kind": "CREATE",
                        "entityType": "task",
                        "payload": {"title": "B"},
                        "clientTimestamp": later.isoformat(),
                    },
                ]
            },
        )
        conflict_id = json.loads(response.content)["results"][1]["conflict"]["conflictId"]

        response = self._post(
            auto_resolve_conflict_view,
            "/sync/auto-resolve-conflict/",
            {"conflictId": conflict_id},
        )
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.content)
        self.assertEqual(data["conflict"]["strategy"], "LATEST_WINS")
        self.assertEqual(data["conflict"]["resolvedVersion"]["title"], "B")

        response = self._post(
            auto_resolve_conflict_view,
            "/sync/auto-resolve-conflict/",
            {"conflictId": conflict_id},
        )
        self.assertEqual(response.status_code, 409)

    def test_authentication_required(self):
        response = self._post(
            sync_queue_view, "/sync/queue/", {"operations": []}, user=AnonymousUser()
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(self._get_status(user=AnonymousUser()).status_code, 401)

    def test_errors(self):
        response = self._post(sync_queue_view, "/sync/queue/", "{not json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(json.loads(response.content), {"error": "Invalid JSON"})

        response = self._post(sync_queue_view, "/sync/queue/", {"operations": "t1"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            json.loads(response.content), {"error": "Operations must be an array"}
        )

        response = self._post(
            resolve_conflict_view,
            "/sync/resolve-conflict/",
            {"conflictId": "missing", "strategy": "LOCAL_WINS"},
        )
        self.assertEqual(response.status_code, 404)

        response = self._post(
            resolve_conflict_view, "/sync/resolve-conflict/", {"conflictId": "missing"}
        )
        self.assertEqual(response.status_code, 400)

    def test_unexpected_error(self):
        with unittest.mock.patch.object(
            SyncService, "get_status", side_effect=RuntimeError("boom")
        ):
            with self.assertLogs("resync.backends.django.contrib.views", level="ERROR"):
                response = self._get_status()

        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            json.loads(response.content), {"error": "Internal server error"}
        )

    def test_methods(self):
        request = self.factory.get("/sync/queue/")
        request.user = FakeUser(pk="user_1")
        self.assertEqual(sync_queue_view(request).status_code, 405)

    def test_urls(self):
        response = self.client.get("/sync/status/")
        self.assertEqual(response.status_code, 401)
