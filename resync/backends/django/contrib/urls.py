from django.urls import path
from .views import (
    auto_resolve_conflict_view,
    clear_synced_view,
    resolve_conflict_view,
    sync_queue_view,
    sync_status_view,
)

urlpatterns = [
    path("sync/queue/", sync_queue_view, name="resync-queue"),
    path("sync/resolve-conflict/", resolve_conflict_view, name="resync-resolve-conflict"),
    path(
        "sync/auto-resolve-conflict/",
        auto_resolve_conflict_view,
        name="resync-auto-resolve-conflict",
    ),
    path("sync/status/", sync_status_view, name="resync-status"),
    path("sync/clear-synced/", clear_synced_view, name="resync-clear-synced"),
]
