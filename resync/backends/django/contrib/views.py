from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST
from resync.core.exceptions import SyncException
from .factory import create_django_sync_service
from typing import Any, Callable, Dict
import json
import logging

logger = logging.getLogger(__name__)


def _error_response(message: "str", status: "int") -> "JsonResponse":
    return JsonResponse({"error": message}, status=status)


def _read_body(request: "HttpRequest") -> "Any":
    if not request.body:
        return {}
    return json.loads(request.body.decode("utf-8"))


def _handle(
    request: "HttpRequest", action: "Callable[[str], Dict[str, Any]]"
) -> "JsonResponse":
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return _error_response("Authentication required", status=401)

    try:
        return JsonResponse(action(str(user.pk)))
    except SyncException as e:
        return _error_response(str(e), status=e.status_code)
    except Exception:
        logger.exception("Unexpected error while handling %s", request.path)
        return _error_response("Internal server error", status=500)


def _with_body(request: "HttpRequest", callback) -> "JsonResponse":
    try:
        body = _read_body(request)
    except (ValueError, UnicodeDecodeError):
        return _error_response("Invalid JSON", status=400)
    return _handle(request, lambda user_id: callback(user_id, body))


@csrf_exempt
@require_POST
def sync_queue_view(request: "HttpRequest") -> "JsonResponse":
    service = create_django_sync_service()
    return _with_body(
        request, lambda user_id, body: service.sync_queue(user_id=user_id, body=body)
    )


@csrf_exempt
@require_POST
def resolve_conflict_view(request: "HttpRequest") -> "JsonResponse":
    service = create_django_sync_service()
    return _with_body(
        request,
        lambda user_id, body: service.resolve_conflict(user_id=user_id, body=body),
    )


@csrf_exempt
@require_POST
def auto_resolve_conflict_view(request: "HttpRequest") -> "JsonResponse":
    service = create_django_sync_service()
    return _with_body(
        request,
        lambda user_id, body: service.auto_resolve_conflict(user_id=user_id, body=body),
    )


@require_GET
def sync_status_view(request: "HttpRequest") -> "JsonResponse":
    service = create_django_sync_service()
    return _handle(request, lambda user_id: service.get_status(user_id=user_id))


@csrf_exempt
@require_POST
def clear_synced_view(request: "HttpRequest") -> "JsonResponse":
    service = create_django_sync_service()
    return _handle(
        request, lambda user_id: service.clear_synced_operations(user_id=user_id)
    )
