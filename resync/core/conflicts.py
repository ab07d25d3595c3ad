from typing import Any, Dict, List, Optional
import datetime as dt
from .metadata import ConflictType, Operation, ResolutionStrategy

METADATA_FIELDS = ["id", "userId", "createdAt"]
AUTO_RESOLVE_SEVERITY_THRESHOLD = 0.3
MERGE_MAX_CONFLICTING_FIELDS = 2
LATEST_WINS_MIN_CONFLICTING_FIELDS = 6


def get_conflict_type(
    operation: "Operation",
    server_exists: "bool",
    server_operation: "Optional[Operation]" = None,
) -> "ConflictType":
    """Classifies a conflict from the client operation and the server state.

    Args:
        operation (Operation): The client operation.
        server_exists (bool): Whether the entity exists on the server.
        server_operation (Optional[Operation]): The last operation performed on the server, when known.

    The applier only knows whether the entity exists, so it only produces CREATE_CREATE and
    UPDATE_UPDATE. DELETE_UPDATE needs server_operation and is meant for callers that analyze
    a conflict with the server history at hand.
    """
    if (
        operation == Operation.DELETE
        and server_exists
        and server_operation == Operation.UPDATE
    ):
        return ConflictType.DELETE_UPDATE

    if operation == Operation.UPDATE and not server_exists:
        return ConflictType.UPDATE_DELETE

    if operation == Operation.CREATE and server_exists:
        return ConflictType.CREATE_CREATE

    return ConflictType.UPDATE_UPDATE


def _normalize(value: "Any") -> "Any":
    if isinstance(value, dt.datetime):
        return value.isoformat()
    return value


def is_field_modified(local_value: "Any", server_value: "Any") -> "bool":
    if local_value is None:
        return server_value is not None
    if server_value is None:
        return True
    return _normalize(local_value) != _normalize(server_value)


def get_conflicting_fields(
    local_version: "Optional[Dict[str, Any]]",
    server_version: "Optional[Dict[str, Any]]",
    ignored_fields: "List[str]" = METADATA_FIELDS,
) -> "List[str]":
    """Lists the fields whose values differ between both versions, ignoring metadata fields.
    Fields are returned sorted by name.
    """
    local_version = local_version or {}
    server_version = server_version or {}
    keys = set(local_version.keys()) | set(server_version.keys())

    return sorted(
        key
        for key in keys
        if key not in ignored_fields
        and is_field_modified(local_version.get(key), server_version.get(key))
    )


def calculate_conflict_severity(
    local_version: "Optional[Dict[str, Any]]",
    server_version: "Optional[Dict[str, Any]]",
) -> "float":
    """Ratio between the number of conflicting fields and the number of fields in both versions (0 to 1)."""
    local_version = local_version or {}
    server_version = server_version or {}
    total_fields = len(set(local_version.keys()) | set(server_version.keys()))
    if total_fields == 0:
        return 0.0

    conflicting_fields = get_conflicting_fields(local_version, server_version)
    return len(conflicting_fields) / total_fields


def can_auto_resolve(
    local_version: "Optional[Dict[str, Any]]",
    server_version: "Optional[Dict[str, Any]]",
    conflict_type: "Optional[ConflictType]",
) -> "bool":
    """Indicates whether a conflict is simple enough to be merged without a human decision.
    Delete conflicts never are.
    """
    if conflict_type in (ConflictType.DELETE_UPDATE, ConflictType.UPDATE_DELETE):
        return False

    severity = calculate_conflict_severity(local_version, server_version)
    return severity < AUTO_RESOLVE_SEVERITY_THRESHOLD


def is_timestamp_field(field: "str") -> "bool":
    lower_field = field.lower()
    return "time" in lower_field or "date" in lower_field or field == "updatedAt"


def suggest_strategy(
    local_version: "Optional[Dict[str, Any]]",
    server_version: "Optional[Dict[str, Any]]",
) -> "ResolutionStrategy":
    """Recommends a strategy from the number of conflicting fields:

        none - ResolutionStrategy.LOCAL_WINS
        up to 2 - ResolutionStrategy.MERGE
        more than 5 - ResolutionStrategy.LATEST_WINS
        otherwise - ResolutionStrategy.MERGE
    """
    num_conflicting_fields = len(get_conflicting_fields(local_version, server_version))

    if num_conflicting_fields == 0:
        return ResolutionStrategy.LOCAL_WINS

    if num_conflicting_fields <= MERGE_MAX_CONFLICTING_FIELDS:
        return ResolutionStrategy.MERGE

    if num_conflicting_fields >= LATEST_WINS_MIN_CONFLICTING_FIELDS:
        return ResolutionStrategy.LATEST_WINS

    return ResolutionStrategy.MERGE


def get_auto_resolve_strategy(
    local_version: "Optional[Dict[str, Any]]",
    server_version: "Optional[Dict[str, Any]]",
) -> "ResolutionStrategy":
    """Picks the strategy used when a conflict is resolved without a human decision.
    Never returns ResolutionStrategy.MANUAL.
    """
    if not local_version and server_version:
        return ResolutionStrategy.SERVER_WINS
    if local_version and not server_version:
        return ResolutionStrategy.LOCAL_WINS

    conflicting_fields = get_conflicting_fields(local_version, server_version)
    if not conflicting_fields:
        return ResolutionStrategy.LOCAL_WINS

    # Only timestamps differ
    if all(is_timestamp_field(field) for field in conflicting_fields):
        return ResolutionStrategy.LATEST_WINS

    if len(conflicting_fields) <= MERGE_MAX_CONFLICTING_FIELDS:
        return ResolutionStrategy.MERGE

    return ResolutionStrategy.LATEST_WINS
