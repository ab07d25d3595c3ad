from typing import TYPE_CHECKING, Any, Dict, Optional, Union
import copy
import datetime as dt
import logging
from .metadata import (
    ConflictRecord,
    ResolutionResult,
    ResolutionStrategy,
)
from .conflicts import get_auto_resolve_strategy
from .exceptions import (
    AuthorizationException,
    ConflictAlreadyResolvedException,
    ConflictNotFoundException,
    ResolutionFailedException,
    UnknownEntityTypeException,
    ValidationException,
)
from .utils import EPOCH, get_now_utc, to_datetime

if TYPE_CHECKING:  # pragma: no cover
    from .entities import EntityRegistry
    from .events import EventsManager
    from .store import BaseConflictStore

logger = logging.getLogger(__name__)


class ConflictResolver:
    """Computes the final value of a conflicting entity and commits it.

    Attributes:
        registry (EntityRegistry): Gives access to the handler of each entity type.
        conflict_store (BaseConflictStore): The conflict records.
        events_manager (EventsManager): The class that will handle sync events.
    """

    registry: "EntityRegistry"
    conflict_store: "BaseConflictStore"
    events_manager: "EventsManager"

    def __init__(
        self,
        registry: "EntityRegistry",
        conflict_store: "BaseConflictStore",
        events_manager: "EventsManager",
    ):
        self.registry = registry
        self.conflict_store = conflict_store
        self.events_manager = events_manager

    def parse_strategy(
        self, strategy: "Union[ResolutionStrategy, str, None]"
    ) -> "ResolutionStrategy":
        if isinstance(strategy, ResolutionStrategy):
            return strategy

        if not strategy:
            raise ValidationException("Resolution strategy is required")

        try:
            return ResolutionStrategy[strategy]
        except (KeyError, TypeError):
            raise ValidationException("Invalid resolution strategy")

    def _get_timestamp(
        self, snapshot: "Dict[str, Any]", timestamp_field: "str"
    ) -> "dt.datetime":
        try:
            timestamp = to_datetime(snapshot.get(timestamp_field))
        except ValueError:
            timestamp = None
        return timestamp if timestamp is not None else EPOCH

    def compute_resolved_version(
        self,
        conflict: "ConflictRecord",
        strategy: "ResolutionStrategy",
        resolved_data: "Optional[Dict[str, Any]]" = None,
        timestamp_field: "str" = "updatedAt",
    ) -> "Dict[str, Any]":
        """Derives the entity's final value from the two snapshots. It applies the following rules:

            ResolutionStrategy.LOCAL_WINS - The client's version
            ResolutionStrategy.SERVER_WINS - The server's version
            ResolutionStrategy.LATEST_WINS - The version with the greater timestamp, ties go to the server
            ResolutionStrategy.MERGE - Server fields overridden by every client field (shallow)
            ResolutionStrategy.MANUAL - Only resolved_data is accepted

        Explicitly resolved data always takes precedence over the computed value.

        Args:
            conflict (ConflictRecord): The conflict being resolved.
            strategy (ResolutionStrategy): The selected strategy.
            resolved_data (Optional[Dict]): Value supplied by the caller.
            timestamp_field (str): Field compared by ResolutionStrategy.LATEST_WINS.

        Raises:
            ValidationException: If the strategy is ResolutionStrategy.MANUAL and no data was given.
        """
        if resolved_data is not None:
            return copy.deepcopy(resolved_data)

        local_version = conflict.local_version or {}
        server_version = conflict.server_version or {}

        if strategy == ResolutionStrategy.LOCAL_WINS:
            resolved_version = local_version
        elif strategy == ResolutionStrategy.SERVER_WINS:
            resolved_version = server_version
        elif strategy == ResolutionStrategy.LATEST_WINS:
            local_timestamp = self._get_timestamp(local_version, timestamp_field)
            server_timestamp = self._get_timestamp(server_version, timestamp_field)
            if local_timestamp > server_timestamp:
                resolved_version = local_version
            else:
                resolved_version = server_version
        elif strategy == ResolutionStrategy.MERGE:
            resolved_version = {**server_version, **local_version}
        elif strategy == ResolutionStrategy.MANUAL:
            raise ValidationException("Manual resolution requires resolved data")
        else:  # pragma: no cover
            raise ValidationException("Invalid resolution strategy")

        return copy.deepcopy(resolved_version)

    def resolve(
        self,
        user_id: "str",
        conflict_id: "Optional[str]",
        strategy: "Union[ResolutionStrategy, str, None]",
        resolved_data: "Optional[Dict[str, Any]]" = None,
    ) -> "ResolutionResult":
        """Resolves a conflict. The resolved value is upserted to the entity store and only then
        the conflict is marked as resolved, so a failed write leaves the conflict open for a retry.

        Args:
            user_id (str): The user resolving the conflict. Must own the conflict.
            conflict_id (str): The conflict's primary key.
            strategy (Union[ResolutionStrategy, str]): The strategy's name.
            resolved_data (Optional[Dict]): Value supplied by the caller.

        Raises:
            ValidationException: If the request is malformed.
            ConflictNotFoundException: If the conflict doesn't exist.
            AuthorizationException: If the conflict belongs to another user.
            ConflictAlreadyResolvedException: If the conflict was resolved before.
            ResolutionFailedException: If the entity or the conflict couldn't be written.
        """
        if not conflict_id:
            raise ValidationException("Conflict ID is required")

        resolution_strategy = self.parse_strategy(strategy)

        if resolved_data is not None and not isinstance(resolved_data, dict):
            raise ValidationException("Resolved data must be an object")

        conflict = self.conflict_store.get_by_id(conflict_id=conflict_id)
        if conflict is None:
            raise ConflictNotFoundException(conflict_id=conflict_id)

        if conflict.user_id != user_id:
            raise AuthorizationException(user_id=user_id, conflict_id=conflict_id)

        if conflict.is_resolved:
            raise ConflictAlreadyResolvedException(conflict_id=conflict_id)

        try:
            handler = self.registry.get_handler(entity_type=conflict.entity_type)
        except UnknownEntityTypeException as e:
            raise ResolutionFailedException(conflict_id=conflict_id, reason=str(e))

        resolved_version = self.compute_resolved_version(
            conflict=conflict,
            strategy=resolution_strategy,
            resolved_data=resolved_data,
            timestamp_field=handler.timestamp_field,
        )

        def in_transaction() -> "ConflictRecord":
            current = self.conflict_store.get_by_id(conflict_id=conflict_id)
            if current is not None and current.is_resolved:
                raise ConflictAlreadyResolvedException(conflict_id=conflict_id)

            try:
                handler.upsert(
                    id=conflict.entity_id,
                    owner_id=conflict.user_id,
                    payload=resolved_version,
                )
                return self.conflict_store.update(
                    conflict_id=conflict_id,
                    resolved_version=resolved_version,
                    strategy=resolution_strategy,
                    resolved_at=get_now_utc(),
                )
            except Exception as e:
                raise ResolutionFailedException(
                    conflict_id=conflict_id, reason=str(e) or e.__class__.__name__
                ) from e

        resolved_conflict = handler.run_in_transaction(
            id=conflict.entity_id, callback=in_transaction
        )
        try:
            self.events_manager.on_conflict_resolved(conflict=resolved_conflict)
        except Exception:
            logger.exception(
                "Could not settle the queued operations of conflict %s", conflict_id
            )

        return ResolutionResult(
            success=True,
            conflict=resolved_conflict,
            message="Conflict resolved successfully",
        )

    def auto_resolve(
        self, user_id: "str", conflict_id: "Optional[str]"
    ) -> "ResolutionResult":
        """Resolves a conflict with the strategy picked by get_auto_resolve_strategy.

        Raises:
            The same exceptions raised by resolve.
        """
        if not conflict_id:
            raise ValidationException("Conflict ID is required")

        conflict = self.conflict_store.get_by_id(conflict_id=conflict_id)
        if conflict is None:
            raise ConflictNotFoundException(conflict_id=conflict_id)

        return self.resolve(
            user_id=user_id,
            conflict_id=conflict_id,
            strategy=get_auto_resolve_strategy(
                conflict.local_version, conflict.server_version
            ),
        )
