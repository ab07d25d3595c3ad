from typing import TYPE_CHECKING, Any, List, Optional
import logging
from .metadata import BatchResult, SyncOperation, SyncResult
from .exceptions import ValidationException
from .serializer import OperationDeserializer

if TYPE_CHECKING:  # pragma: no cover
    from .execution import OperationApplier
    from .events import EventsManager

logger = logging.getLogger(__name__)


class SyncQueueProcessor:
    """Processes a batch of operations queued by a client.

    Operations are applied one at a time in the order received, because clients order
    their queues causally. A failing operation never aborts the batch.

    Attributes:
        applier (OperationApplier): Applies each operation.
        events_manager (EventsManager): The class that will handle sync events.
        deserializer (OperationDeserializer): Reads operations received as dictionaries.
        max_operations (Optional[int]): The maximum number of operations accepted in a batch.
    """

    applier: "OperationApplier"
    events_manager: "EventsManager"
    deserializer: "OperationDeserializer"
    max_operations: "Optional[int]"

    def __init__(
        self,
        applier: "OperationApplier",
        events_manager: "EventsManager",
        deserializer: "Optional[OperationDeserializer]" = None,
        max_operations: "Optional[int]" = None,
    ):
        self.applier = applier
        self.events_manager = events_manager
        self.deserializer = (
            deserializer if deserializer is not None else OperationDeserializer()
        )
        self.max_operations = max_operations

    def process(self, user_id: "str", operations: "Any") -> "BatchResult":
        """Applies every operation and returns one result per operation, in the same order.

        Args:
            user_id (str): The authenticated user that sent the batch.
            operations (List): SyncOperations or their wire representation.

        Raises:
            ValidationException: If operations is not a list or the batch is too large.
        """
        if not isinstance(operations, list):
            raise ValidationException("Operations must be an array")

        if self.max_operations is not None and len(operations) > self.max_operations:
            raise ValidationException(
                "A batch can't have more than %d operations" % (self.max_operations,)
            )

        results: "List[SyncResult]" = []
        for raw_operation in operations:
            results.append(
                self.process_operation(user_id=user_id, raw_operation=raw_operation)
            )

        batch_result = BatchResult(results=results)
        self.events_manager.on_batch_processed(user_id=user_id, batch_result=batch_result)
        return batch_result

    def process_operation(self, user_id: "str", raw_operation: "Any") -> "SyncResult":
        if isinstance(raw_operation, SyncOperation):
            sync_operation = raw_operation
        else:
            try:
                sync_operation = self.deserializer.deserialize(data=raw_operation)
            except ValidationException as e:
                operation_id = (
                    raw_operation.get("id") if isinstance(raw_operation, dict) else None
                )
                return SyncResult(operation_id=operation_id, success=False, error=str(e))

        sync_result = self.applier.apply(user_id=user_id, sync_operation=sync_operation)

        try:
            self.events_manager.on_operation_processed(
                user_id=user_id, sync_operation=sync_operation, sync_result=sync_result
            )
        except Exception:
            logger.exception(
                "Could not add operation %s to the queue history", sync_operation.id
            )

        return sync_result
