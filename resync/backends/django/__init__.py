from .store import DjangoEntityStore, DjangoConflictStore, DjangoQueueStore
from .converters import ConflictRecordMetadataConverter, QueuedOperationMetadataConverter
