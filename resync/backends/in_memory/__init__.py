from .store import InMemoryEntityStore, InMemoryConflictStore, InMemoryQueueStore
from .converters import NullConverter
from .factory import create_in_memory_service
