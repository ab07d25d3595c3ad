from resync.backends.django.settings import resync_settings
from resync.core.entities import EntityHandler, EntityRegistry
from resync.core.service import SyncService
from typing import Dict, List, Optional


def create_django_entity_store():
    return resync_settings.ENTITY_STORE_CLASS(
        owner_field=resync_settings.OWNER_FIELD,
        created_field=resync_settings.CREATED_FIELD,
        updated_field=resync_settings.UPDATED_FIELD,
    )


def create_django_registry(entity_store) -> "EntityRegistry":
    aliases_by_type: "Dict[str, List[str]]" = {}
    for alias, entity_type in resync_settings.ENTITY_ALIASES.items():
        aliases_by_type.setdefault(entity_type, []).append(alias)

    registry = EntityRegistry()
    for entity_type in resync_settings.ENTITIES:
        registry.register(
            handler=EntityHandler(entity_type=entity_type, entity_store=entity_store),
            aliases=aliases_by_type.get(entity_type, []),
        )
    return registry


def create_django_sync_service(
    max_operations: "Optional[int]" = None,
) -> "SyncService":
    entity_store = create_django_entity_store()
    return SyncService.create(
        entity_store=entity_store,
        conflict_store=resync_settings.CONFLICT_STORE_CLASS(),
        queue_store=resync_settings.QUEUE_STORE_CLASS(),
        registry=create_django_registry(entity_store=entity_store),
        events_manager_class=resync_settings.EVENTS_MANAGER_CLASS,
        max_operations=max_operations
        if max_operations is not None
        else resync_settings.MAX_OPERATIONS_PER_BATCH,
    )
