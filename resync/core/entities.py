from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional
from .exceptions import UnknownEntityTypeException

if TYPE_CHECKING:  # pragma: no cover
    from .store import BaseEntityStore


class EntityHandler:
    """Gives access to the records of one entity type.

    Every entity type goes through the same get/create/update/delete/upsert
    capability, subclasses can override "prepare_payload" to adapt what the
    clients send before it reaches the store.

    Attributes:
        entity_type (str): The tag used by the clients to reference the entity type.
        store_name (str): The entity store partition where the records live.
        entity_store (BaseEntityStore): The store.
    """

    entity_type: "str"
    store_name: "str"
    entity_store: "BaseEntityStore"

    def __init__(
        self,
        entity_type: "str",
        entity_store: "BaseEntityStore",
        store_name: "Optional[str]" = None,
    ):
        self.entity_type = entity_type
        self.entity_store = entity_store
        self.store_name = store_name if store_name is not None else entity_type

    def __repr__(self):  # pragma: no cover
        return f"{self.__class__.__name__}(entity_type='{self.entity_type}', store_name='{self.store_name}')"

    @property
    def timestamp_field(self) -> "str":
        return self.entity_store.updated_field

    def prepare_payload(self, payload: "Dict[str, Any]") -> "Dict[str, Any]":
        return payload

    def get(self, id: "str") -> "Optional[Dict[str, Any]]":
        return self.entity_store.get(entity_type=self.store_name, id=id)

    def create(
        self, id: "str", owner_id: "str", payload: "Dict[str, Any]"
    ) -> "Dict[str, Any]":
        return self.entity_store.create(
            entity_type=self.store_name,
            id=id,
            owner_id=owner_id,
            payload=self.prepare_payload(payload),
        )

    def update(self, id: "str", payload: "Dict[str, Any]") -> "Dict[str, Any]":
        return self.entity_store.update(
            entity_type=self.store_name, id=id, payload=self.prepare_payload(payload)
        )

    def delete(self, id: "str"):
        self.entity_store.delete(entity_type=self.store_name, id=id)

    def upsert(
        self, id: "str", owner_id: "str", payload: "Dict[str, Any]"
    ) -> "Dict[str, Any]":
        return self.entity_store.upsert(
            entity_type=self.store_name,
            id=id,
            owner_id=owner_id,
            payload=self.prepare_payload(payload),
        )

    def run_in_transaction(self, id: "str", callback) -> "Any":
        return self.entity_store.run_in_transaction(
            entity_type=self.store_name, entity_id=id, callback=callback
        )


class EntityRegistry:
    """Maps entity type tags (and their aliases) to EntityHandlers."""

    _handlers_by_type: "Dict[str, EntityHandler]"

    def __init__(self, handlers: "Iterable[EntityHandler]" = ()):
        self._handlers_by_type = {}
        for handler in handlers:
            self.register(handler=handler)

    def __contains__(self, entity_type: "object") -> "bool":
        return entity_type in self._handlers_by_type

    def register(self, handler: "EntityHandler", aliases: "Iterable[str]" = ()):
        """Registers a handler under its entity type and the given aliases.

        Args:
            handler (EntityHandler): The handler.
            aliases (Iterable[str]): Other tags that reference the same entity type.
        """
        for entity_type in [handler.entity_type, *aliases]:
            if entity_type in self._handlers_by_type:
                raise ValueError(f"Duplicate entity type! {entity_type}")
            self._handlers_by_type[entity_type] = handler

    def get_handler(self, entity_type: "str") -> "EntityHandler":
        """Returns the handler registered for the tag.

        Raises:
            UnknownEntityTypeException: If no handler is registered for the tag.
        """
        try:
            return self._handlers_by_type[entity_type]
        except (KeyError, TypeError):
            raise UnknownEntityTypeException(entity_type=entity_type)

    @property
    def entity_types(self) -> "List[str]":
        return list(self._handlers_by_type.keys())


DEFAULT_ENTITY_TYPES = {
    "task": {"store_name": "task", "aliases": []},
    "habit": {"store_name": "habit", "aliases": []},
    "transaction": {"store_name": "transaction", "aliases": []},
    "exercise": {"store_name": "exercise", "aliases": []},
    "meal": {"store_name": "meal", "aliases": []},
    "water": {"store_name": "waterIntake", "aliases": ["water-intake"]},
    "learningResource": {
        "store_name": "learningResource",
        "aliases": ["learning-resource"],
    },
}


def create_registry(
    entity_store: "BaseEntityStore",
    entity_types: "Optional[Dict[str, Dict[str, Any]]]" = None,
) -> "EntityRegistry":
    """Creates a registry with one EntityHandler per entity type.

    Args:
        entity_store (BaseEntityStore): Store shared by all the handlers.
        entity_types (Optional[Dict]): Maps each tag to its "store_name" and "aliases". Defaults to DEFAULT_ENTITY_TYPES.
    """
    if entity_types is None:
        entity_types = DEFAULT_ENTITY_TYPES

    registry = EntityRegistry()
    for entity_type, options in entity_types.items():
        handler = EntityHandler(
            entity_type=entity_type,
            entity_store=entity_store,
            store_name=options.get("store_name"),
        )
        registry.register(handler=handler, aliases=options.get("aliases", []))
    return registry
