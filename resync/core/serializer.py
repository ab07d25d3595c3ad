from typing import Any, Dict, Optional, Tuple
from abc import ABC, abstractmethod
from collections.abc import Iterable
import datetime as dt
import enum
import uuid
from .metadata import Operation, SyncOperation
from .exceptions import ValidationException
from .utils import to_datetime


def to_camel_case(name: "str") -> "str":
    first, *others = name.split("_")
    return first + "".join(part.capitalize() for part in others)


class BaseMetadataSerializer(ABC):

    """Abstract class that serializes metadata objects to dictionaries of primitive types.
    """

    @abstractmethod
    def serialize(self, metadata_object: "Any") -> "Any":
        """Serializes a metadata object to a dictionary of primitive types.

        Args:
            metadata_object (Any): The object to be serialized.
        """


class MetadataSerializer(BaseMetadataSerializer):

    """Converts metadata objects to the JSON-ready structures sent to clients.

    Attribute names are converted to camelCase, dictionary keys (entity fields,
    entity type tags) are kept as they are.
    """

    def _serialize_field(self, value: "Any") -> "Any":
        """Converts a field to a primitive type.

        Args:
            value (Any): The value to be serialized.

        Returns:
            Any: Primitive type.
        """
        serialized: "Any"

        if isinstance(value, dict):
            serialized = {}
            for attr in value:
                serialized[attr] = self._serialize_field(value[attr])
            return serialized
        elif value is None:
            return None
        elif isinstance(value, bool):
            return value
        elif isinstance(value, dt.datetime):
            return value.isoformat()
        elif isinstance(value, str):
            return value
        elif isinstance(value, float) or isinstance(value, int):
            return value
        elif isinstance(value, uuid.UUID):
            return str(value)
        elif isinstance(value, enum.Enum):
            return value.value
        elif isinstance(value, Iterable):
            return [self._serialize_field(sub_value) for sub_value in value]
        else:
            if hasattr(value, "__dict__"):
                serialized = {}
                for attr, attr_value in value.__dict__.items():
                    if attr.startswith("_"):
                        continue
                    serialized[to_camel_case(attr)] = self._serialize_field(attr_value)
                return serialized
            else:
                return str(value)

    def serialize(self, metadata_object: "Any") -> "Any":
        """Converts the metadata object to a dictionary of primitive types.

        Args:
            metadata_object (Any): Metadata object to be serialized.

        Returns:
            Any: A dictionary of primitive types.
        """
        return self._serialize_field(metadata_object)


class OperationDeserializer:
    """Reads a SyncOperation from its wire representation.

    Each field can be sent under any of the names listed in FIELD_NAMES, the first
    one found is used.
    """

    FIELD_NAMES: "Dict[str, Tuple[str, ...]]" = {
        "id": ("id",),
        "operation": ("kind", "operation"),
        "entity_type": ("entityType", "entity"),
        "entity_id": ("entityId",),
        "payload": ("payload", "data"),
        "client_timestamp": ("clientTimestamp", "timestamp"),
    }

    def _get(self, data: "Dict[str, Any]", field: "str") -> "Any":
        for key in self.FIELD_NAMES[field]:
            if data.get(key) is not None:
                return data[key]
        return None

    def _read_id(self, value: "Any", field: "str") -> "Optional[str]":
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, (str, int, uuid.UUID)):
            raise ValidationException(f"Invalid {field}: {value!r}")
        return str(value)

    def deserialize(self, data: "Any") -> "SyncOperation":
        """Converts a dictionary to a SyncOperation.

        Args:
            data (Dict): The operation as sent by the client.

        Raises:
            ValidationException: If the operation is malformed.
        """
        if not isinstance(data, dict):
            raise ValidationException("Operation must be an object")

        id = self._read_id(self._get(data, "id"), "id")
        if id is None:
            raise ValidationException("Operation id is required")

        raw_operation = self._get(data, "operation")
        try:
            operation = Operation(raw_operation)
        except ValueError:
            raise ValidationException("Unknown operation: %s" % (raw_operation,))

        entity_type = self._get(data, "entity_type")
        if not isinstance(entity_type, str) or not entity_type:
            raise ValidationException("Entity type is required")

        payload = self._get(data, "payload")
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise ValidationException("Payload must be an object")

        try:
            client_timestamp = to_datetime(self._get(data, "client_timestamp"))
        except ValueError as e:
            raise ValidationException(f"Invalid client timestamp: {e}")

        return SyncOperation(
            id=id,
            operation=operation,
            entity_type=entity_type,
            entity_id=self._read_id(self._get(data, "entity_id"), "entityId"),
            payload=payload,
            client_timestamp=client_timestamp,
        )
