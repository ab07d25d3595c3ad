from typing import Any, ContextManager, Dict, Iterator, List, Optional, Tuple
from abc import ABC, abstractmethod
import contextlib
import datetime as dt
import hashlib
import os
import re
import threading
import dateutil.parser
from filelock import FileLock

EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)


class BaseEntityLock(ABC):
    """Serializes the read-then-write sequence performed on a single entity."""

    @abstractmethod
    def lock(self, entity_type: "str", entity_id: "str") -> "ContextManager":
        """Returns a ContextManager that holds the lock for the given entity.

        Args:
            entity_type (str): Entity type tag.
            entity_id (str): Entity primary key.
        """


class ThreadEntityLock(BaseEntityLock):
    """Locks entities within a single process. A lock is discarded once its last holder releases it."""

    def __init__(self):
        self._guard = threading.Lock()
        # (entity_type, entity_id) => [lock, number of holders and waiters]
        self._locks: "Dict[Tuple[str, str], List[Any]]" = {}

    @contextlib.contextmanager
    def lock(self, entity_type: "str", entity_id: "str") -> "Iterator[None]":
        key = (entity_type, str(entity_id))
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.RLock(), 0]
                self._locks[key] = entry
            entry[1] += 1

        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


class FileEntityLock(BaseEntityLock):
    """Locks entities across processes that share a filesystem by using one lock file per entity.
    """

    def __init__(self, lock_dir: "str" = "/tmp/resync-locks", timeout: "float" = -1):
        """
        Args:
            lock_dir (str): Directory where the lock files are created.
            timeout (float): Seconds to wait for the lock. A negative value waits forever.
        """
        self.lock_dir = lock_dir
        self.timeout = timeout
        os.makedirs(self.lock_dir, exist_ok=True)

    def _lock_path(self, entity_type: "str", entity_id: "str") -> "str":
        digest = hashlib.sha1(f"{entity_type}:{entity_id}".encode("utf-8")).hexdigest()
        return os.path.join(self.lock_dir, digest + ".lock")

    def lock(self, entity_type: "str", entity_id: "str") -> "ContextManager":
        return FileLock(
            self._lock_path(entity_type=entity_type, entity_id=str(entity_id)),
            timeout=self.timeout,
        )


class BaseMetadataConverter(ABC):
    """Abstract class to be used for converting metadata objects used by the sync framework to records that can be saved to the data store and back."""

    @abstractmethod
    def to_metadata(self, record: "Any") -> "Any":  # pragma: no cover
        """Converts a record from the data store to a metadata object used by the framework.

        Args:
            record (Any): Data store native object.

        Returns:
            (Any): Metadata object.
        """

    @abstractmethod
    def to_record(self, metadata_object: "Any") -> "Any":  # pragma: no cover
        """Converts a metadata object used by the framework to a record that can be saved to the data store.

        Args:
            metadata_object (Any): Metadata object.

        Returns:
            (Any): Data store native object.
        """


def get_now_utc() -> "dt.datetime":
    """Current time in UTC.

    Returns:
        dt.datetime: Current time in UTC.
    """
    return dt.datetime.now(tz=dt.timezone.utc)


def truncate_to_milliseconds(value: "dt.datetime") -> "dt.datetime":
    return value.replace(microsecond=value.microsecond - value.microsecond % 1000)


def get_entity_timestamp() -> "dt.datetime":
    """Current time in UTC truncated to milliseconds. Entities are stamped with it so that a
    client echoing a timestamp as epoch milliseconds reproduces it exactly.

    Returns:
        dt.datetime: Current time in UTC.
    """
    return truncate_to_milliseconds(get_now_utc())


regex = r'^(-?(?:[1-9][0-9]*)?[0-9]{4})-(1[0-2]|0[1-9])-(3[01]|0[1-9]|[12][0-9])T(2[0-3]|[01][0-9]):([0-5][0-9]):([0-5][0-9])(\.[0-9]+)?(Z|[+-](?:2[0-3]|[01][0-9]):[0-5][0-9])?$'
match_iso8601 = re.compile(regex).match


def parse_datetime(value: "str") -> "dt.datetime":
    """Converts a string to a dt.datetime object.

    Args:
        value (str): An ISO-8601 string.

    Returns:
        dt.datetime: The parsed dt.datetime
    """
    if not match_iso8601(value):
        raise ValueError("Not an ISO-8601 string")

    return dateutil.parser.isoparse(value)


def to_datetime(value: "Any") -> "Optional[dt.datetime]":
    """Normalizes a timestamp received from a client or read from a snapshot to an aware UTC datetime.

    Accepts datetimes (naive ones are taken as UTC), ISO-8601 strings and numbers,
    which are read as milliseconds since the epoch.

    Args:
        value (Any): The timestamp.

    Returns:
        Optional[dt.datetime]: The normalized timestamp or None if value is None.

    Raises:
        ValueError: If the value can't be read as a timestamp.
    """
    if value is None:
        return None

    if isinstance(value, bool):
        raise ValueError("Not a timestamp: %r" % (value,))

    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        return EPOCH + dt.timedelta(milliseconds=value)
    elif isinstance(value, str):
        parsed = parse_datetime(value)
    else:
        raise ValueError("Not a timestamp: %r" % (value,))

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc)
