from django.utils.module_loading import import_string
from django.conf import settings
from typing import Dict, Any

DEFAULTS: "Dict[str, Any]" = {
    # {"task": "todo.Task"}: entity type tag => model
    "ENTITIES": {},
    # {"water-intake": "water"}: alias => entity type tag
    "ENTITY_ALIASES": {},
    "OWNER_FIELD": "userId",
    "CREATED_FIELD": "createdAt",
    "UPDATED_FIELD": "updatedAt",
    "MAX_OPERATIONS_PER_BATCH": None,
    "EVENTS_MANAGER_CLASS": "resync.core.events.EventsManager",
    "ENTITY_STORE_CLASS": "resync.backends.django.DjangoEntityStore",
    "CONFLICT_STORE_CLASS": "resync.backends.django.DjangoConflictStore",
    "QUEUE_STORE_CLASS": "resync.backends.django.DjangoQueueStore",
}

IMPORT_STRINGS = [
    "EVENTS_MANAGER_CLASS",
    "ENTITY_STORE_CLASS",
    "CONFLICT_STORE_CLASS",
    "QUEUE_STORE_CLASS",
]


def perform_import(val, setting_name):
    """
    If the given setting is a string import notation,
    then perform the necessary import or imports.
    """
    if val is None:
        return None
    elif isinstance(val, str):
        return import_from_string(val, setting_name)
    elif isinstance(val, (list, tuple)):
        return [import_from_string(item, setting_name) for item in val]
    return val


def import_from_string(val, setting_name):
    """
    Attempt to import a class from a string representation.
    """
    try:
        return import_string(val)
    except ImportError as e:
        msg = "Could not import '%s' for API setting '%s'. %s: %s." % (
            val,
            setting_name,
            e.__class__.__name__,
            e,
        )
        raise ImportError(msg)


class ResyncSettings:
    """
    A settings object that allows resync settings to be accessed as
    properties. For example:

        from resync.backends.django.settings import resync_settings
        print(resync_settings.ENTITIES)

    Note:
    This is an internal class that is only compatible with settings namespaced
    under the RESYNC name. Values are read every time they are accessed, so
    `override_settings` works as expected.
    """

    def __init__(
        self,
        defaults=DEFAULTS,
        import_strings=IMPORT_STRINGS,
        user_settings=None,
        namespace="RESYNC",
    ):
        self.defaults = defaults
        self.import_strings = import_strings
        self.namespace = namespace
        self._explicit_user_settings = user_settings

    @property
    def _user_settings(self) -> "Dict[str, Any]":
        if self._explicit_user_settings is not None:
            return self._explicit_user_settings
        return getattr(settings, self.namespace, {})

    def __getattr__(self, attr):
        if attr not in self.defaults:
            raise AttributeError("Invalid setting: '%s'" % attr)

        try:
            val = self._user_settings[attr]
        except KeyError:
            val = self.defaults[attr]

        # Coerce import strings into classes
        if attr in self.import_strings:
            val = perform_import(val, attr)

        return val


resync_settings = ResyncSettings()
