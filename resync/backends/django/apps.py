from django.apps import AppConfig


class DjangoBackendConfig(AppConfig):
    name = "resync.backends.django"
    label = "resync"
    default_auto_field = "django.db.models.AutoField"
