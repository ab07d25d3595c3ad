SECRET_KEY = "resync-tests"
DEBUG = False
USE_TZ = True
TIME_ZONE = "UTC"
DEFAULT_AUTO_FIELD = "django.db.models.AutoField"
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "resync.backends.django",
    "tests.django.apps.MyAppConfig",
]
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}
ROOT_URLCONF = "resync.backends.django.contrib.urls"
RESYNC = {
    "ENTITIES": {
        "task": "my_app.Task",
        "water": "my_app.WaterIntake",
    },
    "ENTITY_ALIASES": {
        "water-intake": "water",
    },
}
