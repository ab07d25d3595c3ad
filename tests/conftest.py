import tests.django.settings


def pytest_configure(config):
    from django.conf import settings
    from django.db import connection
    from django.test.utils import setup_test_environment
    import django

    all_settings = {
        key: getattr(tests.django.settings, key)
        for key in dir(tests.django.settings)
        if not key.startswith("_")
    }
    settings.configure(**all_settings)
    django.setup()

    setup_test_environment()
    connection.creation.create_test_db(verbosity=0)
