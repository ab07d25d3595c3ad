from django.apps import AppConfig


class MyAppConfig(AppConfig):
    name = "tests.django"
    label = "my_app"
