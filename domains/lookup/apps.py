from django.apps import AppConfig


class LookupConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "domains.lookup"
    label = "lookup"
