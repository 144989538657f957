from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backend.payments'

    def ready(self):
        from . import monitor  # noqa: F401
