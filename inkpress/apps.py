"""Django app configuration for inkpress."""
from django.apps import AppConfig


class InkpressConfig(AppConfig):
    """Configuration for the inkpress app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "inkpress"
    verbose_name = "Inkpress"

    def ready(self):
        """Connect cache invalidation and account signals."""
        from . import signals  # noqa: F401
