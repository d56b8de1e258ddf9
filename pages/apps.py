from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


class PagesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "pages"
    verbose_name = "Client pages"

    def ready(self) -> None:
        if not str(getattr(settings, "PAGES_SESSION_SECRET", "") or ""):
            raise ImproperlyConfigured("PAGES_SESSION_SECRET is not set (environment variable SESSION_SECRET).")
