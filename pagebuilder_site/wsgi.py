"""
WSGI config for pagebuilder_site project.

It exposes the WSGI callable as a module-level variable named ``application``.

For more information on this file, see
https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import fcntl
import os

from django.core.wsgi import get_wsgi_application


os.environ.setdefault(
    "DJANGO_SETTINGS_MODULE",
    "pagebuilder_site.settings.dev",
)

application = get_wsgi_application()


def _auto_migrate_if_enabled() -> None:
    auto = os.environ.get("AUTO_MIGRATE")
    if auto is not None and auto.strip().lower() not in {"1", "true", "yes", "on"}:
        return
    if auto is None:
        settings_module = os.environ.get("DJANGO_SETTINGS_MODULE", "")
        if not settings_module.endswith(".prod"):
            return

    from django.core.management import call_command

    # Several gunicorn workers boot at once; only one may migrate at a time.
    lock_path = os.environ.get("AUTO_MIGRATE_LOCK_PATH") or "/tmp/pagebuilder_migrate.lock"
    with open(lock_path, "w", encoding="utf-8") as fh:
        fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
        call_command("migrate", interactive=False, verbosity=1)


_auto_migrate_if_enabled()
