from __future__ import annotations

import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction


def _first_env(*names: str) -> str:
    for name in names:
        value = (os.environ.get(name) or "").strip()
        if value:
            return value
    return ""


class Command(BaseCommand):
    help = "Create or update the dashboard operator account from the environment."

    def handle(self, *args, **options):
        username = _first_env("OPERATOR_USERNAME", "ADMIN_USER")
        password = _first_env("OPERATOR_PASSWORD", "ADMIN_PASS")
        email = _first_env("OPERATOR_EMAIL")

        if not username or not password:
            self.stdout.write(
                "Skipping ensure_operator: set OPERATOR_USERNAME and OPERATOR_PASSWORD "
                "(or ADMIN_USER and ADMIN_PASS) to create one."
            )
            return

        User = get_user_model()
        with transaction.atomic():
            user, created = User.objects.get_or_create(username=username)
            if email and getattr(user, "email", "") != email:
                user.email = email
            user.is_staff = True
            user.is_active = True
            user.set_password(password)
            user.save()

        action = "Created" if created else "Updated"
        self.stdout.write(self.style.SUCCESS(f"{action} operator: {username}"))
