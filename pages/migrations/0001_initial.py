import uuid

from django.db import migrations, models


def _page_fields():
    return [
        ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ("slug", models.CharField(max_length=80, unique=True)),
        (
            "status",
            models.CharField(
                choices=[("DRAFT", "Draft"), ("PUBLISHED", "Published")],
                default="DRAFT",
                max_length=16,
            ),
        ),
        ("data_en", models.TextField(blank=True, null=True)),
        ("data_ar", models.TextField(blank=True, null=True)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Proposal",
            fields=_page_fields()
            + [
                ("show_vision", models.BooleanField(default=True)),
                ("show_goals", models.BooleanField(default=True)),
                ("show_noticed", models.BooleanField(default=False)),
                ("show_work_plan", models.BooleanField(default=True)),
                ("show_pricing", models.BooleanField(default=True)),
                ("show_notes", models.BooleanField(default=True)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "verbose_name": "Proposal",
                "verbose_name_plural": "Proposals",
                "ordering": ["-updated_at"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="ProgressPage",
            fields=_page_fields()
            + [
                ("show_client", models.BooleanField(default=True)),
                ("show_plan", models.BooleanField(default=True)),
                ("show_calendar", models.BooleanField(default=True)),
                ("show_assets", models.BooleanField(default=True)),
                ("show_payments", models.BooleanField(default=True)),
                ("show_meta_ads", models.BooleanField(default=True)),
                ("access_password_hash", models.CharField(blank=True, max_length=128, null=True)),
            ],
            options={
                "verbose_name": "Progress page",
                "verbose_name_plural": "Progress pages",
                "ordering": ["-updated_at"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="MetaPage",
            fields=_page_fields()
            + [
                ("show_client", models.BooleanField(default=True)),
                ("show_wallet", models.BooleanField(default=True)),
                ("show_results", models.BooleanField(default=True)),
                ("show_plan", models.BooleanField(default=True)),
                ("access_password_hash", models.CharField(blank=True, max_length=128, null=True)),
            ],
            options={
                "verbose_name": "Meta-ads page",
                "verbose_name_plural": "Meta-ads pages",
                "ordering": ["-updated_at"],
                "abstract": False,
            },
        ),
    ]
