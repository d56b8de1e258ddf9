import json
from pathlib import Path

from django.core.management.base import BaseCommand
from django.core.management.base import CommandError
from django.db import transaction

from pages import documents
from pages.models import PAGE_MODELS


SEED_GROUPS = [
    ("proposals", "proposal"),
    ("progress", "progress"),
    ("meta", "meta"),
]


class Command(BaseCommand):
    help = "Create the demo proposal, progress and meta-ads pages."

    def add_arguments(self, parser):
        parser.add_argument(
            "--data",
            default=str(Path(__file__).resolve().parents[2] / "seed_data" / "demo_pages.json"),
        )
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Replace demo pages whose slug already exists.",
        )

    def handle(self, *args, **options):
        data_path = Path(options["data"]).resolve()
        try:
            payload = json.loads(data_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise CommandError(f"Cannot read seed data from {data_path}: {exc}")

        created = 0
        skipped = 0
        with transaction.atomic():
            for group, kind in SEED_GROUPS:
                model = PAGE_MODELS[kind]
                for entry in payload.get(group) or []:
                    slug = str(entry.get("slug") or "").strip()
                    if not slug:
                        continue
                    existing = model.objects.filter(slug=slug).first()
                    if existing and not options["reset"]:
                        skipped += 1
                        self.stdout.write(f"Skipping existing {kind} page: {slug}")
                        continue
                    if existing:
                        existing.delete()

                    page = model(slug=slug, status=entry.get("status") or model.STATUS_DRAFT)
                    for lang, key in (("en", "dataEn"), ("ar", "dataAr")):
                        if entry.get(key) is not None:
                            page.set_document(lang, documents.normalize(kind, entry[key]))
                    page.save()
                    created += 1

        self.stdout.write(self.style.SUCCESS(f"Seeded {created} page(s), skipped {skipped}."))
