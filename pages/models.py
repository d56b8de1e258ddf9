"""
Bilingual client pages: proposals, progress trackers and meta-ads results.
"""

import json
import uuid
from typing import Any

from django.conf import settings
from django.db import models

from pages import documents


class BilingualPage(models.Model):
    """
    Common storage for a page with one English and one Arabic document.

    Documents are stored as raw JSON text and read back through
    ``pages.documents.normalize``, so malformed rows still render.
    """

    STATUS_DRAFT = "DRAFT"
    STATUS_PUBLISHED = "PUBLISHED"
    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PUBLISHED, "Published"),
    ]

    KIND = ""
    PUBLIC_PREFIX = ""
    # (payload key, model attribute) for the per-page section toggles.
    VISIBILITY_FLAGS: list[tuple[str, str]] = []

    id: models.UUIDField = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    slug: models.CharField = models.CharField(max_length=80, unique=True)
    status: models.CharField = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    data_en: models.TextField = models.TextField(null=True, blank=True)
    data_ar: models.TextField = models.TextField(null=True, blank=True)
    created_at: models.DateTimeField = models.DateTimeField(auto_now_add=True)
    updated_at: models.DateTimeField = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-updated_at"]

    def __str__(self) -> str:
        return self.slug

    @property
    def is_published(self) -> bool:
        return self.status == self.STATUS_PUBLISHED

    def document(self, lang: str) -> Any:
        raw = self.data_ar if lang == "ar" else self.data_en
        return documents.normalize(self.KIND, raw)

    def set_document(self, lang: str, doc: Any) -> None:
        raw = json.dumps(doc, ensure_ascii=False)
        if lang == "ar":
            self.data_ar = raw
        else:
            self.data_en = raw

    def available_languages(self) -> list[str]:
        return [lang for lang in ("en", "ar") if documents.is_available(self.KIND, self.document(lang))]

    def visibility(self) -> dict[str, bool]:
        return {key: bool(getattr(self, attr)) for key, attr in self.VISIBILITY_FLAGS}

    @property
    def public_path(self) -> str:
        return f"{self.PUBLIC_PREFIX}/{self.slug}"

    @property
    def public_url(self) -> str:
        base = str(getattr(settings, "PAGES_PUBLIC_BASE_URL", "") or "").rstrip("/")
        return f"{base}{self.public_path}"


class Proposal(BilingualPage):
    KIND = "proposal"
    PUBLIC_PREFIX = "/p"
    VISIBILITY_FLAGS = [
        ("showVision", "show_vision"),
        ("showGoals", "show_goals"),
        ("showNoticed", "show_noticed"),
        ("showWorkPlan", "show_work_plan"),
        ("showPricing", "show_pricing"),
        ("showNotes", "show_notes"),
    ]

    show_vision: models.BooleanField = models.BooleanField(default=True)
    show_goals: models.BooleanField = models.BooleanField(default=True)
    show_noticed: models.BooleanField = models.BooleanField(default=False)
    show_work_plan: models.BooleanField = models.BooleanField(default=True)
    show_pricing: models.BooleanField = models.BooleanField(default=True)
    show_notes: models.BooleanField = models.BooleanField(default=True)
    expires_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta(BilingualPage.Meta):
        verbose_name = "Proposal"
        verbose_name_plural = "Proposals"


class ProgressPage(BilingualPage):
    KIND = "progress"
    PUBLIC_PREFIX = "/progress"
    VISIBILITY_FLAGS = [
        ("showClient", "show_client"),
        ("showPlan", "show_plan"),
        ("showCalendar", "show_calendar"),
        ("showAssets", "show_assets"),
        ("showPayments", "show_payments"),
        ("showMetaAds", "show_meta_ads"),
    ]

    show_client: models.BooleanField = models.BooleanField(default=True)
    show_plan: models.BooleanField = models.BooleanField(default=True)
    show_calendar: models.BooleanField = models.BooleanField(default=True)
    show_assets: models.BooleanField = models.BooleanField(default=True)
    show_payments: models.BooleanField = models.BooleanField(default=True)
    show_meta_ads: models.BooleanField = models.BooleanField(default=True)
    access_password_hash: models.CharField = models.CharField(max_length=128, null=True, blank=True)

    class Meta(BilingualPage.Meta):
        verbose_name = "Progress page"
        verbose_name_plural = "Progress pages"


class MetaPage(BilingualPage):
    KIND = "meta"
    PUBLIC_PREFIX = "/meta"
    VISIBILITY_FLAGS = [
        ("showClient", "show_client"),
        ("showWallet", "show_wallet"),
        ("showResults", "show_results"),
        ("showPlan", "show_plan"),
    ]

    show_client: models.BooleanField = models.BooleanField(default=True)
    show_wallet: models.BooleanField = models.BooleanField(default=True)
    show_results: models.BooleanField = models.BooleanField(default=True)
    show_plan: models.BooleanField = models.BooleanField(default=True)
    access_password_hash: models.CharField = models.CharField(max_length=128, null=True, blank=True)

    class Meta(BilingualPage.Meta):
        verbose_name = "Meta-ads page"
        verbose_name_plural = "Meta-ads pages"


PAGE_MODELS: dict[str, type[BilingualPage]] = {
    "proposal": Proposal,
    "progress": ProgressPage,
    "meta": MetaPage,
}
