import logging
import re
from datetime import datetime
from datetime import time as dt_time
from typing import Any

from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.utils import timezone
from django.utils.dateparse import parse_date
from django.utils.dateparse import parse_datetime

from pages import documents
from pages.models import BilingualPage
from pages.models import Proposal


logger = logging.getLogger(__name__)

SLUG_MAX_LENGTH = 80
SLUG_RE = re.compile(r"^[a-z0-9-]+$")

PASSWORD_KINDS = {"progress", "meta"}


def clean_slug(raw: Any) -> str:
    slug = str(raw or "").strip().lower()
    if not slug:
        raise ValidationError("Slug is required.", code="slug_required")
    if len(slug) > SLUG_MAX_LENGTH:
        raise ValidationError(
            f"Slug must be at most {SLUG_MAX_LENGTH} characters.",
            code="slug_too_long",
        )
    if not SLUG_RE.match(slug):
        raise ValidationError(
            "Slug may only contain lowercase letters, digits and hyphens.",
            code="invalid_slug",
        )
    return slug


def clean_status(raw: Any) -> str:
    status = str(raw or "").strip().upper() or BilingualPage.STATUS_DRAFT
    if status not in {BilingualPage.STATUS_DRAFT, BilingualPage.STATUS_PUBLISHED}:
        raise ValidationError("Status must be DRAFT or PUBLISHED.", code="invalid_status")
    return status


def clean_expiry(raw: Any) -> datetime | None:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    value: datetime | None = None
    if isinstance(raw, datetime):
        value = raw
    else:
        text = str(raw).strip()
        try:
            value = parse_datetime(text)
            if value is None:
                day = parse_date(text)
                if day is not None:
                    value = datetime.combine(day, dt_time.min)
        except ValueError:
            value = None
    if value is None:
        raise ValidationError("Expiry date is not a valid date.", code="invalid_date")
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


def ensure_slug_available(model: type[BilingualPage], slug: str, exclude_id: Any = None) -> None:
    qs = model.objects.filter(slug=slug)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    if qs.exists():
        raise ValidationError("This slug is already in use.", code="slug_in_use")


def validate_for_save(
    kind: str,
    *,
    status: str,
    data_en: Any,
    data_ar: Any,
    password_hash: str | None = None,
    expires_at: datetime | None = None,
    now: datetime | None = None,
) -> None:
    """
    Publish gates. Drafts always pass; a published page needs content in at
    least one language, a password when it is gated, and a future expiry.
    """
    if status != BilingualPage.STATUS_PUBLISHED:
        return
    if not (documents.is_available(kind, data_en) or documents.is_available(kind, data_ar)):
        raise ValidationError(
            "Add content in at least one language before publishing.",
            code="publish_requires_content",
        )
    if kind in PASSWORD_KINDS and not password_hash:
        raise ValidationError(
            "Set an access password before publishing.",
            code="publish_requires_password",
        )
    if kind == "proposal" and expires_at is not None:
        if expires_at <= (now or timezone.now()):
            raise ValidationError("Expiry date must be in the future.", code="expiry_in_past")


def is_expired(proposal: Proposal, now: datetime | None = None) -> bool:
    if proposal.expires_at is None:
        return False
    return proposal.expires_at <= (now or timezone.now())


def effective_status(proposal: Proposal, now: datetime | None = None) -> str:
    if proposal.status == Proposal.STATUS_PUBLISHED and is_expired(proposal, now):
        return Proposal.STATUS_DRAFT
    return proposal.status


def revert_expired_proposals(now: datetime | None = None) -> int:
    return Proposal.objects.filter(
        status=Proposal.STATUS_PUBLISHED,
        expires_at__isnull=False,
        expires_at__lte=now or timezone.now(),
    ).update(status=Proposal.STATUS_DRAFT)


def sweep_expired_proposals(now: datetime | None = None) -> int:
    try:
        reverted = revert_expired_proposals(now)
    except DatabaseError:
        logger.warning("Expired proposal sweep failed", exc_info=True)
        return 0
    if reverted:
        logger.info("Reverted %s expired proposal(s) to draft", reverted)
    return reverted


def resolve_proposal(proposal: Proposal, now: datetime | None = None) -> Proposal:
    if effective_status(proposal, now) == proposal.status:
        return proposal
    proposal.status = Proposal.STATUS_DRAFT
    try:
        # update() leaves updated_at alone.
        Proposal.objects.filter(pk=proposal.pk, status=Proposal.STATUS_PUBLISHED).update(
            status=Proposal.STATUS_DRAFT
        )
    except DatabaseError:
        logger.warning("Could not revert expired proposal %s", proposal.slug, exc_info=True)
    return proposal


def unique_copy_slug(model: type[BilingualPage], slug: str) -> str:
    n = 1
    while True:
        suffix = "-copy" if n == 1 else f"-copy-{n}"
        candidate = f"{slug[: SLUG_MAX_LENGTH - len(suffix)]}{suffix}"
        if not model.objects.filter(slug=candidate).exists():
            return candidate
        n += 1


def duplicate_proposal(source: Proposal) -> Proposal:
    duplicate = Proposal(
        slug=unique_copy_slug(Proposal, source.slug),
        status=Proposal.STATUS_DRAFT,
        data_en=source.data_en,
        data_ar=source.data_ar,
        expires_at=source.expires_at,
    )
    for _, attr in Proposal.VISIBILITY_FLAGS:
        setattr(duplicate, attr, getattr(source, attr))
    duplicate.save()
    return duplicate
