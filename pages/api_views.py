import json
import logging
import time
from datetime import datetime
from typing import Any

from django.conf import settings
from django.contrib.auth import authenticate
from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.db import transaction
from django.http import FileResponse
from django.http import Http404
from django.http import HttpRequest
from django.http import HttpResponse
from django.http import JsonResponse
from django.utils import timezone
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_GET
from django.views.decorators.http import require_http_methods
from django.views.decorators.http import require_POST

from pages import documents
from pages import publishing
from pages.access import OPERATOR_SESSION
from pages.access import check_password
from pages.access import clear_operator_session
from pages.access import create_operator_session
from pages.access import get_operator_session
from pages.access import grant_page_access
from pages.access import has_page_access
from pages.access import hash_password
from pages.access import require_operator_session
from pages.models import PAGE_MODELS
from pages.models import BilingualPage
from pages.models import MetaPage
from pages.models import Proposal
from pages.uploads import UploadRejected
from pages.uploads import default_store


logger = logging.getLogger(__name__)

LANGUAGES = ("en", "ar")


def _read_json(request: HttpRequest) -> dict[str, Any]:
    try:
        raw = request.body.decode("utf-8") if request.body else "{}"
        data = json.loads(raw)
        return data if isinstance(data, dict) else {}
    except (UnicodeDecodeError, ValueError):
        return {}


def _api_ok(payload: dict[str, Any] | None = None, *, status: int = 200) -> JsonResponse:
    result: dict[str, Any] = payload or {}
    return JsonResponse({"ok": True, "result": result, "data": result}, status=status)


def _api_error(
    code: str,
    *,
    status: int = 400,
    message: str | None = None,
    details: dict[str, Any] | None = None,
) -> JsonResponse:
    error_obj: dict[str, Any] = {"code": code}
    if message:
        error_obj["message"] = message
    if details:
        error_obj["details"] = details
    return JsonResponse({"ok": False, "error": error_obj, "errorCode": code}, status=status)


def _validation_error(exc: ValidationError) -> JsonResponse:
    messages = getattr(exc, "messages", None) or []
    return _api_error(
        str(getattr(exc, "code", "") or "invalid"),
        status=400,
        message=str(messages[0]) if messages else None,
    )


def _rate_limit_key(request: HttpRequest, *, scope: str, window_seconds: int) -> str:
    user = OPERATOR_SESSION.subject_from_request(request)
    ip = str(request.META.get("REMOTE_ADDR") or "").strip() or "unknown"
    ident = f"u:{user}" if user else f"ip:{ip}"
    bucket = int(time.time() // max(1, int(window_seconds)))
    return f"rl:{scope}:{ident}:{bucket}"


def _check_rate_limit(
    request: HttpRequest,
    *,
    scope: str,
    limit: int,
    window_seconds: int,
) -> JsonResponse | None:
    lim = max(1, int(limit))
    win = max(1, int(window_seconds))
    key = _rate_limit_key(request, scope=scope, window_seconds=win)
    try:
        added = cache.add(key, 1, timeout=win)
        if added:
            return None
        current = cache.incr(key)
        if int(current) <= lim:
            return None
    except ValueError:
        # The counter expired between add() and incr().
        return None

    now = int(time.time())
    retry_after = win - (now % win)
    return _api_error(
        "rate_limited",
        status=429,
        message="Too many attempts. Please try again later.",
        details={"retryAfterSeconds": retry_after},
    )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _safe_next(request: HttpRequest, target: Any) -> str:
    url = str(target or "").strip()
    if url and url_has_allowed_host_and_scheme(
        url,
        allowed_hosts={request.get_host()},
        require_https=request.is_secure(),
    ):
        return url
    return str(settings.LOGIN_REDIRECT_URL)


def csrf_failure(request: HttpRequest, reason: str = "") -> JsonResponse | HttpResponse:
    if str(getattr(request, "path", "") or "").startswith("/api/"):
        msg = "Security check failed. Refresh the page and try again."
        if reason:
            return _api_error("csrf_failed", status=403, message=msg, details={"reason": reason})
        return _api_error("csrf_failed", status=403, message=msg)
    return HttpResponse("CSRF Failed", status=403, content_type="text/plain; charset=utf-8")


# Auth


@ensure_csrf_cookie
@require_http_methods(["GET", "POST"])
def auth_login(request: HttpRequest) -> JsonResponse:
    if request.method == "GET":
        return _api_ok({"authenticated": False, "next": _safe_next(request, request.GET.get("next"))})

    limited = _check_rate_limit(request, scope="auth_login", limit=12, window_seconds=300)
    if limited:
        return limited
    data = _read_json(request)
    username = str(data.get("username") or "").strip()
    password = str(data.get("password") or "")
    user = authenticate(request, username=username, password=password)
    if not user:
        return _api_error("invalid_credentials", status=401)
    if not getattr(user, "is_active", False):
        return _api_error("inactive", status=403)
    if not getattr(user, "is_staff", False):
        return _api_error("forbidden", status=403)

    response = _api_ok({"user": user.get_username(), "next": _safe_next(request, data.get("next"))})
    create_operator_session(response, user.get_username())
    logger.info("Operator %s signed in", user.get_username())
    return response


@require_POST
def auth_logout(request: HttpRequest) -> JsonResponse:
    response = _api_ok()
    clear_operator_session(response)
    return response


@ensure_csrf_cookie
@require_GET
def auth_me(request: HttpRequest) -> JsonResponse:
    session = get_operator_session(request)
    if not session:
        return _api_ok({"authenticated": False, "user": ""})
    return _api_ok({"authenticated": True, "user": session["user"]})


# Dashboard


def _page_summary(page: BilingualPage) -> dict[str, Any]:
    item: dict[str, Any] = {
        "id": str(page.id),
        "kind": page.KIND,
        "slug": page.slug,
        "status": publishing.effective_status(page) if isinstance(page, Proposal) else page.status,
        "publicUrl": page.public_url,
        "languages": page.available_languages(),
        "createdAt": _iso(page.created_at),
        "updatedAt": _iso(page.updated_at),
    }
    item.update(page.visibility())
    if isinstance(page, Proposal):
        item["expiresAt"] = _iso(page.expires_at)
    else:
        item["hasPassword"] = bool(getattr(page, "access_password_hash", None))
    return item


def _page_detail(page: BilingualPage) -> dict[str, Any]:
    item = _page_summary(page)
    if isinstance(page, MetaPage):
        item["dataEn"] = documents.normalize_meta_for_edit(page.data_en)
        item["dataAr"] = documents.normalize_meta_for_edit(page.data_ar)
    else:
        item["dataEn"] = page.document("en")
        item["dataAr"] = page.document("ar")
    return item


def _get_page(kind: str, page_id: Any) -> BilingualPage | None:
    return PAGE_MODELS[kind].objects.filter(pk=page_id).first()


def _media_urls(page: BilingualPage) -> dict[str, str]:
    if not isinstance(page, MetaPage):
        return {}
    return {lang: page.document(lang)["results"]["mediaUrl"] for lang in LANGUAGES}


def _payload_document(kind: str, data: dict[str, Any], key: str, fallback: Any) -> Any:
    if key not in data:
        return fallback
    return documents.parse_payload(kind, data.get(key))


def _save_from_payload(page: BilingualPage, data: dict[str, Any], *, creating: bool) -> JsonResponse:
    kind = page.KIND
    model = type(page)
    now = timezone.now()
    previous_media = {} if creating else _media_urls(page)

    try:
        if creating or "slug" in data:
            slug = publishing.clean_slug(data.get("slug"))
        else:
            slug = page.slug
        if creating or data.get("status") is not None:
            status = publishing.clean_status(data.get("status"))
        else:
            status = page.status
        publishing.ensure_slug_available(model, slug, exclude_id=None if creating else page.pk)

        current = {
            lang: (documents.empty_template(kind) if creating else page.document(lang)) for lang in LANGUAGES
        }
        try:
            incoming = {
                "en": _payload_document(kind, data, "dataEn", current["en"]),
                "ar": _payload_document(kind, data, "dataAr", current["ar"]),
            }
        except ValueError:
            return _api_error("invalid_payload", status=400, message="Document payload is not valid JSON.")
        if kind == "meta":
            incoming = {
                lang: documents.stamp_meta_changes(
                    None if creating else documents.seed_campaigns_from_legacy(current[lang]), incoming[lang], now
                )
                for lang in LANGUAGES
            }

        if isinstance(page, Proposal) and "expiresAt" in data:
            page.expires_at = publishing.clean_expiry(data.get("expiresAt"))

        if kind in publishing.PASSWORD_KINDS:
            password = str(data.get("password") or "").strip()
            if password:
                page.access_password_hash = hash_password(password)  # type: ignore[attr-defined]

        publishing.validate_for_save(
            kind,
            status=status,
            data_en=incoming["en"],
            data_ar=incoming["ar"],
            password_hash=getattr(page, "access_password_hash", None),
            expires_at=getattr(page, "expires_at", None),
            now=now,
        )
    except ValidationError as exc:
        return _validation_error(exc)

    for key, attr in model.VISIBILITY_FLAGS:
        if data.get(key) is None:
            continue
        setattr(page, attr, bool(data.get(key)))

    page.slug = slug
    page.status = status
    page.set_document("en", incoming["en"])
    page.set_document("ar", incoming["ar"])
    try:
        with transaction.atomic():
            page.save()
    except IntegrityError:
        logger.warning("Slug %s was taken while saving a %s page", slug, kind)
        return _api_error("slug_in_use", status=400, message="This slug is already in use.")

    if previous_media:
        store = default_store()
        for lang, old_url in previous_media.items():
            if old_url and old_url != incoming[lang]["results"]["mediaUrl"]:
                store.discard(old_url)

    return _api_ok(_page_detail(page), status=201 if creating else 200)


@require_operator_session
@require_GET
def dashboard_list(request: HttpRequest, kind: str) -> JsonResponse:
    if kind == "proposal":
        publishing.sweep_expired_proposals()
    pages = PAGE_MODELS[kind].objects.all()
    return _api_ok({"items": [_page_summary(p) for p in pages]})


@require_operator_session
@require_POST
def dashboard_create(request: HttpRequest, kind: str) -> JsonResponse:
    page = PAGE_MODELS[kind]()
    return _save_from_payload(page, _read_json(request), creating=True)


@require_operator_session
@require_GET
def dashboard_detail(request: HttpRequest, kind: str, page_id: Any) -> JsonResponse:
    page = _get_page(kind, page_id)
    if not page:
        return _api_error("not_found", status=404)
    if isinstance(page, Proposal):
        publishing.resolve_proposal(page)
    return _api_ok(_page_detail(page))


@require_operator_session
@require_POST
def dashboard_update(request: HttpRequest, kind: str, page_id: Any) -> JsonResponse:
    page = _get_page(kind, page_id)
    if not page:
        return _api_error("not_found", status=404)
    return _save_from_payload(page, _read_json(request), creating=False)


@require_operator_session
@require_POST
def dashboard_delete(request: HttpRequest, kind: str, page_id: Any) -> JsonResponse:
    page = _get_page(kind, page_id)
    if not page:
        return _api_error("not_found", status=404)
    media = _media_urls(page)
    page.delete()
    if media:
        store = default_store()
        for url in media.values():
            store.discard(url)
    return _api_ok()


@require_operator_session
@require_POST
def dashboard_proposal_duplicate(request: HttpRequest, page_id: Any) -> JsonResponse:
    source = Proposal.objects.filter(pk=page_id).first()
    if not source:
        return _api_error("not_found", status=404)
    try:
        with transaction.atomic():
            duplicate = publishing.duplicate_proposal(source)
    except IntegrityError:
        logger.warning("Copy slug for %s was taken while duplicating", source.slug)
        return _api_error("slug_in_use", status=400, message="This slug is already in use.")
    return _api_ok(_page_detail(duplicate), status=201)


@require_operator_session
@require_POST
def dashboard_upload(request: HttpRequest) -> JsonResponse:
    limited = _check_rate_limit(request, scope="dashboard_upload", limit=24, window_seconds=300)
    if limited:
        return limited
    f = request.FILES.get("file")
    if not f:
        return _api_error("missing_file", status=400)
    try:
        url = default_store().save_image(f)
    except UploadRejected as exc:
        return _api_error(exc.code, status=exc.status, details=exc.details)
    return _api_ok({"url": url}, status=201)


@require_operator_session
@require_POST
def dashboard_upload_delete(request: HttpRequest) -> JsonResponse:
    data = _read_json(request)
    url = str(data.get("url") or request.POST.get("url") or "").strip()
    if not url:
        return _api_error("missing_url", status=400)
    try:
        removed = default_store().delete_url(url)
    except UploadRejected as exc:
        return _api_error(exc.code, status=exc.status, details=exc.details)
    except OSError:
        logger.warning("Could not remove uploaded file %s", url, exc_info=True)
        removed = False
    return _api_ok({"removed": removed})


# Public


def _public_payload(page: BilingualPage, languages: list[str]) -> dict[str, Any]:
    now = timezone.now()
    payload: dict[str, Any] = {
        "kind": page.KIND,
        "slug": page.slug,
        "locked": False,
        "languages": languages,
        "defaultLanguage": languages[0],
        "visibility": page.visibility(),
    }
    for lang in LANGUAGES:
        key = "En" if lang == "en" else "Ar"
        doc = page.document(lang) if lang in languages else None
        if doc is not None and page.KIND == "meta":
            doc = documents.seed_campaigns_from_legacy(doc)
        payload[f"data{key}"] = doc
        if page.KIND == "progress":
            payload[f"summary{key}"] = documents.progress_summary(doc, timezone.localtime(now)) if doc else None
        elif page.KIND == "meta":
            payload[f"totals{key}"] = documents.results_totals(doc) if doc else None
    if isinstance(page, Proposal):
        payload["expiresAt"] = _iso(page.expires_at)
    return payload


@ensure_csrf_cookie
@require_GET
def public_proposal(request: HttpRequest, slug: str) -> JsonResponse:
    proposal = Proposal.objects.filter(slug=str(slug or "").lower()).first()
    if not proposal:
        return _api_error("not_found", status=404)
    publishing.resolve_proposal(proposal)
    if not proposal.is_published:
        return _api_error("not_found", status=404)
    languages = proposal.available_languages()
    if not languages:
        return _api_error("not_found", status=404)
    return _api_ok(_public_payload(proposal, languages))


def _published_page(kind: str, slug: str) -> BilingualPage | None:
    return (
        PAGE_MODELS[kind]
        .objects.filter(slug=str(slug or "").lower(), status=BilingualPage.STATUS_PUBLISHED)
        .first()
    )


@ensure_csrf_cookie
@require_GET
def public_gated_page(request: HttpRequest, kind: str, slug: str) -> JsonResponse:
    page = _published_page(kind, slug)
    if not page:
        return _api_error("not_found", status=404)
    languages = page.available_languages()
    if not languages:
        return _api_error("not_found", status=404)
    if not has_page_access(kind, request, page.slug):
        return _api_ok({"kind": kind, "slug": page.slug, "locked": True})
    return _api_ok(_public_payload(page, languages))


@require_POST
def public_unlock(request: HttpRequest, kind: str, slug: str) -> JsonResponse:
    limited = _check_rate_limit(request, scope=f"unlock_{kind}", limit=10, window_seconds=300)
    if limited:
        return limited
    data = _read_json(request)
    password = str(data.get("password") or request.POST.get("password") or "")
    page = _published_page(kind, slug)
    # Every failure looks the same to the visitor.
    if not page or not password or not check_password(password, getattr(page, "access_password_hash", None)):
        return _api_error("incorrect_password", status=403, message="Incorrect password.")
    response = _api_ok({"kind": kind, "slug": page.slug, "unlocked": True})
    grant_page_access(kind, response, page.slug)
    logger.info("Unlocked %s page %s", kind, page.slug)
    return response


@require_GET
def serve_upload(request: HttpRequest, path: str) -> FileResponse:
    target = default_store().resolve(path)
    if target is None:
        raise Http404("File not found.")
    return FileResponse(open(target, "rb"))
