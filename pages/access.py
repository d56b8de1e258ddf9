import hashlib
import hmac
from datetime import timedelta
from functools import wraps
from typing import Any
from typing import Callable

from django.conf import settings
from django.contrib.auth.views import redirect_to_login
from django.core import signing
from django.core.exceptions import ImproperlyConfigured
from django.http import HttpRequest
from django.http import HttpResponse
from django.utils.crypto import constant_time_compare


TOKEN_MAX_AGE = timedelta(days=7)


def _secret() -> str:
    secret = str(getattr(settings, "PAGES_SESSION_SECRET", "") or "")
    if not secret:
        raise ImproperlyConfigured("PAGES_SESSION_SECRET is not set (environment variable SESSION_SECRET).")
    return secret


class ScopedToken:
    """
    A signed, expiring token carried in one cookie.

    The cookie name doubles as the signing salt, so a token issued for one
    cookie never verifies as another.
    """

    def __init__(self, cookie_name: str, claim: str, *, max_age: timedelta = TOKEN_MAX_AGE):
        self.cookie_name = cookie_name
        self.claim = claim
        self.max_age = max_age

    def issue(self, subject: str) -> str:
        return signing.dumps({self.claim: subject}, key=_secret(), salt=self.cookie_name)

    def read(self, token: str | None) -> str | None:
        if not token:
            return None
        try:
            payload = signing.loads(token, key=_secret(), salt=self.cookie_name, max_age=self.max_age)
        except signing.BadSignature:
            return None
        if not isinstance(payload, dict):
            return None
        subject = payload.get(self.claim)
        return subject if isinstance(subject, str) and subject else None

    def subject_from_request(self, request: HttpRequest) -> str | None:
        return self.read(request.COOKIES.get(self.cookie_name))

    def set_cookie(self, response: HttpResponse, subject: str) -> None:
        response.set_cookie(
            self.cookie_name,
            self.issue(subject),
            max_age=int(self.max_age.total_seconds()),
            path="/",
            secure=bool(getattr(settings, "PAGES_COOKIE_SECURE", False)),
            httponly=True,
            samesite="Lax",
        )

    def clear_cookie(self, response: HttpResponse) -> None:
        response.set_cookie(
            self.cookie_name,
            "",
            max_age=0,
            path="/",
            secure=bool(getattr(settings, "PAGES_COOKIE_SECURE", False)),
            httponly=True,
            samesite="Lax",
        )


OPERATOR_SESSION = ScopedToken("pb_session", "user")
PROGRESS_ACCESS = ScopedToken("pb_progress", "slug")
META_ACCESS = ScopedToken("pb_meta", "slug")

ACCESS_TOKENS: dict[str, ScopedToken] = {
    "progress": PROGRESS_ACCESS,
    "meta": META_ACCESS,
}


def create_operator_session(response: HttpResponse, username: str) -> None:
    OPERATOR_SESSION.set_cookie(response, username)


def clear_operator_session(response: HttpResponse) -> None:
    OPERATOR_SESSION.clear_cookie(response)


def get_operator_session(request: HttpRequest) -> dict[str, str] | None:
    user = OPERATOR_SESSION.subject_from_request(request)
    if not user:
        return None
    return {"user": user}


def require_operator_session(view: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(view)
    def _wrapped(request: HttpRequest, *args: Any, **kwargs: Any) -> Any:
        session = get_operator_session(request)
        if session is None:
            return redirect_to_login(request.get_full_path(), settings.LOGIN_URL)
        request.operator = session  # type: ignore[attr-defined]
        return view(request, *args, **kwargs)

    return _wrapped


def grant_page_access(kind: str, response: HttpResponse, slug: str) -> None:
    ACCESS_TOKENS[kind].set_cookie(response, slug)


def has_page_access(kind: str, request: HttpRequest, slug: str) -> bool:
    token = ACCESS_TOKENS.get(kind)
    if token is None or not slug:
        return False
    return token.subject_from_request(request) == slug


def hash_password(plaintext: str) -> str:
    return hmac.new(_secret().encode("utf-8"), str(plaintext).encode("utf-8"), hashlib.sha256).hexdigest()


def check_password(plaintext: str, digest: str | None) -> bool:
    if not digest:
        return False
    return constant_time_compare(hash_password(plaintext), digest)
