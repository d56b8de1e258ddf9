from .base import *  # noqa: F403
from .base import BASE_DIR
from .base import _env
from .base import _env_bool
from .base import _env_list


# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = False

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = _env("SECRET_KEY", "")
if not SECRET_KEY:
    raise RuntimeError("SECRET_KEY is required for production.")

PAGES_SESSION_SECRET = _env("SESSION_SECRET", "")
if not PAGES_SESSION_SECRET:
    raise RuntimeError("SESSION_SECRET is required for production.")

# Add your site's domain name(s) here.
ALLOWED_HOSTS = _env_list("ALLOWED_HOSTS", "localhost")
CSRF_TRUSTED_ORIGINS = _env_list("CSRF_TRUSTED_ORIGINS", "")

SECURE_SSL_REDIRECT = _env_bool("SECURE_SSL_REDIRECT", "true")
CSRF_COOKIE_SECURE = _env_bool("CSRF_COOKIE_SECURE", "true")
PAGES_COOKIE_SECURE = _env_bool("COOKIE_SECURE", "true")
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
USE_X_FORWARDED_HOST = _env_bool("USE_X_FORWARDED_HOST", "true")

SECURE_HSTS_SECONDS = int(_env("SECURE_HSTS_SECONDS", "31536000") or "31536000")
SECURE_HSTS_INCLUDE_SUBDOMAINS = _env_bool("SECURE_HSTS_INCLUDE_SUBDOMAINS", "true")
SECURE_HSTS_PRELOAD = _env_bool("SECURE_HSTS_PRELOAD", "true")

SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = _env("SECURE_REFERRER_POLICY", "same-origin")

# Rate limit counters must be shared between gunicorn workers.
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.filebased.FileBasedCache",
        "LOCATION": BASE_DIR / "cache",
        "KEY_PREFIX": "pagebuilder",
        "TIMEOUT": 14400,  # in seconds
    }
}
