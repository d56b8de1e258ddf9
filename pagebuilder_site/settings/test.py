from .base import *  # noqa: F403
from .base import BASE_DIR


DEBUG = False

SECRET_KEY = "test-secret-key"
PAGES_SESSION_SECRET = "test-session-secret"

ALLOWED_HOSTS = ["testserver", "localhost"]

PAGES_PUBLIC_BASE_URL = "http://testserver"

PAGES_UPLOAD_DIR = BASE_DIR / "public" / "test-uploads"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "pagebuilder-tests",
    }
}
