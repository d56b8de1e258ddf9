from .base import *  # noqa: F403
from .base import _env
from .base import _env_list

import secrets


# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = True

# SECURITY WARNING: keep the secret key used in production secret!
_secret_key = _env("SECRET_KEY", "")
if not _secret_key:
    _secret_key = secrets.token_urlsafe(64)
SECRET_KEY = _secret_key

# A generated session secret invalidates sessions and page passwords on restart.
_session_secret = _env("SESSION_SECRET", "")
if not _session_secret:
    _session_secret = secrets.token_urlsafe(48)
PAGES_SESSION_SECRET = _session_secret

ALLOWED_HOSTS = _env_list("ALLOWED_HOSTS", "localhost,127.0.0.1")
CSRF_TRUSTED_ORIGINS = _env_list("CSRF_TRUSTED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")

if not PAGES_PUBLIC_BASE_URL:  # noqa: F405
    PAGES_PUBLIC_BASE_URL = "http://localhost:8000"

try:
    from .local import *  # noqa
except ImportError:
    pass
