from __future__ import annotations

from django.conf import settings
from django.contrib.auth.views import redirect_to_login
from django.http import HttpResponseRedirect

from pages.access import get_operator_session


DASHBOARD_PREFIX = "/api/dashboard"


class OperatorSessionMiddleware:
    """
    Attach the operator session to ``request.operator`` and keep signed-out
    visitors off the dashboard routes.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        session = get_operator_session(request)
        request.operator = session
        path = getattr(request, "path_info", "") or ""
        if session is None and (path == DASHBOARD_PREFIX or path.startswith(f"{DASHBOARD_PREFIX}/")):
            return redirect_to_login(request.get_full_path(), settings.LOGIN_URL)
        if session is not None and request.method == "GET" and path == settings.LOGIN_URL:
            return HttpResponseRedirect(settings.LOGIN_REDIRECT_URL)
        return self.get_response(request)
