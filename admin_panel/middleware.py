import logging

from django.conf import settings
from django.shortcuts import redirect
from django.urls import reverse
from django.utils.http import urlencode

from .gateway import AdminSession

logger = logging.getLogger(__name__)


class AdminPanelMiddleware:
    """
    Middleware to restrict the admin panel to signed-in admins.
    Requests under /dashboard/ without a token are sent to the login page,
    except for the paths listed in ADMIN_PUBLIC_PATHS.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.public_paths = tuple(getattr(settings, 'ADMIN_PUBLIC_PATHS', ()))

    def __call__(self, request):
        path = request.path
        if path.startswith('/dashboard/') and not path.startswith(self.public_paths):
            if not AdminSession(request.session).is_authenticated:
                logger.debug(f"Redirecting anonymous request for {path} to login")
                return redirect(f"{reverse(settings.LOGIN_URL)}?{urlencode({'next': request.get_full_path()})}")

        response = self.get_response(request)
        return response
