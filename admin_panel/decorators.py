from functools import wraps

from django.contrib import messages
from django.shortcuts import redirect
from django.utils.translation import gettext as _

from .gateway import AdminSession


def admin_required(view_func):
    """
    Decorator to check that the session carries an admin token
    """
    @wraps(view_func)
    def wrapped_view(request, *args, **kwargs):
        if not AdminSession(request.session).is_authenticated:
            messages.error(request, _('Please sign in to continue.'))
            return redirect('admin_panel:login')
        return view_func(request, *args, **kwargs)
    return wrapped_view
