from django.conf import settings
from django.urls import reverse
from django.utils.translation import gettext_lazy as _

from .gateway import AdminSession

# (group label, [(tab key, label, url name)])
NAVIGATION = [
    (_('Users'), [
        ('users', _('Users'), 'admin_panel:users_list'),
    ]),
    (_('Products'), [
        ('categories', _('Categories'), 'admin_panel:categories_list'),
        ('products', _('Products'), 'admin_panel:products_list'),
    ]),
    (_('Content'), [
        ('videos', _('Videos'), 'admin_panel:videos_list'),
        ('faq', _('FAQ'), 'admin_panel:faq_list'),
        ('about', _('About'), 'admin_panel:about_list'),
        ('policy', _('Policies'), 'admin_panel:policy_list'),
        ('team', _('Team'), 'admin_panel:team_list'),
        ('services', _('Services'), 'admin_panel:services_list'),
        ('posts', _('Posts'), 'admin_panel:posts_list'),
        ('banners', _('Banners'), 'admin_panel:banners_list'),
        ('contacts', _('Contacts'), 'admin_panel:contacts_list'),
        ('orders', _('Orders'), 'admin_panel:orders_list'),
        ('addresses', _('Store addresses'), 'admin_panel:addresses_list'),
    ]),
    (_('Settings'), [
        ('store_info', _('Store information'), 'admin_panel:store_info'),
    ]),
]


def admin_panel_context(request):
    """
    Context processor to provide common admin panel data
    """
    return {
        'admin_session': AdminSession(request.session),
        'api_base_url': settings.API_BASE_URL,
        'tinymce_api_key': settings.TINYMCE_API_KEY,
    }


def admin_navigation(request):
    """
    Sidebar groups with the active tab derived from the resolved URL
    """
    match = getattr(request, 'resolver_match', None)
    active = (match.kwargs.get('resource') or match.url_name) if match else None

    groups = []
    for label, tabs in NAVIGATION:
        groups.append({
            'label': label,
            'tabs': [
                {'key': key, 'label': tab_label, 'url': reverse(url_name), 'active': key == active}
                for key, tab_label, url_name in tabs
            ],
        })
    return {'admin_navigation': groups, 'active_tab': active}
