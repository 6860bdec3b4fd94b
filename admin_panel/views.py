import logging
from functools import partial

from django.conf import settings
from django.contrib import messages
from django.http import Http404
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.utils.translation import gettext as _
from django.views.decorators.http import require_http_methods, require_POST

from rest_framework import status
from rest_framework.decorators import api_view, parser_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response

from .controllers import (
    ContactController, EditController, ListController, ServerListController,
    StoreInfoController,
)
from .datatable import TableState
from .decorators import admin_required
from .gateway import AdminSession, ApiError, GatewayError, RequestAborted, gateway_for
from .images import InvalidImage, resolve_image_inputs, validate_image_file
from .resources import CONTACTS, STORE_INFO, get_resource

logger = logging.getLogger(__name__)


def _notify(request):
    return partial(messages.add_message, request)


def _get_resource(name, editable=False, deletable=False):
    try:
        resource = get_resource(name)
    except KeyError:
        raise Http404(f"Unknown resource: {name}")
    if editable and not resource.editable:
        raise Http404(f"{name} cannot be edited")
    if deletable and not resource.deletable:
        raise Http404(f"{name} cannot be deleted")
    return resource


def _safe_next(request, fallback):
    next_url = request.POST.get('next') or request.GET.get('next') or ''
    if next_url and url_has_allowed_host_and_scheme(next_url, allowed_hosts={request.get_host()}):
        return next_url
    return fallback


# Authentication views
@require_http_methods(['GET', 'POST'])
def admin_login(request):
    session = AdminSession(request.session)
    if session.is_authenticated:
        return redirect('admin_panel:dashboard')

    if request.method == 'POST':
        email = request.POST.get('email', '').strip()
        password = request.POST.get('password', '')
        if not email or not password:
            messages.error(request, _('Please enter your email and password.'))
        else:
            token = None
            try:
                response = gateway_for(request).post(
                    settings.API_LOGIN_PATH, json={'email': email, 'password': password}
                )
                if not response.ok:
                    raise ApiError.from_response(response, _('Invalid email or password.'))
                data = response.json()
                if isinstance(data, dict):
                    token = data.get('token') or data.get('accessToken')
                if not token:
                    raise ApiError(response.status_code, _('The server did not return a login token.'))
            except RequestAborted:
                messages.error(request, _('The server took too long to respond. Please try again.'))
            except GatewayError:
                messages.error(request, _('Could not connect to the server.'))
            except ApiError as e:
                logger.warning(f"Admin login failed for {email}: {e.message}")
                messages.error(request, e.message)
            except ValueError:
                logger.warning(f"Admin login for {email}: reply was not JSON")
                messages.error(request, _('Invalid email or password.'))

            if token:
                session.login(token)
                logger.info(f"Admin logged in: {email}")
                return redirect(_safe_next(request, reverse('admin_panel:dashboard')))

    return render(request, 'admin_panel/login.html', {
        'next': request.POST.get('next') or request.GET.get('next', ''),
    })


def admin_logout(request):
    AdminSession(request.session).logout()
    messages.success(request, _('You have been signed out.'))
    return redirect('admin_panel:login')


@admin_required
def admin_dashboard(request):
    cards = [
        {'title': _('Users'), 'description': _('Manage admin and customer accounts'), 'url': reverse('admin_panel:users_list')},
        {'title': _('Products'), 'description': _('Manage the product catalogue'), 'url': reverse('admin_panel:products_list')},
        {'title': _('Posts'), 'description': _('Write and publish articles'), 'url': reverse('admin_panel:posts_list')},
        {'title': _('Videos'), 'description': _('Manage YouTube videos'), 'url': reverse('admin_panel:videos_list')},
    ]
    return render(request, 'admin_panel/dashboard.html', {'cards': cards})


# Generic resource screens
def _list_controller(request, resource):
    gateway = gateway_for(request)
    if resource.server_driven:
        state = TableState.from_query(request.GET, resource.search_column, resource.default_sorting)
        return ServerListController(gateway, resource, _notify(request), state=state)
    if resource is CONTACTS:
        return ContactController(gateway, resource, _notify(request))
    return ListController(gateway, resource, _notify(request))


def _render_list(request, resource, controller):
    controller.fetch()
    table = controller.build_table(None if resource.server_driven else request.GET)
    return render(request, 'admin_panel/resource_list.html', {
        'resource': resource,
        'table': table,
        'edit_url_name': f'admin_panel:{resource.name}_edit' if resource.editable else None,
        'delete_url_name': f'admin_panel:{resource.name}_delete' if resource.deletable else None,
        'create_url': reverse(f'admin_panel:{resource.name}_edit', args=['new']) if resource.editable else None,
        'current_url': request.get_full_path(),
    })


@admin_required
def resource_list(request, resource):
    resource = _get_resource(resource)
    return _render_list(request, resource, _list_controller(request, resource))


def _edit_context(resource, controller):
    fields = resource.serializer_class.describe_fields(controller.values, controller.errors)
    category_choices = None
    for field in fields:
        if field['input'] == 'category':
            if category_choices is None:
                category_choices = controller.options()
            field['choices'] = category_choices
    return {
        'resource': resource,
        'controller': controller,
        'fields': fields,
        'non_field_errors': controller.errors.get('non_field_errors', []),
        'list_url': reverse(f'admin_panel:{resource.name}_list') if resource.name != STORE_INFO.name else None,
    }


def _submitted_data(request, resource, controller):
    """
    Form data with image inputs resolved (uploading new files first).

    Returns None when an image failed to validate or upload; the form
    values and errors are then set on the controller.
    """
    data = resource.serializer_class.from_form(request.POST)
    images, image_errors = resolve_image_inputs(
        resource.image_fields, request.POST, request.FILES, controller.gateway.upload_images
    )
    data.update(images)
    if image_errors:
        controller.values = data
        controller.errors = image_errors
        messages.error(request, _('Please correct the highlighted fields.'))
        return None
    return data


@admin_required
@require_http_methods(['GET', 'POST'])
def resource_edit(request, resource, record_id):
    resource = _get_resource(resource, editable=True)
    controller = EditController(gateway_for(request), resource, _notify(request), record_id=record_id)
    list_url = reverse(f'admin_panel:{resource.name}_list')

    if request.method == 'POST':
        data = _submitted_data(request, resource, controller)
        if data is not None and controller.save(data):
            return redirect(list_url)
    elif not controller.load():
        return redirect(list_url)

    return render(request, 'admin_panel/resource_edit.html', _edit_context(resource, controller))


@admin_required
@require_POST
def resource_delete(request, resource, record_id):
    resource = _get_resource(resource, deletable=True)
    controller = ListController(gateway_for(request), resource, _notify(request))
    controller.delete(record_id)
    return redirect(_safe_next(request, reverse(f'admin_panel:{resource.name}_list')))


# Contacts
def _contact_action(request, contact_id, action):
    controller = ContactController(gateway_for(request), CONTACTS, _notify(request))
    getattr(controller, action)(contact_id)
    return redirect(_safe_next(request, reverse('admin_panel:contacts_list')))


@admin_required
@require_POST
def contact_mark_read(request, record_id):
    return _contact_action(request, record_id, 'mark_read')


@admin_required
@require_POST
def contact_mark_replied(request, record_id):
    return _contact_action(request, record_id, 'mark_replied')



# Store information
@admin_required
@require_http_methods(['GET', 'POST'])
def store_info(request):
    controller = StoreInfoController(gateway_for(request), STORE_INFO, _notify(request))

    if request.method == 'POST':
        controller.exists = request.POST.get('exists') == '1'
        data = _submitted_data(request, STORE_INFO, controller)
        if data is not None and controller.save(data):
            return redirect('admin_panel:store_info')
    else:
        controller.load()

    fields = [field for field in _edit_context(STORE_INFO, controller)['fields'] if field['input'] != 'rows']
    addresses = controller.values.get('addresses') or []
    address_errors = controller.errors.get('addresses') or []
    return render(request, 'admin_panel/store_info.html', {
        'resource': STORE_INFO,
        'controller': controller,
        'fields': fields,
        'addresses': addresses,
        'address_errors': address_errors,
        'non_field_errors': controller.errors.get('non_field_errors', []),
    })


# Rich text editor image upload
@api_view(['POST'])
@parser_classes([MultiPartParser, FormParser])
def upload_images_api(request):
    files = request.FILES.getlist('images') or request.FILES.getlist('file')
    if not files:
        return Response({'error': _('No image was uploaded.')}, status=status.HTTP_400_BAD_REQUEST)

    try:
        for upload in files:
            validate_image_file(upload)
    except InvalidImage as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    try:
        urls = gateway_for(request).upload_images(files)
    except ApiError as e:
        logger.warning(f"Editor image upload rejected: {e.message}")
        return Response({'error': e.message}, status=status.HTTP_502_BAD_GATEWAY)
    except GatewayError as e:
        logger.error(f"Editor image upload failed: {str(e)}")
        return Response({'error': _('Could not connect to the server.')}, status=status.HTTP_502_BAD_GATEWAY)

    return Response({'imageUrls': urls, 'location': urls[0] if urls else ''})
