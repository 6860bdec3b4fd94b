from django.urls import path

from . import views
from .resources import RESOURCES

app_name = 'admin_panel'

urlpatterns = [
    # Authentication
    path('login/', views.admin_login, name='login'),
    path('logout/', views.admin_logout, name='logout'),

    # Dashboard
    path('', views.admin_dashboard, name='dashboard'),

    # Contacts
    path('contacts/<str:record_id>/read/', views.contact_mark_read, name='contact_mark_read'),
    path('contacts/<str:record_id>/replied/', views.contact_mark_replied, name='contact_mark_replied'),

    # Store information
    path('store-info/', views.store_info, name='store_info'),

    # Rich text editor uploads
    path('api/upload-images/', views.upload_images_api, name='upload_images_api'),
]

# List, edit and delete screens for every registered resource
for name, resource in RESOURCES.items():
    extra = {'resource': name}
    urlpatterns.append(path(f'{name}/', views.resource_list, extra, name=f'{name}_list'))
    if resource.editable:
        urlpatterns.append(path(f'{name}/<str:record_id>/', views.resource_edit, extra, name=f'{name}_edit'))
    if resource.deletable:
        urlpatterns.append(path(f'{name}/<str:record_id>/delete/', views.resource_delete, extra, name=f'{name}_delete'))
