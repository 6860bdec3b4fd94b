"""
Resource descriptors for the list/edit screens.

A Resource names the API endpoints of one record type, the columns of its
list table and the serializer that validates its edit form.
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple, Type

from django.utils.translation import gettext_lazy as _

from . import serializers as payloads
from .datatable import Column, SortingState
from .images import ImageField


@dataclass(frozen=True)
class Resource:
    name: str
    title: str
    singular: str
    list_path: str
    item_path: str
    columns: Tuple[Column, ...]
    search_column: Optional[str] = None
    search_placeholder: str = ''
    serializer_class: Optional[Type[payloads.ApiPayloadSerializer]] = None
    list_key: Optional[str] = None
    delete_path: Optional[str] = None
    category_type: Optional[str] = None
    editable: bool = True
    deletable: bool = True
    server_driven: bool = False
    default_sorting: SortingState = field(default_factory=SortingState)

    def item_url(self, record_id) -> str:
        return self.item_path.format(id=record_id)

    def delete_url(self, record_id) -> str:
        return (self.delete_path or self.item_path).format(id=record_id)

    @property
    def image_fields(self) -> Tuple[ImageField, ...]:
        if self.serializer_class is None:
            return ()
        fields = []
        for name, serializer_field in self.serializer_class().fields.items():
            kind = serializer_field.style.get('input')
            if kind in ('image', 'images'):
                fields.append(ImageField(
                    name=name,
                    label=str(serializer_field.label or name),
                    multiple=kind == 'images',
                    required=serializer_field.required,
                ))
        return tuple(fields)


ACTIONS = Column('actions', '', kind='actions', sortable=False)


def _customer_name(order):
    return order.get('guestFullName') or (order.get('user') or {}).get('fullName') or 'N/A'


def _order_note(order):
    return order.get('note') or (order.get('user') or {}).get('note') or 'N/A'


def _order_phone(order):
    return order.get('guestPhoneNumber') or order.get('shippingPhone') or 'N/A'


def _order_items(order):
    return [
        f"{item.get('productName', '')} (x{item.get('quantity', 0)})"
        for item in order.get('items') or []
    ]


RESOURCES = {}


def register(resource: Resource) -> Resource:
    RESOURCES[resource.name] = resource
    return resource


def get_resource(name: str) -> Resource:
    return RESOURCES[name]


USERS = register(Resource(
    name='users',
    title=_('Users'),
    singular=_('user'),
    list_path='api/users',
    item_path='api/users/{id}',
    columns=(
        Column('fullName', _('Full name')),
        Column('email', _('Email')),
        Column('phoneNumber', _('Phone number')),
        Column('role', _('Role')),
        ACTIONS,
    ),
    search_column='fullName',
    search_placeholder=_('Search by name...'),
    serializer_class=payloads.UserSerializer,
))

CATEGORIES = register(Resource(
    name='categories',
    title=_('Categories'),
    singular=_('category'),
    list_path='api/categories',
    item_path='api/categories/{id}',
    columns=(
        Column('name', _('Category name')),
        Column('type', _('Type')),
        Column('sortOrder', _('Order')),
        Column('isActive', _('Status'), kind='boolean'),
        ACTIONS,
    ),
    search_column='name',
    search_placeholder=_('Search by category name...'),
    serializer_class=payloads.CategorySerializer,
))

PRODUCTS = register(Resource(
    name='products',
    title=_('Products'),
    singular=_('product'),
    list_path='api/products',
    item_path='api/products/{id}',
    list_key='products',
    columns=(
        Column('imageUrl', _('Image'), kind='image', sortable=False),
        Column('name', _('Product name')),
        Column('price', _('Price'), kind='currency'),
        ACTIONS,
    ),
    search_column='name',
    search_placeholder=_('Search by product name...'),
    serializer_class=payloads.ProductSerializer,
    category_type='product',
))

POSTS = register(Resource(
    name='posts',
    title=_('Posts'),
    singular=_('post'),
    list_path='api/posts',
    item_path='api/posts/{id}',
    delete_path='api/post/{id}',
    columns=(
        Column('imageUrl', _('Image'), kind='image', sortable=False),
        Column('title', _('Title')),
        Column('slug', _('Slug')),
        Column('isPublished', _('Status'), kind='boolean'),
        ACTIONS,
    ),
    search_column='title',
    search_placeholder=_('Search by title...'),
    serializer_class=payloads.PostSerializer,
))

BANNERS = register(Resource(
    name='banners',
    title=_('Banners'),
    singular=_('banner'),
    list_path='api/banners',
    item_path='api/banners/{id}',
    columns=(
        Column('imageUrl', _('Image'), kind='image', sortable=False,
               accessor=lambda banner: banner.get('imageUrl') or banner.get('image')),
        Column('link', _('Link'), kind='link'),
        Column('order', _('Order'),
               accessor=lambda banner: banner.get('order', banner.get('sortOrder'))),
        ACTIONS,
    ),
    search_column='link',
    search_placeholder=_('Search by link...'),
    serializer_class=payloads.BannerSerializer,
))

FAQ = register(Resource(
    name='faq',
    title=_('FAQ'),
    singular=_('question'),
    list_path='api/faq',
    item_path='api/faq/{id}',
    columns=(
        Column('tieuDe', _('Question')),
        Column('noiDung', _('Answer'), kind='truncate'),
        Column('slug', _('Slug')),
        ACTIONS,
    ),
    search_column='tieuDe',
    search_placeholder=_('Search by question...'),
    serializer_class=payloads.FaqSerializer,
))

POLICY = register(Resource(
    name='policy',
    title=_('Policies'),
    singular=_('policy'),
    list_path='api/policy',
    item_path='api/policy/{id}',
    columns=(
        Column('tieuDe', _('Title')),
        Column('noiDung', _('Content'), kind='truncate'),
        Column('slug', _('Slug')),
        ACTIONS,
    ),
    search_column='tieuDe',
    search_placeholder=_('Search by title...'),
    serializer_class=payloads.PolicySerializer,
))

ABOUT = register(Resource(
    name='about',
    title=_('About'),
    singular=_('about page'),
    list_path='api/about',
    item_path='api/about/{id}',
    columns=(
        Column('title', _('Title')),
        Column('content', _('Content'), kind='truncate'),
        ACTIONS,
    ),
    search_column='title',
    search_placeholder=_('Search by title...'),
    serializer_class=payloads.AboutSerializer,
))

SERVICES = register(Resource(
    name='services',
    title=_('Services'),
    singular=_('service'),
    list_path='api/services',
    item_path='api/services/{id}',
    columns=(
        Column('image', _('Image'), kind='image', sortable=False),
        Column('name', _('Service name')),
        Column('slug', _('Slug')),
        Column('price', _('Price'), kind='currency'),
        Column('salePrice', _('Sale price'), kind='currency'),
        ACTIONS,
    ),
    search_column='name',
    search_placeholder=_('Search by service name...'),
    serializer_class=payloads.ServiceSerializer,
    category_type='service',
))

VIDEOS = register(Resource(
    name='videos',
    title=_('Videos'),
    singular=_('video'),
    list_path='api/videos',
    item_path='api/videos/{id}',
    list_key='videos',
    columns=(
        Column('linkYtb', _('Thumbnail'), kind='youtube', sortable=False),
        Column('tieuDe', _('Title')),
        Column('link', _('Link'), kind='link', sortable=False, accessor=lambda video: video.get('linkYtb')),
        Column('createdAt', _('Created'), kind='datetime'),
        ACTIONS,
    ),
    search_column='tieuDe',
    search_placeholder=_('Search by title...'),
    serializer_class=payloads.VideoSerializer,
    server_driven=True,
    default_sorting=SortingState('createdAt', desc=True),
))

TEAM = register(Resource(
    name='team',
    title=_('Team'),
    singular=_('team member'),
    list_path='api/team',
    item_path='api/team/{id}',
    columns=(
        Column('image', _('Image'), kind='image', sortable=False),
        Column('name', _('Name')),
        Column('description', _('Description'), kind='truncate'),
        ACTIONS,
    ),
    search_column='name',
    search_placeholder=_('Search by name...'),
    editable=False,
))

ADDRESSES = register(Resource(
    name='addresses',
    title=_('Store addresses'),
    singular=_('store'),
    list_path='api/stores',
    item_path='api/stores/{id}',
    columns=(
        Column('fullName', _('Store name')),
        Column('phoneNumber', _('Phone number')),
        Column('street', _('Street')),
        Column('ward', _('Ward')),
        Column('district', _('District')),
        Column('city', _('City')),
        Column('zipCode', _('Zip code')),
        Column('isDefault', _('Default'), kind='boolean'),
        ACTIONS,
    ),
    search_column='fullName',
    search_placeholder=_('Search by store name...'),
    serializer_class=payloads.StoreAddressSerializer,
))

CONTACTS = register(Resource(
    name='contacts',
    title=_('Contacts'),
    singular=_('contact'),
    list_path='api/contact',
    item_path='api/contact/{id}',
    delete_path='api/contacts/{id}',
    columns=(
        Column('name', _('Name')),
        Column('email', _('Email')),
        Column('phoneNumber', _('Phone')),
        Column('subject', _('Subject')),
        Column('message', _('Message'), kind='truncate'),
        Column('isRead', _('Read'), kind='boolean'),
        Column('isReplied', _('Replied'), kind='boolean'),
        Column('createdAt', _('Sent'), kind='datetime'),
        Column('actions', '', kind='contact_actions', sortable=False),
    ),
    search_column='name',
    search_placeholder=_('Search by name...'),
    editable=False,
))

ORDERS = register(Resource(
    name='orders',
    title=_('Orders'),
    singular=_('order'),
    list_path='api/orders',
    item_path='api/orders/{id}',
    columns=(
        Column('guestFullName', _('Customer'), accessor=_customer_name),
        Column('note', _('Note'), accessor=_order_note),
        Column('items', _('Products'), kind='list', sortable=False, accessor=_order_items),
        Column('total', _('Total'), kind='currency'),
        Column('guestPhoneNumber', _('Phone'), accessor=_order_phone),
        Column('shippingAddress', _('Shipping address'),
               accessor=lambda order: order.get('shippingAddress') or 'N/A'),
        Column('createdAt', _('Created'), kind='datetime'),
    ),
    search_column='guestFullName',
    search_placeholder=_('Search by customer name...'),
    editable=False,
    deletable=False,
))

STORE_INFO = Resource(
    name='store_info',
    title=_('Store information'),
    singular=_('store information'),
    list_path='api/store-info',
    item_path='api/store-info',
    columns=(),
    serializer_class=payloads.StoreInfoSerializer,
    deletable=False,
)
