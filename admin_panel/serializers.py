import re

from django.utils.text import slugify
from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

YOUTUBE_ID_RE = re.compile(r'^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*')


def camelize(name):
    """full_name -> fullName (the API's key style)"""
    first, *rest = name.split('_')
    return first + ''.join(part[:1].upper() + part[1:] for part in rest)


def generate_slug(text):
    """Lowercase ASCII slug; Vietnamese đ becomes d before accents are stripped"""
    text = (text or '').replace('đ', 'd').replace('Đ', 'D')
    return slugify(text)


def youtube_video_id(url):
    """The 11-character video id of a YouTube link, or None"""
    match = YOUTUBE_ID_RE.match(url or '')
    if match and len(match.group(2)) == 11:
        return match.group(2)
    return None


class CommaSeparatedListField(serializers.ListField):
    """Accepts 'a, b, c' from a text input as well as a real list"""
    child = serializers.CharField()

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = [data]
        items = []
        for chunk in data:
            items.extend(part.strip() for part in str(chunk).split(','))
        return super().to_internal_value([item for item in items if item])

    def to_representation(self, value):
        return ', '.join(value or [])


class ApiPayloadSerializer(serializers.Serializer):
    """
    Validates an edit form before anything is sent to the API.

    Form fields are snake_case; `to_payload` renames them to the API's
    camelCase keys. When `slug_source` is set and the slug is left blank, one
    is generated from that field.
    """
    slug_source = None

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if self.slug_source and 'slug' in self.fields and not attrs.get('slug'):
            attrs['slug'] = generate_slug(attrs.get(self.slug_source, ''))
        return attrs

    def to_payload(self):
        return {camelize(name): value for name, value in self.validated_data.items()}

    @classmethod
    def from_form(cls, post):
        """
        Plain input data from a submitted form (a QueryDict).

        Image inputs are resolved separately. Repeating rows are posted as
        `<field>__<child>` lists; rows left entirely blank are dropped.
        """
        data = {}
        for name, field in cls().fields.items():
            if field.style.get('input') in ('image', 'images'):
                continue
            if isinstance(field, serializers.ListSerializer):
                children = list(field.child.fields)
                columns = [post.getlist(f'{name}__{child}') for child in children]
                data[name] = [
                    dict(zip(children, row)) for row in zip(*columns)
                    if any(value.strip() for value in row)
                ]
            elif isinstance(field, serializers.BooleanField):
                data[name] = post.get(name) in ('on', 'true', '1')
            else:
                value = post.get(name, '')
                if value == '' and not isinstance(field, serializers.CharField):
                    # let the field default apply
                    continue
                data[name] = value
        return data

    @classmethod
    def initial_from_record(cls, record):
        """Form values for an API record (missing keys take the field default)"""
        values = {}
        for name, field in cls().fields.items():
            value = record.get(camelize(name)) if record else None
            if field.write_only or value is None:
                value = cls.empty_value(field)
            values[name] = value
        return values

    @staticmethod
    def empty_value(field):
        if field.default is not serializers.empty:
            return field.default() if callable(field.default) else field.default
        if isinstance(field, serializers.ListField):
            return []
        if isinstance(field, serializers.BooleanField):
            return False
        return ''

    @classmethod
    def describe_fields(cls, values, errors=None):
        """Everything the generic edit template needs to render each input"""
        errors = errors or {}
        described = []
        for name, field in cls().fields.items():
            value = values.get(name, cls.empty_value(field))
            if isinstance(field, CommaSeparatedListField) and isinstance(value, list):
                value = field.to_representation(value)
            described.append({
                'name': name,
                'label': field.label or name,
                'input': field.style.get('input', 'text'),
                'value': value,
                'required': field.required or (not getattr(field, 'allow_blank', True)),
                'choices': list(getattr(field, 'choices', {}).items()),
                'help_text': field.help_text or '',
                'errors': errors.get(name, []),
            })
        return described


def _text(label, required=False, **kwargs):
    if required:
        return serializers.CharField(label=label, **kwargs)
    return serializers.CharField(label=label, required=False, allow_blank=True, default='', **kwargs)


class UserSerializer(ApiPayloadSerializer):
    ROLE_CHOICES = [
        ('admin', _('Administrator')),
        ('user', _('User')),
    ]

    full_name = _text(_('Full name'), required=True, max_length=255)
    email = serializers.EmailField(label=_('Email'))
    phone_number = _text(_('Phone number'))
    password = _text(_('Password'), write_only=True, style={'input': 'password'},
                     help_text=_('Leave blank to keep the current password'))
    role = serializers.ChoiceField(label=_('Role'), choices=ROLE_CHOICES, default='admin',
                                   style={'input': 'select'})
    avatar_url = _text(_('Avatar'), style={'input': 'image'})

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if self.context.get('is_new'):
            if not attrs.get('password'):
                raise serializers.ValidationError({'password': [_('Please enter a password for the new user')]})
        elif not attrs.get('password'):
            attrs.pop('password', None)
        return attrs


class CategorySerializer(ApiPayloadSerializer):
    TYPE_CHOICES = [
        ('product', _('Product')),
        ('post', _('Post')),
        ('service', _('Service')),
    ]
    slug_source = 'name'

    type = serializers.ChoiceField(label=_('Type'), choices=TYPE_CHOICES, style={'input': 'select'})
    name = _text(_('Category name'), required=True, max_length=255)
    slug = _text(_('Slug'), help_text=_('Generated from the name when left blank'))
    description = _text(_('Description'), style={'input': 'textarea'})
    sort_order = serializers.IntegerField(label=_('Sort order'), required=False, default=0)
    level = serializers.IntegerField(label=_('Level'), required=False, default=0, min_value=0)
    is_active = serializers.BooleanField(label=_('Active'), required=False, default=True,
                                         style={'input': 'checkbox'})


class ProductSerializer(ApiPayloadSerializer):
    slug_source = 'name'

    name = _text(_('Product name'), required=True, max_length=255)
    slug = _text(_('Slug'), help_text=_('Generated from the name when left blank'))
    category_id = serializers.CharField(label=_('Category'), style={'input': 'category'})
    price = serializers.FloatField(label=_('Price'), required=False, default=0)
    sale_price = serializers.FloatField(label=_('Sale price'), required=False, default=0, min_value=0)
    description = _text(_('Short description'), style={'input': 'textarea'})
    long_description = _text(_('Detailed description'), style={'input': 'rich_text'})
    image_url = _text(_('Main image'), style={'input': 'image'})
    additional_images = serializers.ListField(label=_('Additional images'), child=serializers.CharField(),
                                              required=False, default=list, style={'input': 'images'})

    def validate_price(self, value):
        if value is None or value <= 0:
            raise serializers.ValidationError(_('Price must be a positive number'))
        return value


class PostSerializer(ApiPayloadSerializer):
    slug_source = 'title'

    title = _text(_('Title'), required=True, max_length=255)
    slug = _text(_('Slug'), help_text=_('Generated from the title when left blank'))
    summary = _text(_('Summary'), style={'input': 'textarea'})
    content = _text(_('Content'), required=True, style={'input': 'rich_text'})
    image_url = _text(_('Cover image'), style={'input': 'image'})
    author_name = _text(_('Author'))
    tags = CommaSeparatedListField(label=_('Tags'), required=False, default=list,
                                   help_text=_('Separate tags with commas'))
    is_published = serializers.BooleanField(label=_('Published'), required=False, default=False,
                                            style={'input': 'checkbox'})


class BannerSerializer(ApiPayloadSerializer):
    image_url = serializers.CharField(label=_('Banner image'), style={'input': 'image'},
                                      error_messages={'blank': _('Please upload a banner image'),
                                                      'required': _('Please upload a banner image')})
    short_title = _text(_('Short title'))
    long_title = _text(_('Long title'))
    link = _text(_('Link'))
    order = serializers.IntegerField(label=_('Order'), required=False, default=0)


class FaqSerializer(ApiPayloadSerializer):
    slug_source = 'tieu_de'

    tieu_de = _text(_('Question'), required=True)
    noi_dung = _text(_('Answer'), required=True, style={'input': 'rich_text'})
    slug = _text(_('Slug'), help_text=_('Generated from the question when left blank'))


class PolicySerializer(ApiPayloadSerializer):
    slug_source = 'tieu_de'

    tieu_de = _text(_('Title'), required=True)
    noi_dung = _text(_('Content'), required=True, style={'input': 'rich_text'})
    slug = _text(_('Slug'), help_text=_('Generated from the title when left blank'))


class AboutSerializer(ApiPayloadSerializer):
    title = _text(_('Title'), required=True)
    content = _text(_('Content'), required=True, style={'input': 'rich_text'})
    mission = _text(_('Mission'), style={'input': 'textarea'})
    vision = _text(_('Vision'), style={'input': 'textarea'})
    history = _text(_('History'), style={'input': 'rich_text'})


class ServiceSerializer(ApiPayloadSerializer):
    slug_source = 'name'

    name = _text(_('Service name'), required=True, max_length=255)
    slug = _text(_('Slug'), help_text=_('Generated from the name when left blank'))
    category_id = serializers.CharField(label=_('Category'), style={'input': 'category'})
    description = _text(_('Description'), required=True, style={'input': 'textarea'})
    longdescription = _text(_('Detailed description'), style={'input': 'rich_text'})
    image = serializers.CharField(label=_('Image'), style={'input': 'image'})
    price = serializers.FloatField(label=_('Price'), required=False, default=0, min_value=0)
    sale_price = serializers.FloatField(label=_('Sale price'), required=False, default=0, min_value=0)


class VideoSerializer(ApiPayloadSerializer):
    tieu_de = _text(_('Title'), required=True)
    link_ytb = _text(_('YouTube link'), required=True)

    def validate_link_ytb(self, value):
        if youtube_video_id(value) is None:
            raise serializers.ValidationError(_('Invalid YouTube link'))
        return value


class StoreAddressLineSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, default='')
    phone_number = serializers.CharField(required=False, allow_blank=True, default='')
    address = serializers.CharField(required=False, allow_blank=True, default='')


class StoreInfoSerializer(ApiPayloadSerializer):
    logo = serializers.CharField(label=_('Logo'), style={'input': 'image'})
    favicon = serializers.CharField(label=_('Favicon'), style={'input': 'image'})
    hotline = _text(_('Hotline'), required=True)
    zalo = _text(_('Zalo'))
    facebook = _text(_('Facebook'))
    youtube = _text(_('YouTube'))
    google_map = _text(_('Google Map'), style={'input': 'textarea'})
    working_hours = _text(_('Working hours'))
    addresses = StoreAddressLineSerializer(many=True, required=False, default=list, style={'input': 'rows'})

    def to_payload(self):
        payload = super().to_payload()
        payload['addresses'] = [
            {camelize(key): value for key, value in line.items()}
            for line in payload.get('addresses', [])
        ]
        return payload

    @classmethod
    def initial_from_record(cls, record):
        values = super().initial_from_record(record)
        values['addresses'] = [
            {
                'name': line.get('name', ''),
                'phone_number': line.get('phoneNumber', ''),
                'address': line.get('address', ''),
            }
            for line in (record or {}).get('addresses') or []
        ]
        return values


class StoreAddressSerializer(ApiPayloadSerializer):
    full_name = _text(_('Store name'), required=True)
    phone_number = _text(_('Phone number'), required=True)
    street = _text(_('Street'), required=True)
    ward = _text(_('Ward'))
    district = _text(_('District'))
    city = _text(_('City'), required=True)
    zip_code = _text(_('Zip code'))
    is_default = serializers.BooleanField(label=_('Default'), required=False, default=False,
                                          style={'input': 'checkbox'})
