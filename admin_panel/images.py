"""
Image field values for the edit forms.

A form image field is either a single URL (an upload replaces it) or an
ordered list of URLs (uploads are appended). Both variants are handled
through the same three operations so the views never branch on the shape.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from django.conf import settings
from django.utils.translation import gettext as _

from .gateway import ApiError, GatewayError

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE = 'admin_panel/img/placeholder.svg'


class InvalidImage(Exception):
    """An uploaded file failed the size or type check"""
    pass


@dataclass
class SingleImage:
    url: str = ''

    def with_uploaded(self, urls: List[str]) -> 'SingleImage':
        return SingleImage(urls[0] if urls else self.url)

    def without(self, index: int = 0) -> 'SingleImage':
        return SingleImage('')

    @property
    def value(self) -> str:
        return self.url

    @property
    def urls(self) -> List[str]:
        return [self.url] if self.url else []


@dataclass
class MultipleImages:
    items: List[str] = field(default_factory=list)

    def with_uploaded(self, urls: List[str]) -> 'MultipleImages':
        return MultipleImages(self.items + list(urls))

    def without(self, index: int) -> 'MultipleImages':
        return MultipleImages([url for i, url in enumerate(self.items) if i != index])

    @property
    def value(self) -> List[str]:
        return list(self.items)

    @property
    def urls(self) -> List[str]:
        return [url for url in self.items if url]


@dataclass(frozen=True)
class ImageField:
    """An image attribute of a resource (`multiple` selects the variant)"""
    name: str
    label: str
    multiple: bool = False
    required: bool = False

    def empty(self):
        return MultipleImages() if self.multiple else SingleImage()

    def from_value(self, value):
        if self.multiple:
            if isinstance(value, str):
                value = [value] if value else []
            return MultipleImages([url for url in (value or []) if url])
        if isinstance(value, (list, tuple)):
            value = value[0] if value else ''
        return SingleImage(value or '')


def validate_image_file(upload):
    """Reject files over IMAGE_UPLOAD_MAX_SIZE or without an image/* content type"""
    max_size = settings.IMAGE_UPLOAD_MAX_SIZE
    if upload.size > max_size:
        raise InvalidImage(_('File "%(name)s" is too large (max %(size)d MB)') % {
            'name': upload.name,
            'size': max_size // (1024 * 1024),
        })
    content_type = getattr(upload, 'content_type', '') or ''
    if not content_type.startswith('image/'):
        raise InvalidImage(_('File "%(name)s" is not an image') % {'name': upload.name})


def full_image_url(url: str) -> str:
    """Resolve API-relative image paths; empty values fall back to the placeholder"""
    if not url:
        return settings.STATIC_URL + PLACEHOLDER_IMAGE
    if url.startswith('http'):
        return url
    if url.startswith('/public/'):
        return f"{settings.API_BASE_URL}{url}"
    return url


def _indexes(values) -> List[int]:
    indexes = set()
    for value in values:
        try:
            indexes.add(int(value))
        except (TypeError, ValueError):
            continue
    return sorted(indexes, reverse=True)


def resolve_image_inputs(image_fields, post, files, upload):
    """
    Current value of every image field after a form submit.

    Each field posts its kept URL(s) under its own name, `<name>__clear` or
    `<name>__remove` (indexes) to drop images, and `<name>__upload` files.
    `upload` sends validated files and returns their URLs.

    Returns (values, errors); a field whose upload failed keeps its
    previous images.
    """
    values, errors = {}, {}
    for image_field in image_fields:
        name = image_field.name
        if image_field.multiple:
            current = image_field.from_value(post.getlist(name))
        else:
            current = image_field.from_value(post.get(name, ''))

        if post.get(f'{name}__clear'):
            current = current.without(0)
        for index in _indexes(post.getlist(f'{name}__remove')):
            current = current.without(index)

        uploads = [upload_file for upload_file in files.getlist(f'{name}__upload') if upload_file]
        if not image_field.multiple:
            uploads = uploads[:1]
        if uploads:
            try:
                for upload_file in uploads:
                    validate_image_file(upload_file)
                current = current.with_uploaded(upload(uploads))
            except InvalidImage as e:
                errors[name] = [str(e)]
            except (ApiError, GatewayError) as e:
                logger.warning(f"Image upload for {name} failed: {str(e)}")
                errors[name] = [_('Could not upload the image. Please try again.')]

        values[name] = current.value
    return values, errors
