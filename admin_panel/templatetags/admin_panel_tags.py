from dateutil.parser import isoparse
from django import template
from django.utils import timezone
from django.utils.html import strip_tags

from admin_panel import images
from admin_panel.serializers import youtube_video_id

register = template.Library()


@register.filter
def full_image_url(url):
    return images.full_image_url(url)


@register.filter
def vnd(value):
    """1234567 -> '1.234.567 ₫'"""
    if value in (None, ''):
        return ''
    try:
        amount = round(float(value))
    except (TypeError, ValueError):
        return value
    return f"{amount:,}".replace(',', '.') + ' ₫'


@register.filter
def local_datetime(value, fmt='%H:%M:%S %d/%m/%Y'):
    """ISO 8601 timestamp from the API shown in the local time zone"""
    if not value:
        return ''
    try:
        moment = isoparse(str(value))
    except (TypeError, ValueError, OverflowError):
        return value
    if timezone.is_aware(moment):
        moment = timezone.localtime(moment)
    return moment.strftime(fmt)


@register.filter
def youtube_thumbnail(url):
    video_id = youtube_video_id(url)
    if video_id is None:
        return ''
    return f"https://img.youtube.com/vi/{video_id}/mqdefault.jpg"


@register.filter
def truncate_text(value, length=100):
    """Plain text cut to `length` characters with a trailing ellipsis"""
    if value in (None, ''):
        return ''
    text = strip_tags(str(value))
    length = int(length)
    return text[:length] + '...' if len(text) > length else text


@register.filter
def get_item_at(items, index):
    """items[index], or None when out of range"""
    try:
        return items[int(index)]
    except (IndexError, KeyError, TypeError, ValueError):
        return None


@register.inclusion_tag('admin_panel/includes/cell.html', takes_context=True)
def table_cell(context, column, value, record):
    return {
        'column': column,
        'value': value,
        'record': record,
        'resource': context.get('resource'),
        'edit_url_name': context.get('edit_url_name'),
        'delete_url_name': context.get('delete_url_name'),
        'current_url': context.get('current_url'),
        'csrf_token': context.get('csrf_token'),
    }
