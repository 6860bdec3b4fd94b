from admin_panel.templatetags.admin_panel_tags import (
    get_item_at, local_datetime, truncate_text, vnd, youtube_thumbnail,
)


def test_vnd_formats_dong():
    assert vnd(1234567) == '1.234.567 ₫'
    assert vnd('1500000.4') == '1.500.000 ₫'
    assert vnd(0) == '0 ₫'
    assert vnd(None) == ''
    assert vnd('n/a') == 'n/a'


def test_local_datetime_converts_to_local_time(settings):
    settings.TIME_ZONE = 'Asia/Ho_Chi_Minh'
    assert local_datetime('2024-01-15T03:04:05Z') == '10:04:05 15/01/2024'
    assert local_datetime('2024-01-15T03:04:05') == '03:04:05 15/01/2024'
    assert local_datetime('') == ''
    assert local_datetime('yesterday') == 'yesterday'


def test_truncate_text_strips_markup():
    assert truncate_text('<p>' + 'a' * 120 + '</p>') == 'a' * 100 + '...'
    assert truncate_text('short') == 'short'
    assert truncate_text('https://example.com/very/long/link', 10) == 'https://ex...'


def test_youtube_thumbnail():
    assert youtube_thumbnail('https://youtu.be/dQw4w9WgXcQ') == 'https://img.youtube.com/vi/dQw4w9WgXcQ/mqdefault.jpg'
    assert youtube_thumbnail('not a link') == ''


def test_get_item_at():
    assert get_item_at(['a', 'b'], 1) == 'b'
    assert get_item_at(['a'], 3) is None
    assert get_item_at(None, 0) is None
