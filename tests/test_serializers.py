from django.http import QueryDict

from admin_panel.serializers import (
    BannerSerializer, CategorySerializer, PostSerializer, ProductSerializer, StoreInfoSerializer,
    UserSerializer, VideoSerializer, camelize, generate_slug, youtube_video_id,
)


def test_camelize():
    assert camelize('full_name') == 'fullName'
    assert camelize('long_description') == 'longDescription'
    assert camelize('slug') == 'slug'


def test_generate_slug_strips_vietnamese_accents():
    assert generate_slug('Điện thoại Mới') == 'dien-thoai-moi'
    assert generate_slug('  Giá tốt!  ') == 'gia-tot'
    assert generate_slug('') == ''


def test_youtube_video_id():
    assert youtube_video_id('https://www.youtube.com/watch?v=dQw4w9WgXcQ') == 'dQw4w9WgXcQ'
    assert youtube_video_id('https://youtu.be/dQw4w9WgXcQ') == 'dQw4w9WgXcQ'
    assert youtube_video_id('https://www.youtube.com/embed/dQw4w9WgXcQ?start=5') == 'dQw4w9WgXcQ'
    assert youtube_video_id('https://example.com/watch?v=short') is None
    assert youtube_video_id(None) is None


def test_video_requires_youtube_link():
    serializer = VideoSerializer(data={'tieu_de': 'Intro', 'link_ytb': 'https://vimeo.com/123'})
    assert not serializer.is_valid()
    assert 'link_ytb' in serializer.errors

    serializer = VideoSerializer(data={'tieu_de': 'Intro', 'link_ytb': 'https://youtu.be/dQw4w9WgXcQ'})
    assert serializer.is_valid(), serializer.errors
    assert serializer.to_payload() == {'tieuDe': 'Intro', 'linkYtb': 'https://youtu.be/dQw4w9WgXcQ'}


def test_product_price_must_be_positive():
    serializer = ProductSerializer(data={'name': 'Phone', 'category_id': '1', 'price': '0'})
    assert not serializer.is_valid()
    assert 'price' in serializer.errors


def test_product_payload_keys():
    serializer = ProductSerializer(data={
        'name': 'Phone X', 'category_id': '1', 'price': '1500000',
        'image_url': '/public/x.png', 'additional_images': ['/public/y.png'],
    })
    assert serializer.is_valid(), serializer.errors

    payload = serializer.to_payload()

    assert payload['categoryId'] == '1'
    assert payload['price'] == 1500000.0
    assert payload['slug'] == 'phone-x'
    assert payload['imageUrl'] == '/public/x.png'
    assert payload['additionalImages'] == ['/public/y.png']
    assert payload['salePrice'] == 0


def test_new_user_needs_password():
    data = {'full_name': 'An', 'email': 'an@example.com'}
    serializer = UserSerializer(data=data, context={'is_new': True})
    assert not serializer.is_valid()
    assert 'password' in serializer.errors


def test_blank_password_is_dropped_on_update():
    data = {'full_name': 'An', 'email': 'an@example.com', 'password': ''}
    serializer = UserSerializer(data=data, context={'is_new': False})
    assert serializer.is_valid(), serializer.errors

    payload = serializer.to_payload()

    assert 'password' not in payload
    assert payload['fullName'] == 'An'
    assert payload['role'] == 'admin'


def test_user_email_must_be_valid():
    serializer = UserSerializer(data={'full_name': 'An', 'email': 'not-an-email', 'password': 'x'},
                                context={'is_new': True})
    assert not serializer.is_valid()
    assert 'email' in serializer.errors


def test_post_tags_are_split_on_commas():
    serializer = PostSerializer(data={'title': 'Hello', 'content': '<p>Hi</p>', 'tags': 'news, sale,, tips '})
    assert serializer.is_valid(), serializer.errors
    assert serializer.validated_data['tags'] == ['news', 'sale', 'tips']


def test_banner_image_is_required():
    serializer = BannerSerializer(data={'image_url': ''})
    assert not serializer.is_valid()
    assert 'image_url' in serializer.errors


def test_category_type_must_be_known():
    serializer = CategorySerializer(data={'type': 'music', 'name': 'Rock'})
    assert not serializer.is_valid()
    assert 'type' in serializer.errors


def test_from_form_reads_checkboxes_and_skips_blank_numbers():
    post = QueryDict('type=product&name=Phones&sort_order=&level=2&is_active=on')

    data = CategorySerializer.from_form(post)

    assert data['is_active'] is True
    assert 'sort_order' not in data
    assert data['level'] == '2'

    serializer = CategorySerializer(data=data)
    assert serializer.is_valid(), serializer.errors
    assert serializer.validated_data['sort_order'] == 0


def test_from_form_unchecked_checkbox_is_false():
    data = CategorySerializer.from_form(QueryDict('type=product&name=Phones'))
    assert data['is_active'] is False


def test_from_form_collects_address_rows():
    post = QueryDict(mutable=True)
    post.update({'hotline': '1900', 'logo': '/public/logo.png'})
    post.setlist('addresses__name', ['HQ', '', 'Shop 2'])
    post.setlist('addresses__phone_number', ['0901', '', '0902'])
    post.setlist('addresses__address', ['1 Le Loi', ' ', '2 Hai Ba Trung'])

    data = StoreInfoSerializer.from_form(post)

    assert 'logo' not in data
    assert data['addresses'] == [
        {'name': 'HQ', 'phone_number': '0901', 'address': '1 Le Loi'},
        {'name': 'Shop 2', 'phone_number': '0902', 'address': '2 Hai Ba Trung'},
    ]


def test_store_info_requires_images_and_hotline():
    serializer = StoreInfoSerializer(data={'hotline': ''})
    assert not serializer.is_valid()
    assert {'logo', 'favicon', 'hotline'} <= set(serializer.errors)


def test_initial_from_record_maps_camel_case():
    values = ProductSerializer.initial_from_record({
        'id': 'p1', 'name': 'Phone', 'categoryId': 3, 'longDescription': '<p>x</p>',
        'additionalImages': ['/public/a.png'],
    })

    assert values['name'] == 'Phone'
    assert values['category_id'] == 3
    assert values['long_description'] == '<p>x</p>'
    assert values['additional_images'] == ['/public/a.png']
    assert values['image_url'] == ''


def test_describe_fields_lists_inputs_and_errors():
    fields = PostSerializer.describe_fields({'title': 'Hi', 'tags': ['a', 'b']}, {'title': ['Too short']})
    by_name = {field['name']: field for field in fields}

    assert by_name['title']['required'] is True
    assert by_name['title']['errors'] == ['Too short']
    assert by_name['content']['input'] == 'rich_text'
    assert by_name['image_url']['input'] == 'image'
    assert by_name['is_published']['input'] == 'checkbox'
    assert by_name['tags']['value'] == 'a, b'
    assert by_name['summary']['required'] is False
