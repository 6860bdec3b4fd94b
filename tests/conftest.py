import json

import pytest
import requests
from django.conf import settings as django_settings
from django.contrib.sessions.backends.signed_cookies import SessionStore

from admin_panel.gateway import TOKEN_SESSION_KEY, AdminSession, ApiGateway

API_BASE_URL = 'http://api.test'


def make_response(status_code=200, payload=None, content=None):
    response = requests.Response()
    response.status_code = status_code
    if content is not None:
        response._content = content
    elif payload is None:
        response._content = b''
    else:
        response._content = json.dumps(payload).encode('utf-8')
        response.headers['Content-Type'] = 'application/json'
    return response


class FakeHttp:
    """Stands in for requests.Session: answers from a route table and records every call"""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def reply(self, method, path, status_code=200, payload=None, error=None, content=None):
        self.routes[(method.upper(), path)] = (status_code, payload, error, content)
        return self

    def request(self, method, url, **kwargs):
        path = url[len(API_BASE_URL) + 1:] if url.startswith(API_BASE_URL) else url
        self.calls.append(dict(kwargs, method=method.upper(), path=path, url=url))
        route = self.routes.get((method.upper(), path))
        if route is None:
            return make_response(404, {'message': 'Not found'})
        status_code, payload, error, content = route
        if error is not None:
            raise error
        return make_response(status_code, payload, content)

    def calls_to(self, method, path=None):
        return [
            call for call in self.calls
            if call['method'] == method.upper() and (path is None or call['path'] == path)
        ]


@pytest.fixture
def http():
    return FakeHttp()


@pytest.fixture
def gateway(http):
    return ApiGateway(AdminSession({TOKEN_SESSION_KEY: 'test-token'}), base_url=API_BASE_URL, timeout=5, http=http)


@pytest.fixture
def api(http, monkeypatch, settings):
    """Route every requests.Session call made by the views to the fake API"""
    settings.API_BASE_URL = API_BASE_URL

    def fake_request(session, method, url, **kwargs):
        return http.request(method, url, **kwargs)

    monkeypatch.setattr(requests.Session, 'request', fake_request)
    return http


@pytest.fixture
def admin_client(client):
    store = SessionStore()
    store[TOKEN_SESSION_KEY] = 'test-token'
    store.save()
    client.cookies[django_settings.SESSION_COOKIE_NAME] = store.session_key
    return client


@pytest.fixture
def notices():
    collected = []

    def notify(level, message):
        collected.append((level, str(message)))

    notify.messages = collected
    return notify
