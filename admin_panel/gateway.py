"""
Remote call gateway for the store REST API.

Every screen talks to the API through ApiGateway. The gateway attaches the
admin bearer token held by an AdminSession, applies a fixed timeout and hands
back the raw requests.Response: status codes are left for the caller.
"""
import concurrent.futures
import logging
from typing import Dict, Iterable, List, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

TOKEN_SESSION_KEY = 'adminToken'
UPLOAD_IMAGES_PATH = 'api/upload-images'


def _close_response(future):
    if not future.cancelled() and future.exception() is None:
        future.result().close()


class GatewayError(Exception):
    """The store API could not be reached"""
    pass


class RequestAborted(GatewayError):
    """The call ran past the configured timeout and was abandoned"""
    pass


class ApiError(Exception):
    """A non-2xx reply from the store API"""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @classmethod
    def from_response(cls, response, default_message: str) -> 'ApiError':
        """Build an error from the API's `message` field, falling back to default_message"""
        try:
            data = response.json()
        except ValueError:
            data = None
        message = data.get('message') if isinstance(data, dict) else None
        return cls(response.status_code, message or str(default_message))


class AdminSession:
    """
    Holds the admin bearer token for the lifetime of a login.

    `store` is any mapping; views pass request.session so the token lives
    from login until logout.
    """

    def __init__(self, store):
        self.store = store

    @property
    def token(self) -> Optional[str]:
        return self.store.get(TOKEN_SESSION_KEY) or None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def login(self, token: str):
        if hasattr(self.store, 'cycle_key'):
            self.store.cycle_key()
        self.store[TOKEN_SESSION_KEY] = token

    def logout(self):
        self.store.pop(TOKEN_SESSION_KEY, None)
        if hasattr(self.store, 'flush'):
            self.store.flush()


class ApiGateway:
    """Thin wrapper around requests.Session bound to API_BASE_URL"""

    def __init__(self, session: AdminSession, base_url: str = None,
                 timeout: float = None, http: requests.Session = None):
        self.session = session
        self.base_url = (base_url or settings.API_BASE_URL).rstrip('/')
        self.timeout = settings.API_TIMEOUT if timeout is None else timeout
        self.http = http or requests.Session()

    def build_url(self, path: str) -> str:
        if path.startswith('/'):
            path = path[1:]
        return f"{self.base_url}/{path}"

    def build_headers(self, extra: Dict = None) -> Dict:
        headers = {'Content-Type': 'application/json'}
        token = self.session.token
        if token:
            headers['Authorization'] = f'Bearer {token}'
        if extra:
            headers.update(extra)
        return headers

    def request(self, method: str, path: str, headers: Dict = None, **kwargs) -> requests.Response:
        """
        Send one request and return the response whatever its status.

        The whole call, body included, must finish within `timeout` seconds.
        Past that it is abandoned and RequestAborted is raised; any other
        network failure raises GatewayError.
        """
        url = self.build_url(path)
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        future = executor.submit(
            self.http.request,
            method,
            url,
            headers=self.build_headers(headers),
            timeout=self.timeout,
            **kwargs
        )
        try:
            response = future.result(timeout=self.timeout)
        except (concurrent.futures.TimeoutError, requests.Timeout) as e:
            # the abandoned call is closed whenever it completes
            future.add_done_callback(_close_response)
            logger.warning(f"{method} {url} aborted after {self.timeout:g}s")
            raise RequestAborted(f"{method} {url} took longer than {self.timeout:g}s") from e
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {str(e)}")
            raise GatewayError(str(e)) from e
        finally:
            executor.shutdown(wait=False)

        logger.debug(f"{method} {url} -> {response.status_code}")
        return response

    def get(self, path: str, **kwargs) -> requests.Response:
        return self.request('GET', path, **kwargs)

    def post(self, path: str, **kwargs) -> requests.Response:
        return self.request('POST', path, **kwargs)

    def put(self, path: str, **kwargs) -> requests.Response:
        return self.request('PUT', path, **kwargs)

    def delete(self, path: str, **kwargs) -> requests.Response:
        return self.request('DELETE', path, **kwargs)

    def upload_images(self, files: Iterable) -> List[str]:
        """
        Post uploaded files as multipart form data under the `images` key.

        Returns the URLs listed in the reply's `imageUrls`.
        """
        parts = [
            ('images', (upload.name, upload, getattr(upload, 'content_type', None) or 'application/octet-stream'))
            for upload in files
        ]
        # requests drops headers set to None, so the multipart boundary header wins
        response = self.post(UPLOAD_IMAGES_PATH, headers={'Content-Type': None}, files=parts)
        if not response.ok:
            raise ApiError.from_response(response, 'Upload failed')

        try:
            data = response.json()
        except ValueError:
            logger.warning(f"Upload reply was not JSON (status {response.status_code})")
            raise ApiError(response.status_code, 'Upload failed')
        urls = data.get('imageUrls') if isinstance(data, dict) else None
        return [url for url in (urls or []) if url]


def gateway_for(request) -> ApiGateway:
    """Gateway bound to the token in the current request's session"""
    return ApiGateway(AdminSession(request.session))
