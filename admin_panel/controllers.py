"""
Screen controllers.

A controller owns the records of one screen for the duration of a request,
talks to the API through an ApiGateway and reports outcomes through a
`notify(level, message)` callable (views pass the messages framework).
Failures never propagate to the view: they are logged, reported and the
previous state is kept.
"""
import enum
import logging
import math
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from django.contrib import messages
from django.utils.translation import gettext as _

from .datatable import (
    DataTable, ExternallyDriven, ExternallyPaginated, FilterState,
    PaginationState, SortingState, TableState,
)
from .gateway import ApiError, ApiGateway, GatewayError, RequestAborted
from .resources import Resource

logger = logging.getLogger(__name__)

NEW_RECORD = 'new'
CATEGORY_OPTIONS_PATH = 'api/categories/by-type/{type}'


class ScreenStatus(enum.Enum):
    IDLE = 'idle'
    LOADING = 'loading'
    DELETING = 'deleting'
    SAVING = 'saving'


class ControllerBusy(Exception):
    """An action was requested while another one is still in flight"""
    pass


def unwrap_list(payload, key: str = None):
    """
    Records and total of a list reply.

    Accepts a bare array, or an object carrying the array under `key` or
    `items` with an optional `total`.
    """
    if isinstance(payload, list):
        return payload, len(payload)
    if isinstance(payload, dict):
        records = None
        if key and isinstance(payload.get(key), list):
            records = payload[key]
        elif isinstance(payload.get('items'), list):
            records = payload['items']
        if records is not None:
            try:
                total = int(payload.get('total'))
            except (TypeError, ValueError):
                total = len(records)
            return records, total
    raise ValueError(f"Unexpected list payload: {type(payload).__name__}")


def _silent(level, message):
    pass


class BaseController:

    def __init__(self, gateway: ApiGateway, resource: Resource,
                 notify: Callable[[int, str], None] = None):
        self.gateway = gateway
        self.resource = resource
        self.notify = notify or _silent
        self.status = ScreenStatus.IDLE

    @property
    def busy(self) -> bool:
        return self.status is not ScreenStatus.IDLE

    @contextmanager
    def _action(self, status: ScreenStatus):
        if self.busy:
            raise ControllerBusy(f"{self.resource.name} is {self.status.value}")
        self.status = status
        try:
            yield
        finally:
            self.status = ScreenStatus.IDLE

    def _check(self, response, default_message):
        if not response.ok:
            raise ApiError.from_response(response, default_message)
        return response

    def _report(self, error: Exception, default_message: str):
        """Log a failed action and show a readable message"""
        if isinstance(error, ApiError):
            logger.warning(f"{self.resource.name}: API replied {error.status_code}: {error.message}")
            message = error.message
        elif isinstance(error, RequestAborted):
            logger.warning(f"{self.resource.name}: {str(error)}")
            message = _('The server took too long to respond. Please try again.')
        elif isinstance(error, GatewayError):
            logger.error(f"{self.resource.name}: {str(error)}")
            message = _('Could not connect to the server.')
        else:
            logger.warning(f"{self.resource.name}: unexpected reply: {error!r}")
            message = default_message
        self.notify(messages.ERROR, str(message))

    def _names(self) -> Dict:
        return {'name': self.resource.singular, 'names': self.resource.title}


class ListController(BaseController):
    """Fetches the full record list once; the table pages, sorts and filters it"""

    def __init__(self, gateway, resource, notify=None):
        super().__init__(gateway, resource, notify)
        self.records: List[Dict] = []
        self.total = 0

    def list_params(self) -> Dict:
        return {}

    def _load(self) -> bool:
        default_message = _('Could not load the %(names)s list') % self._names()
        try:
            response = self._check(
                self.gateway.get(self.resource.list_path, params=self.list_params() or None),
                default_message,
            )
            records, total = unwrap_list(response.json(), self.resource.list_key)
        except (GatewayError, ApiError, ValueError) as e:
            self._report(e, default_message)
            self._load_failed()
            return False

        self.records = list(records)
        self.total = total
        return True

    def _load_failed(self):
        # the previous list stays visible
        pass

    def fetch(self) -> bool:
        with self._action(ScreenStatus.LOADING):
            return self._load()

    def _remove(self, record_id) -> int:
        """Drops every record with this id; returns how many were dropped"""
        kept = [record for record in self.records if str(record.get('id')) != str(record_id)]
        removed = len(self.records) - len(kept)
        self.records = kept
        return removed

    def delete(self, record_id) -> bool:
        with self._action(ScreenStatus.DELETING):
            default_message = _('Could not delete the %(name)s') % self._names()
            try:
                self._check(self.gateway.delete(self.resource.delete_url(record_id)), default_message)
            except (GatewayError, ApiError) as e:
                self._report(e, default_message)
                return False

            removed = self._remove(record_id)
            if removed and self.total:
                self.total = max(self.total - removed, 0)
            logger.info(f"Deleted {self.resource.name} {record_id}")
            self.notify(messages.SUCCESS, _('The %(name)s was deleted') % self._names())
            self._after_delete()
            return True

    def _after_delete(self):
        pass

    def build_table(self, query=None) -> DataTable:
        table = DataTable(
            self.resource.columns,
            self.records,
            search_column=self.resource.search_column,
            search_placeholder=self.resource.search_placeholder,
        )
        if query is not None:
            table.apply_query(query)
        return table


class ServerListController(ListController):
    """
    List whose paging, sorting and search run on the API.

    The table is externally driven: every change it requests lands in
    `change_state`, which updates the state and fetches again.
    """

    def __init__(self, gateway, resource, notify=None, state: TableState = None):
        super().__init__(gateway, resource, notify)
        self.state = state or TableState(
            sorting=resource.default_sorting,
            filtering=FilterState(resource.search_column),
        )
        self.total = None

    def list_params(self) -> Dict:
        pagination, sorting, filtering = self.state.pagination, self.state.sorting, self.state.filtering
        params = {
            'page': pagination.page_index + 1,
            'limit': pagination.page_size,
        }
        if sorting.column_id:
            params['sortBy'] = sorting.column_id
            params['sortOrder'] = 'DESC' if sorting.desc else 'ASC'
        if filtering.value:
            params['search'] = filtering.value
        return params

    def _load_failed(self):
        self.records = []
        self.total = None

    @property
    def page_count(self) -> Optional[int]:
        if self.total is None:
            return None
        return math.ceil(self.total / self.state.pagination.page_size)

    def fetch(self) -> bool:
        with self._action(ScreenStatus.LOADING):
            if not self._load():
                return False
            page_count = self.page_count
            if page_count and self.state.pagination.page_index >= page_count:
                # past the end: show the last page instead
                self.state = replace(
                    self.state,
                    pagination=replace(self.state.pagination, page_index=page_count - 1),
                )
                return self._load()
            return True

    def change_state(self, new_state) -> bool:
        first_page = replace(self.state.pagination, page_index=0)
        if isinstance(new_state, PaginationState):
            self.state = replace(self.state, pagination=new_state)
        elif isinstance(new_state, SortingState):
            if new_state.column_id is None:
                new_state = self.resource.default_sorting
            self.state = replace(self.state, sorting=new_state, pagination=first_page)
        elif isinstance(new_state, FilterState):
            self.state = replace(self.state, filtering=new_state, pagination=first_page)
        else:
            raise TypeError(f"Unsupported table state: {new_state!r}")
        return self.fetch()

    def _after_delete(self):
        self._load()

    def build_table(self, query=None) -> DataTable:
        table = DataTable(
            self.resource.columns,
            self.records,
            search_column=self.resource.search_column,
            search_placeholder=self.resource.search_placeholder,
            pagination=ExternallyPaginated.for_total(self.state.pagination, self.change_state, self.total),
            sorting=ExternallyDriven(self.state.sorting, self.change_state),
            filtering=ExternallyDriven(self.state.filtering, self.change_state),
        )
        if query is not None:
            table.apply_query(query)
        return table


class ContactController(ListController):

    def _mark(self, contact_id, action: str, flag: str, done_message, default_message) -> bool:
        with self._action(ScreenStatus.SAVING):
            try:
                self._check(
                    self.gateway.put(f"{self.resource.item_url(contact_id)}/{action}"),
                    default_message,
                )
            except (GatewayError, ApiError) as e:
                self._report(e, default_message)
                return False

            self.records = [
                dict(record, **{flag: True}) if str(record.get('id')) == str(contact_id) else record
                for record in self.records
            ]
            self.notify(messages.SUCCESS, done_message)
            return True

    def mark_read(self, contact_id) -> bool:
        return self._mark(contact_id, 'read', 'isRead',
                          _('Marked as read'), _('Could not mark the contact as read'))

    def mark_replied(self, contact_id) -> bool:
        return self._mark(contact_id, 'replied', 'isReplied',
                          _('Marked as replied'), _('Could not mark the contact as replied'))


class EditController(BaseController):
    """
    Loads one record into form values and saves the form back.

    `record_id` of None or "new" means creation.
    """

    def __init__(self, gateway, resource, notify=None, record_id=None):
        super().__init__(gateway, resource, notify)
        self.record_id = None if record_id in (None, '', NEW_RECORD) else record_id
        self.record: Optional[Dict] = None
        self.values: Dict = {}
        self.errors: Dict = {}

    @property
    def is_new(self) -> bool:
        return self.record_id is None

    @property
    def serializer_class(self):
        return self.resource.serializer_class

    def load(self) -> bool:
        if self.is_new:
            self.record = {}
            self.values = self.serializer_class.initial_from_record(None)
            return True

        with self._action(ScreenStatus.LOADING):
            default_message = _('Could not load the %(name)s') % self._names()
            try:
                response = self._check(self.gateway.get(self.resource.item_url(self.record_id)), default_message)
                record = response.json()
            except (GatewayError, ApiError, ValueError) as e:
                self._report(e, default_message)
                return False
            if not isinstance(record, dict):
                self._report(ValueError(f"Unexpected record: {type(record).__name__}"), default_message)
                return False

            self.record = record
            self.values = self.serializer_class.initial_from_record(record)
            return True

    def validate(self, data: Dict):
        """Return the valid serializer, or None with `errors` filled in"""
        serializer = self.serializer_class(data=data, context={'is_new': self.is_new})
        if serializer.is_valid():
            self.errors = {}
            return serializer
        self.errors = serializer.errors
        logger.info(f"{self.resource.name}: invalid form {sorted(self.errors)}")
        self.notify(messages.ERROR, _('Please correct the highlighted fields.'))
        return None

    def _send(self, payload: Dict):
        if self.is_new:
            return self.gateway.post(self.resource.list_path, json=payload)
        return self.gateway.put(self.resource.item_url(self.record_id), json=payload)

    def save(self, data: Dict) -> bool:
        with self._action(ScreenStatus.SAVING):
            self.values = dict(data)
            serializer = self.validate(data)
            if serializer is None:
                return False

            created = self.is_new
            if created:
                default_message = _('Could not create the %(name)s') % self._names()
            else:
                default_message = _('Could not update the %(name)s') % self._names()
            payload = serializer.to_payload()
            try:
                response = self._check(self._send(payload), default_message)
            except (GatewayError, ApiError) as e:
                self._report(e, default_message)
                return False

            try:
                saved = response.json()
            except ValueError:
                saved = None
            self.record = saved if isinstance(saved, dict) else payload
            if created and self.record.get('id') is not None:
                self.record_id = self.record['id']

            logger.info(f"Saved {self.resource.name} {self.record_id or ''}".rstrip())
            if created:
                self.notify(messages.SUCCESS, _('The %(name)s was created') % self._names())
            else:
                self.notify(messages.SUCCESS, _('The %(name)s was updated') % self._names())
            return True

    def options(self, category_type: str = None) -> List[tuple]:
        """(id, name) choices for the category select"""
        category_type = category_type or self.resource.category_type
        if not category_type:
            return []
        default_message = _('Could not load the categories')
        try:
            response = self._check(
                self.gateway.get(CATEGORY_OPTIONS_PATH.format(type=category_type)),
                default_message,
            )
            categories = unwrap_list(response.json(), 'categories')[0]
        except (GatewayError, ApiError, ValueError) as e:
            self._report(e, default_message)
            return []
        return [(str(category.get('id')), category.get('name', '')) for category in categories]


class StoreInfoController(EditController):
    """
    The single store information record.

    A 404 on load means it was never created: the form starts blank and the
    first save is a POST. The `id` is never sent back.
    """

    def __init__(self, gateway, resource, notify=None):
        super().__init__(gateway, resource, notify)
        self.exists = False

    @property
    def is_new(self) -> bool:
        return not self.exists

    def load(self) -> bool:
        with self._action(ScreenStatus.LOADING):
            default_message = _('Could not load the store information')
            try:
                response = self.gateway.get(self.resource.item_path)
                if response.status_code == 404:
                    self.exists = False
                    self.record = {}
                    self.values = self.serializer_class.initial_from_record(None)
                    return True
                record = self._check(response, default_message).json()
            except (GatewayError, ApiError, ValueError) as e:
                self._report(e, default_message)
                return False

            self.exists = True
            self.record = record if isinstance(record, dict) else {}
            self.values = self.serializer_class.initial_from_record(self.record)
            return True

    def _send(self, payload: Dict):
        payload.pop('id', None)
        if self.exists:
            return self.gateway.put(self.resource.item_path, json=payload)
        return self.gateway.post(self.resource.item_path, json=payload)

    def save(self, data: Dict) -> bool:
        saved = super().save(data)
        if saved:
            self.exists = True
        return saved
