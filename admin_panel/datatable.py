"""
Generic data table used by every list screen.

Each of the three table dimensions (pagination, sorting, filtering) runs in
one of two modes:

* SelfManaged - the table owns the state and derives the visible rows from
  the full record list itself.
* ExternallyDriven - a controller owns the state. The table renders with it,
  reports requested changes through `on_change`, and shows the records it was
  given as they are: the controller is expected to fetch a list that already
  reflects the requested state.
"""
import math
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from django.core.paginator import Paginator
from django.http import QueryDict

PAGE_SIZE_CHOICES = (10, 20, 30, 40, 50)
DEFAULT_PAGE_SIZE = 10
UNKNOWN_PAGE_COUNT = -1


@dataclass(frozen=True)
class PaginationState:
    page_index: int = 0
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class SortingState:
    column_id: Optional[str] = None
    desc: bool = False

    @property
    def direction(self) -> Optional[str]:
        if self.column_id is None:
            return None
        return 'desc' if self.desc else 'asc'


@dataclass(frozen=True)
class FilterState:
    column_id: Optional[str] = None
    value: str = ''


@dataclass(frozen=True)
class TableState:
    """The three dimensions together, as a server-driven controller keeps them"""
    pagination: PaginationState = PaginationState()
    sorting: SortingState = SortingState()
    filtering: FilterState = FilterState()

    @classmethod
    def from_query(cls, query, search_column: str = None,
                   default_sorting: SortingState = None) -> 'TableState':
        params = parse_table_query(query)
        page_size = params.get('size', DEFAULT_PAGE_SIZE)
        return cls(
            pagination=PaginationState(page_index=params.get('page', 1) - 1, page_size=page_size),
            sorting=params.get('sorting', default_sorting or SortingState()),
            filtering=FilterState(search_column, params.get('q', '')),
        )


# Operating modes

@dataclass
class SelfManaged:
    state: Any


@dataclass
class ExternallyDriven:
    state: Any
    on_change: Optional[Callable[[Any], None]]


@dataclass
class ExternallyPaginated(ExternallyDriven):
    page_count: int = UNKNOWN_PAGE_COUNT

    @classmethod
    def for_total(cls, state: PaginationState, on_change, total: Optional[int]) -> 'ExternallyPaginated':
        if total is None or state.page_size <= 0:
            return cls(state, on_change, UNKNOWN_PAGE_COUNT)
        return cls(state, on_change, math.ceil(total / state.page_size))


def _check_mode(mode, dimension: str):
    if not isinstance(mode, (SelfManaged, ExternallyDriven)):
        raise TypeError(f"Unsupported {dimension} mode: {mode!r}")
    return mode


@dataclass(frozen=True)
class Column:
    """
    Maps a record attribute (or a value derived by `accessor`) to a cell.

    `kind` tells the template how to display the value.
    """
    key: str
    header: str = ''
    kind: str = 'text'
    sortable: bool = True
    accessor: Optional[Callable[[Dict], Any]] = None

    def value(self, record: Dict) -> Any:
        if self.accessor is not None:
            return self.accessor(record)
        return record.get(self.key)


def _positive_int(value, default=None):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def parse_table_query(query) -> Dict:
    """
    Read the table parameters present in a query dict.

    `page` is 1-based, `order` is asc/desc. Unusable values are left out.
    """
    params = {}
    page = _positive_int(query.get('page'))
    if page is not None:
        params['page'] = page
    size = _positive_int(query.get('size'))
    if size in PAGE_SIZE_CHOICES:
        params['size'] = size
    if 'sort' in query:
        column_id = query.get('sort') or None
        params['sorting'] = SortingState(column_id, query.get('order') == 'desc') if column_id else SortingState()
    if 'q' in query:
        params['q'] = query.get('q', '')
    return params


def _sort_key(value):
    if isinstance(value, bool):
        return (0, int(value))
    if isinstance(value, (int, float)):
        return (0, value)
    return (1, str(value).casefold())


class DataTable:
    """
    Rows, headers and pager of one list screen.

    Dimensions default to SelfManaged with a 10-row page, no sorting and an
    empty filter on `search_column`.
    """

    def __init__(self, columns: Sequence[Column], data: Sequence[Dict],
                 search_column: str = None, search_placeholder: str = '',
                 pagination=None, sorting=None, filtering=None, loading: bool = False):
        self.columns = list(columns)
        self.data = data
        self.search_column = search_column
        self.search_placeholder = search_placeholder
        self.loading = loading
        self.pagination = _check_mode(pagination or SelfManaged(PaginationState()), 'pagination')
        self.sorting = _check_mode(sorting or SelfManaged(SortingState()), 'sorting')
        self.filtering = _check_mode(filtering or SelfManaged(FilterState(search_column)), 'filtering')

    # State transitions

    def _request(self, dimension: str, new_state):
        mode = getattr(self, dimension)
        if isinstance(mode, SelfManaged):
            mode.state = new_state
        elif isinstance(mode, ExternallyDriven):
            if mode.on_change is not None:
                mode.on_change(new_state)
        else:
            raise TypeError(f"Unsupported {dimension} mode: {mode!r}")

    def get_column(self, column_id: str) -> Optional[Column]:
        for column in self.columns:
            if column.key == column_id:
                return column
        return None

    def set_page_index(self, page_index: int):
        page_index = max(0, page_index)
        self._request('pagination', replace(self.pagination.state, page_index=page_index))

    def set_page_size(self, page_size: int):
        self._request('pagination', PaginationState(page_index=0, page_size=page_size))

    def next_page(self):
        if self.can_next_page:
            self.set_page_index(self.page_index + 1)

    def previous_page(self):
        if self.can_previous_page:
            self.set_page_index(self.page_index - 1)

    def set_sorting(self, column_id: Optional[str], desc: bool = False):
        if column_id is None:
            self._request('sorting', SortingState())
            return
        column = self.get_column(column_id)
        if column is None or not column.sortable:
            return
        self._request('sorting', SortingState(column_id, desc))

    def toggle_sorting(self, column_id: str):
        """Cycle a column through ascending, descending and unsorted"""
        new_state = self._toggled_sorting(column_id)
        if new_state is not None:
            self._request('sorting', new_state)

    def _toggled_sorting(self, column_id: str) -> Optional[SortingState]:
        column = self.get_column(column_id)
        if column is None or not column.sortable:
            return None
        current = self.sorting.state
        if current.column_id != column_id:
            return SortingState(column_id, False)
        if not current.desc:
            return SortingState(column_id, True)
        return SortingState()

    def set_search(self, value: str):
        if not self.search_column:
            return
        self._request('filtering', FilterState(self.search_column, value or ''))
        if isinstance(self.pagination, SelfManaged):
            self.pagination.state = replace(self.pagination.state, page_index=0)

    def apply_query(self, query):
        """Replay the interactions encoded in a request's query parameters"""
        params = parse_table_query(query)
        if 'size' in params:
            self.set_page_size(params['size'])
        if 'sorting' in params:
            sorting = params['sorting']
            self.set_sorting(sorting.column_id, sorting.desc)
        if 'q' in params:
            self.set_search(params['q'])
        if 'page' in params:
            self.set_page_index(params['page'] - 1)

    # Derived rows

    @property
    def filtered_data(self) -> List[Dict]:
        records = list(self.data)
        if not isinstance(self.filtering, SelfManaged):
            return records
        state = self.filtering.state
        column = self.get_column(state.column_id) if state.column_id else None
        if column is None or not state.value:
            return records
        needle = str(state.value).casefold()
        return [
            record for record in records
            if column.value(record) is not None and needle in str(column.value(record)).casefold()
        ]

    @property
    def sorted_data(self) -> List[Dict]:
        records = self.filtered_data
        if not isinstance(self.sorting, SelfManaged):
            return records
        state = self.sorting.state
        column = self.get_column(state.column_id) if state.column_id else None
        if column is None:
            return records
        present = [r for r in records if column.value(r) not in (None, '')]
        missing = [r for r in records if column.value(r) in (None, '')]
        present.sort(key=lambda r: _sort_key(column.value(r)), reverse=state.desc)
        return present + missing

    def _paginator(self) -> Paginator:
        return Paginator(self.sorted_data, self.page_size)

    @property
    def rows(self) -> List[Dict]:
        if isinstance(self.pagination, SelfManaged):
            page = self._paginator().get_page(self.pagination.state.page_index + 1)
            return list(page.object_list)
        return self.sorted_data

    def cells(self, record: Dict) -> List[tuple]:
        return [(column, column.value(record)) for column in self.columns]

    @property
    def body_rows(self) -> List[Dict]:
        return [{'record': record, 'cells': self.cells(record)} for record in self.rows]

    # Pager

    @property
    def page_size(self) -> int:
        return self.pagination.state.page_size

    @property
    def page_count(self) -> int:
        if isinstance(self.pagination, ExternallyDriven):
            return getattr(self.pagination, 'page_count', UNKNOWN_PAGE_COUNT)
        return self._paginator().num_pages

    @property
    def page_index(self) -> int:
        """Current 0-based page; self-managed pages past the end clamp to the last one"""
        requested = self.pagination.state.page_index
        if isinstance(self.pagination, SelfManaged):
            return self._paginator().get_page(requested + 1).number - 1
        return requested

    @property
    def page_number(self) -> int:
        return self.page_index + 1

    @property
    def can_previous_page(self) -> bool:
        return self.page_index > 0

    @property
    def can_next_page(self) -> bool:
        if self.page_count == UNKNOWN_PAGE_COUNT:
            return True
        return self.page_index < self.page_count - 1

    @property
    def page_size_choices(self):
        return PAGE_SIZE_CHOICES

    @property
    def search_value(self) -> str:
        state = self.filtering.state
        if self.search_column and state.column_id == self.search_column:
            return state.value or ''
        return ''

    @property
    def colspan(self) -> int:
        return len(self.columns)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    # Links

    def _params(self) -> Dict:
        sorting = self.sorting.state
        return {
            'page': self.page_number,
            'size': self.page_size,
            'sort': sorting.column_id,
            'order': sorting.direction,
            'q': self.search_value,
        }

    def querystring(self, **overrides) -> str:
        params = self._params()
        params.update(overrides)
        if not params.get('sort'):
            params['sort'] = None
            params['order'] = None
        query = QueryDict(mutable=True)
        for key in ('page', 'size', 'sort', 'order', 'q'):
            value = params.get(key)
            if value is None or value == '':
                continue
            query[key] = value
        return '?' + query.urlencode()

    def hidden_params(self, *exclude) -> List[tuple]:
        """Current parameters as (name, value) pairs for GET forms"""
        params = self._params()
        if not params.get('sort'):
            params['order'] = None
        return [
            (key, value) for key, value in params.items()
            if key not in exclude and value not in (None, '')
        ]

    @property
    def search_form_params(self):
        return self.hidden_params('q', 'page')

    @property
    def page_size_form_params(self):
        return self.hidden_params('size', 'page')

    @property
    def headers(self) -> List[Dict]:
        current = self.sorting.state
        headers = []
        for column in self.columns:
            toggled = self._toggled_sorting(column.key)
            url = None
            if toggled is not None:
                url = self.querystring(page=1, sort=toggled.column_id or '', order=toggled.direction)
            headers.append({
                'column': column,
                'header': column.header,
                'sortable': column.sortable,
                'direction': current.direction if current.column_id == column.key else None,
                'url': url,
            })
        return headers

    @property
    def previous_page_url(self) -> Optional[str]:
        if not self.can_previous_page:
            return None
        return self.querystring(page=self.page_number - 1)

    @property
    def next_page_url(self) -> Optional[str]:
        if not self.can_next_page:
            return None
        return self.querystring(page=self.page_number + 1)
