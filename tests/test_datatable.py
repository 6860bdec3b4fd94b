import pytest
from django.http import QueryDict
from django.template.loader import render_to_string

from admin_panel.datatable import (
    UNKNOWN_PAGE_COUNT, Column, DataTable, ExternallyDriven, ExternallyPaginated, FilterState,
    PaginationState, SelfManaged, SortingState, TableState,
)

COLUMNS = [
    Column('name', 'Name'),
    Column('price', 'Price', kind='currency'),
    Column('actions', '', kind='actions', sortable=False),
]


def make_records(count):
    return [{'id': str(i), 'name': f'Item {i:02d}', 'price': i * 1000} for i in range(1, count + 1)]


def test_defaults_are_self_managed_first_page():
    table = DataTable(COLUMNS, make_records(25), search_column='name')

    assert isinstance(table.pagination, SelfManaged)
    assert table.page_size == 10
    assert table.page_count == 3
    assert [r['id'] for r in table.rows] == [str(i) for i in range(1, 11)]
    assert table.can_next_page
    assert not table.can_previous_page


def test_last_page_holds_the_remainder():
    table = DataTable(COLUMNS, make_records(25))

    table.set_page_index(2)

    assert len(table.rows) == 5
    assert not table.can_next_page


def test_page_index_past_the_end_is_clamped():
    table = DataTable(COLUMNS, make_records(25))

    table.set_page_index(7)

    assert table.page_index == 2
    assert [r['id'] for r in table.rows] == ['21', '22', '23', '24', '25']


def test_changing_page_size_returns_to_first_page():
    table = DataTable(COLUMNS, make_records(25))
    table.set_page_index(2)

    table.set_page_size(20)

    assert table.page_index == 0
    assert table.page_count == 2
    assert len(table.rows) == 20


def test_search_is_case_insensitive_and_idempotent():
    records = [{'id': '1', 'name': 'Alpha'}, {'id': '2', 'name': 'beta'}, {'id': '3', 'name': 'ALPHABET'}]
    table = DataTable(COLUMNS, records, search_column='name')

    table.set_search('alpha')
    first = [r['id'] for r in table.rows]
    table.set_search('alpha')

    assert first == ['1', '3']
    assert [r['id'] for r in table.rows] == first


def test_search_resets_self_managed_page():
    table = DataTable(COLUMNS, make_records(25), search_column='name')
    table.set_page_index(2)

    table.set_search('Item 1')

    assert table.page_index == 0
    assert len(table.rows) == 10


def test_search_without_search_column_is_ignored():
    table = DataTable(COLUMNS, make_records(3))
    table.set_search('nothing')
    assert len(table.rows) == 3


def test_toggle_sorting_cycles_ascending_descending_none():
    records = [{'id': '1', 'name': 'b'}, {'id': '2', 'name': 'a'}, {'id': '3', 'name': 'c'}]
    table = DataTable(COLUMNS, records)

    table.toggle_sorting('name')
    assert [r['id'] for r in table.rows] == ['2', '1', '3']

    table.toggle_sorting('name')
    assert [r['id'] for r in table.rows] == ['3', '1', '2']

    table.toggle_sorting('name')
    assert table.sorting.state == SortingState()
    assert [r['id'] for r in table.rows] == ['1', '2', '3']


def test_sorting_numbers_and_missing_values():
    records = [{'id': '1', 'price': 300}, {'id': '2'}, {'id': '3', 'price': 20}, {'id': '4', 'price': 100}]
    table = DataTable(COLUMNS, records)

    table.set_sorting('price', desc=True)

    assert [r['id'] for r in table.rows] == ['1', '4', '3', '2']


def test_unsortable_column_is_ignored():
    table = DataTable(COLUMNS, make_records(3))
    table.set_sorting('actions')
    assert table.sorting.state == SortingState()


def test_external_pagination_reports_change_without_applying_it():
    requested = []
    state = PaginationState(page_index=0, page_size=10)
    records = make_records(10)
    table = DataTable(COLUMNS, records, pagination=ExternallyPaginated(state, requested.append, page_count=5))

    table.set_page_size(20)

    assert requested == [PaginationState(page_index=0, page_size=20)]
    assert table.page_size == 10
    assert table.rows == records


def test_externally_driven_rows_are_shown_as_given():
    records = [{'id': '1', 'name': 'zeta'}, {'id': '2', 'name': 'alpha'}]
    table = DataTable(
        COLUMNS, records, search_column='name',
        sorting=ExternallyDriven(SortingState('name'), None),
        filtering=ExternallyDriven(FilterState('name', 'alpha'), None),
    )

    assert [r['id'] for r in table.rows] == ['1', '2']
    assert table.search_value == 'alpha'


def test_external_search_does_not_touch_external_pagination():
    changes = []
    table = DataTable(
        COLUMNS, [], search_column='name',
        pagination=ExternallyPaginated(PaginationState(3, 10), changes.append, page_count=5),
        filtering=ExternallyDriven(FilterState('name'), changes.append),
    )

    table.set_search('x')

    assert changes == [FilterState('name', 'x')]
    assert table.page_index == 3


def test_unknown_page_count_allows_next():
    table = DataTable(COLUMNS, [], pagination=ExternallyDriven(PaginationState(4, 10), None))
    assert table.page_count == UNKNOWN_PAGE_COUNT
    assert table.can_next_page


def test_page_count_for_total_rounds_up():
    mode = ExternallyPaginated.for_total(PaginationState(0, 10), None, 25)
    assert mode.page_count == 3
    assert ExternallyPaginated.for_total(PaginationState(0, 10), None, None).page_count == UNKNOWN_PAGE_COUNT


def test_unsupported_mode_is_rejected():
    with pytest.raises(TypeError):
        DataTable(COLUMNS, [], pagination=PaginationState())


def test_apply_query_replays_parameters():
    table = DataTable(COLUMNS, make_records(45), search_column='name')

    table.apply_query(QueryDict('page=2&size=20&sort=price&order=desc&q=item'))

    assert table.page_size == 20
    assert table.page_index == 1
    assert table.sorting.state == SortingState('price', True)
    assert table.rows[0]['id'] == '25'


def test_apply_query_ignores_unknown_page_size():
    table = DataTable(COLUMNS, make_records(5))
    table.apply_query(QueryDict('size=15'))
    assert table.page_size == 10


def test_header_links_start_from_first_page():
    table = DataTable(COLUMNS, make_records(25), search_column='name')
    table.set_page_index(1)

    headers = {h['column'].key: h for h in table.headers}

    assert headers['name']['url'] == '?page=1&size=10&sort=name&order=asc'
    assert headers['actions']['url'] is None


def test_header_link_after_descending_clears_sort():
    table = DataTable(COLUMNS, make_records(5), search_column='name')
    table.set_sorting('name', desc=True)
    table.set_search('item')

    headers = {h['column'].key: h for h in table.headers}

    assert headers['name']['direction'] == 'desc'
    assert headers['name']['url'] == '?page=1&size=10&q=item'


def test_pager_urls_keep_state():
    table = DataTable(COLUMNS, make_records(25))
    table.set_sorting('name')
    table.set_page_index(1)

    assert table.previous_page_url == '?page=1&size=10&sort=name&order=asc'
    assert table.next_page_url == '?page=3&size=10&sort=name&order=asc'


def test_table_state_from_query_uses_defaults():
    state = TableState.from_query(QueryDict(''), 'tieuDe', SortingState('createdAt', True))

    assert state.pagination == PaginationState(0, 10)
    assert state.sorting == SortingState('createdAt', True)
    assert state.filtering == FilterState('tieuDe', '')


def test_body_rows_pair_columns_with_values():
    table = DataTable(COLUMNS, [{'id': '1', 'name': 'A', 'price': 5}])
    cells = table.body_rows[0]['cells']
    assert [(column.key, value) for column, value in cells] == [('name', 'A'), ('price', 5), ('actions', None)]


def test_loading_table_renders_a_single_loading_row():
    table = DataTable(COLUMNS[:2], make_records(3), loading=True)

    html = render_to_string('admin_panel/includes/data_table.html', {'table': table})

    assert 'Loading...' in html
    assert 'Item 01' not in html


def test_empty_table_renders_no_results_row():
    html = render_to_string('admin_panel/includes/data_table.html', {'table': DataTable(COLUMNS[:2], [])})

    assert 'No results.' in html
    assert 'Loading...' not in html
