"""
pytest suite for sql/whitelist.py
"""

import pytest

from sql.templater import parse
from sql.whitelist import filter_mapping, filter_rows, white_list


@pytest.mark.unit
def test_white_list_returns_allowed_value():
    assert white_list('price', ['name', 'price']) == 'price'


@pytest.mark.unit
def test_white_list_falls_back_to_default():
    assert white_list('DROP', ['ASC', 'DESC'], 'ASC') == 'ASC'
    assert white_list(None, ['ASC', 'DESC']) is None


@pytest.mark.unit
def test_white_list_returns_allowed_entry_not_input():
    # 1 == 1.0, the allowed entry is what comes back
    assert type(white_list(1.0, [1, 2])) is int


@pytest.mark.unit
def test_filter_mapping_keeps_allowed_keys_in_order():
    data = {'title': 't', 'admin': True, 'body': 'b'}

    assert list(filter_mapping(data, ['body', 'title'])) == ['title', 'body']


@pytest.mark.unit
def test_filter_rows():
    rows = [{'a': 1, 'x': 0}, {'a': 2, 'y': 0}]

    assert filter_rows(rows, ['a']) == [{'a': 1}, {'a': 2}]


@pytest.mark.integration
def test_whitelisted_order_clause():
    order = white_list('name; DROP TABLE users', ['name', 'price'], 'name')
    direction = white_list('desc', ['ASC', 'DESC'], 'ASC')

    sql = parse("SELECT * FROM t ORDER BY ?n ?p", order, direction)

    assert sql == "SELECT * FROM t ORDER BY `name` ASC"
