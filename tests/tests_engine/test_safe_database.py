"""
===============================================
Comprehensive pytest suite for engine/safe_database.py
===============================================

Sections:
---------
1. Unit tests - construction, rendering and error modes (fake driver)
2. Integration tests - result helpers on SQLite
3. Statistics tests
4. Edge case tests

How to Execute:
---------------
All tests:          pytest tests/tests_engine/test_safe_database.py -v
By category:        pytest tests/tests_engine/test_safe_database.py -m integration
"""

import pandas as pd
import pytest

from core.config import config
from engine.safe_database import SafeDatabase
from sql.dialects import POSTGRESQL, SQLITE
from sql.errors import ArityMismatch, ConnectError, ExecutionError, InvalidFormat


class AppDatabaseError(Exception):
    pass


# ===============
# 1. UNIT TESTS
# ===============


@pytest.mark.unit
def test_constructor_connects(fake_driver):
    db = SafeDatabase(fake_driver)

    assert fake_driver.connected
    assert db.dialect.name == fake_driver.dialect.name


@pytest.mark.unit
def test_explicit_dialect_overrides_driver(fake_driver):
    db = SafeDatabase(fake_driver, dialect='postgresql')

    assert db.dialect.name == POSTGRESQL.name
    assert db.parse("SELECT ?n", "t") == 'SELECT "t"'


@pytest.mark.unit
def test_literals_are_escaped_by_driver(fake_driver_factory):
    db = SafeDatabase(fake_driver_factory(escaper=lambda value: value.replace("'", "''")))

    assert db.parse("SELECT ?s", "O'Brien") == "SELECT 'O''Brien'"
    assert db.parse("SELECT ?a", ["it's"]) == "SELECT 'it''s'"


@pytest.mark.unit
def test_configured_dialect_is_used(fake_driver, monkeypatch):
    monkeypatch.setattr(config.templater, 'dialect', 'postgresql')

    db = SafeDatabase(fake_driver)

    assert db.dialect.name == 'postgresql'
    assert db.parse("SELECT ?n", "t") == 'SELECT "t"'


@pytest.mark.unit
def test_explicit_dialect_beats_configured_dialect(fake_driver, monkeypatch):
    monkeypatch.setattr(config.templater, 'dialect', 'postgresql')

    assert SafeDatabase(fake_driver, dialect='sqlite').dialect.name == 'sqlite'


@pytest.mark.unit
def test_connect_failure_raises_connect_error(fake_driver_factory):
    with pytest.raises(ConnectError, match="SafeSQL: Access denied"):
        SafeDatabase(fake_driver_factory(connect_error="Access denied"), error_mode='exception')


@pytest.mark.unit
def test_connect_failure_in_error_mode_exits(fake_driver_factory):
    with pytest.raises(SystemExit, match="Access denied"):
        SafeDatabase(fake_driver_factory(connect_error="Access denied"), error_mode='error')


@pytest.mark.unit
def test_invalid_error_mode_raises(fake_driver):
    with pytest.raises(ValueError):
        SafeDatabase(fake_driver, error_mode='quiet')


@pytest.mark.unit
def test_parse_does_not_execute(fake_db, fake_driver):
    sql = fake_db.parse("SELECT * FROM ?n WHERE id = ?i", "users", "5")

    assert sql == "SELECT * FROM `users` WHERE id = 5"
    assert fake_driver.executed == []


@pytest.mark.unit
def test_parse_named(fake_db):
    assert fake_db.parse_named("?s:a = ?s:a", {'a': 'x'}) == "'x' = 'x'"


@pytest.mark.unit
def test_query_sends_rendered_sql(fake_db, fake_driver):
    fake_db.query("DELETE FROM ?n WHERE id IN (?a)", "users", [1, 2])

    assert fake_driver.executed == ["DELETE FROM `users` WHERE id IN ('1','2')"]


@pytest.mark.unit
def test_query_named(fake_db, fake_driver):
    fake_db.query_named("UPDATE t SET ?u:data WHERE id = ?i:id", {'data': {'a': 1}, 'id': 3})

    assert fake_driver.executed == ["UPDATE t SET `a`='1' WHERE id = 3"]


@pytest.mark.unit
def test_render_error_is_raised_before_execution(fake_db, fake_driver):
    with pytest.raises(ArityMismatch):
        fake_db.query("SELECT ?i, ?i", 1)

    assert fake_driver.executed == []
    assert fake_db.get_stats() == []


@pytest.mark.unit
def test_execution_error_message(fake_db, fake_driver):
    fake_driver.fail_next("Table 'test.x' doesn't exist")

    with pytest.raises(ExecutionError) as excinfo:
        fake_db.query("SELECT * FROM ?n", "x", caller="report.py:7")

    assert str(excinfo.value) == (
        "SafeSQL: Table 'test.x' doesn't exist. Full query: [SELECT * FROM `x`]. "
        "Error initiated in report.py:7"
    )
    assert excinfo.value.query == "SELECT * FROM `x`"


@pytest.mark.unit
def test_custom_exception_class(fake_driver):
    db = SafeDatabase(fake_driver, exception_class=AppDatabaseError)

    with pytest.raises(AppDatabaseError, match=r"Integer \(\?i\) placeholder"):
        db.get_one("SELECT ?i", "abc")


@pytest.mark.unit
def test_error_mode_exits_on_execution_error(fake_driver):
    db = SafeDatabase(fake_driver, error_mode='error')
    fake_driver.fail_next("gone away")

    with pytest.raises(SystemExit) as excinfo:
        db.query("SELECT 1")

    assert str(excinfo.value) == "SafeSQL: gone away. Full query: [SELECT 1], thrown"


@pytest.mark.unit
def test_helpers_free_results(fake_db, fake_driver):
    first = fake_driver.queue([{'id': 1}, {'id': 2}])
    assert fake_db.get_one("SELECT id FROM t") == 1
    second = fake_driver.queue([{'id': 1}])
    assert fake_db.get_all("SELECT id FROM t") == [{'id': 1}]

    assert first.freed and second.freed


@pytest.mark.unit
def test_close_closes_driver(fake_db, fake_driver):
    fake_db.close()

    assert fake_driver.closed


# ======================
# 2. INTEGRATION TESTS
# ======================


@pytest.mark.integration
def test_sqlite_engine_uses_sqlite_dialect(sqlite_db):
    assert sqlite_db.dialect.name == SQLITE.name


@pytest.mark.integration
def test_get_one(sqlite_db):
    assert sqlite_db.get_one("SELECT name FROM ?n WHERE id = ?i", 'users', 2) == 'Bob'


@pytest.mark.integration
def test_get_one_no_rows(sqlite_db):
    assert sqlite_db.get_one("SELECT name FROM users WHERE id = ?i", 99) is None


@pytest.mark.integration
def test_get_row(sqlite_db):
    row = sqlite_db.get_row("SELECT * FROM users WHERE name = ?s", "O'Neil")

    assert row == {'id': 3, 'name': "O'Neil", 'city': 'Oslo'}


@pytest.mark.integration
def test_get_row_no_rows(sqlite_db):
    assert sqlite_db.get_row("SELECT * FROM users WHERE id = ?i", 99) is None


@pytest.mark.integration
def test_get_col(sqlite_db):
    ids = sqlite_db.get_col("SELECT id FROM users WHERE city = ?s ORDER BY id", 'Oslo')

    assert ids == [1, 3]


@pytest.mark.integration
def test_get_all(sqlite_db):
    rows = sqlite_db.get_all("SELECT id, name FROM users WHERE id IN (?a) ORDER BY id", [1, 2])

    assert rows == [{'id': 1, 'name': 'Ann'}, {'id': 2, 'name': 'Bob'}]


@pytest.mark.integration
def test_get_all_empty(sqlite_db):
    assert sqlite_db.get_all("SELECT * FROM users WHERE id IN (?a)", []) == []


@pytest.mark.integration
def test_get_ind(sqlite_db):
    data = sqlite_db.get_ind('id', "SELECT id, name FROM users ORDER BY id LIMIT ?i", 2)

    assert data == {1: {'id': 1, 'name': 'Ann'}, 2: {'id': 2, 'name': 'Bob'}}


@pytest.mark.integration
def test_get_ind_later_rows_win(sqlite_db):
    data = sqlite_db.get_ind('city', "SELECT city, name FROM users ORDER BY id")

    assert data['Oslo']['name'] == "O'Neil"


@pytest.mark.integration
def test_get_ind_col(sqlite_db):
    data = sqlite_db.get_ind_col('name', "SELECT name, id FROM users ORDER BY id")

    assert data == {'Ann': 1, 'Bob': 2, "O'Neil": 3}


@pytest.mark.integration
def test_get_frame(sqlite_db):
    frame = sqlite_db.get_frame("SELECT id, name FROM users ORDER BY id")

    assert isinstance(frame, pd.DataFrame)
    assert list(frame.columns) == ['id', 'name']
    assert frame['name'].tolist() == ['Ann', 'Bob', "O'Neil"]


@pytest.mark.integration
def test_update_with_filtered_set_clause(sqlite_db):
    form = {'name': 'Anna', 'id': 100}
    data = sqlite_db.filter_array(form, ['name'])

    sqlite_db.query("UPDATE users SET ?u WHERE id = ?i", data, 1)

    assert sqlite_db.affected_rows() == 1
    assert sqlite_db.get_one("SELECT name FROM users WHERE id = 1") == 'Anna'


@pytest.mark.integration
def test_insert_id(sqlite_db):
    sqlite_db.query("INSERT INTO users (name) VALUES (?s)", "Dee")

    assert sqlite_db.insert_id() == 4


@pytest.mark.integration
def test_multi_row_insert(sqlite_db):
    sqlite_db.query("INSERT INTO users (name, city) VALUES ?m", [['Eve', 'Bern'], ['Finn', 'Bern']])

    assert sqlite_db.get_col("SELECT name FROM users WHERE city = ?s ORDER BY id", 'Bern') == ['Eve', 'Finn']


@pytest.mark.integration
def test_filter_2d_array_feeds_key_value_rows(sqlite_db):
    rows = sqlite_db.filter_2d_array(
        [{'name': 'Gus', 'city': 'Nice', 'admin': 1}, {'name': 'Hal', 'city': 'Nice', 'admin': 1}],
        ['name', 'city'],
    )

    sqlite_db.query("INSERT INTO users ?k", rows)

    assert sqlite_db.get_one("SELECT COUNT(*) FROM users WHERE city = ?s", 'Nice') == 2


@pytest.mark.integration
def test_execution_error_on_sqlite(sqlite_db):
    with pytest.raises(ExecutionError, match=r"no such table: nope\. Full query: \[SELECT \* FROM \"nope\"\]"):
        sqlite_db.get_all("SELECT * FROM ?n", 'nope')


@pytest.mark.integration
def test_white_list(sqlite_db):
    order = sqlite_db.white_list('name; DROP TABLE users', ['id', 'name'], 'id')

    names = sqlite_db.get_col("SELECT name FROM users ORDER BY ?n DESC", order)

    assert names == ["O'Neil", 'Bob', 'Ann']


# ===================
# 3. STATISTICS TESTS
# ===================


@pytest.mark.integration
def test_last_query(sqlite_db):
    sqlite_db.get_one("SELECT name FROM users WHERE id = ?i", 1)

    assert sqlite_db.last_query() == "SELECT name FROM users WHERE id = 1"


@pytest.mark.unit
def test_last_query_empty(fake_db):
    assert fake_db.last_query() is None


@pytest.mark.unit
def test_stats_record_success_and_failure(fake_db, fake_driver):
    fake_db.query("SELECT 1")
    fake_driver.fail_next("boom")
    with pytest.raises(ExecutionError):
        fake_db.query("SELECT 2")

    first, second = fake_db.get_stats()
    assert (first.query, first.error) == ("SELECT 1", None)
    assert (second.query, second.error) == ("SELECT 2", "boom")
    assert first.timer >= 0


@pytest.mark.unit
def test_stats_limit(fake_driver):
    db = SafeDatabase(fake_driver, stats_limit=3)

    for n in range(5):
        db.query("SELECT ?i", n)

    assert [s.query for s in db.get_stats()] == ["SELECT 2", "SELECT 3", "SELECT 4"]


@pytest.mark.unit
def test_parse_is_not_recorded(fake_db):
    fake_db.parse("SELECT ?i", 1)

    assert fake_db.get_stats() == []


# ====================
# 4. EDGE CASE TESTS
# ====================


@pytest.mark.edge_case
def test_format_error_carries_caller(fake_db):
    with pytest.raises(InvalidFormat, match="Error initiated in jobs.py"):
        fake_db.get_all("SELECT * FROM t WHERE id IN (?a)", "1,2", caller="jobs.py")


@pytest.mark.edge_case
def test_get_ind_col_single_column(fake_db, fake_driver):
    fake_driver.queue([{'id': 1}])

    assert fake_db.get_ind_col('id', "SELECT id FROM t") == {1: None}


@pytest.mark.edge_case
def test_get_ind_missing_index_column(fake_db, fake_driver):
    fake_driver.queue([{'id': 1, 'name': 'Ann'}])

    with pytest.raises(InvalidFormat, match=r"Index column 'missing' not found in result columns \(id, name\)"):
        fake_db.get_ind('missing', "SELECT id, name FROM t", caller="jobs.py")


@pytest.mark.edge_case
def test_get_ind_col_missing_index_column(fake_db, fake_driver):
    fake_driver.queue([{'id': 1, 'name': 'Ann'}])

    with pytest.raises(InvalidFormat, match="Error initiated in jobs.py"):
        fake_db.get_ind_col('missing', "SELECT id, name FROM t", caller="jobs.py")


@pytest.mark.edge_case
def test_missing_index_column_in_error_mode_exits(fake_driver):
    db = SafeDatabase(fake_driver, error_mode='error')
    fake_driver.queue([{'id': 1}])

    with pytest.raises(SystemExit, match="Index column 'name' not found.*, thrown"):
        db.get_ind('name', "SELECT id FROM t")


@pytest.mark.edge_case
def test_result_mode_constants():
    assert SafeDatabase.RESULT_ASSOC == 'assoc'
    assert SafeDatabase.RESULT_NUM == 'num'


@pytest.mark.unit
def test_fetch_and_num_rows(fake_db, fake_driver):
    fake_driver.queue([{'id': 1, 'name': 'Ann'}, {'id': 2, 'name': 'Bob'}])

    result = fake_db.query("SELECT id, name FROM t")

    assert fake_db.num_rows(result) == 2
    assert fake_db.fetch(result) == {'id': 1, 'name': 'Ann'}
    assert fake_db.fetch(result, SafeDatabase.RESULT_NUM) == (2, 'Bob')
    assert fake_db.fetch(result) is None
    fake_db.free(result)
    assert result.freed
