"""
Shared fixtures and fake driver for engine/ tests.

Key fixtures:
- fake_driver: in-memory DatabaseDriver recording executed SQL
- fake_db: SafeDatabase wired to fake_driver
- sqlite_db: SafeDatabase on an in-memory SQLite database with a seeded table
"""

import pytest

from sql.dialects import MYSQL
from utils.driver import RESULT_NUM, DriverError


class FakeResult:
    """Result set holding dict rows."""
    def __init__(self, rows=None):
        self.rows = list(rows or [])
        self.position = 0
        self.freed = False


class FakeDriver:
    """DatabaseDriver double; queue results or errors before executing."""

    dialect = MYSQL

    def __init__(self, connect_error=None, escaper=None):
        self.connect_error = connect_error
        self.escaper = escaper
        self.connected = False
        self.executed = []
        self.results = []
        self.errors = []
        self.closed = False
        self._last_error = None

    def queue(self, rows):
        result = FakeResult(rows)
        self.results.append(result)
        return result

    def fail_next(self, message):
        self.errors.append(message)

    def connect(self):
        if self.connect_error:
            raise DriverError(self.connect_error)
        self.connected = True

    def execute(self, sql):
        self.executed.append(sql)
        if self.errors:
            self._last_error = self.errors.pop(0)
            raise DriverError(self._last_error)
        self._last_error = None
        return self.results.pop(0) if self.results else FakeResult()

    def escape_literal(self, value):
        if self.escaper is not None:
            return self.escaper(value)
        return self.dialect.escape_literal(value)

    def fetch_row(self, result, mode='assoc'):
        if result.position >= len(result.rows):
            return None
        row = result.rows[result.position]
        result.position += 1
        return tuple(row.values()) if mode == RESULT_NUM else dict(row)

    def column_names(self, result):
        return list(result.rows[0].keys()) if result.rows else []

    def affected_rows(self):
        return 0

    def insert_id(self):
        return None

    def num_rows(self, result):
        return len(result.rows)

    def free(self, result):
        result.freed = True

    def last_error(self):
        return self._last_error

    def close(self):
        self.closed = True


@pytest.fixture
def fake_driver_factory():
    """Factory that creates a FakeDriver with the given overrides."""
    def factory(**overrides):
        return FakeDriver(**overrides)

    return factory


@pytest.fixture
def fake_driver():
    return FakeDriver()


@pytest.fixture
def fake_db(fake_driver):
    from engine.safe_database import SafeDatabase

    return SafeDatabase(fake_driver, error_mode='exception')


@pytest.fixture
def sqlite_db():
    from engine.safe_database import SafeDatabase

    db = SafeDatabase(drivername='sqlite', database=':memory:', error_mode='exception')
    db.query("CREATE TABLE ?n (id INTEGER PRIMARY KEY, name TEXT, city TEXT)", 'users')
    db.query(
        "INSERT INTO ?n ?k", 'users',
        [
            {'name': 'Ann', 'city': 'Oslo'},
            {'name': 'Bob', 'city': 'Rome'},
            {'name': "O'Neil", 'city': 'Oslo'},
        ],
    )
    yield db
    db.close()
