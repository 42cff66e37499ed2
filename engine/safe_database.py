"""
=====================================================
SafeDatabase: type-hinted placeholder query engine.
=====================================================

Executes templates with typed placeholders against a database driver and
shapes the results, in the spirit of PEAR::DB style helpers. Every value is
escaped according to its placeholder, so application code never splices raw
input into SQL.

Supported placeholders:
    ?s string, ?i integer, ?n identifier, ?a IN-list, ?u SET clause,
    ?m multi-row VALUES, ?k key/value rows, ?p already parsed SQL

Each instance owns its driver connection, statistics ring and error mode;
instances are not meant to be shared between threads.

Example:
    >>> from engine.safe_database import SafeDatabase
    >>>
    >>> db = SafeDatabase()  # connection and error mode from config
    >>> name = db.get_one("SELECT name FROM users WHERE id = ?i", user_id)
    >>> data = db.get_ind('id', "SELECT * FROM ?n WHERE id IN ?a", 'users', [1, 2])
    >>>
    >>> part = db.parse(" AND status = ?s", status) if status else ''
    >>> rows = db.get_all("SELECT * FROM users WHERE age > ?i ?p", 18, part)
    >>>
    >>> cars = [{'model': 'Audi A3', 'age': 22}, {'model': 'Ford Ka', 'age': 36}]
    >>> db.query("INSERT INTO cars ?k", db.filter_2d_array(cars, ['model', 'age']))
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type

import pandas as pd

from core.config import config
from logs.error_handler import ErrorReporter
from logs.query_stats import QueryStatistics, StatementStats
from sql.dialects import Dialect, get_dialect
from sql.errors import ConnectError, ExecutionError, InvalidFormat
from sql.templater import render, render_named
from sql.whitelist import filter_mapping, filter_rows, white_list
from utils.driver import RESULT_ASSOC, RESULT_NUM, DatabaseDriver, DriverError, SQLAlchemyDriver

logger = logging.getLogger(__name__)


class SafeDatabase:
    """Query engine with type-hinted placeholders.

    Attributes:
        driver: DatabaseDriver executing rendered SQL
        dialect: Quoting rules used for rendering
        reporter: ErrorReporter deciding how errors reach the caller
        stats: QueryStatistics of executed statements
    """

    RESULT_ASSOC = RESULT_ASSOC
    RESULT_NUM = RESULT_NUM

    def __init__(
        self,
        driver: Optional[DatabaseDriver] = None,
        *,
        dialect: Optional[str] = None,
        error_mode: Optional[str] = None,
        exception_class: Optional[Type[Exception]] = None,
        stats_limit: Optional[int] = None,
        **connection_params
    ):
        """Create the engine and connect.

        Args:
            driver: Database driver; a SQLAlchemyDriver built from
                ``connection_params`` and config when omitted
            dialect: Dialect name; defaults to config (SAFESQL_DIALECT), then
                to the driver's dialect
            error_mode: 'exception' or 'error' (defaults to config)
            exception_class: Exception type raised in exception mode
            stats_limit: Number of statements kept in statistics
            **connection_params: build_url() parameters for the default driver
        """
        settings = config.templater
        self.reporter = ErrorReporter(
            mode=error_mode or settings.error_mode,
            exception_class=exception_class,
        )
        self.stats = QueryStatistics(limit=stats_limit or settings.stats_limit)
        self.driver = driver if driver is not None else SQLAlchemyDriver(**connection_params)
        dialect = dialect or settings.dialect
        base = get_dialect(dialect) if dialect else self.driver.dialect
        # Literal escaping follows the driver's live connection
        self.dialect: Dialect = base.with_escaper(self.driver.escape_literal)

        try:
            self.driver.connect()
        except DriverError as e:
            self.reporter.report(ConnectError(str(e)))

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def parse(self, template: str, *args: Any, caller: Optional[str] = None) -> str:
        """
        Render ``template`` without executing it.

        Useful for debugging and for conditional query building: parts
        rendered here can be added to a bigger query through ?p.

        Example:
            >>> part = db.parse(" AND foo=?s", foo)
            >>> db.get_all("SELECT * FROM table WHERE bar=?s ?p", bar, part)
        """
        return self.reporter.check(
            render(template, *args, dialect=self.dialect, caller=caller), caller
        )

    def parse_named(
        self, template: str, values: Mapping[str, Any], caller: Optional[str] = None
    ) -> str:
        """Render a template whose placeholders carry names (``?s:title``)."""
        return self.reporter.check(
            render_named(template, values, dialect=self.dialect, caller=caller), caller
        )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _raw_query(self, sql: str, caller: Optional[str] = None) -> Any:
        """Execute rendered SQL, recording statistics for every attempt."""
        error = None
        with self.stats.measure(sql) as timer:
            try:
                result = self.driver.execute(sql)
            except DriverError as e:
                error = self.driver.last_error() or str(e)
                timer.fail(error)

        if error is not None:
            self.reporter.report(ExecutionError(error, sql), caller)
        return result

    def query(self, template: str, *args: Any, caller: Optional[str] = None) -> Any:
        """
        Render and execute a statement.

        Returns:
            Driver result object

        Example:
            >>> db.query("DELETE FROM table WHERE id=?i", record_id)
        """
        return self._raw_query(self.parse(template, *args, caller=caller), caller)

    def query_named(
        self, template: str, values: Mapping[str, Any], caller: Optional[str] = None
    ) -> Any:
        """Render a named template and execute it."""
        return self._raw_query(self.parse_named(template, values, caller=caller), caller)

    def fetch(self, result: Any, mode: str = RESULT_ASSOC) -> Optional[Any]:
        """Fetch the next row of ``result`` (dict for RESULT_ASSOC, tuple for RESULT_NUM)."""
        return self.driver.fetch_row(result, mode)

    def affected_rows(self) -> int:
        return self.driver.affected_rows()

    def insert_id(self) -> Optional[int]:
        return self.driver.insert_id()

    def num_rows(self, result: Any) -> int:
        return self.driver.num_rows(result)

    def free(self, result: Any) -> None:
        self.driver.free(result)

    def close(self) -> None:
        self.driver.close()

    def _index_value(self, row: Dict[str, Any], index: str, caller: Optional[str]) -> Any:
        """Return ``row[index]``, reporting a missing index column."""
        if index not in row:
            self.reporter.report(
                InvalidFormat(
                    'index', index,
                    f"Index column '{index}' not found in result columns ({', '.join(map(str, row))})"
                ),
                caller,
            )
        return row[index]

    def _rows(self, result: Any, mode: str = RESULT_ASSOC):
        try:
            while True:
                row = self.fetch(result, mode)
                if row is None:
                    break
                yield row
        finally:
            self.free(result)

    # ------------------------------------------------------------------
    # Result helpers
    # ------------------------------------------------------------------

    def get_one(self, template: str, *args: Any, caller: Optional[str] = None) -> Optional[Any]:
        """
        Get the first column of the first row.

        Returns:
            Scalar value, or None if the query returned no rows

        Example:
            >>> name = db.get_one("SELECT name FROM table WHERE id=?i", record_id)
        """
        result = self.query(template, *args, caller=caller)
        try:
            row = self.fetch(result, RESULT_NUM)
        finally:
            self.free(result)
        return row[0] if row else None

    def get_row(self, template: str, *args: Any, caller: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Get the first row as a dict, or None if no rows were found."""
        result = self.query(template, *args, caller=caller)
        try:
            return self.fetch(result)
        finally:
            self.free(result)

    def get_col(self, template: str, *args: Any, caller: Optional[str] = None) -> List[Any]:
        """
        Get the first column of every row.

        Example:
            >>> ids = db.get_col("SELECT id FROM tags WHERE tagname = ?s", tag)
        """
        result = self.query(template, *args, caller=caller)
        return [row[0] for row in self._rows(result, RESULT_NUM)]

    def get_all(self, template: str, *args: Any, caller: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Get all rows as a list of dicts; empty list when no rows were found.

        Example:
            >>> data = db.get_all("SELECT * FROM table LIMIT ?i,?i", start, rows)
        """
        result = self.query(template, *args, caller=caller)
        return list(self._rows(result))

    def get_ind(
        self, index: str, template: str, *args: Any, caller: Optional[str] = None
    ) -> Dict[Any, Dict[str, Any]]:
        """
        Get all rows keyed by the value of column ``index``.

        Later rows with the same key replace earlier ones.

        Example:
            >>> data = db.get_ind('id', "SELECT * FROM table LIMIT ?i,?i", start, rows)
        """
        result = self.query(template, *args, caller=caller)
        data = {}
        for row in self._rows(result):
            data[self._index_value(row, index, caller)] = row
        return data

    def get_ind_col(
        self, index: str, template: str, *args: Any, caller: Optional[str] = None
    ) -> Dict[Any, Any]:
        """
        Get a dictionary mapping column ``index`` to the first other column.

        Example:
            >>> cities = db.get_ind_col('name', "SELECT name, id FROM cities")
        """
        result = self.query(template, *args, caller=caller)
        data = {}
        for row in self._rows(result):
            key = self._index_value(row, index, caller)
            del row[index]
            data[key] = next(iter(row.values()), None)
        return data

    def get_frame(self, template: str, *args: Any, caller: Optional[str] = None) -> pd.DataFrame:
        """Get the whole result set as a pandas DataFrame."""
        result = self.query(template, *args, caller=caller)
        columns = self.driver.column_names(result)
        rows = list(self._rows(result, RESULT_NUM))
        return pd.DataFrame.from_records(rows, columns=columns)

    # ------------------------------------------------------------------
    # Whitelisting
    # ------------------------------------------------------------------

    def white_list(self, value: Any, allowed: Sequence[Any], default: Optional[Any] = None) -> Any:
        """
        Return ``value`` if it is in ``allowed``, else ``default``.

        Example:
            >>> order = db.white_list(params.get('order'), ['name', 'price'])
            >>> direction = db.white_list(params.get('dir'), ['ASC', 'DESC'], 'ASC')
        """
        return white_list(value, allowed, default)

    def filter_array(self, data: Mapping[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
        """Drop keys of ``data`` not in ``allowed`` before passing it to ?u."""
        return filter_mapping(data, allowed)

    def filter_2d_array(self, rows: Iterable[Mapping[str, Any]], allowed: Iterable[str]) -> List[Dict[str, Any]]:
        """Filter every row with filter_array(); meant for ?k."""
        return filter_rows(rows, allowed)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def last_query(self) -> Optional[str]:
        """Return the last executed SQL text, or None if nothing ran yet."""
        return self.stats.last_query()

    def get_stats(self) -> List[StatementStats]:
        """Return statistics of the retained executed statements, oldest first."""
        return self.stats.snapshot()
