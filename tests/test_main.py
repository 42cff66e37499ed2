"""
===============================================
Comprehensive pytest suite for main.py
===============================================

Sections:
---------
1. Unit tests - Argument parsing
2. CLI tests - Rendering templates
3. Integration tests - Executing against SQLite
4. Edge case tests - Exit codes and error handling

How to Execute:
---------------
All tests:          pytest tests/test_main.py -v
By category:        pytest tests/test_main.py -m unit
"""

import json
from unittest.mock import patch

import pytest

from main import build_parser, main
from utils.database_utils import DatabaseConnectionError


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep main() from replacing the root logging handlers during tests."""
    with patch('main.setup_logging') as mock_setup:
        yield mock_setup


# ===============
# 1. UNIT TESTS
# ===============


@pytest.mark.unit
def test_parser_defaults():
    args = build_parser().parse_args(["SELECT 1"])

    assert args.template == "SELECT 1"
    assert args.positional is None
    assert args.named is None
    assert args.dialect is None
    assert not args.execute
    assert not args.check_connection
    assert not args.verbose


@pytest.mark.unit
def test_parser_rejects_unknown_dialect():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["SELECT 1", "--dialect", "oracle"])


@pytest.mark.unit
def test_verbose_sets_debug_level(no_logging_setup, capsys):
    main(["SELECT 1", "--verbose"])

    assert no_logging_setup.call_args.kwargs['log_level'] == 'DEBUG'


@pytest.mark.unit
def test_log_level_option(no_logging_setup, capsys):
    main(["SELECT 1", "--log-level", "WARNING"])

    assert no_logging_setup.call_args.kwargs['log_level'] == 'WARNING'


# =================
# 2. CLI TESTS
# =================


@pytest.mark.smoke
def test_render_positional(capsys):
    code = main(["SELECT * FROM ?n WHERE id IN (?a)", "--args", '["users", [1, 2]]'])

    assert code == 0
    assert capsys.readouterr().out.strip() == "SELECT * FROM `users` WHERE id IN ('1','2')"


@pytest.mark.unit
def test_render_named(capsys):
    code = main(["SELECT ?i:id, ?i:id", "--named", '{"id": 5}'])

    assert code == 0
    assert capsys.readouterr().out.strip() == "SELECT 5, 5"


@pytest.mark.unit
def test_render_with_dialect(capsys):
    code = main(["SELECT ?n", "--args", '["t"]', "--dialect", "postgresql"])

    assert code == 0
    assert capsys.readouterr().out.strip() == 'SELECT "t"'


@pytest.mark.unit
def test_template_without_args(capsys):
    assert main(["SELECT 1"]) == 0
    assert capsys.readouterr().out.strip() == "SELECT 1"


@pytest.mark.unit
def test_render_error_returns_1(capsys):
    assert main(["SELECT ?i, ?i", "--args", "[1]"]) == 1
    assert capsys.readouterr().out == ""


# ======================
# 3. INTEGRATION TESTS
# ======================


@pytest.fixture
def sqlite_engine_db():
    """Patch main.SafeDatabase so --execute runs on in-memory SQLite."""
    from engine.safe_database import SafeDatabase

    def factory(dialect=None):
        return SafeDatabase(drivername='sqlite', database=':memory:', dialect=dialect)

    with patch('main.SafeDatabase', side_effect=factory) as mock_db:
        yield mock_db


@pytest.mark.integration
def test_execute_prints_rows(sqlite_engine_db, capsys):
    code = main(["SELECT ?i AS n, ?s AS s", "--args", '[7, "x"]', "--execute"])

    assert code == 0
    assert json.loads(capsys.readouterr().out) == [{'n': 7, 's': 'x'}]


@pytest.mark.integration
def test_execute_named(sqlite_engine_db, capsys):
    code = main(["SELECT ?s:v AS a, ?s:v AS b", "--named", '{"v": "q"}', "--execute"])

    assert code == 0
    assert json.loads(capsys.readouterr().out) == [{'a': 'q', 'b': 'q'}]


@pytest.mark.integration
def test_execute_error_returns_1(sqlite_engine_db, capsys):
    assert main(["SELECT * FROM ?n", "--args", '["missing"]', "--execute"]) == 1


# ====================
# 4. EDGE CASE TESTS
# ====================


@pytest.mark.edge_case
def test_no_template_prints_help(capsys):
    assert main([]) == 1
    assert "usage:" in capsys.readouterr().out


@pytest.mark.edge_case
def test_args_and_named_are_exclusive(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["SELECT ?s", "--args", '["a"]', "--named", '{"a": 1}'])

    assert excinfo.value.code == 2


@pytest.mark.edge_case
@pytest.mark.parametrize("argv", [
    ["SELECT ?s", "--args", "not json"],
    ["SELECT ?s", "--args", '{"a": 1}'],
    ["SELECT ?s:a", "--named", '["a"]'],
])
def test_bad_json_returns_1(argv, capsys):
    assert main(argv) == 1


@pytest.mark.edge_case
def test_check_connection_success():
    with patch('main.wait_for_database', return_value=True) as mock_wait:
        assert main(["--check-connection"]) == 0

    mock_wait.assert_called_once_with(max_retries=3, retry_delay=1)


@pytest.mark.edge_case
def test_check_connection_failure():
    with patch('main.wait_for_database', side_effect=DatabaseConnectionError("down")):
        assert main(["--check-connection"]) == 1


@pytest.mark.edge_case
def test_keyboard_interrupt_returns_130():
    with patch('main.render', side_effect=KeyboardInterrupt):
        assert main(["SELECT 1"]) == 130
