"""
=========================================================
Command-line entry point for SafeSQL.
=========================================================

Renders query templates from the command line, optionally executes them
against the configured database, and checks connectivity.

Usage:
    # Render a template (no database needed)
    python main.py "SELECT * FROM ?n WHERE id IN ?a" --args '["users", [1, 2]]'

    # Render with named placeholders
    python main.py "SELECT * FROM t WHERE a = ?i:id OR b = ?i:id" --named '{"id": 5}'

    # Render and execute, printing rows as JSON
    python main.py "SELECT * FROM ?n LIMIT ?i" --args '["users", 10]' --execute

    # Wait for the configured database
    python main.py --check-connection

Exit Codes:
    0: Success
    1: Error
    130: User interrupt (Ctrl+C)
"""

import argparse
import json
import sys
from typing import Any, List, Optional

from core.config import DEFAULT_DIALECT, config
from core.logger import get_logger, setup_logging
from engine.safe_database import SafeDatabase
from logs.error_handler import ErrorReporter
from sql.dialects import get_dialect
from sql.errors import SafeSQLError
from sql.templater import render, render_named
from sql.values import Raw
from utils.database_utils import DatabaseConnectionError, wait_for_database

logger = get_logger(__name__)


def _load_json(raw: Optional[str], expected: type, option: str) -> Any:
    if raw is None:
        return expected()
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"{option} is not valid JSON: {e}") from None
    if not isinstance(value, expected):
        raise ValueError(f"{option} must be a JSON {'array' if expected is list else 'object'}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SafeSQL - type-hinted placeholder query templates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Placeholders:
  ?s string   ?i integer   ?n identifier   ?a IN list
  ?u SET      ?m rows      ?k key/value rows   ?p parsed SQL

Examples:
  python main.py "SELECT * FROM ?n WHERE id = ?i" --args '["users", 7]'
  python main.py "UPDATE ?n SET ?u" --args '["users", {"name": "Bob"}]' --dialect postgresql
  python main.py --check-connection
        """
    )
    parser.add_argument(
        'template',
        nargs='?',
        help='Query template with placeholders'
    )
    parser.add_argument(
        '--args',
        dest='positional',
        metavar='JSON',
        help='JSON array of positional values'
    )
    parser.add_argument(
        '--named',
        metavar='JSON',
        help='JSON object of values for named placeholders'
    )
    parser.add_argument(
        '--dialect',
        choices=['mysql', 'postgresql', 'sqlite'],
        help=f"Quoting rules to render with (default: {config.templater.dialect or DEFAULT_DIALECT})"
    )
    parser.add_argument(
        '--execute',
        action='store_true',
        help='Execute the rendered query and print rows as JSON'
    )
    parser.add_argument(
        '--check-connection',
        action='store_true',
        help='Wait for the configured database to accept connections'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help=f"Logging level (default: {config.logging.level})"
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging (DEBUG level, overrides --log-level)'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the command-line interface.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        log_level='DEBUG' if args.verbose else (args.log_level or config.logging.level),
        log_file=config.logging.log_file,
        log_dir=config.logging.log_dir,
    )

    try:
        if args.check_connection:
            wait_for_database(max_retries=3, retry_delay=1)
            return 0

        if args.template is None:
            parser.print_help()
            logger.warning("No template given")
            return 1

        if args.named is not None and args.positional is not None:
            parser.error("--args and --named are mutually exclusive")

        positional = _load_json(args.positional, list, '--args')
        named = _load_json(args.named, dict, '--named') if args.named is not None else None

        if args.execute:
            db = SafeDatabase(dialect=args.dialect)
            try:
                if named is not None:
                    rows = db.get_all("?p", Raw(db.parse_named(args.template, named)))
                else:
                    rows = db.get_all(args.template, *positional)
                print(json.dumps(rows, default=str, indent=2))
                logger.debug(f"Executed: {db.last_query()}")
            finally:
                db.close()
            return 0

        dialect = get_dialect(args.dialect or config.templater.dialect or DEFAULT_DIALECT)
        reporter = ErrorReporter(mode=config.templater.error_mode)
        if named is not None:
            result = render_named(args.template, named, dialect=dialect)
        else:
            result = render(args.template, *positional, dialect=dialect)
        print(reporter.check(result))
        return 0

    except (SafeSQLError, DatabaseConnectionError, ValueError) as e:
        logger.error(f"{e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Operation interrupted by user")
        return 130


if __name__ == '__main__':
    sys.exit(main())
