"""
================================================
Configuration management for the query engine.
================================================

Loads configuration from environment variables (.env file) and provides a
centralized Config instance used as the default source of settings.

The configuration covers:
- Database connection parameters for the SQLAlchemy driver
- Templating behaviour (dialect, error mode, statistics size)
- Logging output

Every consumer also accepts explicit parameters, so the global instance is
only a fallback and never shared engine state.

Example:
    >>> from core.config import config
    >>>
    >>> # Database connection
    >>> url = config.get_connection_string()
    >>>
    >>> # Access individual settings
    >>> print(f"Dialect: {config.templater.dialect}, errmode: {config.templater.error_mode}")
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    return int(raw) if raw else None


@dataclass
class DatabaseConfig:
    """Database connection settings.

    Attributes:
        drivername: SQLAlchemy driver name (e.g. 'mysql+pymysql')
        host: Database server hostname or IP address
        port: Database server port, None for the driver default
        user: Database username
        password: Database password
        database: Database name
        charset: Connection character set (MySQL only)
    """

    drivername: str
    host: str
    port: Optional[int]
    user: str
    password: str
    database: str
    charset: str

    def get_connection_string(self) -> str:
        """Get a SQLAlchemy connection string.

        Returns:
            SQLAlchemy URL string with the password masked
        """
        from utils.database_utils import build_url

        return build_url(**self.get_connection_params()).render_as_string(hide_password=True)

    def get_connection_params(self) -> dict:
        """Get connection parameters as dictionary.

        Returns:
            Dictionary with keys: drivername, host, port, user, password,
            database, charset
        """
        return {
            'drivername': self.drivername,
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.database,
            'charset': self.charset,
        }


DEFAULT_DIALECT = 'mysql'


@dataclass
class TemplaterConfig:
    """Templating and error handling settings.

    Attributes:
        dialect: SQL dialect whose quoting rules apply ('mysql', 'postgresql',
            'sqlite'). None lets SafeDatabase follow its driver's backend;
            render-only CLI use then falls back to DEFAULT_DIALECT
        error_mode: 'exception' to raise errors, 'error' to abort on them
        stats_limit: Number of executed statements kept in statistics
    """

    dialect: Optional[str] = None
    error_mode: str = 'exception'
    stats_limit: int = 100


@dataclass
class LoggingConfig:
    """Logging output settings.

    Attributes:
        level: Root log level
        log_file: Optional log file name
        log_dir: Directory for the log file
    """

    level: str = 'INFO'
    log_file: Optional[str] = None
    log_dir: str = 'logs'


class Config:
    """Centralized configuration manager.

    Attributes:
        db: DatabaseConfig with connection settings
        templater: TemplaterConfig with rendering and error settings
        logging: LoggingConfig with log output settings

    Example:
        >>> config = Config()
        >>> print(f"Connecting to {config.db_host}:{config.db_port}")
    """

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.db = DatabaseConfig(
            drivername=os.getenv('SAFESQL_DRIVER', 'mysql+pymysql'),
            host=os.getenv('SAFESQL_HOST', 'localhost'),
            port=_optional_int('SAFESQL_PORT'),
            user=os.getenv('SAFESQL_USER', 'root'),
            password=os.getenv('SAFESQL_PASSWORD', ''),
            database=os.getenv('SAFESQL_DB', 'test'),
            charset=os.getenv('SAFESQL_CHARSET', 'utf8mb4'),
        )

        self.templater = TemplaterConfig(
            dialect=os.getenv('SAFESQL_DIALECT') or None,
            error_mode=os.getenv('SAFESQL_ERRMODE', 'exception'),
            stats_limit=int(os.getenv('SAFESQL_STATS_LIMIT', '100')),
        )

        self.logging = LoggingConfig(
            level=os.getenv('SAFESQL_LOG_LEVEL', 'INFO'),
            log_file=os.getenv('SAFESQL_LOG_FILE') or None,
            log_dir=os.getenv('SAFESQL_LOG_DIR', 'logs'),
        )

    @property
    def db_host(self) -> str:
        """Get database server hostname."""
        return self.db.host

    @property
    def db_port(self) -> Optional[int]:
        """Get database server port number."""
        return self.db.port

    @property
    def db_user(self) -> str:
        return self.db.user

    @property
    def db_password(self) -> str:
        return self.db.password

    @property
    def db_name(self) -> str:
        return self.db.database

    def get_connection_string(self) -> str:
        """Get database connection string (password masked)."""
        return self.db.get_connection_string()

    def get_connection_params(self) -> dict:
        """Get database connection parameters."""
        return self.db.get_connection_params()


# Global configuration instance
config = Config()
