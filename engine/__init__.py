"""
==================================
Query engine package.
==================================

Modules:
    safe_database: SafeDatabase, the placeholder query engine

Example:
    >>> from engine import SafeDatabase
    >>> db = SafeDatabase(drivername='sqlite', database=':memory:')
    >>> db.get_one("SELECT ?i + ?i", 2, 3)
    5
"""

__version__ = "0.1.0"
__all__ = ['SafeDatabase']

from engine.safe_database import SafeDatabase
