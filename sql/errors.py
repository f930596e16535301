"""
=================================
Exceptions for query composition.
=================================

Two families of errors are raised by the sql package:

- QueryStructureError: programmer errors detected while building or
  rendering a statement (a parent() reference with no enclosing query,
  ragged multi-row inserts, an empty upsert conflict target, bad ORDER BY
  directions). These are never retried.
- NotExactlyOneError: a data-shape error raised when select_exactly_one
  (standalone or as a lateral) sees zero or several rows.

Errors raised by the database driver are not wrapped; they reach the
caller unchanged.
"""

from typing import Any, Optional


class QueryError(Exception):
    """Base class for all errors raised by the sql package."""
    pass


class QueryStructureError(QueryError):
    """Exception raised when a statement is structurally malformed.

    Raised at build or render time, before anything reaches the database.
    """
    pass


class ParentContextError(QueryStructureError):
    """Exception raised when parent() or SELF cannot be resolved.

    A parent column reference only has meaning inside a lateral subquery,
    and SELF only inside a where-map entry.
    """
    pass


class NotExactlyOneError(QueryError):
    """Exception raised when exactly one row was expected.

    Attributes:
        query: The Query whose result violated the contract
        table: Table the query selects from
        row_count: Number of rows observed (2 means "two or more")
    """

    def __init__(
        self,
        message: str,
        query: Any = None,
        table: Optional[str] = None,
        row_count: Optional[int] = None
    ):
        super().__init__(message)
        self.query = query
        self.table = table
        self.row_count = row_count
