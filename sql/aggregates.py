"""
=====================
Aggregate selections.
=====================

count/sum/avg/min/max over a filtered table. Each returns a SelectQuery
producing one number, so it can run standalone or be used as a lateral
(one number per parent row).

Example:
    >>> count('posts', {'user_id': 1}).run(executor)
    2
    >>> max('orders', {'customer_id': 7}, columns=['total']).run(executor)
    129.5

Results are ints when integral and floats otherwise. count over no rows is
0; the other aggregates return None.
"""

from typing import Any, List, Optional, Sequence

from .conditions import where_clause
from .errors import QueryStructureError
from .fragment import ALL, Fragment, ident, table_ident
from .query import SelectQuery, SelectResultMode
from .shortcuts import table_alias


def _aggregate(
    function: str,
    table: str,
    where: Any,
    columns: Optional[Sequence[str]],
    distinct: bool,
    alias: Optional[str],
    allow_star: bool
) -> SelectQuery:
    columns = list(columns or ())
    if len(columns) > 1:
        raise QueryStructureError(f"{function}() takes at most one column, got {columns}")
    if not columns and not allow_star:
        raise QueryStructureError(f"{function}() needs exactly one column")
    if not columns and distinct:
        raise QueryStructureError(f"{function}(DISTINCT ...) needs a column")

    source = table_alias(table, alias)
    argument: List[Any] = ['DISTINCT '] if distinct else []
    argument.append(ident(columns[0]) if columns else '*')
    segments = [
        f"SELECT {function}(", Fragment(argument), ') AS result FROM ', table_ident(table), ' AS ', source,
        ' WHERE ', where_clause(where),
    ]
    return SelectQuery(segments, table=table, mode=SelectResultMode.NUMERIC)


def count(
    table: str,
    where: Any = ALL,
    *,
    columns: Optional[Sequence[str]] = None,
    distinct: bool = False,
    alias: Optional[str] = None
) -> SelectQuery:
    """count(*) of matching rows, or count(column) of their non-null values."""
    return _aggregate('count', table, where, columns, distinct, alias, allow_star=True)


def sum(
    table: str,
    where: Any = ALL,
    *,
    columns: Sequence[str],
    distinct: bool = False,
    alias: Optional[str] = None
) -> SelectQuery:
    return _aggregate('sum', table, where, columns, distinct, alias, allow_star=False)


def avg(
    table: str,
    where: Any = ALL,
    *,
    columns: Sequence[str],
    distinct: bool = False,
    alias: Optional[str] = None
) -> SelectQuery:
    return _aggregate('avg', table, where, columns, distinct, alias, allow_star=False)


def min(
    table: str,
    where: Any = ALL,
    *,
    columns: Sequence[str],
    distinct: bool = False,
    alias: Optional[str] = None
) -> SelectQuery:
    return _aggregate('min', table, where, columns, distinct, alias, allow_star=False)


def max(
    table: str,
    where: Any = ALL,
    *,
    columns: Sequence[str],
    distinct: bool = False,
    alias: Optional[str] = None
) -> SelectQuery:
    """Largest value of one column over matching rows (None if no rows)."""
    return _aggregate('max', table, where, columns, distinct, alias, allow_star=False)
