"""
====================================================
SQL composition package for PostgreSQL statements.
====================================================

This package builds parameterized PostgreSQL statements from plain Python
values. Nothing here opens a connection or logs: every builder returns an
immutable Fragment (or Query) that is rendered to text plus parameters and
handed to an executor from utils.executors.

The package is organized by concern:
    - identifiers.py: identifier quoting
    - fragment.py: Fragment and the sql() template helper
    - render.py: placeholder numbering and the render context
    - conditions.py: column conditions and where-clauses
    - query.py: executable queries and result decoding
    - lateral.py: correlated (LEFT JOIN LATERAL) subqueries
    - shortcuts.py: select/insert/upsert/update/deletes/truncate
    - aggregates.py: count/sum/avg/min/max
    - errors.py: exception hierarchy

Example:
    >>> from sql import select, count, parent, ALL
    >>> query = select('users', ALL, lateral={
    ...     'postCount': count('posts', {'user_id': parent('id')})
    ... })
    >>> compiled = query.render()
    >>> compiled.params
    ['postCount']
"""

__version__ = "1.0.0"
__all__ = [
    # Fragments
    'sql', 'join', 'param', 'ident', 'raw', 'cols', 'vals', 'parent',
    'Fragment', 'CompiledQuery', 'ALL', 'DEFAULT', 'SELF',
    # Conditions
    'eq', 'ne', 'gt', 'gte', 'lt', 'lte', 'like', 'not_like', 'ilike', 'not_ilike',
    're_match', 're_imatch', 'not_re_match', 'not_re_imatch',
    'is_null', 'is_not_null', 'is_true', 'is_not_true', 'is_false', 'is_not_false',
    'is_unknown', 'is_not_unknown', 'is_distinct_from', 'is_not_distinct_from',
    'between', 'not_between', 'between_symmetric', 'not_between_symmetric',
    'is_in', 'is_not_in', 'and_', 'or_', 'not_', 'Condition', 'ConditionKind',
    # Statements
    'select', 'select_one', 'select_exactly_one', 'insert', 'upsert', 'update',
    'deletes', 'truncate', 'Constraint', 'DO_NOTHING', 'Query', 'SelectQuery',
    'count', 'sum', 'avg', 'min', 'max',
    # Errors
    'QueryError', 'QueryStructureError', 'ParentContextError', 'NotExactlyOneError',
]

from .aggregates import avg, count, max, min, sum
from .conditions import (
    Condition,
    ConditionKind,
    and_,
    between,
    between_symmetric,
    eq,
    gt,
    gte,
    ilike,
    is_distinct_from,
    is_false,
    is_in,
    is_not_distinct_from,
    is_not_false,
    is_not_in,
    is_not_null,
    is_not_true,
    is_not_unknown,
    is_null,
    is_true,
    is_unknown,
    like,
    lt,
    lte,
    ne,
    not_,
    not_between,
    not_between_symmetric,
    not_ilike,
    not_like,
    not_re_imatch,
    not_re_match,
    or_,
    re_imatch,
    re_match,
)
from .errors import NotExactlyOneError, ParentContextError, QueryError, QueryStructureError
from .fragment import (
    ALL,
    DEFAULT,
    SELF,
    CompiledQuery,
    Fragment,
    cols,
    ident,
    join,
    param,
    parent,
    raw,
    sql,
    vals,
)
from .query import Query, SelectQuery
from .shortcuts import (
    DO_NOTHING,
    Constraint,
    deletes,
    insert,
    select,
    select_exactly_one,
    select_one,
    truncate,
    update,
    upsert,
)
