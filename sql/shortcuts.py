"""
=========================================
Statement builders (select/insert/update).
=========================================

Shortcut functions that assemble complete, executable statements from a
table name, row mappings and where maps. Every builder returns a Query;
nothing is executed until Query.run(executor) is called.

Result shapes:
    select              list of row dicts ([] when nothing matches)
    select_one          row dict or None
    select_exactly_one  row dict, NotExactlyOneError otherwise
    insert / upsert     row dict for a single row, list for a list of rows
    update / deletes    list of affected rows ([] when nothing matches)
    truncate            None

Example:
    >>> from sql import select, insert, parent, count, ALL
    >>> insert('users', {'name': 'Alice'}).run(executor)
    {'id': 1, 'name': 'Alice'}
    >>> select('users', ALL, lateral={'postCount': count('posts', {'user_id': parent('id')})},
    ...        order={'by': 'id', 'direction': 'ASC'}).run(executor)
    [{'id': 1, 'name': 'Alice', 'postCount': 0}]
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Union

from .conditions import where_clause
from .errors import QueryStructureError
from .fragment import (
    ALL,
    ColumnNames,
    ColumnValues,
    Fragment,
    Identifier,
    Parameter,
    Scope,
    Sentinel,
    ident,
    join,
    table_ident,
    to_segment,
)
from .lateral import lateral_joins, lateral_object, passthrough_result, split_laterals
from .query import Query, SelectQuery, SelectResultMode

DO_NOTHING = Sentinel('DO_NOTHING')
"""upsert(update_columns=DO_NOTHING): leave conflicting rows untouched."""

ORDER_DIRECTIONS = ('ASC', 'DESC')
ORDER_NULLS = ('FIRST', 'LAST')
LOCK_STRENGTHS = ('UPDATE', 'NO KEY UPDATE', 'SHARE', 'KEY SHARE')
LOCK_WAIT_OPTIONS = ('NOWAIT', 'SKIP LOCKED')
TRUNCATE_OPTIONS = ('RESTART IDENTITY', 'CONTINUE IDENTITY', 'CASCADE', 'RESTRICT')

_ACTION = Fragment([
    "jsonb_build_object('$action', CASE xmax WHEN 0 THEN 'INSERT' ELSE 'UPDATE' END)"
])


@dataclass(frozen=True)
class Constraint:
    """Named constraint used as an upsert conflict target."""

    name: str


# ====================================================================
# SHARED PIECES
# ====================================================================

def table_alias(table: str, alias: Optional[str] = None) -> Identifier:
    """Alias for a table in FROM: the given alias or the unqualified table name."""
    if alias is not None:
        return ident(alias)
    return ident(table_ident(table).name)


def _object(source: Identifier, columns: Optional[Sequence[str]]) -> Fragment:
    """jsonb object for one row of source: all columns or only the listed ones."""
    if columns is None:
        return Fragment(['to_jsonb(', source, '.*)'])
    pairs = [
        Fragment([Parameter(column, 'text'), ', ', Identifier(source.parts + (column,))])
        for column in columns
    ]
    return Fragment(['jsonb_build_object(', join(pairs), ')'])


def _extras_object(extras: Optional[Mapping[str, Any]]) -> Optional[Fragment]:
    if not extras:
        return None
    pairs = [
        Fragment([Parameter(key, 'text'), ', ', to_segment(value)])
        for key, value in extras.items()
    ]
    return Fragment(['jsonb_build_object(', join(pairs), ')'])


def _merge(*objects: Optional[Fragment]) -> Fragment:
    return join([item for item in objects if item is not None], ' || ')


def _returning(table: Identifier, returning: Optional[Sequence[str]], extras: Optional[Mapping[str, Any]],
               *more: Optional[Fragment]) -> Fragment:
    target = ident(table.name)
    return Fragment([' RETURNING ', _merge(_object(target, returning), _extras_object(extras), *more),
                     ' AS result'])


def _single_result(rows: List[Mapping[str, Any]]) -> Any:
    return rows[0]['result'] if rows else None


# ====================================================================
# SELECT
# ====================================================================

def _order_clause(order: Any) -> Fragment:
    items = [order] if isinstance(order, Mapping) else list(order)
    terms = []
    for item in items:
        by = item['by']
        direction = item.get('direction', 'ASC')
        nulls = item.get('nulls')
        if direction not in ORDER_DIRECTIONS:
            raise QueryStructureError(f"Direction must be ASC/DESC, got {direction!r}")
        if nulls is not None and nulls not in ORDER_NULLS:
            raise QueryStructureError(f"Nulls must be FIRST/LAST/undefined, got {nulls!r}")
        term = [by if isinstance(by, Fragment) else ident(by), f" {direction}"]
        if nulls is not None:
            term.append(f" NULLS {nulls}")
        terms.append(Fragment(term))
    return Fragment([' ORDER BY ', join(terms)])


def _distinct_clause(distinct: Any) -> Optional[Fragment]:
    if distinct is None or distinct is False:
        return None
    if distinct is True:
        return Fragment(['DISTINCT '])
    if isinstance(distinct, Fragment):
        return Fragment(['DISTINCT ON (', distinct, ') '])
    columns = [distinct] if isinstance(distinct, str) else list(distinct)
    return Fragment(['DISTINCT ON (', ColumnNames(tuple(columns)), ') '])


def _group_by_clause(group_by: Any) -> Fragment:
    if isinstance(group_by, Fragment):
        return Fragment([' GROUP BY ', group_by])
    columns = [group_by] if isinstance(group_by, str) else list(group_by)
    return Fragment([' GROUP BY ', ColumnNames(tuple(columns))])


def _lock_clause(lock: Any) -> Fragment:
    items = [lock] if isinstance(lock, Mapping) else list(lock)
    clauses = []
    for item in items:
        strength = item['for']
        if strength not in LOCK_STRENGTHS:
            raise QueryStructureError(f"Lock strength must be one of {LOCK_STRENGTHS}, got {strength!r}")
        clause: List[Any] = [f" FOR {strength}"]
        of = item.get('of')
        if of:
            tables = [of] if isinstance(of, str) else list(of)
            clause += [' OF ', join([table_ident(name) for name in tables])]
        wait = item.get('wait')
        if wait is not None:
            if wait not in LOCK_WAIT_OPTIONS:
                raise QueryStructureError(f"Lock wait must be one of {LOCK_WAIT_OPTIONS}, got {wait!r}")
            clause.append(f" {wait}")
        clauses.append(Fragment(clause))
    return Fragment(clauses)


def _select(
    table: str,
    where: Any,
    mode: SelectResultMode,
    columns: Optional[Sequence[str]] = None,
    extras: Optional[Mapping[str, Any]] = None,
    distinct: Any = None,
    order: Any = None,
    group_by: Any = None,
    having: Any = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    with_ties: bool = False,
    lock: Any = None,
    alias: Optional[str] = None,
    lateral: Any = None
) -> SelectQuery:
    passthrough, laterals = split_laterals(lateral)
    if passthrough is not None and (columns is not None or extras):
        raise QueryStructureError("A passthrough lateral cannot be combined with columns or extras")
    if with_ties and limit is None:
        raise QueryStructureError("with_ties needs a limit")

    source = table_alias(table, alias)
    if passthrough is not None:
        row_object = passthrough_result()
    else:
        row_object = _merge(_object(source, columns), _extras_object(extras), lateral_object(laterals))

    parts: List[Any] = ['SELECT ']
    distinct_clause = _distinct_clause(distinct)
    if distinct_clause is not None:
        parts.append(distinct_clause)
    parts += [row_object, ' AS result FROM ', table_ident(table), ' AS ', source]
    parts.append(lateral_joins(source, passthrough, laterals))
    parts += [' WHERE ', where_clause(where)]
    if group_by is not None:
        parts.append(_group_by_clause(group_by))
    if having is not None:
        parts += [' HAVING ', where_clause(having)]
    if order is not None:
        parts.append(_order_clause(order))
    if with_ties:
        if offset is not None:
            parts += [' OFFSET ', Parameter(offset), ' ROWS']
        parts += [' FETCH FIRST ', Parameter(limit), ' ROWS WITH TIES']
    else:
        if limit is not None:
            parts += [' LIMIT ', Parameter(limit)]
        if offset is not None:
            parts += [' OFFSET ', Parameter(offset)]
    if lock is not None:
        parts.append(_lock_clause(lock))
    rows = Fragment(parts)

    if mode is SelectResultMode.ONE:
        segments = [rows]
    else:
        segments = [
            "SELECT coalesce(jsonb_agg(result), '[]') AS result FROM (", rows, ') AS ',
            ident(f"sq_{source.name}"),
        ]
    return SelectQuery(segments, table=table, mode=mode, laterals=laterals, passthrough=passthrough)


def select(table: str, where: Any = ALL, **options: Any) -> SelectQuery:
    """SELECT rows as a list of dicts.

    Args:
        table: Table name, optionally schema-qualified ('schema.table')
        where: ALL, a where map or a Fragment
        **options: columns, extras, distinct, order, group_by, having,
            limit, offset, with_ties, lock, alias, lateral

    Returns:
        SelectQuery whose run() returns a list ([] when nothing matches)

    Raises:
        QueryStructureError: On invalid order/lock values or laterals
    """
    return _select(table, where, SelectResultMode.MANY, **options)


def select_one(table: str, where: Any = ALL, **options: Any) -> SelectQuery:
    """SELECT at most one row (LIMIT 1); run() returns a dict or None."""
    _reject_limit('select_one', options)
    return _select(table, where, SelectResultMode.ONE, limit=1, **options)


def select_exactly_one(table: str, where: Any = ALL, **options: Any) -> SelectQuery:
    """SELECT exactly one row; run() raises NotExactlyOneError otherwise.

    Two rows are fetched so that "more than one" can be told apart from
    "exactly one", both standalone and as a lateral.
    """
    _reject_limit('select_exactly_one', options)
    return _select(table, where, SelectResultMode.EXACTLY_ONE, limit=2, **options)


def _reject_limit(name: str, options: Mapping[str, Any]) -> None:
    for option in ('limit', 'with_ties'):
        if option in options:
            raise QueryStructureError(f"{name}() does not accept the '{option}' option")


# ====================================================================
# INSERT / UPSERT
# ====================================================================

def _aligned_rows(rows: Sequence[Mapping[str, Any]]) -> List[str]:
    """Column list shared by every row.

    Raises:
        QueryStructureError: If rows disagree on their column sets, or if
            several rows have no columns at all
    """
    columns = list(rows[0])
    expected = set(columns)
    for index, row in enumerate(rows[1:], start=1):
        if set(row) != expected:
            missing = sorted(expected - set(row))
            unexpected = sorted(set(row) - expected)
            raise QueryStructureError(
                f"Row {index} does not match the columns of row 0 "
                f"(missing: {missing}, unexpected: {unexpected}); pass DEFAULT explicitly"
            )
    if not columns and len(rows) > 1:
        raise QueryStructureError("Cannot insert several rows with no columns")
    return columns


def _values_clause(table: Identifier, rows: Sequence[Mapping[str, Any]]) -> Fragment:
    columns = _aligned_rows(rows)
    if not columns:
        return Fragment(['INSERT INTO ', table, ' DEFAULT VALUES'])
    tuples = [Fragment(['(', ColumnValues(tuple(row[column] for column in columns)), ')']) for row in rows]
    return Fragment(['INSERT INTO ', table, ' (', ColumnNames(tuple(columns)), ') VALUES ', join(tuples)])


def _noop(table: str) -> Query:
    return Query(['SELECT null WHERE false'], table=table, noop=True, noop_result=[])


def insert(
    table: str,
    values: Union[Mapping[str, Any], Sequence[Mapping[str, Any]]],
    *,
    returning: Optional[Sequence[str]] = None,
    extras: Optional[Mapping[str, Any]] = None
) -> Query:
    """INSERT one row (a mapping) or several (a list of mappings).

    Values may be plain values (bound), DEFAULT, or Fragments. An empty list
    is a noop: run() returns [] without touching the database.

    Args:
        table: Target table
        values: Row mapping or list of row mappings with identical keys
        returning: Columns to return (all columns by default)
        extras: Extra computed keys for each returned row

    Returns:
        Query; run() returns a dict for a mapping, a list for a list

    Raises:
        QueryStructureError: If rows do not share one column set
    """
    single = isinstance(values, Mapping)
    rows = [values] if single else list(values)
    if not rows:
        return _noop(table)
    target = table_ident(table)
    segments = [_values_clause(target, rows), _returning(target, returning, extras)]
    return Query(segments, table=table, decoder=_single_result if single else None)


def _conflict_target(conflict_target: Any) -> Fragment:
    if isinstance(conflict_target, Constraint):
        if not conflict_target.name:
            raise QueryStructureError("upsert needs a constraint name")
        return Fragment(['ON CONSTRAINT ', ident(conflict_target.name)])
    columns = [conflict_target] if isinstance(conflict_target, str) else list(conflict_target or ())
    if not columns or not all(columns):
        raise QueryStructureError("upsert needs a non-empty conflict target")
    return Fragment(['(', ColumnNames(tuple(columns)), ')'])


def _excluded(table: Identifier, column: str, keep_existing: bool) -> Fragment:
    incoming = ident('excluded', column)
    if not keep_existing:
        return Fragment([incoming])
    return Fragment([
        'CASE WHEN ', incoming, ' IS NULL THEN ', ident(table.name, column), ' ELSE ', incoming, ' END'
    ])


def upsert(
    table: str,
    values: Union[Mapping[str, Any], Sequence[Mapping[str, Any]]],
    conflict_target: Union[str, Sequence[str], Constraint],
    *,
    update_columns: Any = None,
    update_values: Optional[Mapping[str, Any]] = None,
    no_null_update_columns: Any = None,
    report_action: Optional[str] = None,
    returning: Optional[Sequence[str]] = None,
    extras: Optional[Mapping[str, Any]] = None
) -> Query:
    """INSERT ... ON CONFLICT ... DO UPDATE.

    Each returned row carries '$action': 'INSERT' or 'UPDATE', read from
    the row's xmax, unless report_action='suppress'.

    Args:
        table: Target table
        values: Row mapping or list of row mappings
        conflict_target: Column, list of columns, or Constraint(name)
        update_columns: Columns overwritten on conflict (default: all
            inserted columns), or DO_NOTHING
        update_values: Column -> value used on conflict instead of the
            incoming value
        no_null_update_columns: Columns (or ALL) that keep their existing
            value when the incoming one is NULL
        report_action: None or 'suppress'
        returning: Columns to return
        extras: Extra computed keys for each returned row

    Returns:
        Query; run() returns a dict (or None when DO NOTHING skipped the
        row) for a mapping, a list for a list

    Raises:
        QueryStructureError: On an empty conflict target, ragged rows or an
            unknown report_action
    """
    if report_action not in (None, 'suppress'):
        raise QueryStructureError(f"report_action must be None or 'suppress', got {report_action!r}")
    target_clause = _conflict_target(conflict_target)
    single = isinstance(values, Mapping)
    rows = [values] if single else list(values)
    if not rows:
        return _noop(table)

    target = table_ident(table)
    inserted = _aligned_rows(rows)
    update_values = dict(update_values or {})
    if update_columns is DO_NOTHING:
        columns: List[str] = []
    else:
        columns = list(inserted if update_columns is None else update_columns)
    columns += [column for column in update_values if column not in columns]

    if no_null_update_columns is ALL:
        keep_existing = set(columns)
    else:
        keep_existing = set(no_null_update_columns or ())

    parts: List[Any] = [_values_clause(target, rows), ' ON CONFLICT ', target_clause]
    if columns:
        new_values = [
            Scope(to_segment(update_values[column]), column=column) if column in update_values
            else _excluded(target, column, column in keep_existing)
            for column in columns
        ]
        parts += [' DO UPDATE SET (', ColumnNames(tuple(columns)), ') = ROW(', join(new_values), ')']
    else:
        parts.append(' DO NOTHING')
    action = None if report_action == 'suppress' else _ACTION
    parts.append(_returning(target, returning, extras, action))
    return Query(parts, table=table, decoder=_single_result if single else None)


# ====================================================================
# UPDATE / DELETE / TRUNCATE
# ====================================================================

def update(
    table: str,
    changes: Mapping[str, Any],
    where: Any,
    *,
    returning: Optional[Sequence[str]] = None,
    extras: Optional[Mapping[str, Any]] = None
) -> Query:
    """UPDATE matching rows; run() returns the updated rows ([] if none).

    A Fragment value can use SELF for the column being set, e.g.
    {'views': sql("{} + 1", SELF)}.

    Raises:
        QueryStructureError: If changes is empty
    """
    if not changes:
        raise QueryStructureError(f"update of '{table}' has no columns to set")
    target = table_ident(table)
    new_values = [Scope(to_segment(value), column=column) for column, value in changes.items()]
    parts = [
        'UPDATE ', target, ' SET (', ColumnNames(tuple(changes)), ') = ROW(', join(new_values), ')',
        ' WHERE ', where_clause(where), _returning(target, returning, extras),
    ]
    return Query(parts, table=table)


def deletes(
    table: str,
    where: Any,
    *,
    returning: Optional[Sequence[str]] = None,
    extras: Optional[Mapping[str, Any]] = None
) -> Query:
    """DELETE matching rows; run() returns the deleted rows ([] if none)."""
    target = table_ident(table)
    parts = ['DELETE FROM ', target, ' WHERE ', where_clause(where), _returning(target, returning, extras)]
    return Query(parts, table=table)


def truncate(tables: Union[str, Sequence[str]], *options: str) -> Query:
    """TRUNCATE one or more tables.

    Args:
        tables: Table name or list of names
        *options: Any of RESTART IDENTITY, CONTINUE IDENTITY, CASCADE, RESTRICT

    Raises:
        QueryStructureError: On an unknown option or no tables
    """
    names = [tables] if isinstance(tables, str) else list(tables)
    if not names:
        raise QueryStructureError("truncate needs at least one table")
    for option in options:
        if option not in TRUNCATE_OPTIONS:
            raise QueryStructureError(f"Unknown TRUNCATE option {option!r}")
    parts: List[Any] = ['TRUNCATE ', join([table_ident(name) for name in names])]
    parts += [f" {option}" for option in options]
    return Query(parts, table=', '.join(names), decoder=lambda rows: None)
