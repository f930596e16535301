"""
=====================================
Column conditions and where-clauses.
=====================================

A Condition describes a comparison without naming the column it applies to.
It is bound to a column only when it appears as a value in a where map, or
when it is rendered inside a Scope that carries a current column:

    >>> where_clause({'age': gte(21), 'status': is_in(['active', 'trial'])})
    # (age >= $1) AND (status IN ($2, $3))

Conditions are plain frozen values with a closed set of kinds, so they can
be built once and reused across queries.

NULL handling:
    eq(None)        -> col IS NULL
    ne(None)        -> col IS NOT NULL
    {'col': None}   -> col IS NULL

Empty sets:
    is_in([])       -> FALSE
    is_not_in([])   -> TRUE
    and_()          -> TRUE
    or_()           -> FALSE
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Tuple, Union

from .fragment import (
    ALL,
    Fragment,
    Identifier,
    ParentColumn,
    Scope,
    Segment,
    ident,
    join,
    to_segment,
)


class ConditionKind(Enum):
    """Every kind of condition the resolver knows how to render."""

    EQ = 'eq'
    NE = 'ne'
    GT = 'gt'
    GTE = 'gte'
    LT = 'lt'
    LTE = 'lte'
    LIKE = 'like'
    NOT_LIKE = 'not_like'
    ILIKE = 'ilike'
    NOT_ILIKE = 'not_ilike'
    RE_MATCH = 're_match'
    RE_IMATCH = 're_imatch'
    NOT_RE_MATCH = 'not_re_match'
    NOT_RE_IMATCH = 'not_re_imatch'
    IS_DISTINCT_FROM = 'is_distinct_from'
    IS_NOT_DISTINCT_FROM = 'is_not_distinct_from'
    IS_NULL = 'is_null'
    IS_NOT_NULL = 'is_not_null'
    IS_TRUE = 'is_true'
    IS_NOT_TRUE = 'is_not_true'
    IS_FALSE = 'is_false'
    IS_NOT_FALSE = 'is_not_false'
    IS_UNKNOWN = 'is_unknown'
    IS_NOT_UNKNOWN = 'is_not_unknown'
    BETWEEN = 'between'
    NOT_BETWEEN = 'not_between'
    BETWEEN_SYMMETRIC = 'between_symmetric'
    NOT_BETWEEN_SYMMETRIC = 'not_between_symmetric'
    IN = 'in'
    NOT_IN = 'not_in'
    AND = 'and'
    OR = 'or'
    NOT = 'not'


@dataclass(frozen=True)
class Condition(Segment):
    """A comparison waiting for a column.

    Attributes:
        kind: Which comparison this is
        operands: Right-hand side values (their meaning depends on kind)
    """

    kind: ConditionKind
    operands: Tuple[Any, ...] = ()


_BINARY_OPERATORS = {
    ConditionKind.EQ: '=',
    ConditionKind.NE: '<>',
    ConditionKind.GT: '>',
    ConditionKind.GTE: '>=',
    ConditionKind.LT: '<',
    ConditionKind.LTE: '<=',
    ConditionKind.LIKE: 'LIKE',
    ConditionKind.NOT_LIKE: 'NOT LIKE',
    ConditionKind.ILIKE: 'ILIKE',
    ConditionKind.NOT_ILIKE: 'NOT ILIKE',
    ConditionKind.RE_MATCH: '~',
    ConditionKind.RE_IMATCH: '~*',
    ConditionKind.NOT_RE_MATCH: '!~',
    ConditionKind.NOT_RE_IMATCH: '!~*',
    ConditionKind.IS_DISTINCT_FROM: 'IS DISTINCT FROM',
    ConditionKind.IS_NOT_DISTINCT_FROM: 'IS NOT DISTINCT FROM',
}

_PREDICATES = {
    ConditionKind.IS_NULL: 'IS NULL',
    ConditionKind.IS_NOT_NULL: 'IS NOT NULL',
    ConditionKind.IS_TRUE: 'IS TRUE',
    ConditionKind.IS_NOT_TRUE: 'IS NOT TRUE',
    ConditionKind.IS_FALSE: 'IS FALSE',
    ConditionKind.IS_NOT_FALSE: 'IS NOT FALSE',
    ConditionKind.IS_UNKNOWN: 'IS UNKNOWN',
    ConditionKind.IS_NOT_UNKNOWN: 'IS NOT UNKNOWN',
}

_RANGES = {
    ConditionKind.BETWEEN: 'BETWEEN',
    ConditionKind.NOT_BETWEEN: 'NOT BETWEEN',
    ConditionKind.BETWEEN_SYMMETRIC: 'BETWEEN SYMMETRIC',
    ConditionKind.NOT_BETWEEN_SYMMETRIC: 'NOT BETWEEN SYMMETRIC',
}


# ====================================================================
# FACTORIES
# ====================================================================

def eq(value: Any) -> Condition:
    """col = value (col IS NULL when value is None)."""
    return Condition(ConditionKind.EQ, (value,))


def ne(value: Any) -> Condition:
    """col <> value (col IS NOT NULL when value is None)."""
    return Condition(ConditionKind.NE, (value,))


def gt(value: Any) -> Condition:
    return Condition(ConditionKind.GT, (value,))


def gte(value: Any) -> Condition:
    return Condition(ConditionKind.GTE, (value,))


def lt(value: Any) -> Condition:
    return Condition(ConditionKind.LT, (value,))


def lte(value: Any) -> Condition:
    return Condition(ConditionKind.LTE, (value,))


def like(pattern: Any) -> Condition:
    return Condition(ConditionKind.LIKE, (pattern,))


def not_like(pattern: Any) -> Condition:
    return Condition(ConditionKind.NOT_LIKE, (pattern,))


def ilike(pattern: Any) -> Condition:
    return Condition(ConditionKind.ILIKE, (pattern,))


def not_ilike(pattern: Any) -> Condition:
    return Condition(ConditionKind.NOT_ILIKE, (pattern,))


def re_match(pattern: Any) -> Condition:
    """POSIX regular expression match (~)."""
    return Condition(ConditionKind.RE_MATCH, (pattern,))


def re_imatch(pattern: Any) -> Condition:
    """Case-insensitive POSIX regular expression match (~*)."""
    return Condition(ConditionKind.RE_IMATCH, (pattern,))


def not_re_match(pattern: Any) -> Condition:
    return Condition(ConditionKind.NOT_RE_MATCH, (pattern,))


def not_re_imatch(pattern: Any) -> Condition:
    return Condition(ConditionKind.NOT_RE_IMATCH, (pattern,))


def is_distinct_from(value: Any) -> Condition:
    """NULL-safe inequality: true when exactly one side is NULL or both differ."""
    return Condition(ConditionKind.IS_DISTINCT_FROM, (value,))


def is_not_distinct_from(value: Any) -> Condition:
    """NULL-safe equality: NULL matches NULL."""
    return Condition(ConditionKind.IS_NOT_DISTINCT_FROM, (value,))


def is_null() -> Condition:
    return Condition(ConditionKind.IS_NULL)


def is_not_null() -> Condition:
    return Condition(ConditionKind.IS_NOT_NULL)


def is_true() -> Condition:
    return Condition(ConditionKind.IS_TRUE)


def is_not_true() -> Condition:
    return Condition(ConditionKind.IS_NOT_TRUE)


def is_false() -> Condition:
    return Condition(ConditionKind.IS_FALSE)


def is_not_false() -> Condition:
    return Condition(ConditionKind.IS_NOT_FALSE)


def is_unknown() -> Condition:
    return Condition(ConditionKind.IS_UNKNOWN)


def is_not_unknown() -> Condition:
    return Condition(ConditionKind.IS_NOT_UNKNOWN)


def between(low: Any, high: Any) -> Condition:
    return Condition(ConditionKind.BETWEEN, (low, high))


def not_between(low: Any, high: Any) -> Condition:
    return Condition(ConditionKind.NOT_BETWEEN, (low, high))


def between_symmetric(low: Any, high: Any) -> Condition:
    """BETWEEN with the bounds sorted by the database."""
    return Condition(ConditionKind.BETWEEN_SYMMETRIC, (low, high))


def not_between_symmetric(low: Any, high: Any) -> Condition:
    return Condition(ConditionKind.NOT_BETWEEN_SYMMETRIC, (low, high))


def is_in(values: Iterable[Any]) -> Condition:
    """col IN (values...); an empty collection matches no rows."""
    return Condition(ConditionKind.IN, (tuple(values),))


def is_not_in(values: Iterable[Any]) -> Condition:
    """col NOT IN (values...); an empty collection matches every row."""
    return Condition(ConditionKind.NOT_IN, (tuple(values),))


def and_(*conditions: Any) -> Condition:
    """All of the given conditions (TRUE when none are given).

    Each item may be a Condition, a Fragment (SELF refers to the column) or a
    plain value, which is compared for equality.
    """
    return Condition(ConditionKind.AND, conditions)


def or_(*conditions: Any) -> Condition:
    """Any of the given conditions (FALSE when none are given)."""
    return Condition(ConditionKind.OR, conditions)


def not_(condition: Any) -> Condition:
    return Condition(ConditionKind.NOT, (condition,))


# ====================================================================
# RESOLUTION
# ====================================================================

def resolve_condition(condition: Condition, column: str) -> Fragment:
    """Bind a condition to a column.

    Args:
        condition: Condition to resolve
        column: Column name (never split on dots)

    Returns:
        Fragment with the comparison; operands are bound unless they are
        typed segments (Fragment, Identifier, parent(), SELF)
    """
    target = ident(column)
    kind = condition.kind
    operands = condition.operands

    if kind in _BINARY_OPERATORS:
        value = operands[0]
        if value is None and kind is ConditionKind.EQ:
            return Fragment([target, ' IS NULL'])
        if value is None and kind is ConditionKind.NE:
            return Fragment([target, ' IS NOT NULL'])
        return Fragment([target, f" {_BINARY_OPERATORS[kind]} ", to_segment(value)])

    if kind in _PREDICATES:
        return Fragment([target, f" {_PREDICATES[kind]}"])

    if kind in _RANGES:
        low, high = operands
        return Fragment([target, f" {_RANGES[kind]} ", to_segment(low), ' AND ', to_segment(high)])

    if kind is ConditionKind.IN or kind is ConditionKind.NOT_IN:
        values = operands[0]
        if not values:
            return Fragment(['FALSE' if kind is ConditionKind.IN else 'TRUE'])
        operator = 'IN' if kind is ConditionKind.IN else 'NOT IN'
        return Fragment([target, f" {operator} (", join(values), ')'])

    if kind is ConditionKind.AND or kind is ConditionKind.OR:
        if not operands:
            return Fragment(['TRUE' if kind is ConditionKind.AND else 'FALSE'])
        separator = ' AND ' if kind is ConditionKind.AND else ' OR '
        return join([_resolve_member(member, column) for member in operands], separator)

    if kind is ConditionKind.NOT:
        return Fragment(['NOT ', _resolve_member(operands[0], column)])

    raise ValueError(f"Unhandled condition kind: {kind!r}")


def _resolve_member(member: Any, column: str) -> Fragment:
    """One operand of and_/or_/not_, parenthesised."""
    if isinstance(member, Condition):
        return Fragment(['(', resolve_condition(member, column), ')'])
    if isinstance(member, Fragment):
        return Fragment(['(', member, ')'])
    return Fragment(['(', resolve_condition(eq(member), column), ')'])


def where_clause(where: Union[Mapping[str, Any], Fragment, Any]) -> Segment:
    """Build the body of a WHERE clause.

    Args:
        where: ALL, a Fragment, or a mapping of column to value. Mapping
            values may be plain values (equality), None (IS NULL), a
            Condition, a Fragment (SELF and parent() bind to the key) or a
            parent() reference.

    Returns:
        A segment rendering the ANDed predicate (TRUE for ALL or {})

    Raises:
        TypeError: If where is none of the accepted shapes
    """
    if where is ALL:
        return Fragment(['TRUE'])
    if isinstance(where, Fragment):
        return where
    if not isinstance(where, Mapping):
        raise TypeError(f"where must be ALL, a Fragment or a mapping, not {type(where).__name__}")
    if not where:
        return Fragment(['TRUE'])

    entries = []
    for column, value in where.items():
        entries.append(Scope(_where_entry(column, value), column=column))
    return join(entries, ' AND ')


def _where_entry(column: str, value: Any) -> Fragment:
    if isinstance(value, Condition):
        return Fragment(['(', resolve_condition(value, column), ')'])
    if isinstance(value, Fragment):
        return Fragment(['(', value, ')'])
    if isinstance(value, (ParentColumn, Identifier)):
        return Fragment([ident(column), ' = ', value])
    return resolve_condition(eq(value), column)
