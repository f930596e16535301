"""
============================
Lateral (correlated) selects.
============================

A select can embed other select-family queries, evaluated once per parent
row, as LEFT JOIN LATERAL subqueries:

    select('users', ALL, lateral={'postCount': count('posts', {'user_id': parent('id')})})

renders (shape only):

    SELECT to_jsonb(users.*) || jsonb_build_object($1::text, "lateral_postCount".result) AS result
    FROM users AS users
    LEFT JOIN LATERAL (SELECT count(*) AS result FROM posts AS posts
                       WHERE user_id = users.id) AS "lateral_postCount" ON true
    ...

Map mode (a mapping of key to query) adds one key per entry to each parent
row object. Passthrough mode (a single query) replaces each parent row
object with the subquery's value.

Each subquery is wrapped in a Scope that pushes the parent's alias onto the
render context, so parent() inside it names its direct parent however
deeply laterals are nested.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import QueryStructureError
from .fragment import Fragment, Identifier, Parameter, Scope, ident, join
from .query import SelectQuery

PASSTHROUGH_ALIAS = 'lateral_passthru'


def lateral_alias(key: str) -> Identifier:
    """Join alias for the lateral stored under key."""
    return ident(f"lateral_{key}")


def split_laterals(lateral: Any) -> Tuple[Optional[SelectQuery], Dict[str, SelectQuery]]:
    """Validate a lateral argument.

    Args:
        lateral: None, a single select-family query (passthrough) or a
            mapping of key to select-family query (map mode)

    Returns:
        (passthrough query or None, map of key to query sorted by key)

    Raises:
        QueryStructureError: If any lateral is not a select-family query
    """
    if lateral is None:
        return None, {}
    if isinstance(lateral, SelectQuery):
        return lateral, {}
    if not isinstance(lateral, Mapping):
        raise QueryStructureError(
            f"lateral must be a select-family query or a mapping of them, not {type(lateral).__name__}"
        )
    laterals = {}
    for key in sorted(lateral):
        subquery = lateral[key]
        if not isinstance(subquery, SelectQuery):
            raise QueryStructureError(
                f"Lateral '{key}' must be a select, select_one, select_exactly_one or "
                f"aggregate query, not {type(subquery).__name__}"
            )
        laterals[key] = subquery
    return None, laterals


def lateral_joins(
    parent_alias: Identifier,
    passthrough: Optional[SelectQuery],
    laterals: Dict[str, SelectQuery]
) -> Fragment:
    """LEFT JOIN LATERAL clauses for the given subqueries (possibly empty)."""
    joins: List[Any] = []
    if passthrough is not None:
        joins.append(_join(parent_alias, passthrough, ident(PASSTHROUGH_ALIAS)))
    for key, subquery in laterals.items():
        joins.append(_join(parent_alias, subquery, lateral_alias(key)))
    return Fragment(joins)


def _join(parent_alias: Identifier, subquery: SelectQuery, alias: Identifier) -> Fragment:
    return Fragment([
        ' LEFT JOIN LATERAL (', Scope(subquery, parent=parent_alias), ') AS ', alias, ' ON true'
    ])


def passthrough_result() -> Fragment:
    """Row object expression for passthrough mode."""
    return Fragment([ident(PASSTHROUGH_ALIAS, 'result')])


def lateral_object(laterals: Dict[str, SelectQuery]) -> Optional[Fragment]:
    """jsonb_build_object(...) of every map-mode lateral, or None."""
    if not laterals:
        return None
    pairs = [
        Fragment([Parameter(key, 'text'), ', ', ident(f"lateral_{key}", 'result')])
        for key in laterals
    ]
    return Fragment(['jsonb_build_object(', join(pairs), ')'])
