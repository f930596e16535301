"""
========================================
Rendering fragments to text + parameters.
========================================

render() walks a Fragment tree depth-first, left to right, with one running
placeholder counter for the whole tree. Each Parameter appends its value to
the output list and emits the placeholder for the list's new length, so
placeholder N always names the Nth value no matter how deeply the fragment
that introduced it was nested.

Context (the chain of enclosing lateral aliases and the current where-map
column) is carried as an immutable value: a Scope segment renders its body
with an extended copy and the caller's copy is untouched.

Placeholder styles:
    numeric  $1, $2, ...   PostgreSQL native (default)
    format   %s            psycopg2 / SQLAlchemy exec_driver_sql; literal
                           '%' characters are doubled
"""

from typing import Any, List, NamedTuple, Optional, Tuple

from .conditions import Condition, resolve_condition
from .errors import ParentContextError
from .fragment import (
    ALL,
    DEFAULT,
    SELF,
    ColumnNames,
    ColumnValues,
    CompiledQuery,
    DangerousRawString,
    Fragment,
    Identifier,
    Parameter,
    ParentColumn,
    Scope,
)
from .identifiers import quote_identifier, quote_qualified

NUMERIC = 'numeric'
FORMAT = 'format'
PARAMSTYLES = (NUMERIC, FORMAT)


class RenderContext(NamedTuple):
    """Immutable render context.

    Attributes:
        parents: Enclosing query aliases, direct parent first
        column: Current where-map column, if any
    """

    parents: Tuple[Identifier, ...] = ()
    column: Optional[str] = None


class _Renderer:
    """Accumulates text chunks and parameter values for one render call."""

    def __init__(self, paramstyle: str):
        if paramstyle not in PARAMSTYLES:
            raise ValueError(f"Unknown paramstyle '{paramstyle}', expected one of {PARAMSTYLES}")
        self.paramstyle = paramstyle
        self.chunks: List[str] = []
        self.params: List[Any] = []

    def text(self, value: str) -> None:
        if self.paramstyle == FORMAT:
            value = value.replace('%', '%%')
        self.chunks.append(value)

    def placeholder(self, value: Any, cast: Optional[str] = None) -> None:
        self.params.append(value)
        if self.paramstyle == NUMERIC:
            self.chunks.append(f"${len(self.params)}")
        else:
            self.chunks.append('%s')
        if cast:
            self.text(f"::{cast}")

    def column(self, name: str) -> None:
        self.text(quote_identifier(name))

    def segment(self, segment: Any, context: RenderContext) -> None:
        if isinstance(segment, str):
            self.text(segment)
        elif isinstance(segment, Fragment):
            for child in segment.segments:
                self.segment(child, context)
        elif isinstance(segment, Parameter):
            self.placeholder(segment.value, segment.cast)
        elif isinstance(segment, Identifier):
            self.text(quote_qualified(segment.parts))
        elif isinstance(segment, DangerousRawString):
            self.text(segment.value)
        elif isinstance(segment, ColumnNames):
            for index, name in enumerate(segment.columns):
                if index:
                    self.text(', ')
                self.column(name)
        elif isinstance(segment, ColumnValues):
            for index, value in enumerate(segment.values):
                if index:
                    self.text(', ')
                self.value(value, context)
        elif isinstance(segment, Scope):
            self.segment(segment.body, _enter(context, segment))
        elif isinstance(segment, ParentColumn):
            self.parent_column(segment, context)
        elif isinstance(segment, Condition):
            if context.column is None:
                raise ParentContextError(
                    f"Condition {segment.kind.value} needs a column: use it as a where-map value"
                )
            self.segment(resolve_condition(segment, context.column), context)
        elif segment is DEFAULT:
            self.text('DEFAULT')
        elif segment is ALL:
            self.text('TRUE')
        elif segment is SELF:
            if context.column is None:
                raise ParentContextError("SELF has no meaning outside a where-map value")
            self.column(context.column)
        else:
            raise TypeError(f"Cannot render segment of type {type(segment).__name__}: {segment!r}")

    def value(self, value: Any, context: RenderContext) -> None:
        """Render a row value: typed segments as themselves, the rest bound."""
        if isinstance(value, (Fragment, Parameter, ParentColumn, Identifier, DangerousRawString)) \
                or value is DEFAULT:
            self.segment(value, context)
        else:
            self.placeholder(value)

    def parent_column(self, reference: ParentColumn, context: RenderContext) -> None:
        if not context.parents:
            raise ParentContextError(
                "The parent table alias has no meaning here: parent() is only valid "
                "inside a lateral subquery"
            )
        column = reference.column or context.column
        if column is None:
            raise ParentContextError("parent() without a column name needs a where-map column")
        self.segment(context.parents[0], context)
        self.text('.')
        self.column(column)


def _enter(context: RenderContext, scope: Scope) -> RenderContext:
    parents = context.parents
    if scope.parent is not None:
        parents = (scope.parent,) + parents
    column = scope.column if scope.column is not None else context.column
    return RenderContext(parents, column)


def render(
    fragment: Fragment,
    paramstyle: str = NUMERIC,
    context: Optional[RenderContext] = None
) -> CompiledQuery:
    """Render a fragment tree.

    Args:
        fragment: Fragment to render
        paramstyle: 'numeric' ($1) or 'format' (%s)
        context: Starting context (empty by default)

    Returns:
        CompiledQuery with text and parameter list

    Raises:
        ParentContextError: If parent() or SELF cannot be resolved
        TypeError: If an unknown segment type is found
    """
    renderer = _Renderer(paramstyle)
    renderer.segment(fragment, context or RenderContext())
    return CompiledQuery(''.join(renderer.chunks), renderer.params)
