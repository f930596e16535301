"""
=========================================
SQL fragments: the unit of query building.
=========================================

A Fragment is an immutable, ordered sequence of segments. Each segment is
either literal SQL text or one of the typed nodes defined here:

    Identifier         table/column/schema name, quoted, never bound
    Parameter          a value sent separately as a positional placeholder
    Fragment           a nested fragment, rendered in place
    DangerousRawString text spliced verbatim (never for untrusted input)
    ColumnNames        comma-separated identifiers (cols)
    ColumnValues       comma-separated values (vals)
    ParentColumn       a column of the enclosing query's row (parent)
    Scope              binds a parent alias and/or current column for its body
    DEFAULT / SELF / ALL sentinels

Fragments are composed with sql(), which takes a str.format-style template
and classifies each interpolated value: typed nodes are kept as they are,
anything else (strings, numbers, lists, dicts, None) becomes a bound
Parameter. Untrusted text therefore cannot reach the statement text unless
it is explicitly wrapped with raw().

Example:
    >>> from sql.fragment import sql, ident
    >>> query = sql("SELECT * FROM {} WHERE {} > {}", ident('users'), ident('age'), 21)
    >>> query.render()
    CompiledQuery(text='SELECT * FROM users WHERE age > $1', params=[21])

Literal braces in a template are written doubled, as with str.format:
    >>> sql("SELECT '{{}}'::int[]").render().text
    "SELECT '{}'::int[]"
"""

import string
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union


class Segment:
    """Marker base class for every typed (non-literal) fragment segment."""

    __slots__ = ()


class CompiledQuery(NamedTuple):
    """A rendered statement ready for a driver.

    Attributes:
        text: SQL text with positional placeholders
        params: Bound values, in placeholder order
    """

    text: str
    params: List[Any]


@dataclass(frozen=True, eq=False)
class Parameter(Segment):
    """A value bound to one placeholder.

    Identity semantics: two Parameters holding equal values still render as
    two placeholders.

    Attributes:
        value: Any value the driver can adapt
        cast: Optional PostgreSQL type appended as ::cast after the placeholder
    """

    value: Any
    cast: Optional[str] = None


@dataclass(frozen=True)
class Identifier(Segment):
    """A (possibly schema-qualified) identifier.

    Attributes:
        parts: Name parts, e.g. ('public', 'users')
    """

    parts: Tuple[str, ...]

    @property
    def name(self) -> str:
        """Last part of the identifier (the unqualified name)."""
        return self.parts[-1]

    def __str__(self) -> str:
        return '.'.join(self.parts)


@dataclass(frozen=True)
class DangerousRawString(Segment):
    """Text copied into the statement verbatim."""

    value: str


@dataclass(frozen=True)
class ColumnNames(Segment):
    """Identifiers rendered comma-separated, e.g. the column list of an INSERT."""

    columns: Tuple[str, ...]


@dataclass(frozen=True, eq=False)
class ColumnValues(Segment):
    """Values rendered comma-separated, e.g. one VALUES tuple of an INSERT."""

    values: Tuple[Any, ...]


@dataclass(frozen=True)
class ParentColumn(Segment):
    """Reference to a column of the directly enclosing query's row.

    Attributes:
        column: Column name, or None to reuse the current where-map column
    """

    column: Optional[str] = None


@dataclass(frozen=True, eq=False)
class Scope(Segment):
    """Render body with an extended context.

    Attributes:
        body: Segment to render
        parent: Alias pushed onto the parent chain (lateral subqueries)
        column: Current column for SELF, parent() and bare conditions
    """

    body: Any
    parent: Optional[Identifier] = None
    column: Optional[str] = None


class Sentinel(Segment):
    """A named marker object compared by identity."""

    __slots__ = ('_name',)

    def __init__(self, name: str):
        self._name = name

    def __repr__(self) -> str:
        return self._name


DEFAULT = Sentinel('DEFAULT')
"""Column default, for insert/update values."""

SELF = Sentinel('SELF')
"""The current where-map column, inside a fragment used as a where value."""

ALL = Sentinel('ALL')
"""No filter: a where argument matching every row. Renders as TRUE."""


class Fragment(Segment):
    """An immutable SQL template.

    Args:
        segments: Literal strings and typed segments, in order
    """

    __slots__ = ('_segments',)

    def __init__(self, segments: Iterable[Any] = ()):
        object.__setattr__(self, '_segments', tuple(segments))

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def segments(self) -> Tuple[Any, ...]:
        return self._segments

    def __add__(self, other: 'Fragment') -> 'Fragment':
        if not isinstance(other, Fragment):
            return NotImplemented
        return Fragment(self._segments + (other,))

    def render(self, paramstyle: str = 'numeric') -> CompiledQuery:
        """Render to SQL text and an ordered parameter list.

        See sql.render.render.
        """
        from .render import render
        return render(self, paramstyle=paramstyle)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._segments)!r})"


_FORMATTER = string.Formatter()


def to_segment(value: Any) -> Any:
    """Classify an interpolated value: typed segments pass, the rest is bound."""
    if isinstance(value, Segment):
        return value
    return Parameter(value)


def sql(template: str, *args: Any, **kwargs: Any) -> Fragment:
    """Build a Fragment from a template and interpolated values.

    Args:
        template: SQL text with {} / {0} / {name} fields
        *args: Positional values for the fields
        **kwargs: Named values for the fields

    Returns:
        A new Fragment

    Raises:
        ValueError: If a field carries a format spec or conversion
        IndexError, KeyError: If a field has no matching value
    """
    segments: List[Any] = []
    auto_index = 0
    for literal, field, spec, conversion in _FORMATTER.parse(template):
        if literal:
            segments.append(literal)
        if field is None:
            continue
        if spec or conversion:
            raise ValueError(f"Format specs are not supported in SQL templates: {{{field}:{spec}}}")
        if field == '':
            value = args[auto_index]
            auto_index += 1
        elif field.isdigit():
            value = args[int(field)]
        else:
            value = kwargs[field]
        segments.append(to_segment(value))
    return Fragment(segments)


def join(items: Iterable[Any], separator: str = ', ') -> Fragment:
    """Concatenate items with a literal separator.

    Items are classified like sql() interpolations.

    Example:
        >>> join([ident('a'), ident('b')], ' AND ').render().text
        'a AND b'
    """
    segments: List[Any] = []
    for index, item in enumerate(items):
        if index:
            segments.append(separator)
        segments.append(to_segment(item))
    return Fragment(segments)


def param(value: Any, cast: Optional[str] = None) -> Parameter:
    """Bind value explicitly, optionally with a ::cast."""
    return Parameter(value, cast)


def ident(*parts: str) -> Identifier:
    """Identifier from one or more name parts (schema, table, column)."""
    if not parts:
        raise ValueError("ident() needs at least one name part")
    return Identifier(tuple(parts))


def table_ident(table: Union[str, Identifier]) -> Identifier:
    """Identifier for a table argument; dotted strings are schema-qualified."""
    if isinstance(table, Identifier):
        return table
    return Identifier(tuple(table.split('.')))


def raw(text: str) -> DangerousRawString:
    """Splice text into the statement verbatim.

    Never pass untrusted input here: it bypasses parameter binding.
    """
    return DangerousRawString(text)


def cols(columns: Union[Sequence[str], Mapping[str, Any]]) -> ColumnNames:
    """Comma-separated column identifiers from a list or a mapping's keys."""
    return ColumnNames(tuple(columns))


def vals(row: Union[Sequence[Any], Mapping[str, Any]], columns: Optional[Sequence[str]] = None) -> ColumnValues:
    """Comma-separated values.

    Args:
        row: A sequence of values, or a mapping
        columns: For a mapping, the column order to use (defaults to its own order)
    """
    if isinstance(row, Mapping):
        order = columns if columns is not None else list(row)
        return ColumnValues(tuple(row[column] for column in order))
    return ColumnValues(tuple(row))


def parent(column: Optional[str] = None) -> ParentColumn:
    """Reference the enclosing query's column inside a lateral subquery.

    Args:
        column: Column of the parent row; omitted, the current where-map
            column name is used on the parent side too
    """
    return ParentColumn(column)
