"""
=============================
PostgreSQL identifier quoting.
=============================

Table, schema and column names are never sent as bound parameters; they
are spliced into the statement text. This module decides when a name can
be written bare and quotes it otherwise, doubling any embedded double
quote so the name cannot terminate its own quoting.

A name is written bare only when all of the following hold:
    - it matches ^[a-zA-Z_][a-zA-Z0-9_]*$
    - it is entirely lower case (PostgreSQL folds bare names to lower case)
    - it is not a reserved keyword

Example:
    >>> quote_identifier('users')
    'users'
    >>> quote_identifier('postCount')
    '"postCount"'
    >>> quote_identifier('order')
    '"order"'
    >>> quote_identifier('we"ird')
    '"we""ird"'
"""

import re
from typing import FrozenSet, Iterable

_BARE_IDENTIFIER = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')

# Reserved, and reserved-but-allowed-as-function-or-type, keywords
RESERVED_KEYWORDS: FrozenSet[str] = frozenset("""
    all analyse analyze and any array as asc asymmetric authorization binary
    both case cast check collate collation column concurrently constraint
    create cross current_catalog current_date current_role current_schema
    current_time current_timestamp current_user default deferrable desc
    distinct do else end except false fetch for foreign freeze from full
    grant group having ilike in initially inner intersect into is isnull
    join lateral leading left like limit localtime localtimestamp natural
    not notnull null offset on only or order outer overlaps placing primary
    references returning right select session_user similar some symmetric
    system_user table tablesample then to trailing true union unique user
    using variadic verbose when where window with
""".split())


def needs_quoting(name: str) -> bool:
    """Return True if name cannot be written as a bare identifier.

    Args:
        name: Raw identifier (a single name, not a dotted path)

    Returns:
        True when the name must be double-quoted to survive parsing intact
    """
    if not _BARE_IDENTIFIER.match(name):
        return True
    if name != name.lower():
        return True
    return name in RESERVED_KEYWORDS


def quote_identifier(name: str) -> str:
    """Quote a single identifier if required.

    Args:
        name: Raw identifier

    Returns:
        The bare name, or the name in double quotes with quotes doubled
    """
    if not needs_quoting(name):
        return name
    return '"' + name.replace('"', '""') + '"'


def quote_qualified(parts: Iterable[str]) -> str:
    """Quote each part of a qualified name and join them with dots.

    Example:
        >>> quote_qualified(['Sales', 'orders'])
        '"Sales".orders'
    """
    return '.'.join(quote_identifier(part) for part in parts)


def unquote_identifier(text: str) -> str:
    """Parse an identifier written by quote_identifier back to its name.

    Bare names are returned as PostgreSQL would see them (lower-cased).

    Raises:
        ValueError: If text is neither a bare name nor a well-formed quoted one
    """
    if text.startswith('"'):
        if len(text) < 2 or not text.endswith('"'):
            raise ValueError(f"Unterminated quoted identifier: {text!r}")
        body = text[1:-1]
        if '"' in body.replace('""', ''):
            raise ValueError(f"Stray quote in identifier: {text!r}")
        return body.replace('""', '"')
    if not _BARE_IDENTIFIER.match(text):
        raise ValueError(f"Not a valid bare identifier: {text!r}")
    return text.lower()
