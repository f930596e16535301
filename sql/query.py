"""
==================================
Executable queries and decoding.
==================================

Every statement builder returns a Query: a Fragment that also knows how to
run itself against an executor and how to turn the driver's rows back into
the value the caller asked for.

All statements return their data as a single jsonb column named "result",
which the driver hands back already decoded into dicts, lists and numbers.

Executor contract:
    executor(CompiledQuery) -> List[Mapping[str, Any]]

An executor may carry a ``paramstyle`` attribute ('numeric' or 'format');
the query is rendered in that style before it is handed over.
"""

import copy
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .errors import NotExactlyOneError
from .fragment import Fragment
from .render import NUMERIC


def _result_list(rows: List[Mapping[str, Any]]) -> List[Any]:
    return [row['result'] for row in rows]


class Query(Fragment):
    """A Fragment that can be executed and decoded.

    Attributes:
        table: Table the statement targets (for error messages)
        noop: True when the statement has nothing to do and run() must not
            call the executor
        noop_result: Value run() returns for a noop query
    """

    __slots__ = ('table', 'noop', 'noop_result', '_decoder')

    def __init__(
        self,
        segments: Iterable[Any] = (),
        table: Optional[str] = None,
        decoder: Optional[Callable[[List[Mapping[str, Any]]], Any]] = None,
        noop: bool = False,
        noop_result: Any = None
    ):
        super().__init__(segments)
        object.__setattr__(self, 'table', table)
        object.__setattr__(self, 'noop', noop)
        object.__setattr__(self, 'noop_result', noop_result)
        object.__setattr__(self, '_decoder', decoder or _result_list)

    def decode(self, rows: List[Mapping[str, Any]]) -> Any:
        """Turn driver rows into the statement's result value."""
        return self._decoder(rows)

    def run(self, executor: Callable) -> Any:
        """Render, execute and decode.

        Args:
            executor: Callable taking a CompiledQuery and returning row mappings

        Returns:
            The decoded result; a copy of noop_result for a noop query
        """
        if self.noop:
            return copy.deepcopy(self.noop_result)
        paramstyle = getattr(executor, 'paramstyle', NUMERIC)
        rows = executor(self.render(paramstyle))
        return self.decode(rows)


class SelectResultMode(Enum):
    """Shape of a select-family result."""

    MANY = 'many'
    ONE = 'one'
    EXACTLY_ONE = 'exactly_one'
    NUMERIC = 'numeric'


def _to_number(value: Any) -> Any:
    """Aggregate output as int when integral, float otherwise.

    Non-numeric aggregates (min/max over dates or text) pass through.
    """
    if not isinstance(value, (Decimal, float)):
        return value
    number = value if isinstance(value, Decimal) else Decimal(repr(value))
    if number.is_finite() and number == number.to_integral_value():
        return int(number)
    return float(number)


class SelectQuery(Query):
    """A select-family query: usable standalone or as a lateral subquery.

    Standalone, the statement yields at most one row whose "result" holds
    the whole answer. As a lateral, that same "result" value is embedded in
    each parent row, and decode_lateral() applies the same rules to it, so
    select_exactly_one stays strict and select/select_one keep their
    [] / None distinction at every nesting level.
    """

    __slots__ = ('mode', 'laterals', 'passthrough')

    def __init__(
        self,
        segments: Iterable[Any] = (),
        table: Optional[str] = None,
        mode: SelectResultMode = SelectResultMode.MANY,
        laterals: Optional[Dict[str, 'SelectQuery']] = None,
        passthrough: Optional['SelectQuery'] = None
    ):
        super().__init__(segments, table=table)
        object.__setattr__(self, 'mode', mode)
        object.__setattr__(self, 'laterals', dict(laterals or {}))
        object.__setattr__(self, 'passthrough', passthrough)

    def decode(self, rows: List[Mapping[str, Any]]) -> Any:
        value = rows[0]['result'] if rows else None
        return self.decode_lateral(value)

    def decode_lateral(self, value: Any) -> Any:
        """Decode this query's "result" value.

        Raises:
            NotExactlyOneError: For select_exactly_one when the value does
                not hold exactly one row
        """
        if self.mode is SelectResultMode.NUMERIC:
            return _to_number(value)
        if self.mode is SelectResultMode.ONE:
            # None here means no outer row, so a passthrough never sees it
            return None if value is None else self.decode_row(value)
        if self.mode is SelectResultMode.EXACTLY_ONE:
            items = value or []
            if len(items) != 1:
                raise NotExactlyOneError(
                    f"Expected exactly one row from '{self.table}', got "
                    f"{'none' if not items else 'more than one'}",
                    query=self,
                    table=self.table,
                    row_count=len(items)
                )
            return self.decode_row(items[0])
        return [self.decode_row(item) for item in (value or [])]

    def decode_row(self, row: Any) -> Any:
        """Apply lateral decoders to one row object."""
        if self.passthrough is not None:
            return self.passthrough.decode_lateral(row)
        if row is None or not self.laterals:
            return row
        decoded = dict(row)
        for key, subquery in self.laterals.items():
            decoded[key] = subquery.decode_lateral(decoded.get(key))
        return decoded
