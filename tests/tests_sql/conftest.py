"""
Shared fixtures and fakes for the sql package tests.

Key fixtures:
- fake_executor: factory for FakeExecutor instances returning canned rows.
"""

import pytest


class FakeExecutor:
    """
    Stand-in for a database executor.

    Records every CompiledQuery it receives and answers with the configured
    rows, so a Query's run()/decode() path can be tested without a database.

    Attributes:
        rows (list): Row mappings returned for every call.
        calls (list): CompiledQuery objects received, in order.
        paramstyle (str): Placeholder style requested from Query.run().
    """

    def __init__(self, rows=None, paramstyle='numeric'):
        self.rows = rows if rows is not None else []
        self.calls = []
        self.paramstyle = paramstyle

    def __call__(self, compiled):
        self.calls.append(compiled)
        return self.rows


@pytest.fixture
def fake_executor():
    """Factory building FakeExecutor instances."""
    def factory(rows=None, paramstyle='numeric'):
        return FakeExecutor(rows=rows, paramstyle=paramstyle)
    return factory
