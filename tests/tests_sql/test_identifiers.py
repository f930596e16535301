"""
==================================================
Comprehensive pytest suite for sql/identifiers.py
==================================================

Sections:
---------
1. Unit tests - bare vs quoted identifiers
2. Edge case tests - embedded quotes, reserved words, round trips

Available markers:
------------------
unit, edge_case

How to Execute:
---------------
All tests:          python -m pytest tests/tests_sql/test_identifiers.py -v
By category:        python -m pytest tests/tests_sql/test_identifiers.py -m unit
"""

import pytest

from sql.identifiers import needs_quoting, quote_identifier, quote_qualified, unquote_identifier

# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
@pytest.mark.parametrize("name", ['users', 'user_id', '_private', 'posts2'])
def test_plain_lowercase_names_stay_bare(name):
    """Lower-case names matching the bare pattern are emitted unchanged."""
    assert needs_quoting(name) is False
    assert quote_identifier(name) == name


@pytest.mark.unit
@pytest.mark.parametrize("name, expected", [
    ('postCount', '"postCount"'),
    ('first name', '"first name"'),
    ('2fa', '"2fa"'),
    ('order', '"order"'),
    ('select', '"select"'),
    ('a-b', '"a-b"'),
])
def test_names_needing_quotes(name, expected):
    """Mixed case, spaces, leading digits and reserved words are quoted."""
    assert needs_quoting(name) is True
    assert quote_identifier(name) == expected


@pytest.mark.unit
def test_quote_qualified_quotes_each_part():
    """Schema and table parts are quoted independently."""
    assert quote_qualified(['Sales', 'orders']) == '"Sales".orders'
    assert quote_qualified(['public', 'users']) == 'public.users'


# ===================
# 2. EDGE CASE TESTS
# ===================

@pytest.mark.edge_case
def test_embedded_quote_is_doubled():
    """A double quote inside a name cannot close the quoting early."""
    assert quote_identifier('we"ird') == '"we""ird"'
    assert quote_identifier('x" OR 1=1 --') == '"x"" OR 1=1 --"'


@pytest.mark.edge_case
@pytest.mark.parametrize("name", [
    'users', 'postCount', 'we"ird', '"', '""', 'with space', '9lives', 'order', 'Ünïcode', 'a.b',
])
def test_quote_round_trip(name):
    """Parsing the quoted form yields exactly the original name."""
    assert unquote_identifier(quote_identifier(name)) == name


@pytest.mark.edge_case
def test_unquote_rejects_malformed_text():
    """Unterminated quoting and stray quotes are refused."""
    with pytest.raises(ValueError):
        unquote_identifier('"abc')
    with pytest.raises(ValueError):
        unquote_identifier('"a"b"')
    with pytest.raises(ValueError):
        unquote_identifier('a b')


@pytest.mark.edge_case
def test_unquote_folds_bare_names():
    """Bare names are folded to lower case, as PostgreSQL does."""
    assert unquote_identifier('Users') == 'users'
