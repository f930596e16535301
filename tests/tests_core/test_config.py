"""
==========================================
Comprehensive pytest suite for core/config.py
==========================================

Sections:
---------
1. Unit tests - defaults and environment overrides per section
2. Edge case tests - boolean parsing, invalid transaction settings

Available markers:
------------------
unit, edge_case

How to Execute:
---------------
All tests:          python -m pytest tests/tests_core/test_config.py -v
By category:        python -m pytest tests/tests_core/test_config.py -m unit
"""

import pytest
from sqlalchemy.engine import make_url

from core.config import Config, DatabaseConfig, TransactionConfig

ENV_VARS = (
    'POSTGRES_HOST', 'POSTGRES_PORT', 'POSTGRES_USER', 'POSTGRES_PASSWORD', 'POSTGRES_DB',
    'QUERY_LOG_SQL', 'QUERY_LOG_PARAM_LENGTH',
    'TXN_MAX_ATTEMPTS', 'TXN_RETRY_BASE_DELAY', 'TXN_BACKOFF_MULTIPLIER', 'TXN_ISOLATION_LEVEL',
    'LOG_LEVEL', 'LOG_FILE', 'LOG_DIR',
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every setting Config reads so defaults apply."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
def test_defaults(clean_env):
    """Without environment variables every section has its default."""
    config = Config()

    assert (config.db_host, config.db_port, config.db_name) == ('localhost', 5432, 'postgres')
    assert config.query.log_sql is True
    assert config.query.log_param_length == 80
    assert config.transaction.max_attempts == 5
    assert config.transaction.retry_base_delay == 0.05
    assert config.transaction.isolation_level == 'SERIALIZABLE'
    assert config.logging.level == 'INFO'
    assert config.logging.log_file is None


@pytest.mark.unit
def test_environment_overrides(clean_env):
    """Every section reads its variables."""
    clean_env.setenv('POSTGRES_HOST', 'db')
    clean_env.setenv('POSTGRES_PORT', '6543')
    clean_env.setenv('POSTGRES_DB', 'shop')
    clean_env.setenv('QUERY_LOG_PARAM_LENGTH', '20')
    clean_env.setenv('TXN_MAX_ATTEMPTS', '9')
    clean_env.setenv('TXN_ISOLATION_LEVEL', 'repeatable read')
    clean_env.setenv('LOG_LEVEL', 'debug')
    clean_env.setenv('LOG_FILE', 'queries.log')

    config = Config()

    assert (config.db.host, config.db.port, config.db.database) == ('db', 6543, 'shop')
    assert config.query.log_param_length == 20
    assert config.transaction.max_attempts == 9
    assert config.transaction.isolation_level == 'REPEATABLE READ'
    assert config.logging.level == 'DEBUG'
    assert config.logging.log_file == 'queries.log'


@pytest.mark.unit
def test_connection_helpers():
    """URL and psycopg2 keyword arguments, with a database override."""
    db = DatabaseConfig(host='h', port=1, user='u', password='p', database='d')

    assert db.get_connection_string() == 'postgresql://u:p@h:1/d'
    assert db.get_connection_string(database='other') == 'postgresql://u:p@h:1/other'
    assert db.get_connection_params('other') == {
        'host': 'h', 'port': 1, 'user': 'u', 'password': 'p', 'dbname': 'other',
    }


@pytest.mark.unit
def test_connection_string_escapes_credentials():
    """Reserved URL characters in the user or password survive a parse."""
    db = DatabaseConfig(host='h', port=1, user='ann@corp', password='p@ss:w/rd #1', database='d')

    assert db.get_connection_string() == 'postgresql://ann%40corp:p%40ss%3Aw%2Frd%20%231@h:1/d'
    url = make_url(db.get_connection_string())
    assert (url.username, url.password, url.host, url.port, url.database) == \
        ('ann@corp', 'p@ss:w/rd #1', 'h', 1, 'd')


# ===================
# 2. EDGE CASE TESTS
# ===================

@pytest.mark.edge_case
@pytest.mark.parametrize("value, expected", [
    ('true', True), ('1', True), (' YES ', True), ('on', True),
    ('false', False), ('0', False), ('off', False), ('', False),
])
def test_log_sql_flag_parsing(clean_env, value, expected):
    """QUERY_LOG_SQL accepts the usual spellings of a boolean."""
    clean_env.setenv('QUERY_LOG_SQL', value)

    assert Config().query.log_sql is expected


@pytest.mark.edge_case
def test_invalid_transaction_settings():
    """Impossible retry settings fail at load time."""
    with pytest.raises(ValueError, match="TXN_MAX_ATTEMPTS"):
        TransactionConfig(max_attempts=0)
    with pytest.raises(ValueError, match="TXN_ISOLATION_LEVEL"):
        TransactionConfig(isolation_level='CHAOS')


@pytest.mark.edge_case
def test_invalid_isolation_level_from_environment(clean_env):
    """A bad TXN_ISOLATION_LEVEL makes Config() raise."""
    clean_env.setenv('TXN_ISOLATION_LEVEL', 'read uncommitted')

    with pytest.raises(ValueError):
        Config()
