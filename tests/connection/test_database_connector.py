"""
Tests for DatabaseConnector class.

This module tests engine creation, the retried connection check, timeout
handling and error wrapping.
"""

import pytest
from unittest.mock import Mock, patch, MagicMock
from func_timeout import FunctionTimedOut
from sqlalchemy.exc import OperationalError

from src.config import DatabaseConfig
from src.connection import CredentialsHandler, DatabaseConnector
from src.exceptions import NestConnectionError, NestAuthenticationError


def _operational_error():
    return OperationalError("SELECT 1", {}, Exception("server has gone away"))


class TestDatabaseConnector:
    """Test cases for DatabaseConnector class."""

    @pytest.fixture
    def sqlite_config(self, tmp_path):
        return DatabaseConfig(driver="sqlite", database=str(tmp_path / "nests.sqlite"))

    @pytest.fixture
    def mysql_config(self):
        return DatabaseConfig(
            host="db.example.org",
            port=3306,
            database="fletchling",
            username="fletchling",
            password_env="NESTS_DB_PASSWORD",
            max_pool=0,
            connect_timeout_seconds=5
        )

    @pytest.fixture
    def mock_credentials(self):
        handler = Mock(spec=CredentialsHandler)
        handler.get_password.return_value = "s3cret"
        return handler

    def test_init_not_connected(self, sqlite_config):
        connector = DatabaseConnector(sqlite_config)

        assert not connector.is_connected()
        assert connector.get_engine() is None

    def test_connect_sqlite(self, sqlite_config):
        """A real SQLite file database passes the connection check."""
        connector = DatabaseConnector(sqlite_config)

        engine = connector.connect()

        assert connector.is_connected()
        assert connector.get_engine() is engine
        assert connector.connect() is engine

        connector.disconnect()
        assert not connector.is_connected()

    @patch('src.connection.database_connector.func_timeout')
    @patch('src.connection.database_connector.create_engine')
    def test_connect_mysql_pool_settings(self, mock_create_engine, mock_func_timeout,
                                         mysql_config, mock_credentials):
        connector = DatabaseConnector(mysql_config, mock_credentials)

        engine = connector.connect()

        assert engine is mock_create_engine.return_value
        url = mock_create_engine.call_args.args[0]
        assert url.drivername == "mysql+pymysql"
        assert url.password == "s3cret"
        assert url.host == "db.example.org"
        kwargs = mock_create_engine.call_args.kwargs
        assert kwargs["pool_size"] == 10
        assert kwargs["pool_pre_ping"] is True
        mock_func_timeout.assert_called_once_with(5, connector._verify_connection, args=(engine,))

    @patch('src.connection.database_connector.func_timeout')
    @patch('src.connection.database_connector.create_engine')
    def test_connect_timeout(self, mock_create_engine, mock_func_timeout, mysql_config, mock_credentials):
        mock_func_timeout.side_effect = FunctionTimedOut()
        connector = DatabaseConnector(mysql_config, mock_credentials)

        with pytest.raises(NestConnectionError) as exc_info:
            connector.connect()

        assert "Connection timeout" in str(exc_info.value)
        assert not connector.is_connected()
        mock_create_engine.return_value.dispose.assert_called_once()

    @patch('src.connection.database_connector.func_timeout')
    @patch('src.connection.database_connector.create_engine')
    def test_connect_wraps_sqlalchemy_errors(self, mock_create_engine, mock_func_timeout,
                                             mysql_config, mock_credentials):
        mock_func_timeout.side_effect = _operational_error()
        connector = DatabaseConnector(mysql_config, mock_credentials)

        with pytest.raises(NestConnectionError) as exc_info:
            connector.connect()

        assert "Failed to connect to database" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, OperationalError)
        mock_create_engine.return_value.dispose.assert_called_once()
        assert not connector.is_connected()

    def test_connect_missing_password(self, mysql_config):
        handler = Mock(spec=CredentialsHandler)
        handler.get_password.side_effect = NestAuthenticationError("NESTS_DB_PASSWORD environment variable not set")
        connector = DatabaseConnector(mysql_config, handler)

        with pytest.raises(NestAuthenticationError):
            connector.connect()

    def test_verify_connection_retries_operational_errors(self, sqlite_config):
        """The connection check is retried up to three times."""
        connector = DatabaseConnector(sqlite_config)
        engine = MagicMock()
        engine.connect.side_effect = [_operational_error(), _operational_error(), MagicMock()]

        with patch.object(DatabaseConnector._verify_connection.retry, 'sleep'):
            connector._verify_connection(engine)

        assert engine.connect.call_count == 3

    def test_verify_connection_gives_up_after_three_attempts(self, sqlite_config):
        connector = DatabaseConnector(sqlite_config)
        engine = MagicMock()
        engine.connect.side_effect = _operational_error()

        with patch.object(DatabaseConnector._verify_connection.retry, 'sleep'):
            with pytest.raises(OperationalError):
                connector._verify_connection(engine)

        assert engine.connect.call_count == 3
