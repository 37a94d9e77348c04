from unittest.mock import MagicMock, patch

import oracledb
import pytest
from typer import Exit

from oraps.sessions import (
    build_session_query,
    connect,
    connect_handler,
    resolve_sessions,
    resolve_sessions_handler,
)
from oraps.types import SessionInfo


def _connection_returning(rows: list[tuple]) -> tuple[MagicMock, MagicMock]:
    connection = MagicMock()
    cursor = MagicMock()
    cursor.fetchall.return_value = rows
    connection.cursor.return_value.__enter__.return_value = cursor
    return connection, cursor


class TestBuildSessionQuery:
    """Tests for build_session_query function."""

    def test_one_bind_per_pid(self):
        sql, params = build_session_query([101, 202, 303])

        assert "IN (:1, :2, :3)" in sql
        assert params == ["101", "202", "303"]

    def test_joins_session_and_process_views(self):
        sql, _ = build_session_query([1])

        assert "v$session" in sql
        assert "v$process" in sql
        assert "s.paddr = p.addr" in sql


class TestResolveSessions:
    """Tests for resolve_sessions function."""

    def test_maps_rows_by_os_pid(self):
        connection, cursor = _connection_returning([("101", 5, 100, "APP", "abc")])

        result = resolve_sessions(connection, [101, 202])

        assert result == {
            101: SessionInfo(
                os_process_id=101,
                session_id=5,
                serial_number=100,
                username="APP",
                sql_id="abc",
            )
        }
        cursor.execute.assert_called_once()
        assert cursor.execute.call_args[0][1] == ["101", "202"]

    def test_background_session_without_username(self):
        connection, _ = _connection_returning([("77", 2, 1, None, None)])

        result = resolve_sessions(connection, [77])

        assert result[77].username is None
        assert result[77].sql_id is None

    def test_large_pid_list_split_into_in_list_limit(self):
        connection, cursor = _connection_returning([])
        cursor.fetchall.side_effect = [
            [("1", 10, 1, "APP", "a1")],
            [("1001", 20, 2, "BATCH", "b2")],
        ]

        result = resolve_sessions(connection, list(range(1, 1002)))

        assert cursor.execute.call_count == 2
        first_sql, first_params = cursor.execute.call_args_list[0][0]
        second_sql, second_params = cursor.execute.call_args_list[1][0]
        assert len(first_params) == 1000
        assert ":1000)" in first_sql
        assert ":1001" not in first_sql
        assert second_params == ["1001"]
        assert result[1].session_id == 10
        assert result[1001].session_id == 20

    def test_no_pids_skips_query(self):
        connection = MagicMock()

        assert resolve_sessions(connection, []) == {}
        connection.cursor.assert_not_called()


class TestResolveSessionsHandler:
    """Tests for resolve_sessions_handler function."""

    @patch("oraps.sessions.print_error")
    def test_query_failure_returns_empty_map(self, mock_print_error: MagicMock):
        connection, cursor = _connection_returning([])
        cursor.execute.side_effect = oracledb.DatabaseError("ORA-00942")

        result = resolve_sessions_handler(connection, [101])

        assert result == {}
        mock_print_error.assert_called_once()
        assert "ORA-00942" in mock_print_error.call_args[0][0]

    def test_success_passes_through(self):
        connection, _ = _connection_returning([("101", 5, 100, "APP", "abc")])

        result = resolve_sessions_handler(connection, [101])

        assert list(result) == [101]


class TestConnect:
    """Tests for connect and connect_handler functions."""

    @patch("oraps.sessions.oracledb.connect")
    def test_password_auth_as_sysdba(self, mock_connect: MagicMock):
        connect("system", "secret", "db:1521/ORCL")

        mock_connect.assert_called_once_with(
            user="system",
            password="secret",
            dsn="db:1521/ORCL",
            mode=oracledb.AUTH_MODE_SYSDBA,
        )

    @patch("oraps.sessions.oracledb.connect")
    def test_no_sysdba(self, mock_connect: MagicMock):
        connect("monitor", "secret", "db/ORCL", sysdba=False)

        assert mock_connect.call_args.kwargs["mode"] == oracledb.AUTH_MODE_DEFAULT

    @patch("oraps.sessions.oracledb.init_oracle_client")
    @patch("oraps.sessions.oracledb.connect")
    def test_os_authentication_without_user(
        self, mock_connect: MagicMock, mock_init: MagicMock
    ):
        connect(None, None, None)

        mock_init.assert_called_once_with()
        mock_connect.assert_called_once_with(mode=oracledb.AUTH_MODE_SYSDBA)

    @patch("oraps.sessions.connect")
    def test_handler_exits_on_failure(self, mock_connect: MagicMock):
        mock_connect.side_effect = oracledb.DatabaseError("ORA-12541: no listener")

        with pytest.raises(Exit):
            connect_handler("system", "secret", "db/ORCL")
