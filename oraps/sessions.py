"""Oracle session lookups for oraps."""

import oracledb
import typer

from oraps.types import SessionInfo
from oraps.ui import print_error

_SESSION_QUERY = """
    SELECT p.spid, s.sid, s.serial#, s.username, s.sql_id
      FROM v$session s
      JOIN v$process p ON s.paddr = p.addr
     WHERE p.spid IN ({binds})
"""

# Oracle rejects IN lists longer than this (ORA-01795)
MAX_IN_LIST = 1000


# ===== Connection =====


def connect(
    user: str | None, password: str | None, dsn: str | None, sysdba: bool = True
) -> oracledb.Connection:
    """Open the monitoring connection.

    Without a user, falls back to OS authentication ("/ as sysdba"), which
    needs the thick client.
    """
    mode = oracledb.AUTH_MODE_SYSDBA if sysdba else oracledb.AUTH_MODE_DEFAULT

    if not user:
        oracledb.init_oracle_client()
        if dsn:
            return oracledb.connect(dsn=dsn, mode=mode, externalauth=True)
        return oracledb.connect(mode=mode)

    return oracledb.connect(user=user, password=password, dsn=dsn, mode=mode)


def connect_handler(
    user: str | None, password: str | None, dsn: str | None, sysdba: bool = True
) -> oracledb.Connection:
    try:
        return connect(user, password, dsn, sysdba)
    except oracledb.Error as e:
        typer.echo(f"❌ Failed to connect to Oracle: {e}", err=True)
        raise typer.Exit(code=1)


# ===== Session resolution =====


def build_session_query(pids: list[int]) -> tuple[str, list[str]]:
    """Build the session query and its bind values for the given PIDs.

    v$process.spid is a VARCHAR2, so the PIDs are bound as strings.
    """
    binds = ", ".join(f":{idx + 1}" for idx in range(len(pids)))
    return _SESSION_QUERY.format(binds=binds), [str(pid) for pid in pids]


def resolve_sessions(
    connection: oracledb.Connection, pids: list[int]
) -> dict[int, SessionInfo]:
    """Map OS process ids to the Oracle sessions they back.

    Raises:
        oracledb.Error: If the query fails
    """
    if not pids:
        return {}

    sessions: dict[int, SessionInfo] = {}
    with connection.cursor() as cursor:
        for start in range(0, len(pids), MAX_IN_LIST):
            sql, params = build_session_query(pids[start : start + MAX_IN_LIST])
            cursor.execute(sql, params)
            sessions.update(_sessions_from_rows(cursor.fetchall()))
    return sessions


def _sessions_from_rows(rows: list[tuple]) -> dict[int, SessionInfo]:
    sessions: dict[int, SessionInfo] = {}
    for spid, sid, serial, username, sql_id in rows:
        try:
            os_pid = int(spid)
        except (TypeError, ValueError):
            continue
        sessions[os_pid] = SessionInfo(
            os_process_id=os_pid,
            session_id=sid,
            serial_number=serial,
            username=username,
            sql_id=sql_id,
        )
    return sessions


def resolve_sessions_handler(
    connection: oracledb.Connection, pids: list[int]
) -> dict[int, SessionInfo]:
    try:
        return resolve_sessions(connection, pids)
    except oracledb.Error as e:
        print_error(f"Session query failed: {e}")
        return {}
