"""Fixed-width table rendering for oraps.

The table is plain text so the exact same bytes can go to the console and
to the output file.
"""

import unicodedata
from datetime import datetime

from oraps.types import MonitorRow, ProcessSample, SessionInfo

PLACEHOLDER = "N/A"

_PID_WIDTH = 8
_CPU_WIDTH = 6
_MEM_WIDTH = 6
_SID_WIDTH = 6
_SERIAL_WIDTH = 8
_USER_WIDTH = 15
_SQL_ID_WIDTH = 14


def sanitize_field(value: object, width: int) -> str:
    """Fit a value into a column of exactly ``width`` code points.

    Control characters are replaced with "?" so they can't break the layout.
    Truncation counts code points, not bytes.
    """
    text = "" if value is None else str(value)
    text = "".join("?" if unicodedata.category(ch) == "Cc" else ch for ch in text)
    return text[:width].ljust(width)


def _columns(command_width: int) -> list[tuple[str, int]]:
    return [
        ("PID", _PID_WIDTH),
        ("CPU%", _CPU_WIDTH),
        ("MEM%", _MEM_WIDTH),
        ("COMMAND", command_width),
        ("SID", _SID_WIDTH),
        ("SERIAL#", _SERIAL_WIDTH),
        ("USERNAME", _USER_WIDTH),
        ("SQL_ID", _SQL_ID_WIDTH),
    ]


def _format_line(values: list[object], command_width: int) -> str:
    return " ".join(
        sanitize_field(value, width)
        for value, (_, width) in zip(values, _columns(command_width))
    ).rstrip()


def merge_rows(
    samples: list[ProcessSample], sessions: dict[int, SessionInfo]
) -> list[MonitorRow]:
    """Left-join process samples with sessions by OS process id."""
    return [MonitorRow(process=s, session=sessions.get(s.pid)) for s in samples]


def _row_values(row: MonitorRow) -> list[object]:
    proc = row.process
    session = row.session
    if session is None:
        session_values: list[object] = [PLACEHOLDER] * 4
    else:
        session_values = [
            session.session_id,
            session.serial_number,
            session.username or PLACEHOLDER,
            session.sql_id or PLACEHOLDER,
        ]
    return [proc.pid, proc.cpu_percent, proc.mem_percent, proc.command] + session_values


def render_table(rows: list[MonitorRow], command_width: int = 20) -> str:
    columns = _columns(command_width)
    total_width = sum(width for _, width in columns) + len(columns) - 1
    separator = "-" * total_width

    lines = [_format_line([name for name, _ in columns], command_width), separator]
    lines.extend(_format_line(_row_values(row), command_width) for row in rows)
    lines.append(separator)

    session_count = sum(1 for row in rows if row.session is not None)
    lines.append(f"Total processes: {len(rows)}, Oracle sessions: {session_count}")
    return "\n".join(lines) + "\n"


def render_banner(run_number: int, timestamp: datetime) -> str:
    return f"=== {timestamp:%Y-%m-%d %H:%M:%S} | Run #{run_number} ==="


def render_file_block(table: str, run_number: int, timestamp: datetime) -> str:
    """Wrap a rendered table for appending to the output file."""
    return f"{render_banner(run_number, timestamp)}\n{table}\n"
