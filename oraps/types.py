"""Type definitions for oraps."""

from dataclasses import dataclass
from enum import Enum


@dataclass
class ProcessSample:
    pid: int
    cpu_percent: str  # decimal string as printed by ps, e.g. "12.5"
    mem_percent: str
    command: str


class SkipReason(Enum):
    TOO_FEW_FIELDS = "too few fields"
    NON_NUMERIC_PID = "pid is not numeric"


@dataclass
class SkippedLine:
    line: str
    reason: SkipReason


@dataclass
class SessionInfo:
    os_process_id: int
    session_id: int
    serial_number: int
    username: str | None
    sql_id: str | None


@dataclass
class MonitorRow:
    process: ProcessSample
    session: SessionInfo | None = None


@dataclass
class MonitorSettings:
    interval: int = 5
    count: int | None = None  # None runs until cancelled
    top: int = 15
    output: str | None = None
    command_width: int = 20
